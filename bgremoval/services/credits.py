"""Credit balance on the user record: atomic spend and grant."""

from beanie import UpdateResponse
from beanie.operators import Inc

from bgremoval.core.audit import log_event
from bgremoval.core.exceptions import BadRequestError, InsufficientCreditsError, NotFoundError
from bgremoval.core.logging import get_logger
from bgremoval.models.user import User

log = get_logger(__name__)


async def get_user(clerk_id: str | None) -> User | None:
    if not clerk_id:
        return None
    return await User.find_one(User.clerk_id == clerk_id)


async def get_balance(clerk_id: str) -> int:
    """Return current balance; NotFoundError if the user is not synced."""
    user = await get_user(clerk_id)
    if not user:
        raise NotFoundError("User Not Found")
    return user.credit_balance


async def spend(clerk_id: str, n: int = 1, reference_id: str | None = None) -> int:
    """
    Take n credits off the balance and return the new balance.
    The balance check and the decrement are one conditional update, so two
    concurrent spends can never drive the balance below zero.
    """
    if n <= 0:
        raise BadRequestError("Credit amount must be positive")
    user = await User.find_one(
        User.clerk_id == clerk_id,
        User.credit_balance >= n,
    ).update(Inc({User.credit_balance: -n}), response_type=UpdateResponse.NEW_DOCUMENT)
    if user is None:
        current = await get_user(clerk_id)
        if not current:
            raise NotFoundError("User Not Found")
        raise InsufficientCreditsError(balance=current.credit_balance)
    log.info("credits_spent", clerk_id=clerk_id, amount=n, balance=user.credit_balance)
    await log_event(clerk_id, "credits_spent", "user", clerk_id, {"amount": n, "reference_id": reference_id})
    return user.credit_balance


async def grant(clerk_id: str, n: int, reference_id: str | None = None) -> int:
    """Add n credits and return the new balance."""
    if n <= 0:
        raise BadRequestError("Credit amount must be positive")
    user = await User.find_one(User.clerk_id == clerk_id).update(
        Inc({User.credit_balance: n}),
        response_type=UpdateResponse.NEW_DOCUMENT,
    )
    if user is None:
        raise NotFoundError("User Not Found")
    log.info("credits_granted", clerk_id=clerk_id, amount=n, balance=user.credit_balance)
    await log_event(clerk_id, "credits_granted", "transaction", reference_id, {"amount": n})
    return user.credit_balance
