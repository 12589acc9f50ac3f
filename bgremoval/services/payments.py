"""Credit purchases: transaction creation and one-shot settlement."""

from typing import Any

from beanie import PydanticObjectId, UpdateResponse
from beanie.operators import Set
from bson.errors import InvalidId

from bgremoval.core.config import get_settings
from bgremoval.core.exceptions import (
    AlreadyVerifiedError,
    BadRequestError,
    NotFoundError,
    PaymentFailedError,
)
from bgremoval.core.logging import get_logger
from bgremoval.gateways.base import PaymentGateway, PaymentOutcome
from bgremoval.models.transaction import Transaction
from bgremoval.services import credits as credits_service
from bgremoval.services.plans import get_plan

log = get_logger(__name__)


async def initiate_purchase(
    clerk_id: str | None,
    plan_id: str | None,
    gateway: PaymentGateway,
    origin: str | None = None,
) -> dict[str, Any]:
    """Create an unpaid transaction for the plan and open a checkout with the gateway."""
    user = await credits_service.get_user(clerk_id)
    if not user or not plan_id:
        raise BadRequestError("Invalid Credentials")
    plan = get_plan(plan_id)
    gateway.check_checkout(origin)

    transaction = Transaction(
        clerk_id=user.clerk_id,
        plan=plan.id,
        amount=plan.amount,
        credits=plan.credits,
        gateway=gateway.name,
    )
    await transaction.insert()

    checkout = await gateway.create_checkout(transaction, get_settings().currency, origin=origin)
    transaction.gateway_ref = checkout.reference
    await transaction.save()
    log.info(
        "purchase_initiated",
        clerk_id=user.clerk_id,
        transaction_id=str(transaction.id),
        gateway=gateway.name,
        plan=plan.id,
    )
    return checkout.response


def _parse_id(transaction_id: str | None) -> PydanticObjectId:
    if not transaction_id:
        raise NotFoundError("Transaction not found")
    try:
        return PydanticObjectId(transaction_id)
    except (InvalidId, TypeError) as e:
        raise NotFoundError("Transaction not found") from e


async def settle_transaction(transaction_id: str | None, outcome: PaymentOutcome) -> dict[str, Any]:
    """
    Flip the paid flag and grant credits, at most once per transaction.
    The flag is claimed with a conditional update before any credit moves, so
    duplicate verifications race on the flag and only the winner grants.
    A failed outcome leaves the transaction unpaid and retryable.
    """
    if outcome is not PaymentOutcome.PAID:
        raise PaymentFailedError()
    oid = _parse_id(transaction_id)

    claimed = await Transaction.find_one(
        Transaction.id == oid,
        Transaction.payment == False,  # noqa: E712
    ).update(Set({Transaction.payment: True}), response_type=UpdateResponse.NEW_DOCUMENT)
    if claimed is None:
        if await Transaction.get(oid) is None:
            raise NotFoundError("Transaction not found")
        raise AlreadyVerifiedError()

    try:
        balance = await credits_service.grant(claimed.clerk_id, claimed.credits, reference_id=str(oid))
    except NotFoundError:
        # Owner vanished between purchase and verification: hand the flag back.
        await Transaction.find_one(Transaction.id == oid).update(Set({Transaction.payment: False}))
        log.warning("payment_release", transaction_id=str(oid), clerk_id=claimed.clerk_id)
        raise
    log.info("payment_verified", transaction_id=str(oid), clerk_id=claimed.clerk_id, credits=claimed.credits)
    return {"credits": claimed.credits, "balance": balance}


async def verify_payment(gateway: PaymentGateway, params: dict[str, Any]) -> dict[str, Any]:
    """Resolve the provider outcome, then settle through the shared routine."""
    resolution = await gateway.resolve_outcome(params)
    log.info(
        "payment_outcome",
        gateway=gateway.name,
        transaction_id=resolution.transaction_id,
        outcome=resolution.outcome.value,
    )
    return await settle_transaction(resolution.transaction_id, resolution.outcome)
