"""Credit balance spend/grant."""

import asyncio

import pytest

from bgremoval.core.exceptions import BadRequestError, InsufficientCreditsError, NotFoundError
from bgremoval.models.audit_log import AuditLog
from bgremoval.models.user import User
from bgremoval.services import credits as credits_service


async def test_get_balance(make_user):
    await make_user(credit_balance=7)
    assert await credits_service.get_balance("user_1") == 7


async def test_get_balance_unknown_user():
    with pytest.raises(NotFoundError):
        await credits_service.get_balance("nobody")


async def test_spend_decrements(make_user):
    await make_user(credit_balance=3)
    assert await credits_service.spend("user_1") == 2
    user = await User.find_one(User.clerk_id == "user_1")
    assert user.credit_balance == 2


async def test_spend_from_zero_rejected(make_user):
    await make_user(credit_balance=0)
    with pytest.raises(InsufficientCreditsError) as exc:
        await credits_service.spend("user_1")
    assert exc.value.details == {"creditBalance": 0}
    user = await User.find_one(User.clerk_id == "user_1")
    assert user.credit_balance == 0


async def test_spend_more_than_balance_rejected(make_user):
    await make_user(credit_balance=2)
    with pytest.raises(InsufficientCreditsError):
        await credits_service.spend("user_1", 3)
    assert await credits_service.get_balance("user_1") == 2


async def test_spend_unknown_user():
    with pytest.raises(NotFoundError):
        await credits_service.spend("nobody")


async def test_grant_adds_and_audits(make_user):
    await make_user(credit_balance=20)
    assert await credits_service.grant("user_1", 500, reference_id="tx1") == 520
    entry = await AuditLog.find_one(AuditLog.event_type == "credits_granted")
    assert entry.clerk_id == "user_1"
    assert entry.metadata == {"amount": 500}


async def test_grant_rejects_non_positive(make_user):
    await make_user()
    with pytest.raises(BadRequestError):
        await credits_service.grant("user_1", 0)


async def test_grant_unknown_user():
    with pytest.raises(NotFoundError):
        await credits_service.grant("nobody", 10)


async def test_concurrent_spends_take_last_credit_once(make_user):
    await make_user(credit_balance=1)

    results = await asyncio.gather(*(credits_service.spend("user_1") for _ in range(5)), return_exceptions=True)

    assert results.count(0) == 1
    assert sum(isinstance(r, InsufficientCreditsError) for r in results) == 4
    assert await credits_service.get_balance("user_1") == 0
