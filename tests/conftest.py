import base64
import os
from types import SimpleNamespace
from typing import Any, AsyncGenerator

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Use test DB
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("MONGODB_DB_NAME", "bg-removal-test")
os.environ.setdefault("CLERK_WEBHOOK_SECRET", "whsec_" + base64.b64encode(b"test-webhook-secret").decode())
os.environ.setdefault("CURRENCY", "INR")

from bgremoval.gateways.base import Checkout, PaymentGateway, PaymentOutcome, Resolution  # noqa: E402


@pytest_asyncio.fixture(autouse=True)
async def db() -> AsyncGenerator[None, None]:
    """Fresh in-memory database per test."""
    from mongomock_motor import AsyncMongoMockClient

    from bgremoval.db.init import init_db
    await init_db(client=AsyncMongoMockClient())
    yield


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    from bgremoval.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_user():
    from bgremoval.models.user import User

    async def _make(clerk_id: str = "user_1", credit_balance: int = 5) -> User:
        user = User(clerk_id=clerk_id, email=f"{clerk_id}@example.com", credit_balance=credit_balance)
        await user.insert()
        return user

    return _make


def auth_headers(clerk_id: str = "user_1") -> dict[str, str]:
    token = jwt.encode({"clerkId": clerk_id, "sub": clerk_id}, "not-checked", algorithm="HS256")
    return {"token": token}


class FakeGateway(PaymentGateway):
    """Records checkouts; resolves outcomes from a preset table."""

    def __init__(self, name: str = "razorpay", paid: bool = True) -> None:
        self.name = name
        self.paid = paid
        self.checkouts: list[Any] = []

    async def create_checkout(self, transaction, currency, origin=None) -> Checkout:
        self.checkouts.append(SimpleNamespace(transaction=transaction, currency=currency, origin=origin))
        ref = f"ref_{transaction.id}"
        return Checkout(reference=ref, response={"order": {"id": ref, "receipt": str(transaction.id)}})

    async def resolve_outcome(self, params: dict[str, Any]) -> Resolution:
        outcome = PaymentOutcome.PAID if self.paid else PaymentOutcome.FAILED
        return Resolution(transaction_id=params.get("transactionId"), outcome=outcome)


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()
