from datetime import datetime
from typing import Literal

from beanie import Document
from pydantic import Field

Gateway = Literal["razorpay", "stripe"]


class Transaction(Document):
    """One credit purchase attempt. `payment` flips false -> true once, when credits are granted."""

    clerk_id: str
    plan: str
    amount: int  # major currency units
    credits: int
    gateway: Gateway
    gateway_ref: str | None = None  # razorpay order id / stripe checkout session id
    payment: bool = False
    date: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "transactions"
        indexes = [
            [("clerk_id", 1), ("date", -1)],
            [("gateway_ref", 1)],
        ]
