from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bgremoval.models.transaction import Transaction


class PaymentOutcome(str, Enum):
    PAID = "paid"
    FAILED = "failed"


@dataclass
class Checkout:
    """What a gateway hands back when a purchase starts."""
    reference: str  # order id / session id, stored on the transaction
    response: dict[str, Any] = field(default_factory=dict)  # merged into the API response


@dataclass
class Resolution:
    transaction_id: str | None
    outcome: PaymentOutcome


class PaymentGateway(ABC):
    name: str

    def check_checkout(self, origin: str | None = None) -> None:
        """Reject checkout input up front, before a transaction is recorded."""

    @abstractmethod
    async def create_checkout(self, transaction: Transaction, currency: str, origin: str | None = None) -> Checkout:
        """Open a provider-side order/session for an unpaid transaction."""
        ...

    @abstractmethod
    async def resolve_outcome(self, params: dict[str, Any]) -> Resolution:
        """Map provider-specific verification input to (transaction id, outcome)."""
        ...


def minor_units(amount: int) -> int:
    return amount * 100
