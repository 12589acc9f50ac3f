"""Stripe Checkout sessions.

Verification trusts the `success` flag the client echoes back from the
success/cancel redirect; nothing is re-read from Stripe.
"""

from typing import Any

import stripe
from starlette.concurrency import run_in_threadpool

from bgremoval.core.exceptions import BadRequestError, GatewayError
from bgremoval.core.logging import get_logger
from bgremoval.gateways.base import Checkout, PaymentGateway, PaymentOutcome, Resolution, minor_units
from bgremoval.models.transaction import Transaction

log = get_logger(__name__)


def _is_success(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return value == "true"


class StripeGateway(PaymentGateway):
    name = "stripe"

    def __init__(self, api_key: str, client: Any | None = None) -> None:
        if client is None:
            if not api_key:
                raise BadRequestError("Payments not configured")
            client = stripe.StripeClient(api_key)
        self.client = client

    def check_checkout(self, origin: str | None = None) -> None:
        if not origin:
            raise BadRequestError("Missing origin")

    async def create_checkout(self, transaction: Transaction, currency: str, origin: str | None = None) -> Checkout:
        self.check_checkout(origin)
        tid = str(transaction.id)
        params = {
            "success_url": f"{origin}/verify?success=true&transactionId={tid}",
            "cancel_url": f"{origin}/verify?success=false&transactionId={tid}",
            "line_items": [
                {
                    "price_data": {
                        "currency": currency.lower(),
                        "product_data": {"name": "Credit Purchase"},
                        "unit_amount": minor_units(transaction.amount),
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "metadata": {"transaction_id": tid},
        }
        try:
            session = await run_in_threadpool(self.client.checkout.sessions.create, params=params)
        except stripe.StripeError as e:
            log.exception("stripe_session_failed", transaction_id=tid)
            raise GatewayError(e.user_message or str(e) or "Payment provider error") from e
        return Checkout(reference=session.id, response={"session_url": session.url})

    async def resolve_outcome(self, params: dict[str, Any]) -> Resolution:
        outcome = PaymentOutcome.PAID if _is_success(params.get("success")) else PaymentOutcome.FAILED
        return Resolution(transaction_id=params.get("transactionId"), outcome=outcome)
