"""Razorpay orders: server-side status lookup by order id."""

from typing import Any

import razorpay
from starlette.concurrency import run_in_threadpool

from bgremoval.core.exceptions import BadRequestError, GatewayError
from bgremoval.core.logging import get_logger
from bgremoval.gateways.base import Checkout, PaymentGateway, PaymentOutcome, Resolution, minor_units
from bgremoval.models.transaction import Transaction

log = get_logger(__name__)


class RazorpayGateway(PaymentGateway):
    name = "razorpay"

    def __init__(self, key_id: str, key_secret: str, client: Any | None = None) -> None:
        if client is None:
            if not key_id or not key_secret:
                raise BadRequestError("Payments not configured")
            client = razorpay.Client(auth=(key_id, key_secret))
        self.client = client

    async def create_checkout(self, transaction: Transaction, currency: str, origin: str | None = None) -> Checkout:
        options = {
            "amount": minor_units(transaction.amount),
            "currency": currency,
            "receipt": str(transaction.id),
        }
        try:
            order = await run_in_threadpool(self.client.order.create, options)
        except Exception as e:
            log.exception("razorpay_order_failed", transaction_id=str(transaction.id))
            raise GatewayError(str(e) or "Payment provider error") from e
        return Checkout(reference=order["id"], response={"order": order})

    async def resolve_outcome(self, params: dict[str, Any]) -> Resolution:
        order_id = params.get("razorpay_order_id")
        if not order_id:
            raise BadRequestError("Missing razorpay_order_id")
        try:
            order = await run_in_threadpool(self.client.order.fetch, order_id)
        except Exception as e:
            log.exception("razorpay_fetch_failed", order_id=order_id)
            raise GatewayError(str(e) or "Payment provider error") from e
        outcome = PaymentOutcome.PAID if order.get("status") == "paid" else PaymentOutcome.FAILED
        return Resolution(transaction_id=order.get("receipt"), outcome=outcome)
