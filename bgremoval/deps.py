"""Shared FastAPI dependencies."""

from fastapi import Depends, Request

from bgremoval.core.config import Settings, get_settings
from bgremoval.core.exceptions import UnauthorizedError
from bgremoval.core.logging import bind_user
from bgremoval.core.security import clerk_id_from_token
from bgremoval.gateways.razorpay_orders import RazorpayGateway
from bgremoval.gateways.stripe_checkout import StripeGateway
from bgremoval.services.removal import ClipdropClient

TOKEN_HEADER = "token"


def _token_from_request(request: Request) -> str | None:
    token = request.headers.get(TOKEN_HEADER)
    if token:
        return token
    auth = request.headers.get("Authorization") or ""
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


async def get_clerk_id(request: Request) -> str:
    """Dependency: Clerk user id from the session token (decoded, not verified)."""
    token = _token_from_request(request)
    if not token:
        raise UnauthorizedError()
    clerk_id = clerk_id_from_token(token)
    bind_user(clerk_id)
    return clerk_id


def get_razorpay_gateway(settings: Settings = Depends(get_settings)) -> RazorpayGateway:
    return RazorpayGateway(settings.razorpay_key_id, settings.razorpay_key_secret)


def get_stripe_gateway(settings: Settings = Depends(get_settings)) -> StripeGateway:
    return StripeGateway(settings.stripe_secret_key)


def get_removal_client(settings: Settings = Depends(get_settings)) -> ClipdropClient:
    return ClipdropClient(
        settings.clipdrop_api_key,
        settings.clipdrop_api_url,
        timeout=settings.removal_timeout_seconds,
    )
