import base64
import hashlib
import hmac
import time
from typing import Any, Mapping

import jwt

from bgremoval.core.exceptions import UnauthorizedError, WebhookVerificationError

SVIX_SECRET_PREFIX = "whsec_"


def _svix_key(secret: str) -> bytes:
    if secret.startswith(SVIX_SECRET_PREFIX):
        secret = secret[len(SVIX_SECRET_PREFIX):]
    try:
        return base64.b64decode(secret)
    except ValueError as e:
        raise WebhookVerificationError("Invalid webhook secret") from e


def sign_svix_payload(secret: str, msg_id: str, timestamp: str, payload: bytes) -> str:
    """Return the `v1,<signature>` entry Svix would send for this message."""
    to_sign = f"{msg_id}.{timestamp}.".encode("utf-8") + payload
    digest = hmac.new(_svix_key(secret), to_sign, hashlib.sha256).digest()
    return "v1," + base64.b64encode(digest).decode("ascii")


def verify_svix_webhook(
    payload: bytes,
    headers: Mapping[str, str],
    secret: str,
    tolerance_seconds: int = 300,
    now: float | None = None,
) -> None:
    """Raise WebhookVerificationError unless one of the svix-signature entries matches."""
    if not secret:
        raise WebhookVerificationError("Webhook secret not configured")
    msg_id = headers.get("svix-id")
    timestamp = headers.get("svix-timestamp")
    signature_header = headers.get("svix-signature")
    if not msg_id or not timestamp or not signature_header:
        raise WebhookVerificationError("Missing required headers")
    try:
        ts = int(timestamp)
    except ValueError as e:
        raise WebhookVerificationError("Invalid signature headers") from e
    now = time.time() if now is None else now
    if ts < now - tolerance_seconds:
        raise WebhookVerificationError("Message timestamp too old")
    if ts > now + tolerance_seconds:
        raise WebhookVerificationError("Message timestamp too new")

    expected = sign_svix_payload(secret, msg_id, timestamp, payload).split(",", 1)[1]
    for entry in signature_header.split(" "):
        version, _, sig = entry.partition(",")
        if version != "v1":
            continue
        if hmac.compare_digest(expected, sig):
            return
    raise WebhookVerificationError("No matching signature found")


def decode_session_token(token: str) -> dict[str, Any]:
    """Decode the Clerk session JWT without verifying its signature.

    The session token template adds a `clerkId` claim; `sub` carries the same
    id on stock tokens.
    """
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise UnauthorizedError("Not Authorized Login Again") from e


def clerk_id_from_token(token: str) -> str:
    claims = decode_session_token(token)
    clerk_id = claims.get("clerkId") or claims.get("sub")
    if not clerk_id:
        raise UnauthorizedError("Not Authorized Login Again")
    return clerk_id
