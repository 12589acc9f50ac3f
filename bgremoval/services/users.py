"""Clerk -> users collection sync, driven by Svix-signed webhooks."""

import json
from datetime import datetime
from typing import Any, Mapping

from pymongo.errors import DuplicateKeyError

from bgremoval.core.config import get_settings
from bgremoval.core.exceptions import BadRequestError
from bgremoval.core.logging import get_logger
from bgremoval.core.security import verify_svix_webhook
from bgremoval.models.user import User

log = get_logger(__name__)


def _primary_email(data: dict[str, Any]) -> str:
    addresses = data.get("email_addresses") or []
    if not addresses:
        return ""
    return addresses[0].get("email_address") or ""


def profile_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Mutable user fields carried by user.created / user.updated payloads."""
    return {
        "email": _primary_email(data),
        "first_name": data.get("first_name"),
        "last_name": data.get("last_name"),
        "photo": data.get("image_url"),
    }


async def create_user(data: dict[str, Any]) -> User:
    """Insert the user; a redelivered user.created leaves the existing record as is."""
    user = User(
        clerk_id=data["id"],
        credit_balance=get_settings().signup_credits,
        **profile_fields(data),
    )
    try:
        await user.insert()
    except DuplicateKeyError:
        log.info("user_create_duplicate", clerk_id=user.clerk_id)
        return await User.find_one(User.clerk_id == user.clerk_id)
    log.info("user_created", clerk_id=user.clerk_id, email=user.email)
    return user


async def update_user(data: dict[str, Any]) -> User | None:
    """Overwrite profile fields; returns None when no user has this id."""
    user = await User.find_one(User.clerk_id == data["id"])
    if not user:
        log.info("user_update_skipped", clerk_id=data["id"])
        return None
    for field, value in profile_fields(data).items():
        setattr(user, field, value)
    user.updated_at = datetime.utcnow()
    await user.save()
    log.info("user_updated", clerk_id=user.clerk_id)
    return user


async def delete_user(data: dict[str, Any]) -> bool:
    user = await User.find_one(User.clerk_id == data["id"])
    if not user:
        log.info("user_delete_skipped", clerk_id=data["id"])
        return False
    await user.delete()
    log.info("user_deleted", clerk_id=data["id"])
    return True


EVENT_HANDLERS = {
    "user.created": create_user,
    "user.updated": update_user,
    "user.deleted": delete_user,
}


async def apply_event(event: dict[str, Any]) -> None:
    """Dispatch a verified Clerk event; unknown types are ignored."""
    if not isinstance(event, dict):
        raise BadRequestError("Invalid webhook payload")
    handler = EVENT_HANDLERS.get(event.get("type"))
    if handler is None:
        log.debug("clerk_event_ignored", type=event.get("type"))
        return
    data = event.get("data") or {}
    if not isinstance(data, dict) or not data.get("id"):
        raise BadRequestError("Missing user id in event")
    await handler(data)


async def handle_clerk_webhook(payload: bytes, headers: Mapping[str, str]) -> None:
    """Verify the Svix signature, then apply the event."""
    settings = get_settings()
    verify_svix_webhook(
        payload,
        headers,
        settings.clerk_webhook_secret,
        tolerance_seconds=settings.webhook_tolerance_seconds,
    )
    try:
        event = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BadRequestError("Invalid webhook payload") from e
    await apply_event(event)
