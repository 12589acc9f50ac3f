"""Background removal via Clipdrop; one credit per processed image."""

import base64

import httpx

from bgremoval.core.exceptions import BadRequestError, InsufficientCreditsError, NotFoundError, RemovalServiceError
from bgremoval.core.logging import get_logger
from bgremoval.services import credits as credits_service

log = get_logger(__name__)


class ClipdropClient:
    """Posts an image to the remove-background endpoint; returns (bytes, content type)."""

    def __init__(self, api_key: str, url: str, timeout: float = 60.0, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def remove_background(self, image: bytes, filename: str, content_type: str) -> tuple[bytes, str]:
        if not self.api_key:
            raise RemovalServiceError("Background removal not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    self.url,
                    files={"image_file": (filename, image, content_type)},
                    headers={"x-api-key": self.api_key},
                )
        except httpx.HTTPError as e:
            log.error("clipdrop_request_failed", error=str(e))
            raise RemovalServiceError() from e
        if resp.status_code != 200:
            log.error("clipdrop_error", status_code=resp.status_code, body=resp.text[:200])
            raise RemovalServiceError(f"Background removal failed ({resp.status_code})")
        return resp.content, resp.headers.get("content-type", "image/png")


def to_data_uri(data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


async def remove_background(
    clerk_id: str,
    image: bytes,
    filename: str,
    content_type: str,
    client: ClipdropClient,
) -> dict:
    """
    Check the balance, run the removal, and only then spend a credit.
    A failed removal leaves the balance untouched.
    """
    user = await credits_service.get_user(clerk_id)
    if not user:
        raise NotFoundError("User Not Found")
    if user.credit_balance <= 0:
        raise InsufficientCreditsError(balance=user.credit_balance)
    if not image:
        raise BadRequestError("Missing image")

    result, result_type = await client.remove_background(image, filename, content_type)
    # spend() re-checks the balance atomically; a concurrent call may have used the last credit.
    balance = await credits_service.spend(clerk_id, 1)
    log.info("background_removed", clerk_id=clerk_id, bytes_in=len(image), bytes_out=len(result))
    return {"resultImage": to_data_uri(result, result_type), "creditBalance": balance}
