from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse

# The SPA reads `success` off every response body, so failures are rendered
# as 200s carrying {"success": false, "message": ...}.
ERROR_HTTP_STATUS = status.HTTP_200_OK


class AppError(Exception):
    """Base application error with consistent schema."""

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Not Authorized Login Again"):
        super().__init__(message, code="UNAUTHORIZED", status_code=status.HTTP_401_UNAUTHORIZED)


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND", status_code=status.HTTP_404_NOT_FOUND)


class ConflictError(AppError):
    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        super().__init__(message, code="CONFLICT", status_code=status.HTTP_409_CONFLICT, details=details)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request", details: dict[str, Any] | None = None):
        super().__init__(message, code="BAD_REQUEST", status_code=status.HTTP_400_BAD_REQUEST, details=details)


class InsufficientCreditsError(AppError):
    def __init__(self, balance: int = 0, message: str = "No Credit Balance"):
        super().__init__(
            message,
            code="INSUFFICIENT_CREDITS",
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details={"creditBalance": balance},
        )


class AlreadyVerifiedError(ConflictError):
    def __init__(self, message: str = "Payment Already Verified"):
        super().__init__(message)
        self.code = "ALREADY_VERIFIED"


class PaymentFailedError(AppError):
    def __init__(self, message: str = "Payment Failed"):
        super().__init__(message, code="PAYMENT_FAILED", status_code=status.HTTP_402_PAYMENT_REQUIRED)


class WebhookVerificationError(AppError):
    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message, code="INVALID_SIGNATURE", status_code=status.HTTP_400_BAD_REQUEST)


class GatewayError(AppError):
    """Payment provider call failed."""

    def __init__(self, message: str = "Payment provider error"):
        super().__init__(message, code="GATEWAY_ERROR", status_code=status.HTTP_502_BAD_GATEWAY)


class RemovalServiceError(AppError):
    """Background-removal API call failed."""

    def __init__(self, message: str = "Background removal failed"):
        super().__init__(message, code="REMOVAL_FAILED", status_code=status.HTTP_502_BAD_GATEWAY)


def error_body(message: str, code: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message, "code": code}
    if details:
        body.update(details)
    return body


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    body = error_body(exc.message, exc.code, exc.details)
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=ERROR_HTTP_STATUS, content=body)


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    from bgremoval.core.logging import get_logger
    get_logger(__name__).info("app_error", code=exc.code, message=exc.message, path=request.url.path)
    return error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    body = error_body("Validation error", "VALIDATION_ERROR", {"errors": jsonable_encoder(exc.errors())})
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=ERROR_HTTP_STATUS, content=body)


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from bgremoval.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    body = error_body("Internal server error", "INTERNAL_ERROR")
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=ERROR_HTTP_STATUS, content=body)
