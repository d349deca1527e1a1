import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from streamgate.core.modules.delivery.media import NO_STORE_HEADERS
from streamgate.errors import (
    AccessDeniedError,
    NotFoundError,
    PaymentRequiredError,
    RangeNotSatisfiableError,
    StreamExpiredError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def create_json_error_response(
    status_code: int,
    message: str,
    error_type: str | None = None,
    reason: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create JSON error response with optional type and reason for machine parsing.

    Error responses are never cached.
    """
    content: dict[str, Any] = {"message": message}
    if error_type:
        content["type"] = error_type
    if reason:
        content["reason"] = reason
    return JSONResponse(status_code=status_code, content=content, headers={**NO_STORE_HEADERS, **(headers or {})})


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, PaymentRequiredError):
        # x402 clients read the challenge straight from the body
        return JSONResponse(status_code=402, content=exc.challenge, headers=NO_STORE_HEADERS)

    reason = None
    headers = None
    if isinstance(exc, AccessDeniedError):
        status_code = 403
        error_type = "access_denied"
        reason = exc.reason
    elif isinstance(exc, StreamExpiredError):
        status_code = 410
        error_type = "stream_expired"
        reason = "EXPIRED"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, RangeNotSatisfiableError):
        status_code = 416
        error_type = "range_not_satisfiable"
        headers = {"Content-Range": f"bytes */{exc.size}"}
    elif isinstance(exc, UpstreamError):
        status_code = 504 if exc.reason == "timeout" else 502
        error_type = "upstream_error"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        # Default for any other UserError subclass
        status_code = 400
        error_type = "bad_request"

    return create_json_error_response(
        status_code=status_code, message=str(exc), error_type=error_type, reason=reason, headers=headers
    )


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
