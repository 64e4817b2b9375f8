"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, routing and unexpected) and return the JSON error envelope:

    {"error": "Not Found", "message": "...", "code": 404, "request_id": "..."}

Design:
- AppError subclasses → the status code they declare (400, 404, 413, 429, 500)
- Starlette HTTPException (unmatched route, 405, missing static file) → same envelope
- RequestValidationError → 400
- Unexpected Exception → generic 500 (safety net)
"""

import logging
from http import HTTPStatus

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from website.core.errors import AppError, RateLimitedAppError
from website.core.logging import get_request_id

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "The requested resource was not found"
METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def _reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def error_response(
    status_code: int,
    message: str,
    *,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the JSON error envelope used by handlers and middleware.

    Middleware cannot rely on exception handlers (they run outside the
    exception middleware), so they call this helper directly.

    Args:
        status_code: HTTP status code.
        message: Human-readable message.
        headers: Optional extra response headers (e.g. Retry-After).

    Returns:
        JSONResponse carrying the envelope.
    """
    content = {
        "error": _reason_phrase(status_code),
        "message": message,
        "code": status_code,
        "request_id": get_request_id(),
    }
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def app_error_response(exc: AppError) -> JSONResponse:
    """Render an AppError as the envelope, with Retry-After for 429s.

    Shared by ``app_error_handler`` and the middleware that reject requests
    before routing.
    """
    headers = None
    if isinstance(exc, RateLimitedAppError) and exc.details and "retry_after" in exc.details:
        headers = {"Retry-After": str(exc.details["retry_after"])}

    return error_response(exc.status_code, exc.message, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with the consistent JSON format.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the status code declared by the error class.
    """
    status_code = exc.status_code

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    return app_error_response(exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (404 unmatched, 405, ...) as the envelope."""
    if exc.status_code == 404:
        message = NOT_FOUND_MESSAGE
    elif exc.status_code == 405:
        message = METHOD_NOT_ALLOWED_MESSAGE
    else:
        message = str(exc.detail)

    logger.info(
        "http_error_handled",
        extra={
            "status_code": exc.status_code,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map FastAPI parameter validation failures to 400."""
    logger.warning(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(exc.errors())},
    )
    return error_response(400, "Invalid request parameters")


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic
    message. No stack traces or exception text reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return error_response(500, INTERNAL_ERROR_MESSAGE)


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.

    Example:
        >>> from fastapi import FastAPI
        >>> from website.core.exception_handlers import setup_exception_handlers
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
