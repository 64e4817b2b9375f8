"""Request context middleware: correlation ids and access logging.

Outermost middleware of the stack, so its timing and access log cover every
other middleware, including requests they reject (429, 413, 400).

Usage:
    app.middleware("http")(request_context_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from website.core.exception_handlers import INTERNAL_ERROR_MESSAGE, error_response
from website.core.logging import clear_request_id, set_request_id
from website.core.security_headers import apply_security_headers

logger = logging.getLogger("website.access")
error_logger = logging.getLogger(__name__)

DURATION_HEADER = "X-Request-Duration-ms"


def _access_log(request: Request, status_code: int, duration_ms: float) -> None:
    log = logger.error if status_code >= 500 else logger.info
    log(
        "http.request",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "client": request.client.host if request.client else None,
        },
    )


async def request_context_middleware(request: Request, call_next) -> Response:
    """Bind a request id to the request and log it once it completes.

    The id is taken from the incoming correlation header (``X-Request-ID``
    unless ``LOG_REQUEST_ID_HEADER`` says otherwise) or generated as a UUID4.
    It is visible to every log record emitted while the request is handled
    and echoed back together with the total handling time.

    Exceptions no handler claimed are turned into the generic 500 envelope
    here, so that response still carries the request id and security headers
    and still gets its access log line.

    Example:
        >>> # Request headers:  {"X-Request-ID": "req-abc-123"}
        >>> # Response headers: {"X-Request-ID": "req-abc-123", "X-Request-Duration-ms": "4.67"}
    """
    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())

    set_request_id(request_id)
    start = time.perf_counter()
    try:
        try:
            response: Response = await call_next(request)
        except Exception as exc:
            error_logger.exception(
                "unhandled_exception",
                extra={
                    "error_type": type(exc).__name__,
                    "request_path": request.url.path,
                    "request_method": request.method,
                },
            )
            response = apply_security_headers(request, error_response(500, INTERNAL_ERROR_MESSAGE))
        duration_ms = (time.perf_counter() - start) * 1000
        _access_log(request, response.status_code, duration_ms)
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault(DURATION_HEADER, f"{duration_ms:.2f}")
    return response
