"""Rate limiting middleware.

This module wires the rate limit store into the HTTP layer.

Design goals:
- Minimal coupling: the middleware only depends on AbstractRateLimitStore.
- Injected state: the store is created by the application factory and read
  from ``app.state``, so every app instance (and every test) owns its own.

Rate limiting strategy:
- Token bucket per client IP, ``APP_RATE_LIMIT_REQUESTS`` per
  ``APP_RATE_LIMIT_WINDOW_SECONDS``.
- Client IP comes from X-Real-IP, then the first X-Forwarded-For entry, then
  the socket peer. Those headers are trusted as set by a reverse proxy; when
  the site is exposed directly they can be spoofed to dodge the limit.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request, Response

from website.adapters.rate_limit.base import AbstractRateLimitStore
from website.adapters.rate_limit.token_bucket import TokenBucketRateLimitStore
from website.core.config import AppSettings
from website.core.errors import RateLimitedAppError
from website.core.exception_handlers import app_error_response

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Too many requests."


def build_rate_limit_store(app_settings: AppSettings) -> TokenBucketRateLimitStore:
    """Create the store configured by application settings."""
    return TokenBucketRateLimitStore(
        cleanup_interval_seconds=app_settings.rate_limit_cleanup_interval_seconds,
        idle_ttl_seconds=app_settings.rate_limit_idle_ttl_seconds,
    )


def get_client_ip(request: Request) -> str:
    """Extract the client IP for rate limiting.

    Args:
        request: FastAPI request.

    Returns:
        str: X-Real-IP if present, else the first X-Forwarded-For entry, else
            the connection address ("unknown" when unavailable).
    """
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    forwarded_for = request.headers.get("x-forwarded-for", "")
    if forwarded_for:
        first = forwarded_for.split(",", 1)[0].strip()
        if first:
            return first

    return request.client.host if request.client else "unknown"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def rate_limit_middleware(request: Request, call_next) -> Response:
    """HTTP middleware enforcing the per-IP token bucket.

    Consumes one token for the requester. When the bucket is empty, returns
    HTTP 429 with a Retry-After header instead of calling the route.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: 429 error envelope or the downstream response.
    """
    app_settings: AppSettings = request.app.state.settings.app
    if not app_settings.rate_limit_enabled:
        return await call_next(request)

    store: AbstractRateLimitStore = request.app.state.rate_limit_store
    client_ip = get_client_ip(request)

    result = store.consume(
        client_ip,
        app_settings.rate_limit_requests,
        app_settings.rate_limit_window_seconds,
    )
    if result.allowed:
        return await call_next(request)

    retry_after = result.retry_after_seconds or 1
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": _hash_limiter_key(client_ip),
            "limit": result.limit,
            "window_s": app_settings.rate_limit_window_seconds,
            "retry_after_s": retry_after,
            "request_path": request.url.path,
        },
    )

    return app_error_response(
        RateLimitedAppError(
            code="rate_limited",
            message=RATE_LIMIT_MESSAGE,
            details={"limit": result.limit, "retry_after": retry_after},
        )
    )
