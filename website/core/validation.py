"""Input validation helpers and request-level validation middleware.

The helpers are pure functions so they can be used from routes, services and
tests without any FastAPI machinery:

- validate_slug: URL slugs used for content lookup
- sanitize_filename: reduce a user-supplied name to a bare file name
- validate_content_type: prefix match against an allow-list
"""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Iterable

from fastapi import Request, Response

from website.core.errors import PayloadTooLargeAppError, ValidationAppError
from website.core.exception_handlers import app_error_response

logger = logging.getLogger(__name__)

MAX_SLUG_LENGTH = 100

_SLUG_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


def validate_slug(slug: str) -> bool:
    """Check that a slug is safe to use for content lookup.

    Args:
        slug: Candidate slug from the URL.

    Returns:
        True if the slug is non-empty, at most 100 characters, free of path
        traversal markers and made only of letters, digits, ``-`` and ``_``.

    Examples:
        >>> validate_slug("post-123")
        True
        >>> validate_slug("../etc")
        False
    """
    if not slug or len(slug) > MAX_SLUG_LENGTH:
        return False

    if ".." in slug or "/" in slug or "\\" in slug:
        return False

    return _SLUG_PATTERN.fullmatch(slug) is not None


def sanitize_filename(filename: str) -> str:
    """Reduce a file name to its final path segment.

    Any directory component (including traversal attempts) is discarded, then
    residual separators are stripped.

    Examples:
        >>> sanitize_filename("../../etc/passwd")
        'passwd'
        >>> sanitize_filename("dir\\\\file.txt")
        'dirfile.txt'
    """
    cleaned = posixpath.basename(posixpath.normpath("/" + filename))
    return cleaned.replace("/", "").replace("\\", "")


def validate_content_type(content_type: str, allowed_types: Iterable[str]) -> bool:
    """Return True when ``content_type`` starts with any allowed prefix.

    Comparison is case-insensitive and ignores surrounding whitespace.
    """
    normalized = content_type.strip().lower()
    return any(normalized.startswith(allowed.lower()) for allowed in allowed_types)


async def input_validation_middleware(request: Request, call_next) -> Response:
    """Reject requests with an invalid ``slug`` query or an oversized body.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        400 when the ``slug`` query parameter or the Content-Length header is
        invalid, 413 when the declared Content-Length exceeds the configured
        limit, otherwise the downstream response.
    """
    slug = request.query_params.get("slug")
    if slug and not validate_slug(slug):
        logger.warning(
            "validation.invalid_slug",
            extra={"request_path": request.url.path, "slug_length": len(slug)},
        )
        return app_error_response(
            ValidationAppError(
                code="invalid_slug",
                message="Invalid slug parameter",
                details={"actual_value": len(slug)},
            )
        )

    content_length = request.headers.get("content-length")
    if content_length:
        try:
            declared = int(content_length)
        except ValueError:
            declared = -1

        if declared < 0:
            return app_error_response(
                ValidationAppError(code="invalid_content_length", message="Invalid Content-Length header")
            )

        max_bytes = request.app.state.settings.app.max_body_bytes
        if declared > max_bytes:
            logger.warning(
                "validation.payload_too_large",
                extra={"content_length": declared, "max_bytes": max_bytes},
            )
            return app_error_response(
                PayloadTooLargeAppError(
                    code="payload_too_large",
                    message="Request too large",
                    details={"limit": max_bytes, "actual_value": declared},
                )
            )

    return await call_next(request)
