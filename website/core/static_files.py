"""Secure static file serving.

Wraps Starlette's StaticFiles with:
- rejection of traversal markers, backslashes and NUL bytes in the raw path
- a second traversal check after normalization
- an extension allow-list (styles, scripts, images, fonts)
- security and cache headers on every response
"""

from __future__ import annotations

import logging
import posixpath

from starlette.exceptions import HTTPException
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import Receive, Scope, Send

from website.core.exception_handlers import NOT_FOUND_MESSAGE, error_response

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset(
    {".css", ".js", ".png", ".jpg", ".jpeg", ".gif", ".ico", ".svg", ".woff", ".woff2"}
)

IMMUTABLE_CACHE = "public, max-age=31536000, immutable"
NO_CACHE = "no-cache, no-store, must-revalidate"

STATIC_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
}


def _route_path(scope: Scope) -> str:
    """Return the request path relative to the mount point."""
    path = scope["path"]
    root_path = scope.get("root_path", "")
    if root_path and path.startswith(root_path):
        path = path[len(root_path):]
    return path or "/"


def check_static_path(raw_path: str) -> str | None:
    """Validate a static request path.

    Args:
        raw_path: Path relative to the static mount, as received.

    Returns:
        The reason the path is rejected, or None if it may be served.
    """
    if ".." in raw_path or "\\" in raw_path or "\x00" in raw_path:
        return "traversal_marker"

    cleaned = posixpath.normpath("/" + raw_path.lstrip("/")).lstrip("/") or "."
    if ".." in cleaned:
        return "traversal_after_clean"
    if cleaned == ".":
        return "directory"

    extension = posixpath.splitext(cleaned)[1].lower()
    if extension not in ALLOWED_EXTENSIONS:
        return "extension_not_allowed"

    return None


def _apply_headers(response: Response, *, cacheable: bool) -> None:
    for name, value in STATIC_SECURITY_HEADERS.items():
        response.headers[name] = value
    response.headers["Cache-Control"] = IMMUTABLE_CACHE if cacheable else NO_CACHE


class SecureStaticFiles(StaticFiles):
    """StaticFiles with path hardening and an extension allow-list.

    Rejected requests get a 403 JSON envelope before the file system is
    touched. Served files carry long-lived immutable caching; anything else
    (rejections, missing files) is marked no-cache.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            raw_path = _route_path(scope)
            reason = check_static_path(raw_path)
            if reason is not None:
                logger.warning(
                    "static.rejected",
                    extra={"reason": reason, "request_path": scope["path"]},
                )
                response = error_response(403, "Forbidden")
                _apply_headers(response, cacheable=False)
                await response(scope, receive, send)
                return

        await super().__call__(scope, receive, send)

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            response = await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404:
                raise
            response = error_response(404, NOT_FOUND_MESSAGE)
        _apply_headers(response, cacheable=response.status_code in (200, 206, 304))
        return response
