"""Security header middleware.

Adds a hardened set of response headers to every response:

- nosniff, frame denial, legacy XSS guard and referrer policy
- cross-origin isolation (COEP / COOP / CORP)
- Content-Security-Policy (overridable through ``CSP_POLICY``)
- HSTS, only when the request arrived over HTTPS

Headers are applied as defaults: a route that sets one of them explicitly
keeps its own value. The application never emits ``Server`` or
``X-Powered-By`` itself, and the header set is fixed before the route runs,
so a route that sets either of them explicitly still sends it. uvicorn also
appends its own ``server`` header at the transport layer (disable it with
``--no-server-header``).
"""

from __future__ import annotations

from fastapi import Request, Response

HSTS_VALUE = "max-age=31536000; includeSubDomains; preload"

BASE_SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Cross-Origin-Embedder-Policy": "require-corp",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}


def is_https(request: Request) -> bool:
    """Detect HTTPS directly or behind a TLS-terminating proxy."""
    if request.url.scheme == "https":
        return True
    return request.headers.get("x-forwarded-proto", "").lower() == "https"


def build_security_headers(request: Request, csp_policy: str) -> dict[str, str]:
    """Return the headers to apply for ``request``."""
    headers = dict(BASE_SECURITY_HEADERS)
    headers["Content-Security-Policy"] = csp_policy
    if is_https(request):
        headers["Strict-Transport-Security"] = HSTS_VALUE
    return headers


def apply_security_headers(
    request: Request,
    response: Response,
    headers: dict[str, str] | None = None,
) -> Response:
    """Set the security headers on ``response`` without overriding route values."""
    if headers is None:
        headers = build_security_headers(request, request.app.state.settings.app.csp_policy)
    for name, value in headers.items():
        response.headers.setdefault(name, value)
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    """HTTP middleware applying the hardened header set.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with security headers added.
    """
    headers = build_security_headers(request, request.app.state.settings.app.csp_policy)

    response: Response = await call_next(request)

    return apply_security_headers(request, response, headers)
