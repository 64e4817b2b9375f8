from __future__ import annotations

from website.api.routes.blog import router as blog_router
from website.api.routes.health import router as health_router
from website.api.routes.pages import router as pages_router
from website.api.routes.portfolio import router as portfolio_router

__all__ = ["blog_router", "health_router", "pages_router", "portfolio_router"]
