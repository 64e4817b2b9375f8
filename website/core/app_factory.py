"""Application factory for the website.

Centralizes app construction (state, middleware, handlers, routers, static
mount) so tests can build isolated instances with their own settings, rate
limit store and content.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI

from website.api.routes import blog_router, health_router, pages_router, portfolio_router
from website.core.config import Settings, settings as default_settings
from website.core.exception_handlers import setup_exception_handlers
from website.core.logging import configure_logging
from website.core.middleware import request_context_middleware
from website.core.rate_limit import build_rate_limit_store, rate_limit_middleware
from website.core.security_headers import security_headers_middleware
from website.core.static_files import SecureStaticFiles
from website.core.templating import build_templates
from website.core.validation import input_validation_middleware
from website.services.blog_service import BlogService
from website.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the rate limit sweeper for the lifetime of the server."""
    store = app.state.rate_limit_store
    store.start()
    logger.info("app.started", extra={"environment": app.state.settings.app_env})
    try:
        yield
    finally:
        store.stop()
        logger.info("app.stopped")


def create_app(
    app_settings: Settings | None = None,
    *,
    blog_service: BlogService | None = None,
    portfolio_service: PortfolioService | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to use; defaults to the global settings.
        blog_service: Pre-built blog service; loaded from ``APP_BLOG_DIR`` if omitted.
        portfolio_service: Pre-built portfolio service; defaults to the built-in projects.
        configure_logs: Whether to (re)configure root logging.

    Returns:
        Configured app with middleware, handlers, routers and static files.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    if configure_logs:
        configure_logging(cfg.log)

    app = FastAPI(
        title="Personal Website",
        description="Home page, markdown blog and portfolio.",
        version=cfg.app.version,
        lifespan=lifespan,
        docs_url=None if cfg.is_production else "/docs",
        redoc_url=None,
        openapi_url=None if cfg.is_production else "/openapi.json",
    )

    # Injected state (read by middleware, dependencies and routes)
    app.state.settings = cfg
    app.state.started_at = time.monotonic()
    app.state.rate_limit_store = build_rate_limit_store(cfg.app)
    app.state.templates = build_templates(cfg.app.templates_dir)
    if blog_service is None:
        blog_service = BlogService.from_directory(cfg.app.blog_dir)
    app.state.blog_service = blog_service
    app.state.portfolio_service = portfolio_service if portfolio_service is not None else PortfolioService()

    # Middleware: the last registered runs first, so register innermost first.
    # Request order: request id/access log -> security headers -> validation -> rate limit
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(input_validation_middleware)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_context_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(pages_router)
    app.include_router(health_router)
    app.include_router(blog_router)
    app.include_router(portfolio_router)

    static_dir = Path(cfg.app.static_dir)
    if static_dir.is_dir():
        app.mount("/static", SecureStaticFiles(directory=static_dir), name="static")
    else:
        logger.warning("static.directory_missing", extra={"static_dir": str(static_dir)})

    return app
