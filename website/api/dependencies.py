"""FastAPI dependencies resolving services injected on ``app.state``."""

from __future__ import annotations

from fastapi import Request

from website.core.errors import ValidationAppError
from website.core.validation import validate_slug
from website.services.blog_service import BlogService
from website.services.portfolio_service import PortfolioService


def get_blog_service(request: Request) -> BlogService:
    return request.app.state.blog_service


def get_portfolio_service(request: Request) -> PortfolioService:
    return request.app.state.portfolio_service


def valid_slug(slug: str) -> str:
    """Path parameter dependency rejecting unsafe slugs with 400."""
    if not validate_slug(slug):
        raise ValidationAppError(
            code="invalid_slug",
            message="Invalid slug parameter",
            details={"actual_value": len(slug)},
        )
    return slug
