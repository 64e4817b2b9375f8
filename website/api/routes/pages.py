from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from website.api.dependencies import get_blog_service, get_portfolio_service
from website.core.templating import render_page
from website.services.blog_service import BlogService
from website.services.portfolio_service import PortfolioService

router = APIRouter(tags=["Pages"])


@router.get("/", response_class=HTMLResponse)
def home(
    request: Request,
    blog: Annotated[BlogService, Depends(get_blog_service)],
    portfolio: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> HTMLResponse:
    """Landing page with featured projects and the latest posts."""
    return render_page(
        request,
        "home.html",
        {
            "featured_projects": portfolio.list_featured(),
            "recent_posts": blog.recent(3),
        },
    )
