from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from website.api.dependencies import get_portfolio_service, valid_slug
from website.core.errors import NotFoundAppError
from website.core.templating import render_page
from website.services.portfolio_service import PortfolioService

router = APIRouter(prefix="/portfolio", tags=["Portfolio"])


@router.get("", response_class=HTMLResponse)
def list_projects(
    request: Request,
    portfolio: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> HTMLResponse:
    return render_page(request, "portfolio_list.html", {"projects": portfolio.list_projects()})


@router.get("/{slug}", response_class=HTMLResponse)
def get_project(
    request: Request,
    slug: Annotated[str, Depends(valid_slug)],
    portfolio: Annotated[PortfolioService, Depends(get_portfolio_service)],
) -> HTMLResponse:
    """Render a single project page, 404 when the slug is unknown."""
    project = portfolio.get_by_slug(slug)
    if project is None:
        raise NotFoundAppError(
            code="project_not_found",
            message="Project not found",
            details={"slug": slug},
        )
    return render_page(request, "project_detail.html", {"project": project})
