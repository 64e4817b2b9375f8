"""Jinja2 page rendering.

Templates live in ``website/templates`` by default. Rendering errors are
converted to RenderAppError so they surface as a 500 error envelope rather
than a raw traceback.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import Request
from jinja2 import TemplateError
from starlette.responses import HTMLResponse
from starlette.templating import Jinja2Templates

from website.core.errors import RenderAppError

logger = logging.getLogger(__name__)


def _format_date(value: datetime | None, fmt: str = "%B %d, %Y") -> str:
    return value.strftime(fmt) if value else ""


def build_templates(directory: str) -> Jinja2Templates:
    """Create the Jinja2 environment used for every page."""
    templates = Jinja2Templates(directory=directory)
    templates.env.filters["date"] = _format_date
    return templates


def render_page(
    request: Request,
    template_name: str,
    context: dict[str, Any] | None = None,
    *,
    status_code: int = 200,
) -> HTMLResponse:
    """Render ``template_name`` with the app's templates.

    Args:
        request: Current request (exposed to templates as ``request``).
        template_name: Template file relative to the templates directory.
        context: Extra template variables.
        status_code: Response status code.

    Returns:
        Rendered HTML response.

    Raises:
        RenderAppError: If the template is missing or fails to render.
    """
    templates: Jinja2Templates = request.app.state.templates
    page_context = {"site_version": request.app.state.settings.app.version}
    page_context.update(context or {})

    try:
        return templates.TemplateResponse(
            request,
            template_name,
            page_context,
            status_code=status_code,
        )
    except TemplateError as exc:
        logger.error(
            "render.failed",
            extra={"template": template_name, "error_type": type(exc).__name__},
        )
        raise RenderAppError(
            code="render_failed",
            message="Error rendering page",
            details={"template": template_name},
        ) from exc
