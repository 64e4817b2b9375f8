"""Portfolio content service backed by a static in-memory list."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

from website.schemas.content import Project


def default_projects() -> list[Project]:
    """Projects shown when no other source is configured."""
    now = datetime.now(timezone.utc)
    return [
        Project(
            id="1",
            title="Personal Website & Portfolio",
            slug="personal-website-portfolio",
            description=(
                "A secure Python web application with server-rendered pages, "
                "a markdown blog and production-ready deployment."
            ),
            content=(
                "This website itself serves as a portfolio piece. It is a FastAPI "
                "application rendering Jinja2 templates, with a markdown-backed blog "
                "loaded at startup. Every request passes through a security middleware "
                "stack: hardened response headers including a Content Security Policy "
                "and HSTS over HTTPS, per-IP token bucket rate limiting, input "
                "validation of slugs and payload sizes, and a static file handler that "
                "rejects path traversal and only serves an allow-list of asset types. "
                "Logs are structured JSON with request correlation ids, configuration "
                "comes from the environment, and the server shuts down gracefully."
            ),
            image_url="/static/images/website-portfolio.svg",
            project_url="https://example.com",
            github_url="https://github.com/",
            technologies=("Python", "FastAPI", "Jinja2", "Markdown", "Security"),
            featured=True,
            created_at=now - timedelta(days=3),
            updated_at=now,
        ),
    ]


class PortfolioService:
    """Read-only access to portfolio projects."""

    def __init__(self, projects: Iterable[Project] | None = None) -> None:
        self._projects: list[Project] = list(default_projects() if projects is None else projects)

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    def list_projects(self) -> list[Project]:
        return list(self._projects)

    def list_featured(self) -> list[Project]:
        return [project for project in self._projects if project.featured]

    def get_by_slug(self, slug: str) -> Project | None:
        for project in self._projects:
            if project.slug == slug:
                return project
        return None
