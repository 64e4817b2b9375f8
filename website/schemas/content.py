"""Pydantic schemas for site content (blog posts and portfolio projects).

Records are frozen: they are loaded once at startup and never mutated by
requests.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BlogPost(BaseModel):
    """A blog post parsed from a markdown file."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable identifier (the slug).")
    title: str = Field("", description="Post title from front matter.")
    slug: str = Field(..., description="URL-safe identifier used in /blog/{slug}.")
    content: str = Field("", description="Body rendered to HTML.")
    excerpt: str = Field("", description="Short summary shown in listings.")
    author: str = Field("", description="Author name.")
    published_at: datetime | None = Field(
        None, description="Publication date; posts without one sort last."
    )
    updated_at: datetime | None = Field(None, description="Last modification time.")
    tags: tuple[str, ...] = Field(default_factory=tuple, description="Free-form tags.")
    published: bool = Field(True, description="Unpublished posts are never served.")


class Project(BaseModel):
    """A portfolio project."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    slug: str
    description: str = ""
    content: str = ""
    image_url: str = ""
    project_url: str = ""
    github_url: str = ""
    technologies: tuple[str, ...] = ()
    featured: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
