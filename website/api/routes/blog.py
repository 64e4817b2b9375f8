from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from website.api.dependencies import get_blog_service, valid_slug
from website.core.errors import NotFoundAppError
from website.core.templating import render_page
from website.services.blog_service import BlogService

router = APIRouter(prefix="/blog", tags=["Blog"])


@router.get("", response_class=HTMLResponse)
def list_posts(
    request: Request,
    blog: Annotated[BlogService, Depends(get_blog_service)],
) -> HTMLResponse:
    """Render the list of published posts, newest first."""
    return render_page(request, "blog_list.html", {"posts": blog.list_published()})


@router.get("/{slug}", response_class=HTMLResponse)
def get_post(
    request: Request,
    slug: Annotated[str, Depends(valid_slug)],
    blog: Annotated[BlogService, Depends(get_blog_service)],
) -> HTMLResponse:
    """Render a single published post.

    Raises:
        ValidationAppError: 400 if the slug is malformed.
        NotFoundAppError: 404 if no published post has this slug.
    """
    post = blog.get_by_slug(slug)
    if post is None:
        raise NotFoundAppError(
            code="post_not_found",
            message="Blog post not found",
            details={"slug": slug},
        )
    return render_page(request, "blog_post.html", {"post": post})
