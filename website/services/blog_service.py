"""Blog content service.

Loads every markdown file of the blog directory once, at startup, and serves
lookups from the resulting in-memory list. Files that cannot be parsed are
logged and skipped so a single bad post never prevents the site from
starting.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from website.core.validation import validate_slug
from website.schemas.content import BlogPost
from website.utils.front_matter import (
    FrontMatterError,
    parse_bool,
    parse_date,
    parse_tags,
    split_front_matter,
)
from website.utils.markdown_renderer import render_markdown

logger = logging.getLogger(__name__)


def parse_post(text: str, *, fallback_slug: str, updated_at: datetime | None = None) -> BlogPost:
    """Build a BlogPost from a markdown document with front matter.

    Args:
        text: Raw file content.
        fallback_slug: Slug used when the front matter has none (file stem).
        updated_at: Modification time of the source file.

    Returns:
        Parsed post with its body rendered to HTML.

    Raises:
        FrontMatterError: If the front matter block is missing.
        ValueError: If the resulting slug is not a valid URL slug.
    """
    meta, body = split_front_matter(text)

    slug = meta.get("slug") or fallback_slug
    if not validate_slug(slug):
        raise ValueError(f"invalid slug: {slug!r}")

    return BlogPost(
        id=slug,
        title=meta.get("title", ""),
        slug=slug,
        content=render_markdown(body),
        excerpt=meta.get("excerpt") or meta.get("description", ""),
        author=meta.get("author", ""),
        published_at=parse_date(meta["date"]) if "date" in meta else None,
        updated_at=updated_at,
        tags=parse_tags(meta.get("tags", "")),
        published=parse_bool(meta.get("published", "true")),
    )


def _sort_key(post: BlogPost) -> tuple[bool, datetime]:
    # Dated posts first, newest first; undated posts keep load order at the end.
    return (post.published_at is not None, post.published_at or datetime.min)


def sort_posts(posts: Iterable[BlogPost]) -> list[BlogPost]:
    """Order posts by publication date, newest first."""
    return sorted(posts, key=_sort_key, reverse=True)


def load_posts(blog_dir: str | Path) -> list[BlogPost]:
    """Read and parse all ``*.md`` files in ``blog_dir``.

    Args:
        blog_dir: Directory containing markdown posts.

    Returns:
        Posts sorted newest first. A missing directory yields an empty list.
    """
    directory = Path(blog_dir)
    if not directory.is_dir():
        logger.warning("blog.directory_missing", extra={"blog_dir": str(directory)})
        return []

    posts: list[BlogPost] = []
    for file_path in sorted(directory.glob("*.md")):
        if not file_path.is_file():
            continue
        try:
            text = file_path.read_text(encoding="utf-8")
            updated_at = datetime.fromtimestamp(file_path.stat().st_mtime, tz=timezone.utc)
            post = parse_post(text, fallback_slug=file_path.stem, updated_at=updated_at)
        except (OSError, UnicodeDecodeError, FrontMatterError, ValueError) as exc:
            logger.warning(
                "blog.post_skipped",
                extra={"file": file_path.name, "reason": str(exc)},
            )
            continue

        posts.append(post)
        logger.debug("blog.post_loaded", extra={"file": file_path.name, "slug": post.slug})

    logger.info("blog.posts_loaded", extra={"count": len(posts), "blog_dir": str(directory)})
    return sort_posts(posts)


class BlogService:
    """Read-only access to blog posts loaded at startup."""

    def __init__(self, posts: Iterable[BlogPost] | None = None) -> None:
        self._posts: list[BlogPost] = list(posts or [])

    @classmethod
    def from_directory(cls, blog_dir: str | Path) -> "BlogService":
        return cls(load_posts(blog_dir))

    @property
    def posts(self) -> list[BlogPost]:
        return list(self._posts)

    def list_published(self) -> list[BlogPost]:
        return [post for post in self._posts if post.published]

    def recent(self, limit: int = 3) -> list[BlogPost]:
        return self.list_published()[:limit]

    def get_by_slug(self, slug: str) -> BlogPost | None:
        """Return the first published post with ``slug``, if any."""
        for post in self._posts:
            if post.slug == slug and post.published:
                return post
        return None
