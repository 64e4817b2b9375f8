"""Front matter parsing for markdown content files.

A content file starts with a ``---`` delimited block of ``key: value`` lines:

    ---
    title: Hello
    date: 2024-01-15
    tags: [python, web]
    ---
    Markdown body...
"""

from __future__ import annotations

from datetime import datetime

DELIMITER = "---"

_TRUE_VALUES = {"true", "yes", "1", "on"}
_FALSE_VALUES = {"false", "no", "0", "off"}


class FrontMatterError(ValueError):
    """Raised when a file has no well-formed front matter block."""


def split_front_matter(text: str) -> tuple[dict[str, str], str]:
    """Split a document into its front matter mapping and body.

    Lines without a colon and blank lines inside the block are ignored; the
    first colon separates key from value and both are stripped.

    Args:
        text: Full file content.

    Returns:
        Tuple of (front matter dict, markdown body).

    Raises:
        FrontMatterError: If the text does not contain two delimiters.
    """
    parts = text.split(DELIMITER, 2)
    if len(parts) < 3:
        raise FrontMatterError("missing front matter block")

    meta: dict[str, str] = {}
    for raw_line in parts[1].splitlines():
        line = raw_line.strip()
        if not line or ":" not in line:
            continue
        key, value = line.split(":", 1)
        meta[key.strip()] = value.strip()

    return meta, parts[2]


def parse_tags(value: str) -> tuple[str, ...]:
    """Parse ``[a, b, c]`` (brackets optional) into a tuple of tags."""
    inner = value.strip().strip("[]")
    return tuple(tag.strip() for tag in inner.split(",") if tag.strip())


def parse_date(value: str) -> datetime | None:
    """Parse a ``YYYY-MM-DD`` date; returns None when malformed."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d")
    except ValueError:
        return None


def parse_bool(value: str, default: bool = True) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return default
