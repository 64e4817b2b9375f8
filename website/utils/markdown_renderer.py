"""Markdown to HTML conversion for blog posts."""

from __future__ import annotations

import xml.etree.ElementTree as etree

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor


class _ExternalLinkTreeprocessor(Treeprocessor):
    """Open absolute http(s) links in a new tab."""

    def run(self, root: etree.Element) -> None:
        for link in root.iter("a"):
            href = link.get("href", "")
            if href.startswith(("http://", "https://")):
                link.set("target", "_blank")
                link.set("rel", "noopener noreferrer")


class ExternalLinksExtension(Extension):
    def extendMarkdown(self, md: markdown.Markdown) -> None:  # noqa: N802
        md.treeprocessors.register(_ExternalLinkTreeprocessor(md), "external_links", 5)


def render_markdown(source: str) -> str:
    """Convert markdown to HTML.

    Enables fenced code blocks, tables, heading ids and external links that
    open in a new tab. A fresh converter is used per call since
    ``markdown.Markdown`` instances keep per-document state.
    """
    converter = markdown.Markdown(
        extensions=["fenced_code", "tables", "toc", ExternalLinksExtension()],
        output_format="html",
    )
    return converter.convert(source)
