"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment to "testing" and points content directories at
the repository's sample content before settings are imported.
"""

import os
from pathlib import Path

# CRITICAL: Set this before any imports that might load settings
REPO_ROOT = Path(__file__).resolve().parents[1]

os.environ["ENV"] = "testing"
os.environ.setdefault("APP_BLOG_DIR", str(REPO_ROOT / "content" / "blog"))
os.environ.setdefault("APP_STATIC_DIR", str(REPO_ROOT / "static"))
os.environ.setdefault("LOG_LEVEL", "warning")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from website.core.app_factory import create_app
from website.core.config import AppSettings, Settings
from website.services.blog_service import BlogService, parse_post

POST_TEMPLATE = """---
title: {title}
slug: {slug}
author: Tester
date: {date}
excerpt: Excerpt of {title}
tags: [python, testing]
published: {published}
---

# {title}

Body of **{title}** with a [link](https://example.com).
"""


def make_post(slug: str, *, title: str | None = None, date: str = "2024-01-01", published: str = "true"):
    """Build a BlogPost the same way posts are loaded from disk."""
    text = POST_TEMPLATE.format(
        title=title or slug.replace("-", " ").title(),
        slug=slug,
        date=date,
        published=published,
    )
    return parse_post(text, fallback_slug=slug)


def make_settings(**app_overrides) -> Settings:
    """Settings for an isolated app instance, with AppSettings overrides."""
    return Settings(app=AppSettings(**app_overrides))


@pytest.fixture
def blog_service() -> BlogService:
    return BlogService(
        [
            make_post("newest-post", date="2024-03-01"),
            make_post("older-post", date="2023-12-24"),
            make_post("draft-post", date="2024-04-01", published="false"),
        ]
    )


@pytest.fixture
def app(blog_service: BlogService) -> FastAPI:
    """Fresh application with its own rate limit store and test posts."""
    return create_app(make_settings(), blog_service=blog_service, configure_logs=False)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)
