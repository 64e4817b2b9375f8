"""Tests for the hardened static file handler."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from website.core.static_files import (
    IMMUTABLE_CACHE,
    NO_CACHE,
    SecureStaticFiles,
    check_static_path,
)


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    root = tmp_path / "static"
    (root / "css").mkdir(parents=True)
    (root / "css" / "style.css").write_text("body { color: black; }")
    (root / "style.css").write_text("main { margin: 0; }")
    (root / "app.js").write_text("console.log('hi');")
    (root / "file.exe").write_bytes(b"MZ")
    (root / "notes.txt").write_text("private")
    (tmp_path / "secret.css").write_text("outside the static root")
    return root


@pytest.fixture
def static_client(static_dir: Path) -> TestClient:
    return TestClient(SecureStaticFiles(directory=static_dir))


class TestCheckStaticPath:
    @pytest.mark.parametrize(
        "path, reason",
        [
            ("/../../etc/passwd", "traversal_marker"),
            ("/css/..\\style.css", "traversal_marker"),
            ("/style.css\x00.png", "traversal_marker"),
            ("/", "directory"),
            ("", "directory"),
            ("/css", "extension_not_allowed"),
            ("/file.exe", "extension_not_allowed"),
            ("/notes.txt", "extension_not_allowed"),
        ],
    )
    def test_rejections(self, path: str, reason: str):
        assert check_static_path(path) == reason

    @pytest.mark.parametrize(
        "path",
        ["/style.css", "/css/style.css", "/images/logo.PNG", "/fonts/a.woff2", "/favicon.ico"],
    )
    def test_allowed(self, path: str):
        assert check_static_path(path) is None


class TestSecureStaticFiles:
    def test_serves_allowed_file_with_immutable_cache(self, static_client: TestClient):
        response = static_client.get("/style.css")

        assert response.status_code == 200
        assert "margin" in response.text
        assert response.headers["Cache-Control"] == IMMUTABLE_CACHE
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_serves_nested_file(self, static_client: TestClient):
        response = static_client.get("/css/style.css")
        assert response.status_code == 200

    def test_traversal_is_forbidden(self, static_client: TestClient):
        response = static_client.get("/%2e%2e/%2e%2e/etc/passwd")

        assert response.status_code == 403
        assert response.json()["message"] == "Forbidden"
        assert response.headers["Cache-Control"] == NO_CACHE

    def test_traversal_to_allowed_extension_is_forbidden(self, static_client: TestClient):
        response = static_client.get("/%2e%2e/secret.css")

        assert response.status_code == 403
        assert "outside the static root" not in response.text

    def test_disallowed_extension_is_forbidden(self, static_client: TestClient):
        response = static_client.get("/file.exe")
        assert response.status_code == 403

    def test_backslash_is_forbidden(self, static_client: TestClient):
        response = static_client.get("/css%5Cstyle.css")
        assert response.status_code == 403

    def test_nul_byte_is_forbidden(self, static_client: TestClient):
        response = static_client.get("/style.css%00.png")
        assert response.status_code == 403

    def test_directory_listing_is_forbidden(self, static_client: TestClient):
        assert static_client.get("/").status_code == 403
        assert static_client.get("/css").status_code == 403

    def test_missing_file_returns_404_envelope(self, static_client: TestClient):
        response = static_client.get("/missing.css")

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == 404
        assert "not found" in body["message"]
        assert response.headers["Cache-Control"] == NO_CACHE


class TestStaticMount:
    def test_mounted_under_static(self, client: TestClient):
        response = client.get("/static/css/style.css")

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == IMMUTABLE_CACHE
        # Site-wide security headers also apply to static responses
        assert "Content-Security-Policy" in response.headers

    def test_mounted_traversal_is_forbidden(self, client: TestClient):
        response = client.get("/static/%2e%2e/website/main.py")
        assert response.status_code == 403

    def test_mounted_disallowed_extension(self, client: TestClient):
        response = client.get("/static/file.exe")
        assert response.status_code == 403
