"""Integration tests for the per-IP rate limit middleware."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from conftest import make_settings
from website.adapters.rate_limit.token_bucket import TokenBucketRateLimitStore
from website.core.app_factory import create_app
from website.core.rate_limit import RATE_LIMIT_MESSAGE, get_client_ip


@pytest.fixture
def limited_app(blog_service) -> FastAPI:
    app = create_app(
        make_settings(rate_limit_requests=2, rate_limit_window_seconds=60),
        blog_service=blog_service,
        configure_logs=False,
    )
    app.state.rate_limit_store = TokenBucketRateLimitStore(clock=Mock(return_value=100.0))
    return app


@pytest.fixture
def limited_client(limited_app: FastAPI) -> TestClient:
    return TestClient(limited_app)


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = ("198.51.100.9", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_returns_429_with_retry_after_when_exhausted(limited_client: TestClient):
    assert limited_client.get("/health").status_code == 200
    assert limited_client.get("/health").status_code == 200

    response = limited_client.get("/health")

    assert response.status_code == 429
    body = response.json()
    assert body["error"] == "Too Many Requests"
    assert body["code"] == 429
    assert body["message"] == RATE_LIMIT_MESSAGE
    assert int(response.headers["Retry-After"]) == 30


def test_rejected_response_still_carries_security_headers(limited_client: TestClient):
    for _ in range(2):
        limited_client.get("/health")

    response = limited_client.get("/health")

    assert response.status_code == 429
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Request-ID" in response.headers


def test_limits_are_per_client_ip(limited_client: TestClient):
    for _ in range(2):
        limited_client.get("/health", headers={"X-Real-IP": "203.0.113.1"})
    assert limited_client.get("/health", headers={"X-Real-IP": "203.0.113.1"}).status_code == 429

    response = limited_client.get("/health", headers={"X-Real-IP": "203.0.113.2"})
    assert response.status_code == 200


def test_forwarded_for_first_entry_identifies_client(limited_client: TestClient):
    headers = {"X-Forwarded-For": "203.0.113.5, 10.0.0.1"}
    for _ in range(2):
        limited_client.get("/health", headers=headers)

    blocked = limited_client.get("/health", headers={"X-Forwarded-For": "203.0.113.5"})
    assert blocked.status_code == 429


def test_disabled_rate_limit_lets_everything_through(blog_service):
    app = create_app(
        make_settings(rate_limit_enabled=False, rate_limit_requests=1),
        blog_service=blog_service,
        configure_logs=False,
    )
    client = TestClient(app)

    for _ in range(5):
        assert client.get("/health").status_code == 200


class TestGetClientIp:
    def test_real_ip_takes_precedence(self):
        request = _request({"X-Real-IP": "203.0.113.1", "X-Forwarded-For": "203.0.113.2"})
        assert get_client_ip(request) == "203.0.113.1"

    def test_first_forwarded_for_entry(self):
        request = _request({"X-Forwarded-For": " 203.0.113.2 , 10.0.0.1"})
        assert get_client_ip(request) == "203.0.113.2"

    def test_falls_back_to_peer_address(self):
        assert get_client_ip(_request()) == "198.51.100.9"

    def test_unknown_without_peer(self):
        assert get_client_ip(_request(client=None)) == "unknown"


def test_lifespan_starts_and_stops_sweeper(app: FastAPI):
    store = app.state.rate_limit_store

    with TestClient(app) as client:
        assert client.get("/health").status_code == 200
        assert store._sweeper is not None
        assert store._sweeper.is_alive()

    assert store._sweeper is None
