"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error envelope, and no information leakage.
"""

import asyncio
import json
from http import HTTPStatus
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from website.core.errors import (
    AppError,
    NotFoundAppError,
    PayloadTooLargeAppError,
    RateLimitedAppError,
    RenderAppError,
    ValidationAppError,
)
from website.core.exception_handlers import (
    app_error_response,
    error_response,
    general_exception_handler,
    setup_exception_handlers,
)
from website.core.logging import clear_request_id, set_request_id


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


def _decode(response) -> dict:
    response_body = response.body if isinstance(response.body, bytes) else bytes(response.body)
    return json.loads(response_body.decode())


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        "error_cls, status_code",
        [
            (ValidationAppError, 400),
            (NotFoundAppError, 404),
            (PayloadTooLargeAppError, 413),
            (RenderAppError, 500),
        ],
    )
    def test_error_class_maps_to_status(
        self, client: TestClient, app_with_handlers: FastAPI, error_cls, status_code: int
    ):
        @app_with_handlers.get("/test-error")
        async def test_endpoint():
            raise error_cls(code="test_error", message="Something specific")

        response = client.get("/test-error")

        assert response.status_code == status_code
        data = response.json()
        assert data["error"] == HTTPStatus(status_code).phrase
        assert data["code"] == status_code
        assert data["message"] == "Something specific"
        assert "request_id" in data

    def test_details_are_not_exposed(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify structured details stay in logs only."""
        @app_with_handlers.get("/test-details")
        async def test_endpoint():
            raise NotFoundAppError(
                code="post_not_found",
                message="Blog post not found",
                details={"slug": "secret-draft"},
            )

        response = client.get("/test-details")

        assert response.status_code == 404
        assert "secret-draft" not in response.text

    def test_rate_limited_error_sets_retry_after(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-rate-limit")
        async def test_endpoint():
            raise RateLimitedAppError(
                code="rate_limited",
                message="Rate limit exceeded. Too many requests.",
                details={"retry_after": 12},
            )

        response = client.get("/test-rate-limit")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "12"
        assert response.json()["error"] == "Too Many Requests"

    def test_error_response_format_is_consistent(self, client: TestClient, app_with_handlers: FastAPI):
        """Verify error responses have consistent JSON structure."""
        @app_with_handlers.get("/test-format")
        async def test_endpoint():
            raise ValidationAppError(code="test", message="test")

        data = client.get("/test-format").json()

        assert set(data) == {"error", "message", "code", "request_id"}

    def test_str_of_app_error_is_message(self):
        assert str(ValidationAppError(code="c", message="readable")) == "readable"


class TestFrameworkErrors:
    def test_unmatched_route_uses_envelope(self, client: TestClient):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json() == {
            "error": "Not Found",
            "message": "The requested resource was not found",
            "code": 404,
            "request_id": None,
        }

    def test_method_not_allowed(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/only-get")
        async def test_endpoint():
            return {"ok": True}

        response = client.post("/only-get")

        assert response.status_code == 405
        assert response.json()["message"] == "Method not allowed"
        assert "GET" in response.headers["allow"]

    def test_request_validation_error_is_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/typed")
        async def test_endpoint(page: int):
            return {"page": page}

        response = client.get("/typed", params={"page": "not-a-number"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request parameters"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        """Verify fallback exception handler is registered."""
        assert Exception in app_with_handlers.exception_handlers

    def test_unhandled_exception_returns_generic_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/boom")
        async def test_endpoint():
            raise RuntimeError("database connection failed")

        response = client.get("/boom")

        assert response.status_code == 500
        assert "database connection" not in response.text

    def test_general_exception_handler_logic(self):
        """Verify general_exception_handler returns correct structure."""
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("Unexpected error: template directory unreadable")
        response = asyncio.run(general_exception_handler(request, exc))

        data = _decode(response)
        assert response.status_code == 500
        assert data["error"] == "Internal Server Error"
        assert data["code"] == 500
        # Original error message should NOT be in response
        assert "template directory" not in data["message"]
        assert "request_id" in data

    def test_general_exception_handler_never_leaks_stack_trace(self):
        """Verify stack traces are never included in response."""
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = response.body.decode()
        # No traceback indicators
        assert "Traceback" not in response_text
        assert "File \"" not in response_text
        assert "ValueError" not in response_text


class TestErrorResponse:
    def test_includes_current_request_id(self):
        set_request_id("req-abc")
        try:
            data = _decode(error_response(403, "Forbidden"))
        finally:
            clear_request_id()

        assert data == {"error": "Forbidden", "message": "Forbidden", "code": 403, "request_id": "req-abc"}

    def test_extra_headers(self):
        response = error_response(429, "slow down", headers={"Retry-After": "7"})
        assert response.headers["Retry-After"] == "7"

    def test_app_error_response_uses_error_status(self):
        exc = PayloadTooLargeAppError(
            code="payload_too_large",
            message="Request too large",
            details={"limit": 16, "actual_value": 32},
        )

        response = app_error_response(exc)

        assert response.status_code == 413
        assert "Retry-After" not in response.headers
        data = _decode(response)
        assert data["message"] == "Request too large"
        assert "limit" not in data

    def test_app_error_response_retry_after(self):
        exc = RateLimitedAppError(code="rate_limited", message="slow down", details={"limit": 2, "retry_after": 9})
        response = app_error_response(exc)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "9"


class TestErrorHandlerIntegration:
    """Integration tests for exception handler setup."""

    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        """Verify setup_exception_handlers properly registers handlers."""
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        """Verify calling setup_exception_handlers multiple times is safe."""
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)  # Second call should override safely

        assert AppError in app.exception_handlers
