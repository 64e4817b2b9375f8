"""Pydantic schemas for JSON responses (health check and error envelope)."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness payload returned by GET /health."""

    status: str = Field(..., description="'ok' when the service is healthy.")
    timestamp: str = Field(..., description="Current UTC time, RFC 3339.")
    version: str = Field(..., description="Application version.")
    uptime: str = Field(..., description="Time since startup, e.g. '0:05:12.345678'.")
    uptime_seconds: float = Field(..., description="Time since startup in seconds.")


class ErrorResponse(BaseModel):
    """JSON error envelope shared by every non-HTML error."""

    error: str = Field(..., description="HTTP reason phrase, e.g. 'Not Found'.")
    message: str = Field(..., description="Human-readable explanation.")
    code: int = Field(..., description="HTTP status code.")
    request_id: str | None = Field(None, description="Correlation id of the request.")
