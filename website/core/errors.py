"""Application-level exception types.

This module defines domain errors raised by routes and middleware, enabling
consistent error handling, logging, and API responses. Each subclass carries
the HTTP status it maps to.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    slug: str
    limit: int
    actual_value: int
    retry_after: int
    template: str


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails."""

    status_code = 400


class NotFoundAppError(AppError):
    """Raised when requested content does not exist."""

    status_code = 404


class PayloadTooLargeAppError(AppError):
    """Raised when a request body exceeds the configured limit."""

    status_code = 413


class RateLimitedAppError(AppError):
    """Raised when a client exhausted its request budget."""

    status_code = 429


class RenderAppError(AppError):
    """Raised when a page template fails to render."""

    status_code = 500
