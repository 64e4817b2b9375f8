"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the storage backend can be swapped later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Bucket capacity (max requests per window).
        remaining: Tokens left after this call (0 when blocked).
        retry_after_seconds: Seconds until the next token when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int | None


class AbstractRateLimitStore(ABC):
    """Interface for per-key rate limit stores."""

    @abstractmethod
    def consume(self, key: str, max_requests: int, window_seconds: float) -> RateLimitResult:
        """Try to spend one unit of budget for the given key.

        Args:
            key: Unique identifier (client IP address).
            max_requests: Capacity of the key's budget.
            window_seconds: Time for an empty budget to refill completely.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    def allow(self, key: str, max_requests: int, window_seconds: float) -> bool:
        """Return True when a request for ``key`` may proceed."""
        return self.consume(key, max_requests, window_seconds).allowed
