"""In-memory token bucket rate limit store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Two lock levels: a coarse lock guards the key -> bucket map, and each bucket
  has its own lock for token bookkeeping, so different keys never contend
  beyond the map lookup.
- Idle buckets are evicted by a background sweeper thread.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from website.adapters.rate_limit.base import AbstractRateLimitStore, RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class TokenBucket:
    """Token bucket state for a single key.

    Attributes:
        tokens: Tokens currently available (0 <= tokens <= max_tokens).
        max_tokens: Bucket capacity.
        refill_rate: Seconds needed to accrue one token.
        last_refill: Clock reading of the last refill (or creation).
    """

    tokens: int
    max_tokens: int
    refill_rate: float
    last_refill: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class TokenBucketRateLimitStore(AbstractRateLimitStore):
    """Rate limit store keeping one token bucket per key (client IP).

    A bucket is created on first use with ``max_requests`` tokens and a refill
    interval of ``window_seconds / max_requests``. Each call refills whole
    tokens accrued since the last refill (capped at capacity) and then spends
    one token if any is left.

    Important:
        This store is per-process only. If the site runs with multiple
        workers, each worker enforces its own independent limits.
    """

    def __init__(
        self,
        *,
        cleanup_interval_seconds: float = 300.0,
        idle_ttl_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the store.

        Args:
            cleanup_interval_seconds: Period of the background sweep.
            idle_ttl_seconds: Buckets whose last refill is older than this are evicted.
            clock: Time source returning seconds (monotonic by default).

        Raises:
            ValueError: If the intervals are not positive.
        """
        if cleanup_interval_seconds <= 0:
            raise ValueError("cleanup_interval_seconds must be > 0")
        if idle_ttl_seconds <= 0:
            raise ValueError("idle_ttl_seconds must be > 0")

        self._cleanup_interval = cleanup_interval_seconds
        self._idle_ttl = idle_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: dict[str, TokenBucket] = {}
        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _get_or_create_bucket(self, key: str, max_requests: int, window_seconds: float) -> TokenBucket:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = TokenBucket(
                    tokens=max_requests,
                    max_tokens=max_requests,
                    refill_rate=window_seconds / max_requests,
                    last_refill=self._clock(),
                )
                self._buckets[key] = bucket
            return bucket

    def consume(self, key: str, max_requests: int, window_seconds: float) -> RateLimitResult:
        """Refill the key's bucket and try to spend one token.

        Args:
            key: Unique identifier for rate limiting (client IP).
            max_requests: Bucket capacity; also the burst size.
            window_seconds: Time for an empty bucket to refill completely.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If max_requests < 1 or window_seconds <= 0.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        bucket = self._get_or_create_bucket(key, max_requests, window_seconds)

        with bucket.lock:
            now = self._clock()
            elapsed = now - bucket.last_refill
            tokens_to_add = int(elapsed / bucket.refill_rate) if elapsed > 0 else 0

            if tokens_to_add > 0:
                bucket.tokens = min(bucket.max_tokens, bucket.tokens + tokens_to_add)
                bucket.last_refill = now

            if bucket.tokens > 0:
                bucket.tokens -= 1
                return RateLimitResult(
                    allowed=True,
                    limit=bucket.max_tokens,
                    remaining=bucket.tokens,
                    retry_after_seconds=None,
                )

            wait = bucket.refill_rate - (now - bucket.last_refill)
            return RateLimitResult(
                allowed=False,
                limit=bucket.max_tokens,
                remaining=0,
                retry_after_seconds=max(1, int(math.ceil(wait))),
            )

    def sweep(self) -> int:
        """Evict buckets idle for longer than the TTL.

        Returns:
            Number of evicted buckets.
        """
        evicted = 0
        with self._lock:
            now = self._clock()
            for key in list(self._buckets):
                bucket = self._buckets[key]
                with bucket.lock:
                    if now - bucket.last_refill > self._idle_ttl:
                        del self._buckets[key]
                        evicted += 1

        if evicted:
            logger.debug("rate_limit.sweep", extra={"evicted": evicted, "remaining_buckets": len(self)})
        return evicted

    def _run_sweeper(self) -> None:
        while not self._stop_event.wait(self._cleanup_interval):
            self.sweep()

    def start(self) -> None:
        """Start the background sweeper thread (idempotent)."""
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._run_sweeper,
            name="rate-limit-sweeper",
            daemon=True,
        )
        self._sweeper.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the sweeper thread to exit and wait for it."""
        self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout)
            self._sweeper = None
