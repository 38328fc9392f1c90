import time
from dataclasses import dataclass

import structlog

log = structlog.get_logger()


@dataclass(frozen=True)
class RateLimitMetrics:
    """Snapshot of limiter state."""

    available_tokens: int
    total_throttled: int
    time_since_last_refill_ms: int
    next_refill_ms: int


class TokenBucketRateLimiter:
    """Token bucket refilled in whole windows.

    ``limit`` tokens are restored for every full ``window_ms`` elapsed,
    capped at ``limit``. Only ``check_limit`` consumes tokens.
    """

    def __init__(self, limit: int = 60, window_ms: int = 60_000) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")

        self._limit = limit
        self._window_ms = window_ms
        self._tokens = limit
        self._last_refill = time.monotonic()
        self._total_throttled = 0

    def _refill(self) -> None:
        """Add tokens for each whole window elapsed since the last refill."""
        now = time.monotonic()
        elapsed_ms = (now - self._last_refill) * 1000
        windows = int(elapsed_ms // self._window_ms)

        if windows > 0:
            self._tokens = min(self._limit, self._tokens + windows * self._limit)
            # Keep the partial window so refills stay aligned
            self._last_refill += windows * self._window_ms / 1000

    def check_limit(self) -> bool:
        """Consume a token if one is available.

        Returns:
            True when within limit, False when throttled.
        """
        self._refill()

        if self._tokens > 0:
            self._tokens -= 1
            return True

        self._total_throttled += 1
        log.debug("rate_limit_throttled", total_throttled=self._total_throttled)
        return False

    def metrics(self) -> RateLimitMetrics:
        since_ms = int((time.monotonic() - self._last_refill) * 1000)
        return RateLimitMetrics(
            available_tokens=self._tokens,
            total_throttled=self._total_throttled,
            time_since_last_refill_ms=since_ms,
            next_refill_ms=max(0, self._window_ms - since_ms),
        )

    def reset(self) -> None:
        """Restore a full bucket and clear counters."""
        self._tokens = self._limit
        self._last_refill = time.monotonic()
        self._total_throttled = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_ms(self) -> int:
        return self._window_ms
