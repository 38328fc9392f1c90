"""Request policy and per-attempt context."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Tuple

from chuteskit.http.cancellation import CancellationSignal

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY_MS = 1_000


def default_status_is_success(status: int) -> bool:
    """Accept any 2xx status."""
    return 200 <= status < 300


@dataclass(frozen=True)
class RequestPolicy:
    """Timeout, retry and fallback configuration for a request.

    Policies are immutable; use ``with_overrides`` to derive a variant.
    Mutable per-attempt state lives in ``AttemptContext``.
    """

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_delay_ms: int = DEFAULT_RETRY_BASE_DELAY_MS
    headers: Mapping[str, str] = field(default_factory=dict)
    fallback_base_urls: Tuple[str, ...] = ()
    status_is_success: Callable[[int], bool] = default_status_is_success

    def __post_init__(self) -> None:
        """Validate configuration and freeze collections."""
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be > 0")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_base_delay_ms <= 0:
            raise ValueError("retry_base_delay_ms must be > 0")
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        object.__setattr__(self, "fallback_base_urls", tuple(self.fallback_base_urls))

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def with_overrides(self, **changes: Any) -> "RequestPolicy":
        """Return a copy of this policy with ``changes`` applied."""
        return replace(self, **changes)


@dataclass(frozen=True)
class AttemptContext:
    """State of a single attempt within a retry sequence."""

    attempt_index: int
    target_url: str
    signal: CancellationSignal
