"""Retry engine with exponential backoff and jitter.

Attempts run strictly one after another. Each attempt gets its own
deadline and its own cancellation signal via ``with_timeout``.
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from chuteskit.core.exceptions import (
    ErrorKind,
    RequestAbortedError,
    RequestError,
)
from chuteskit.http.cancellation import CancellationSignal
from chuteskit.http.policy import RequestPolicy
from chuteskit.http.timeout import with_timeout

log = structlog.get_logger()

T = TypeVar("T")

AttemptFn = Callable[[int, CancellationSignal], Awaitable[T]]

# Client errors that can succeed on a later attempt
RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})

JITTER_LOW = 0.8
JITTER_SPAN = 0.4


def is_retryable(error: BaseException) -> bool:
    """Return True when another attempt may succeed after ``error``."""
    if isinstance(error, RequestAbortedError):
        return False
    if isinstance(error, RequestError) and error.status is not None:
        if 400 <= error.status < 500 and error.status not in RETRYABLE_CLIENT_STATUSES:
            return False
    return True


def compute_backoff_ms(
    policy: RequestPolicy,
    attempt: int,
    rand: Callable[[], float] = random.random,
) -> float:
    """Delay to wait before ``attempt`` (1-based count of retries so far).

    ``base * 2**(attempt-1)`` scaled by a jitter factor in [0.8, 1.2).
    """
    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    exponential = policy.retry_base_delay_ms * (2 ** (attempt - 1))
    return exponential * (JITTER_LOW + rand() * JITTER_SPAN)


async def _backoff(
    sleep: Callable[[float], Awaitable[object]],
    seconds: float,
    signal: Optional[CancellationSignal],
) -> None:
    """Sleep for ``seconds``, returning early if ``signal`` fires."""
    if signal is None:
        await sleep(seconds)
        return
    if signal.cancelled:
        return

    sleep_task = asyncio.ensure_future(sleep(seconds))
    cancel_task = asyncio.ensure_future(signal.wait())
    try:
        await asyncio.wait({sleep_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sleep_task, cancel_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(sleep_task, cancel_task, return_exceptions=True)


async def with_retry(
    attempt_fn: AttemptFn[T],
    policy: RequestPolicy,
    *,
    signal: Optional[CancellationSignal] = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Invoke ``attempt_fn`` until it succeeds or retries are exhausted.

    Args:
        attempt_fn: Called as ``attempt_fn(attempt_index, signal)``.
        policy: Timeout, retry count and base delay.
        signal: Optional caller-owned signal that aborts the whole sequence.
        sleep: Coroutine used for backoff waits.

    Returns:
        The first successful attempt's value.

    Raises:
        RequestError: The last failure, or the first non-retryable one.
    """
    max_attempts = policy.max_attempts
    attempt_index = 0

    while True:
        try:
            return await with_timeout(
                lambda attempt_signal: attempt_fn(attempt_index, attempt_signal),
                policy.timeout_ms,
                f"API request (attempt {attempt_index + 1}/{max_attempts})",
                parent=signal,
            )
        except Exception as e:
            attempt_index += 1

            if attempt_index > policy.max_retries or not is_retryable(e):
                raise

            delay_ms = compute_backoff_ms(policy, attempt_index)
            log.warning(
                "request_attempt_failed",
                attempt=attempt_index,
                max_attempts=max_attempts,
                delay_ms=round(delay_ms),
                kind=str(getattr(e, "kind", ErrorKind.UNKNOWN)),
                error=str(e),
            )
            await _backoff(sleep, delay_ms / 1000, signal)

            if signal is not None and signal.cancelled:
                raise RequestAbortedError(reason=signal.reason) from e
