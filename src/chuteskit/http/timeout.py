"""Deadline enforcement for a single asynchronous operation."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar, Union

from chuteskit.core.exceptions import RequestAbortedError, RequestTimeoutError
from chuteskit.http.cancellation import DEADLINE_REASON, CancellationSignal

T = TypeVar("T")

Operation = Union[Awaitable[T], Callable[[CancellationSignal], Awaitable[T]]]


async def with_timeout(
    operation: Operation[T],
    timeout_ms: int,
    label: str = "API request",
    *,
    parent: Optional[CancellationSignal] = None,
) -> T:
    """Run ``operation`` and fail if it does not settle within ``timeout_ms``.

    ``operation`` is either an awaitable or a callable that accepts the
    attempt's ``CancellationSignal`` and returns an awaitable. When the
    deadline fires first, the signal is cancelled, the running task is
    cancelled and ``RequestTimeoutError`` is raised. When ``parent`` fires
    first, ``RequestAbortedError`` is raised instead. The deadline handle is
    cancelled on every exit path.

    Args:
        operation: Awaitable or signal-accepting callable.
        timeout_ms: Deadline in milliseconds (> 0).
        label: Operation name used in the timeout message.
        parent: Optional caller-owned signal that aborts this attempt.

    Raises:
        RequestTimeoutError: The deadline fired first.
        RequestAbortedError: ``parent`` fired first.
        ValueError: ``timeout_ms`` is not positive.
    """
    if timeout_ms <= 0:
        raise ValueError("timeout_ms must be > 0")

    signal = CancellationSignal()
    awaitable = operation(signal) if callable(operation) else operation
    task = asyncio.ensure_future(awaitable)
    loop = asyncio.get_running_loop()

    def abort(reason: str) -> None:
        signal.cancel(reason)
        task.cancel()

    deadline = loop.call_later(timeout_ms / 1000, abort, DEADLINE_REASON)
    unlink = parent.add_callback(abort) if parent is not None else None

    try:
        return await task
    except (asyncio.CancelledError, Exception) as e:
        if not signal.cancelled:
            raise
        if signal.reason == DEADLINE_REASON:
            raise RequestTimeoutError(label, timeout_ms) from e
        raise RequestAbortedError(reason=signal.reason) from e
    finally:
        deadline.cancel()
        if unlink is not None:
            unlink()
