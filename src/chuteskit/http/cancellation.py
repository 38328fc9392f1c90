"""Cooperative cancellation signal shared between a caller and an operation."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

import structlog

log = structlog.get_logger()

DEADLINE_REASON = "deadline"


class CancellationSignal:
    """Single-shot cancellation flag.

    The owner calls ``cancel``; the operation polls ``cancelled``, awaits
    ``wait()`` or registers a callback. Once fired a signal stays fired,
    so a fresh signal is needed for every attempt.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._callbacks: List[Callable[[str], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Fire the signal. Subsequent calls are no-ops."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(reason)
            except Exception as e:
                log.warning("cancellation_callback_failed", error=str(e))

    def add_callback(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Run ``callback(reason)`` when the signal fires.

        Fires immediately if the signal is already cancelled.

        Returns:
            A function that unregisters the callback.
        """
        if self._event.is_set():
            callback(self._reason or "cancelled")
            return lambda: None

        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    async def wait(self) -> str:
        """Wait until the signal fires and return the reason."""
        await self._event.wait()
        return self._reason or "cancelled"

    def __repr__(self) -> str:
        return f"CancellationSignal(cancelled={self.cancelled!r}, reason={self._reason!r})"
