"""Request lifecycle hooks.

The executor reports every request through a ``RequestHooks``
implementation. Hooks observe only; an exception raised by a hook is
logged and never changes the returned Result.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, runtime_checkable

import structlog

from chuteskit.http.result import Failure, Result

log = structlog.get_logger()


@runtime_checkable
class RequestHooks(Protocol):
    """Observer interface for request start, end and exception events."""

    def on_request_start(
        self, method: str, url: str, meta: Optional[Mapping[str, Any]] = None
    ) -> None:
        ...

    def on_request_end(self, method: str, url: str, result: Result[Any]) -> None:
        ...

    def on_exception(self, method: str, url: str, error: BaseException) -> None:
        ...


class StructlogRequestHooks:
    """Default hooks emitting structlog events."""

    def __init__(self, logger: Any = None) -> None:
        self._log = logger if logger is not None else log

    def on_request_start(
        self, method: str, url: str, meta: Optional[Mapping[str, Any]] = None
    ) -> None:
        self._log.info("api_request", method=method, url=url, **dict(meta or {}))

    def on_request_end(self, method: str, url: str, result: Result[Any]) -> None:
        if isinstance(result, Failure):
            self._log.error(
                "api_error",
                method=method,
                url=url,
                kind=str(result.kind),
                status=result.status,
                message=result.message,
                **result.metrics.to_dict(),
            )
            return
        self._log.info("api_success", method=method, url=url, **result.metrics.to_dict())

    def on_exception(self, method: str, url: str, error: BaseException) -> None:
        context = getattr(error, "context", {})
        self._log.error("api_exception", method=method, url=url, error=str(error), **context)


class NullRequestHooks:
    """Hooks that discard every event."""

    def on_request_start(
        self, method: str, url: str, meta: Optional[Mapping[str, Any]] = None
    ) -> None:
        pass

    def on_request_end(self, method: str, url: str, result: Result[Any]) -> None:
        pass

    def on_exception(self, method: str, url: str, error: BaseException) -> None:
        pass


def safe_call(hook_name: str, func: Any, *args: Any) -> None:
    """Invoke a hook method, logging and suppressing anything it raises."""
    try:
        func(*args)
    except Exception as e:
        log.warning("request_hook_failed", hook=hook_name, error=str(e))
