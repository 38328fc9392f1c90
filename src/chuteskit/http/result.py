"""Result envelope returned by the request executor.

Every call through ``fetch_with_retry`` produces exactly one of
``Success`` or ``Failure``. Both carry ``RequestMetrics`` regardless of
outcome, so callers can log latency and retry counts uniformly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

from chuteskit.core.exceptions import (
    ErrorKind,
    NetworkError,
    RequestAbortedError,
    RequestError,
    RequestTimeoutError,
    ResponseError,
)

T = TypeVar("T")

_ERROR_TYPES: dict[ErrorKind, type[RequestError]] = {
    ErrorKind.RESPONSE: ResponseError,
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.ABORTED: RequestAbortedError,
}


@dataclass(frozen=True)
class RequestMetrics:
    """Timing and routing metadata for one logical request.

    Attributes:
        response_time_ms: Milliseconds since the request started.
        retries: Index of the last attempt made (0 when the first attempt settled it).
        endpoint: URL targeted by the last attempt.
    """

    response_time_ms: int
    retries: int
    endpoint: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "response_time_ms": self.response_time_ms,
            "retries": self.retries,
            "endpoint": self.endpoint,
        }


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful request outcome."""

    data: T
    metrics: RequestMetrics

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.data


@dataclass(frozen=True)
class Failure:
    """Failed request outcome.

    Attributes:
        kind: Classification fixed when the failure was constructed.
        message: Human-readable description.
        metrics: Timing and routing metadata.
        status: HTTP status, when a response was received.
        details: Decoded error body or cause description.
    """

    kind: ErrorKind
    message: str
    metrics: RequestMetrics
    status: Optional[int] = None
    details: Any = None

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_error(cls, error: RequestError, metrics: RequestMetrics) -> "Failure":
        """Build a Failure from a classified request error."""
        return cls(
            kind=error.kind,
            message=error.message,
            metrics=metrics,
            status=error.status,
            details=error.details,
        )

    def to_error(self) -> RequestError:
        """Rebuild the classified exception for this failure."""
        if self.kind is ErrorKind.TIMEOUT:
            return RequestTimeoutError(
                label="request",
                timeout_ms=0,
                message=self.message,
                endpoint=self.metrics.endpoint,
            )
        error_type = _ERROR_TYPES.get(self.kind)
        if error_type is RequestAbortedError:
            return RequestAbortedError(self.message, endpoint=self.metrics.endpoint)
        if error_type is not None:
            return error_type(
                self.message,
                status=self.status,
                details=self.details,
                endpoint=self.metrics.endpoint,
            )
        return RequestError(
            self.message,
            status=self.status,
            details=self.details,
            endpoint=self.metrics.endpoint,
            kind=self.kind,
        )

    def unwrap(self) -> Any:
        raise self.to_error()


Result = Union[Success[T], Failure]


__all__ = [
    "ErrorKind",
    "Failure",
    "RequestMetrics",
    "Result",
    "Success",
]
