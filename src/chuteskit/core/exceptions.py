"""chuteskit Exception Hierarchy.

This module defines the structured exception hierarchy for chuteskit.
All custom exceptions inherit from ChutesError, enabling consistent
error handling across the codebase.

Exception Categories:
- Request failures → RequestError subclasses, classified once by ``kind``
  at construction time and carried inside ``Failure`` results.
- Client-surface failures → ChutesAPIError / AuthenticationError, whose
  messages carry a stable prefix so calling UIs can pattern-match.

Usage:
    from chuteskit.core.exceptions import ResponseError

    raise ResponseError(
        "Missing required field in API response: name",
        status=None,
    )
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from chuteskit.http.result import Failure


class ErrorKind(StrEnum):
    """Classification tag attached to every request failure."""

    TIMEOUT = "TIMEOUT"
    RESPONSE = "RESPONSE_ERROR"
    NETWORK = "NETWORK_ERROR"
    ABORTED = "ABORTED"
    UNKNOWN = "UNKNOWN_ERROR"


class ChutesError(Exception):
    """Base exception for all chuteskit errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        """Initialize ChutesError.

        Args:
            message: Optional custom message. Defaults to a generic message.
        """
        self.message = message or "A chuteskit error occurred."
        super().__init__(self.message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context dictionary for structured logging.

        Returns:
            dict: Key-value pairs of exception context.
        """
        return {}

    def __repr__(self) -> str:
        """Return debug representation."""
        return f"{self.__class__.__name__}({self.message!r})"


class ConfigurationError(ChutesError):
    """Configuration file or value is invalid.

    Attributes:
        config_path: Path to the configuration file, if any.
        key: The configuration key that caused the error.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        key: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        self.config_path = config_path
        self.key = key

        if message is None:
            location = f" in '{config_path}'" if config_path else ""
            key_info = f" (key: {key})" if key else ""
            message = f"Invalid configuration{location}{key_info}."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for configuration error."""
        return {"config_path": self.config_path, "key": self.key}


class InputValidationError(ChutesError, ValueError):
    """User or caller input failed validation.

    Attributes:
        field: Name of the offending field, if known.
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for validation error."""
        return {"field": self.field}


class RequestError(ChutesError):
    """Base exception for failures of a single logical HTTP request.

    The ``kind`` is fixed by the subclass (or passed explicitly for the
    catch-all case) so that downstream code branches on the tag and never
    on message text.

    Attributes:
        kind: ErrorKind classification.
        status: HTTP status code, when a response was received.
        details: Decoded error body or low-level cause description.
        endpoint: URL the failing attempt targeted.
    """

    default_kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status: Optional[int] = None,
        details: Any = None,
        endpoint: Optional[str] = None,
        kind: Optional[ErrorKind] = None,
    ) -> None:
        self.kind = kind if kind is not None else self.default_kind
        self.status = status
        self.details = details
        self.endpoint = endpoint
        super().__init__(message or "Request failed.")

    @property
    def context(self) -> dict[str, Any]:
        """Return context for request error."""
        return {
            "kind": str(self.kind),
            "status": self.status,
            "endpoint": self.endpoint,
        }

    def __repr__(self) -> str:
        """Return debug representation with attributes."""
        return (
            f"{self.__class__.__name__}(kind={str(self.kind)!r}, "
            f"status={self.status!r}, message={self.message!r})"
        )


class RequestTimeoutError(RequestError):
    """An attempt exceeded its deadline.

    Attributes:
        label: Name of the operation that timed out.
        timeout_ms: Deadline that was exceeded.
    """

    default_kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        label: str,
        timeout_ms: int,
        message: Optional[str] = None,
        *,
        endpoint: Optional[str] = None,
    ) -> None:
        self.label = label
        self.timeout_ms = timeout_ms

        if message is None:
            message = f'operation "{label}" timed out after {timeout_ms}ms'

        super().__init__(message, endpoint=endpoint)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for timeout."""
        ctx = super().context
        ctx["label"] = self.label
        ctx["timeout_ms"] = self.timeout_ms
        return ctx


class ResponseError(RequestError):
    """The server answered with a non-success status or an unusable body."""

    default_kind = ErrorKind.RESPONSE


class NetworkError(RequestError):
    """Transport-level failure (DNS, connection refused, reset)."""

    default_kind = ErrorKind.NETWORK


class RequestAbortedError(RequestError):
    """The attempt was cancelled through its cancellation signal."""

    default_kind = ErrorKind.ABORTED

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        reason: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> None:
        self.reason = reason
        super().__init__(message or "Request was aborted", endpoint=endpoint)


class RateLimitExceeded(ChutesError):
    """Local token bucket refused the request.

    Attributes:
        limit: Tokens per window.
        window_ms: Refill window in milliseconds.
    """

    def __init__(self, limit: int, window_ms: int, message: Optional[str] = None) -> None:
        self.limit = limit
        self.window_ms = window_ms

        if message is None:
            message = f"Rate limit exceeded ({limit} requests per {window_ms}ms)."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for rate limit error."""
        return {"limit": self.limit, "window_ms": self.window_ms}


class ChutesAPIError(ChutesError):
    """A client method failed; message carries the ``Chutes API error:`` tag.

    Attributes:
        failure: The Failure result behind this error, if any.
    """

    prefix = "Chutes API error"

    def __init__(self, detail: str, failure: Optional["Failure"] = None) -> None:
        self.detail = detail
        self.failure = failure
        super().__init__(f"{self.prefix}: {detail}")

    @property
    def kind(self) -> Optional[ErrorKind]:
        """Return the classified failure kind, if any."""
        return self.failure.kind if self.failure is not None else None

    @property
    def status(self) -> Optional[int]:
        """Return the HTTP status of the failure, if any."""
        return self.failure.status if self.failure is not None else None

    @property
    def context(self) -> dict[str, Any]:
        """Return context for API error."""
        return {
            "kind": str(self.kind) if self.kind is not None else None,
            "status": self.status,
        }


class AuthenticationError(ChutesAPIError):
    """The API rejected the credentials (401/403)."""

    prefix = "Authentication error"
