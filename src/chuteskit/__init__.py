"""chuteskit: resilient client for the Chutes GPU platform API."""

__version__ = "0.1.0"

from chuteskit.core import (
    AuthenticationError,
    ChutesAPIError,
    ChutesClientConfig,
    ChutesError,
    ConfigurationError,
    ErrorKind,
    InputValidationError,
    NetworkError,
    RateLimitExceeded,
    RequestAbortedError,
    RequestError,
    RequestTimeoutError,
    ResponseError,
    Settings,
    configure_logging,
    create_settings,
)
from chuteskit.http import (
    CancellationSignal,
    Failure,
    HttpOptions,
    RequestMetrics,
    RequestPolicy,
    Result,
    Success,
    fetch_with_retry,
    validate_response_data,
    with_retry,
    with_timeout,
)
from chuteskit.api import ChutesClient
from chuteskit.plugin import ActionResult, ChutesPlugin

__all__ = [
    "ActionResult",
    "AuthenticationError",
    "CancellationSignal",
    "ChutesAPIError",
    "ChutesClient",
    "ChutesClientConfig",
    "ChutesError",
    "ChutesPlugin",
    "ConfigurationError",
    "ErrorKind",
    "Failure",
    "HttpOptions",
    "InputValidationError",
    "NetworkError",
    "RateLimitExceeded",
    "RequestAbortedError",
    "RequestError",
    "RequestMetrics",
    "RequestPolicy",
    "RequestTimeoutError",
    "ResponseError",
    "Result",
    "Settings",
    "Success",
    "configure_logging",
    "create_settings",
    "fetch_with_retry",
    "validate_response_data",
    "with_retry",
    "with_timeout",
]
