"""Core module for chuteskit.

Exports the core components: exceptions, input validation and configuration.
"""

from chuteskit.core.exceptions import (
    AuthenticationError,
    ChutesAPIError,
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
)
from chuteskit.core.config import (
    ChutesClientConfig,
    LoggingConfig,
    Settings,
    create_settings,
    load_yaml_file,
)
from chuteskit.core.logging import configure_logging

__all__ = [
    "AuthenticationError",
    "ChutesAPIError",
    "ChutesClientConfig",
    "ChutesError",
    "ConfigurationError",
    "ErrorKind",
    "InputValidationError",
    "LoggingConfig",
    "NetworkError",
    "RateLimitExceeded",
    "RequestAbortedError",
    "RequestError",
    "RequestTimeoutError",
    "ResponseError",
    "Settings",
    "configure_logging",
    "create_settings",
    "load_yaml_file",
]
