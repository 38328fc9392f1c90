from .cancellation import CancellationSignal
from .executor import (
    HttpOptions,
    endpoint_rotation,
    fetch_with_retry,
    rebase_url,
    target_for_attempt,
)
from .hooks import NullRequestHooks, RequestHooks, StructlogRequestHooks
from .policy import AttemptContext, RequestPolicy
from .rate_limiter import RateLimitMetrics, TokenBucketRateLimiter
from .result import ErrorKind, Failure, RequestMetrics, Result, Success
from .retry import compute_backoff_ms, is_retryable, with_retry
from .timeout import with_timeout
from .validator import ValidationSpec, validate_response_data

__all__ = [
    "AttemptContext",
    "CancellationSignal",
    "ErrorKind",
    "Failure",
    "HttpOptions",
    "NullRequestHooks",
    "RateLimitMetrics",
    "RequestHooks",
    "RequestMetrics",
    "RequestPolicy",
    "Result",
    "StructlogRequestHooks",
    "Success",
    "TokenBucketRateLimiter",
    "ValidationSpec",
    "compute_backoff_ms",
    "endpoint_rotation",
    "fetch_with_retry",
    "is_retryable",
    "rebase_url",
    "target_for_attempt",
    "validate_response_data",
    "with_retry",
    "with_timeout",
]
