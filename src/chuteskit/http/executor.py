"""Resilient request executor.

``fetch_with_retry`` is the single entry point every API method goes
through. It composes the retry engine and the timeout wrapper around an
httpx call, rotates across fallback base URLs, validates the status,
decodes the body by content type and always returns a ``Result``.

Usage:
    from chuteskit.http import HttpOptions, RequestPolicy, fetch_with_retry

    result = await fetch_with_retry(
        "https://api.chutes.ai/chutes",
        HttpOptions(method="GET"),
        RequestPolicy(fallback_base_urls=("https://api-backup.chutes.ai",)),
    )
    if result.ok:
        print(result.data, result.metrics.endpoint)
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx
import structlog

from chuteskit.core.exceptions import (
    NetworkError,
    RequestError,
    RequestTimeoutError,
    ResponseError,
)
from chuteskit.http.cancellation import CancellationSignal
from chuteskit.http.hooks import RequestHooks, StructlogRequestHooks, safe_call
from chuteskit.http.policy import AttemptContext, RequestPolicy
from chuteskit.http.result import Failure, RequestMetrics, Result, Success
from chuteskit.http.retry import with_retry

log = structlog.get_logger()

ERROR_BODY_SNIPPET_LEN = 500


@dataclass(frozen=True)
class HttpOptions:
    """Per-call HTTP parameters.

    Attributes:
        method: HTTP method.
        headers: Caller headers; policy headers override these.
        json: JSON-serialisable request body.
        content: Raw request body (ignored when ``json`` is set).
        params: Query parameters.
    """

    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    json: Any = None
    content: Optional[bytes] = None
    params: Optional[Mapping[str, Any]] = None


def endpoint_rotation(primary_url: str, fallback_base_urls: Sequence[str]) -> List[str]:
    """Build ``[primary, *fallbacks]`` with each fallback re-based on the primary path."""
    return [primary_url, *(rebase_url(primary_url, base) for base in fallback_base_urls)]


def target_for_attempt(rotation: Sequence[str], attempt_index: int) -> str:
    """Round-robin over ``rotation``; attempt 0 always uses the primary URL."""
    return rotation[attempt_index % len(rotation)]


def rebase_url(url: str, base_url: str) -> str:
    """Move the path and query of ``url`` onto ``base_url``."""
    suffix = httpx.URL(url).raw_path.decode("ascii")
    if suffix in ("", "/"):
        return base_url
    return base_url.rstrip("/") + suffix


def merge_headers(
    caller_headers: Mapping[str, str], policy_headers: Mapping[str, str]
) -> Dict[str, str]:
    """Merge headers case-insensitively; policy headers win."""
    merged = httpx.Headers(dict(caller_headers))
    merged.update(dict(policy_headers))
    return dict(merged.items())


def decode_success_body(response: httpx.Response) -> Any:
    """Decode a successful response according to its content type.

    No-content responses decode to ``{}``, JSON to its parsed value and
    anything else to text.
    """
    if response.status_code == 204 or not response.content:
        return {}

    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ResponseError(
                f"Invalid JSON in response: {e}",
                status=response.status_code,
                details=response.text[:ERROR_BODY_SNIPPET_LEN],
                endpoint=str(response.request.url),
            ) from e

    return response.text


def build_response_error(response: httpx.Response) -> ResponseError:
    """Build a ResponseError from a non-success response.

    The body is decoded as JSON first, then as text, and finally replaced
    by a generic ``HTTP Error <status>`` message.
    """
    status = response.status_code
    generic = f"HTTP Error {status}: {response.reason_phrase}".rstrip(": ")
    details: Any = None

    try:
        details = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        details = None

    if details is not None:
        message = _message_from_details(details) or generic
    else:
        text = response.text.strip()
        message = text[:ERROR_BODY_SNIPPET_LEN] if text else generic

    return ResponseError(
        message,
        status=status,
        details=details,
        endpoint=str(response.request.url),
    )


def _message_from_details(details: Any) -> Optional[str]:
    if not isinstance(details, dict):
        return None
    for key in ("message", "detail", "error"):
        value = details.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class _RequestState:
    """Mutable bookkeeping for one logical request, kept outside the policy."""

    def __init__(self, started: float, primary_url: str) -> None:
        self.started = started
        self.current: Optional[AttemptContext] = None
        self.primary_url = primary_url

    def metrics(self) -> RequestMetrics:
        elapsed_ms = int((time.monotonic() - self.started) * 1000)
        if self.current is None:
            return RequestMetrics(elapsed_ms, 0, self.primary_url)
        return RequestMetrics(elapsed_ms, self.current.attempt_index, self.current.target_url)


async def fetch_with_retry(
    url: str,
    options: Optional[HttpOptions] = None,
    policy: Optional[RequestPolicy] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    hooks: Optional[RequestHooks] = None,
    signal: Optional[CancellationSignal] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> Result[Any]:
    """Execute an HTTP request with timeout, retries and fallback endpoints.

    Args:
        url: Full primary URL.
        options: Method, headers and body.
        policy: Timeout/retry/fallback policy.
        client: Optional shared ``httpx.AsyncClient``. A private client is
            opened and closed around the call when omitted.
        hooks: Lifecycle observers. Defaults to structlog events.
        signal: Optional caller-owned signal aborting the whole request.
        meta: Extra context passed to ``on_request_start``.

    Returns:
        ``Success`` with the decoded body, or ``Failure`` with a classified
        kind. Transport exceptions never escape.
    """
    options = options or HttpOptions()
    policy = policy or RequestPolicy()
    hooks = hooks if hooks is not None else StructlogRequestHooks()
    method = options.method.upper()

    rotation = endpoint_rotation(url, policy.fallback_base_urls)
    headers = merge_headers(options.headers, policy.headers)
    state = _RequestState(time.monotonic(), url)

    safe_call("on_request_start", hooks.on_request_start, method, url, dict(meta or {}))

    async def attempt(
        http: httpx.AsyncClient, attempt_index: int, attempt_signal: CancellationSignal
    ) -> Any:
        target = target_for_attempt(rotation, attempt_index)
        state.current = AttemptContext(attempt_index, target, attempt_signal)
        if attempt_index > 0 and target != url:
            log.info("trying_fallback_endpoint", attempt=attempt_index, endpoint=target)
        return await _send(http, method, target, headers, options, policy)

    owns_client = client is None
    http = client if client is not None else httpx.AsyncClient()
    try:
        data = await with_retry(
            lambda index, attempt_signal: attempt(http, index, attempt_signal),
            policy,
            signal=signal,
        )
        result: Result[Any] = Success(data=data, metrics=state.metrics())
    except RequestError as e:
        safe_call("on_exception", hooks.on_exception, method, url, e)
        result = Failure.from_error(e, state.metrics())
    except Exception as e:
        safe_call("on_exception", hooks.on_exception, method, url, e)
        wrapped = RequestError(str(e) or e.__class__.__name__, details=repr(e))
        result = Failure.from_error(wrapped, state.metrics())
    finally:
        if owns_client:
            await http.aclose()

    safe_call("on_request_end", hooks.on_request_end, method, url, result)
    return result


async def _send(
    http: httpx.AsyncClient,
    method: str,
    target: str,
    headers: Mapping[str, str],
    options: HttpOptions,
    policy: RequestPolicy,
) -> Any:
    """Issue one HTTP call and translate its outcome into data or a RequestError."""
    timeout_s = policy.timeout_ms / 1000
    try:
        response = await http.request(
            method,
            target,
            headers=dict(headers),
            json=options.json,
            content=options.content if options.json is None else None,
            params=options.params,
            timeout=httpx.Timeout(timeout_s),
        )
    except httpx.TimeoutException as e:
        raise RequestTimeoutError(
            label=f"{method} {target}",
            timeout_ms=policy.timeout_ms,
            endpoint=target,
        ) from e
    except httpx.TransportError as e:
        raise NetworkError(
            "Network error: Unable to connect to the server",
            details=str(e),
            endpoint=target,
        ) from e

    if not policy.status_is_success(response.status_code):
        raise build_response_error(response)

    return decode_success_body(response)
