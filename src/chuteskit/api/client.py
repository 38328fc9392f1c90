"""Chutes API client.

Every resource method goes through ``fetch_with_retry`` and therefore
inherits its timeout, retry, fallback and logging behaviour. Failures
surface as ``ChutesAPIError`` ("Chutes API error: ...") or
``AuthenticationError`` ("Authentication error: ...").

Usage:
    from chuteskit import ChutesClient, create_settings

    async with ChutesClient(create_settings().to_client_config()) as client:
        for chute in await client.list_chutes():
            print(chute.name, chute.status)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
import structlog

from chuteskit.api.models import Chute, ChuteImage, Cord, DeployChuteRequest
from chuteskit.core.config import ChutesClientConfig, Settings
from chuteskit.core.exceptions import (
    AuthenticationError,
    ChutesAPIError,
    InputValidationError,
    RateLimitExceeded,
)
from chuteskit.core.validation import validate_chute_id, validate_cord_name, validate_params
from chuteskit.http.executor import HttpOptions, fetch_with_retry
from chuteskit.http.hooks import RequestHooks
from chuteskit.http.policy import RequestPolicy
from chuteskit.http.rate_limiter import TokenBucketRateLimiter
from chuteskit.http.result import Failure, Result, Success

log = structlog.get_logger()

AUTH_FAILURE_STATUSES = frozenset({401, 403})
NO_MATCHING_CHUTE_DETAIL = "No matching chute found!"


def is_empty_chute_listing(result: Result[Any]) -> bool:
    """Recognise the upstream 404 that means "you have no chutes"."""
    return (
        isinstance(result, Failure)
        and result.status == 404
        and isinstance(result.details, dict)
        and result.details.get("detail") == NO_MATCHING_CHUTE_DETAIL
    )


def error_for_failure(failure: Failure) -> ChutesAPIError:
    """Map a Failure to the client-surface exception."""
    if failure.status in AUTH_FAILURE_STATUSES:
        return AuthenticationError(failure.message, failure)
    return ChutesAPIError(failure.message, failure)


class ChutesClient:
    """Async client for the Chutes REST API."""

    def __init__(
        self,
        config: ChutesClientConfig,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        hooks: Optional[RequestHooks] = None,
        rate_limiter: Optional[TokenBucketRateLimiter] = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Frozen client configuration.
            http_client: Optional shared httpx client; one is created otherwise.
            hooks: Request lifecycle observers; structlog events by default.
            rate_limiter: Optional token bucket. Built from ``config.rate_limit``
                when omitted and a limit is configured.
        """
        self._config = config
        self._base_url = config.base_url
        self._policy = config.request_policy()
        self._cord_policy = config.cord_policy()
        self._hooks = hooks
        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient()

        if rate_limiter is None and config.rate_limit is not None:
            rate_limiter = TokenBucketRateLimiter(config.rate_limit, config.rate_window_ms)
        self._rate_limiter = rate_limiter

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "ChutesClient":
        return cls(settings.to_client_config(), **kwargs)

    @property
    def config(self) -> ChutesClientConfig:
        return self._config

    @property
    def policy(self) -> RequestPolicy:
        return self._policy

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "ChutesClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # Request plumbing

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        *,
        policy: Optional[RequestPolicy] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Result[Any]:
        """Send a request relative to the base URL and return the raw Result.

        Raises:
            RateLimitExceeded: The local token bucket is empty.
        """
        if self._rate_limiter is not None and not self._rate_limiter.check_limit():
            raise RateLimitExceeded(self._rate_limiter.limit, self._rate_limiter.window_ms)

        return await fetch_with_retry(
            f"{self._base_url}{path}",
            HttpOptions(method=method, json=body),
            policy or self._policy,
            client=self._http,
            hooks=self._hooks,
            meta={"has_body": body is not None, **(meta or {})},
        )

    async def _call(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Dict[str, Any]] = None,
        *,
        policy: Optional[RequestPolicy] = None,
    ) -> Any:
        result = await self.request(path, method, body, policy=policy)
        if isinstance(result, Failure):
            raise error_for_failure(result)
        return result.data

    # Account

    async def check_auth(self) -> bool:
        """Return True when the API key is accepted."""
        try:
            await self._call("/users/me")
            return True
        except ChutesAPIError as e:
            log.error("auth_check_failed", error=str(e), **e.context)
            return False

    async def get_current_user(self) -> Dict[str, Any]:
        return await self._call("/users/me")

    async def get_developer_deposit(self) -> Any:
        return await self._call("/developer_deposit")

    # Images

    async def list_images(self) -> List[ChuteImage]:
        data = await self._call("/images")
        return [ChuteImage.from_dict(item) for item in _as_list(data)]

    async def get_image(self, image_id: str) -> ChuteImage:
        if not image_id:
            raise InputValidationError("Image ID must be provided", field="id")
        data = await self._call(f"/images/{quote(image_id, safe='')}")
        return ChuteImage.from_dict(data)

    # Chutes

    async def list_chutes_result(self) -> Result[Any]:
        """List chutes as a raw Result, mapping the empty-listing 404 to ``Success([])``."""
        result = await self.request("/chutes")
        if is_empty_chute_listing(result):
            log.info("chute_listing_empty", endpoint=result.metrics.endpoint)
            return Success(data=[], metrics=result.metrics)
        return result

    async def list_chutes(self) -> List[Chute]:
        result = await self.list_chutes_result()
        if isinstance(result, Failure):
            raise error_for_failure(result)
        return [Chute.from_dict(item) for item in _as_list(result.data)]

    async def get_chute(self, chute_id: str) -> Chute:
        validate_chute_id(chute_id)
        data = await self._call(f"/chutes/{chute_id}")
        return Chute.from_dict(data)

    async def deploy_chute(self, request: DeployChuteRequest) -> Chute:
        data = await self._call("/chutes", "POST", request.to_payload())
        return Chute.from_dict(data)

    async def delete_chute(self, chute_id: str) -> bool:
        """Delete a chute; a 404 counts as already deleted."""
        validate_chute_id(chute_id)
        result = await self.request(f"/chutes/{chute_id}", "DELETE")
        if isinstance(result, Failure):
            if result.status == 404:
                log.warning("chute_already_deleted", chute_id=chute_id)
                return True
            raise error_for_failure(result)
        return True

    # Cords

    async def list_cords(self, chute_id: str) -> List[Cord]:
        validate_chute_id(chute_id)
        data = await self._call(f"/chutes/{chute_id}/cords")
        return [Cord.from_dict(item) for item in _as_list(data)]

    async def execute_cord(self, chute_id: str, cord_name: str, params: Dict[str, Any]) -> Any:
        """Invoke a cord with the longer cord-execution timeout."""
        validate_chute_id(chute_id)
        validate_cord_name(cord_name)
        validate_params(params)
        result = await self.request(
            f"/chutes/{chute_id}/cords/{cord_name}",
            "POST",
            params,
            policy=self._cord_policy,
            meta={"action": "execute_cord"},
        )
        if isinstance(result, Failure):
            raise ChutesAPIError(f"Cord execution failed: {result.message}", result)
        return result.data


def _as_list(data: Any) -> List[Any]:
    return data if isinstance(data, list) else []
