"""
chuteskit Test Configuration

Shared pytest fixtures and configuration for all test types.
"""

import os
from typing import Any, Callable, Generator

import httpx
import pytest
import structlog

from chuteskit.core.config import ChutesClientConfig

API_KEY = "cpk_test_0123456789abcdef"
BASE_URL = "https://api.chutes.test"
CHUTE_UUID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"
IMAGE_UUID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"


# Configure pytest collection
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (require external services)")


@pytest.fixture(autouse=True)
def clean_chutes_env() -> Generator[None, None, None]:
    """Keep CHUTES_* variables from leaking into or out of a test.

    load_dotenv writes straight to os.environ, so monkeypatch alone
    cannot undo it.
    """
    saved = {k: v for k, v in os.environ.items() if k.startswith("CHUTES_")}
    for key in saved:
        del os.environ[key]

    yield

    for key in [k for k in os.environ if k.startswith("CHUTES_")]:
        del os.environ[key]
    os.environ.update(saved)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any structlog.configure() a test triggers."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def client_config() -> ChutesClientConfig:
    """Client configuration with fast timeouts and no fallbacks."""
    return ChutesClientConfig(
        api_key=API_KEY,
        base_url=BASE_URL,
        timeout_ms=200,
        cord_timeout_ms=400,
        retries=2,
        retry_base_delay_ms=1,
        fallback_endpoints=(),
    )


@pytest.fixture
def mock_http() -> Callable[[Callable[[httpx.Request], Any]], httpx.AsyncClient]:
    """Build an AsyncClient backed by an httpx.MockTransport handler."""

    def factory(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


@pytest.fixture
def chute_payload() -> dict:
    """Provide a raw chute object as returned by the API."""
    return {
        "id": CHUTE_UUID,
        "username": "alice",
        "name": "my-llm",
        "image_id": IMAGE_UUID,
        "created_at": "2025-01-01T00:00:00Z",
        "status": "ready",
        "node_selector": {"gpu_count": 2, "min_vram_gb_per_gpu": 48},
    }


@pytest.fixture
def image_payload() -> dict:
    """Provide a raw image object as returned by the API."""
    return {
        "id": IMAGE_UUID,
        "username": "alice",
        "name": "vllm",
        "tag": "0.6.3",
        "created_at": "2025-01-01T00:00:00Z",
    }
