"""chuteskit Configuration System.

Settings are read from environment variables (``CHUTES_`` prefix), an
optional ``.env`` file and an optional YAML file, validated with Pydantic,
then frozen into a ``ChutesClientConfig`` handed to the client at
construction time. There are no process-wide mutable defaults.

Config Layer Priority (highest to lowest):
1. Explicit overrides passed to ``create_settings``
2. YAML config file
3. Environment variables / .env
4. Defaults (defined in the models below)

Usage:
    from chuteskit.core.config import create_settings

    settings = create_settings()
    client_config = settings.to_client_config()
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    PositiveInt,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from chuteskit.core.exceptions import ConfigurationError, InputValidationError
from chuteskit.core.validation import validate_api_key
from chuteskit.http.policy import RequestPolicy

DEFAULT_BASE_URL = "https://api.chutes.ai"
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_CORD_TIMEOUT_MS = 60_000
DEFAULT_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY_MS = 1_000

FALLBACK_ENDPOINTS: Tuple[str, ...] = (
    "https://api-backup.chutes.ai",
    "https://api-fallback.chutes.ai",
)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate renderer name."""
        if v.lower() not in {"json", "console"}:
            raise ValueError(f"Invalid log format: {v}. Must be 'json' or 'console'")
        return v.lower()


class ChutesClientConfig(BaseModel):
    """Immutable client configuration, fixed at client construction."""

    model_config = ConfigDict(frozen=True)

    api_key: SecretStr
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: PositiveInt = DEFAULT_TIMEOUT_MS
    cord_timeout_ms: PositiveInt = DEFAULT_CORD_TIMEOUT_MS
    retries: NonNegativeInt = DEFAULT_RETRIES
    retry_base_delay_ms: PositiveInt = DEFAULT_RETRY_BASE_DELAY_MS
    fallback_endpoints: Tuple[str, ...] = FALLBACK_ENDPOINTS
    rate_limit: Optional[PositiveInt] = None
    rate_window_ms: PositiveInt = 60_000

    @field_validator("api_key")
    @classmethod
    def check_api_key(cls, v: SecretStr) -> SecretStr:
        """Reject missing, placeholder and too-short keys."""
        validate_api_key(v.get_secret_value())
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {v!r}")
        return v.rstrip("/")

    def auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key.get_secret_value()}",
            "Content-Type": "application/json",
        }

    def request_policy(self) -> RequestPolicy:
        """Policy used for ordinary resource calls."""
        return RequestPolicy(
            timeout_ms=self.timeout_ms,
            max_retries=self.retries,
            retry_base_delay_ms=self.retry_base_delay_ms,
            headers=self.auth_headers(),
            fallback_base_urls=self.fallback_endpoints,
        )

    def cord_policy(self) -> RequestPolicy:
        """Policy for cord execution, which may run much longer."""
        return self.request_policy().with_overrides(timeout_ms=self.cord_timeout_ms)


class Settings(BaseSettings):
    """Environment-driven settings.

    Loads configuration from:
    1. Environment variables (CHUTES_ prefix; CHUTES_API_BASE_URL for base_url)
    2. Defaults defined below
    """

    model_config = SettingsConfigDict(
        env_prefix="CHUTES_",
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    api_key: Optional[SecretStr] = None
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        validation_alias=AliasChoices("CHUTES_API_BASE_URL", "CHUTES_BASE_URL"),
    )
    timeout_ms: PositiveInt = DEFAULT_TIMEOUT_MS
    cord_timeout_ms: PositiveInt = DEFAULT_CORD_TIMEOUT_MS
    retries: NonNegativeInt = DEFAULT_RETRIES
    retry_base_delay_ms: PositiveInt = DEFAULT_RETRY_BASE_DELAY_MS
    fallback_endpoints: List[str] = Field(default_factory=lambda: list(FALLBACK_ENDPOINTS))
    rate_limit: Optional[PositiveInt] = None
    rate_window_ms: PositiveInt = 60_000
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def to_client_config(self) -> ChutesClientConfig:
        """Freeze these settings into a client configuration.

        Raises:
            ConfigurationError: The API key is missing or invalid.
        """
        if self.api_key is None:
            raise ConfigurationError(
                key="api_key",
                message="API key is required. Please set CHUTES_API_KEY environment variable.",
            )
        try:
            return ChutesClientConfig(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout_ms=self.timeout_ms,
                cord_timeout_ms=self.cord_timeout_ms,
                retries=self.retries,
                retry_base_delay_ms=self.retry_base_delay_ms,
                fallback_endpoints=tuple(self.fallback_endpoints),
                rate_limit=self.rate_limit,
                rate_window_ms=self.rate_window_ms,
            )
        except ValidationError as e:
            raise ConfigurationError(
                key=_first_error_field(e),
                message=f"Client configuration is invalid: {_first_error_message(e)}",
            ) from e


def _first_error_field(error: ValidationError) -> Optional[str]:
    errors = error.errors()
    if not errors or not errors[0].get("loc"):
        return None
    return str(errors[0]["loc"][0])


def _first_error_message(error: ValidationError) -> str:
    errors = error.errors()
    if not errors:
        return str(error)
    ctx_error = errors[0].get("ctx", {}).get("error")
    if isinstance(ctx_error, InputValidationError):
        return ctx_error.message
    return errors[0].get("msg", str(error))


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content as dictionary.

    Raises:
        ConfigurationError: If file cannot be read or parsed.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            config_path=str(path),
            message=f"Configuration file not found: {path}",
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(
            config_path=str(path),
            message=f"Invalid YAML in {path}: {e}",
        )

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(
            config_path=str(path),
            message=f"Configuration in {path} must be a mapping",
        )
    return content


def create_settings(
    config_path: Optional[Path] = None,
    env_file: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Settings:
    """Create a Settings instance from env, .env, YAML and overrides.

    Args:
        config_path: Optional YAML file.
        env_file: Optional dotenv file. Defaults to ``./.env`` when present.
        overrides: Highest-priority values.

    Returns:
        Validated Settings.

    Raises:
        ConfigurationError: If a file cannot be loaded or values are invalid.
    """
    env_path = Path(env_file) if env_file is not None else Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    values: Dict[str, Any] = {}
    if config_path is not None:
        values.update(load_yaml_file(Path(config_path).expanduser()))
    if overrides:
        values.update(overrides)

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(
            config_path=str(config_path) if config_path else None,
            key=_first_error_field(e),
            message=f"Configuration validation failed: {e}",
        ) from e
