"""Unit tests for chuteskit configuration.

Tests environment, dotenv and YAML loading with Pydantic validation,
and the frozen client configuration derived from it.
"""

import json
from pathlib import Path

import pytest
import structlog
import yaml
from pydantic import ValidationError

from chuteskit.core.config import (
    DEFAULT_BASE_URL,
    FALLBACK_ENDPOINTS,
    ChutesClientConfig,
    LoggingConfig,
    Settings,
    create_settings,
    load_yaml_file,
)
from chuteskit.core.exceptions import ConfigurationError
from chuteskit.core.logging import configure_logging

API_KEY = "cpk_test_0123456789abcdef"


# =============================================================================
# Default Value Tests
# =============================================================================


class TestDefaultValues:
    """Test sensible defaults for all optional keys."""

    def test_settings_defaults(self) -> None:
        """Test Settings defaults without any environment."""
        settings = Settings()
        assert settings.api_key is None
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.timeout_ms == 30_000
        assert settings.cord_timeout_ms == 60_000
        assert settings.retries == 3
        assert settings.fallback_endpoints == list(FALLBACK_ENDPOINTS)
        assert settings.rate_limit is None
        assert settings.logging.level == "INFO"
        assert settings.logging.format == "json"

    def test_logging_validation(self) -> None:
        """Test log level and format validation."""
        assert LoggingConfig(level="debug").level == "DEBUG"
        assert LoggingConfig(format="CONSOLE").format == "console"

        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")


# =============================================================================
# Environment Tests
# =============================================================================


class TestEnvironment:
    """Test CHUTES_* environment variables."""

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment variables populate settings."""
        monkeypatch.setenv("CHUTES_API_KEY", API_KEY)
        monkeypatch.setenv("CHUTES_API_BASE_URL", "https://staging.chutes.test/")
        monkeypatch.setenv("CHUTES_TIMEOUT_MS", "5000")
        monkeypatch.setenv("CHUTES_RETRIES", "1")
        monkeypatch.setenv("CHUTES_FALLBACK_ENDPOINTS", json.dumps(["https://b.test"]))
        monkeypatch.setenv("CHUTES_LOGGING__LEVEL", "debug")

        settings = Settings()
        assert settings.api_key.get_secret_value() == API_KEY
        assert settings.base_url == "https://staging.chutes.test/"
        assert settings.timeout_ms == 5000
        assert settings.retries == 1
        assert settings.fallback_endpoints == ["https://b.test"]
        assert settings.logging.level == "DEBUG"

        config = settings.to_client_config()
        assert config.base_url == "https://staging.chutes.test"
        assert config.fallback_endpoints == ("https://b.test",)

    def test_invalid_env_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test invalid values surface as ConfigurationError."""
        monkeypatch.setenv("CHUTES_TIMEOUT_MS", "-1")

        with pytest.raises(ConfigurationError) as exc:
            create_settings(env_file=Path("/nonexistent/.env"))
        assert exc.value.key == "timeout_ms"


# =============================================================================
# Client Config Tests
# =============================================================================


class TestClientConfig:
    """Test the frozen client configuration."""

    def test_missing_api_key(self) -> None:
        """Test a missing key is a configuration error naming the env var."""
        with pytest.raises(ConfigurationError, match="CHUTES_API_KEY") as exc:
            Settings().to_client_config()
        assert exc.value.key == "api_key"

    @pytest.mark.parametrize("key", ["YOUR_API_KEY", "short"])
    def test_placeholder_api_key(self, key: str) -> None:
        """Test placeholder keys are rejected."""
        with pytest.raises(ConfigurationError, match="placeholder") as exc:
            Settings(api_key=key).to_client_config()
        assert exc.value.key == "api_key"

    def test_base_url_normalised(self) -> None:
        """Test trailing slashes are removed and schemes enforced."""
        config = ChutesClientConfig(api_key=API_KEY, base_url="https://api.chutes.test/")
        assert config.base_url == "https://api.chutes.test"

        with pytest.raises(ValidationError):
            ChutesClientConfig(api_key=API_KEY, base_url="ftp://api.chutes.test")

    def test_request_policy(self) -> None:
        """Test the derived request policy carries auth and fallbacks."""
        config = ChutesClientConfig(
            api_key=API_KEY,
            timeout_ms=1_000,
            cord_timeout_ms=9_000,
            retries=2,
            fallback_endpoints=("https://b.test",),
        )
        policy = config.request_policy()
        assert policy.timeout_ms == 1_000
        assert policy.max_retries == 2
        assert policy.headers["Authorization"] == f"Bearer {API_KEY}"
        assert policy.headers["Content-Type"] == "application/json"
        assert policy.fallback_base_urls == ("https://b.test",)

        cord_policy = config.cord_policy()
        assert cord_policy.timeout_ms == 9_000
        assert cord_policy.max_retries == 2

    def test_frozen_and_secret(self) -> None:
        """Test the config is immutable and hides the key."""
        config = ChutesClientConfig(api_key=API_KEY)
        with pytest.raises(ValidationError):
            config.timeout_ms = 5
        assert API_KEY not in repr(config)


# =============================================================================
# File Loading Tests
# =============================================================================


class TestFileLoading:
    """Test YAML and dotenv loading."""

    def test_load_yaml_file(self, tmp_path: Path) -> None:
        """Test YAML mapping is loaded."""
        path = tmp_path / "chutes.yaml"
        path.write_text(yaml.safe_dump({"timeout_ms": 1234}))
        assert load_yaml_file(path) == {"timeout_ms": 1234}

    def test_load_yaml_empty(self, tmp_path: Path) -> None:
        """Test empty YAML yields an empty mapping."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_load_yaml_missing(self, tmp_path: Path) -> None:
        """Test a missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="not found"):
            load_yaml_file(tmp_path / "missing.yaml")

    def test_load_yaml_invalid(self, tmp_path: Path) -> None:
        """Test malformed YAML raises ConfigurationError."""
        path = tmp_path / "bad.yaml"
        path.write_text("timeout_ms: [1, 2")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_yaml_file(path)

    def test_load_yaml_not_mapping(self, tmp_path: Path) -> None:
        """Test a YAML list is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_yaml_file(path)

    def test_create_settings_layers(self, tmp_path: Path) -> None:
        """Test YAML values load and overrides win."""
        path = tmp_path / "chutes.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "api_key": API_KEY,
                    "base_url": "https://yaml.chutes.test",
                    "timeout_ms": 1234,
                    "logging": {"level": "warning", "format": "console"},
                }
            )
        )

        settings = create_settings(
            config_path=path,
            env_file=tmp_path / "absent.env",
            overrides={"timeout_ms": 4321},
        )
        assert settings.base_url == "https://yaml.chutes.test"
        assert settings.timeout_ms == 4321
        assert settings.logging.level == "WARNING"
        assert settings.logging.format == "console"

    def test_create_settings_dotenv(self, tmp_path: Path) -> None:
        """Test a dotenv file supplies the API key."""
        env_file = tmp_path / ".env"
        env_file.write_text(f"CHUTES_API_KEY={API_KEY}\n")

        settings = create_settings(env_file=env_file)
        assert settings.api_key.get_secret_value() == API_KEY

    def test_create_settings_invalid_yaml_value(self, tmp_path: Path) -> None:
        """Test validation errors name the config path."""
        path = tmp_path / "chutes.yaml"
        path.write_text(yaml.safe_dump({"retries": -1}))

        with pytest.raises(ConfigurationError) as exc:
            create_settings(config_path=path, env_file=tmp_path / "absent.env")
        assert exc.value.config_path == str(path)
        assert exc.value.key == "retries"


# =============================================================================
# Logging Tests
# =============================================================================


class TestConfigureLogging:
    """Test structlog configuration."""

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test JSON lines go to stderr."""
        configure_logging(LoggingConfig(level="INFO", format="json"))
        structlog.get_logger().info("hello", answer=42)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "hello"
        assert record["answer"] == 42
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_level_filtering(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test events below the configured level are dropped."""
        configure_logging(LoggingConfig(level="WARNING", format="console"))
        log = structlog.get_logger()
        log.info("quiet")
        log.warning("loud")

        err = capsys.readouterr().err
        assert "quiet" not in err
        assert "loud" in err
