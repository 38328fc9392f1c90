"""Input validation for values that end up in API paths and bodies."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from chuteskit.core.exceptions import InputValidationError

PLACEHOLDER_API_KEYS = frozenset({"YOUR_API_KEY", "your-api-key", "changeme"})
MIN_API_KEY_LENGTH = 8

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
SIMPLE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


def is_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.fullmatch(value))


def validate_api_key(api_key: Optional[str]) -> str:
    """Reject missing, placeholder and too-short API keys.

    Raises:
        InputValidationError: The key is unusable.
    """
    if not api_key or not api_key.strip():
        raise InputValidationError(
            "API key is required. Please set CHUTES_API_KEY environment variable.",
            field="api_key",
        )

    key = api_key.strip()
    if key in PLACEHOLDER_API_KEYS or len(key) < MIN_API_KEY_LENGTH:
        raise InputValidationError(
            "API key appears to be invalid or a placeholder. "
            "Please set a valid CHUTES_API_KEY.",
            field="api_key",
        )
    return key


def validate_chute_id(chute_id: Any) -> str:
    """Accept a UUID or a 3-64 character slug of letters, digits, ``_`` and ``-``."""
    if not chute_id:
        raise InputValidationError("Chute ID must be provided", field="id")
    if not isinstance(chute_id, str):
        raise InputValidationError(
            f"Chute ID must be a string, got {type(chute_id).__name__}", field="id"
        )
    if is_uuid(chute_id):
        return chute_id
    if not SIMPLE_ID_PATTERN.fullmatch(chute_id):
        raise InputValidationError(
            "Invalid chute ID format. Should be a UUID or alphanumeric string "
            "with dashes/underscores.",
            field="id",
        )
    if not 3 <= len(chute_id) <= 64:
        raise InputValidationError(
            "Chute ID must be between 3 and 64 characters if not a UUID", field="id"
        )
    return chute_id


def validate_cord_name(name: Any) -> str:
    if not name:
        raise InputValidationError("Cord name must be provided", field="name")
    if not isinstance(name, str):
        raise InputValidationError(
            f"Cord name must be a string, got {type(name).__name__}", field="name"
        )
    if not SIMPLE_ID_PATTERN.fullmatch(name):
        raise InputValidationError(
            "Cord name must contain only letters, numbers, underscores, and dashes",
            field="name",
        )
    if len(name) > 64:
        raise InputValidationError("Cord name must be between 1 and 64 characters", field="name")
    return name


def validate_params(params: Any) -> dict[str, Any]:
    """Require a JSON-serialisable mapping of cord parameters."""
    if not isinstance(params, dict):
        got = "null" if params is None else type(params).__name__
        raise InputValidationError(f"Parameters must be an object, got {got}", field="params")
    try:
        json.dumps(params)
    except (TypeError, ValueError) as e:
        raise InputValidationError(
            "Parameters contain circular references or cannot be serialized to JSON",
            field="params",
        ) from e
    return params
