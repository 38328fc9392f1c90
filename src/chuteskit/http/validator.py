"""Response shape validation and default merging."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from chuteskit.core.exceptions import ResponseError


def validate_response_data(
    data: Any,
    required_fields: Iterable[str],
    defaults: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Check ``data`` is an object with every required field.

    Args:
        data: Decoded response payload.
        required_fields: Keys that must be present, checked in order.
        defaults: Values for optional keys; payload values win.

    Returns:
        Shallow merge of ``defaults`` under ``data``.

    Raises:
        ResponseError: ``data`` is not a mapping or a required key is absent.
    """
    if not isinstance(data, Mapping):
        raise ResponseError(
            "Invalid API response: expected an object",
            details=type(data).__name__,
        )

    for key in required_fields:
        if key not in data:
            raise ResponseError(
                f"Missing required field in API response: {key}",
                details={"missing_field": key},
            )

    return {**dict(defaults or {}), **data}


@dataclass(frozen=True)
class ValidationSpec:
    """Required fields and defaults for one resource type."""

    required_fields: Tuple[str, ...]
    defaults: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "required_fields", tuple(self.required_fields))
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))

    def apply(self, data: Any) -> Dict[str, Any]:
        return validate_response_data(data, self.required_fields, self.defaults)

    def apply_many(self, data: Any) -> list[Dict[str, Any]]:
        """Validate every item of a list payload; non-lists yield ``[]``."""
        if not isinstance(data, list):
            return []
        return [self.apply(item) for item in data]
