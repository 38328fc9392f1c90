"""Chutes API resource models.

Classes:
    NodeSelector: GPU placement requirements of a chute
    ChuteImage: Container image a chute is built from
    Chute: Deployed workload
    Cord: Remotely invocable function exposed by a chute
    DeployChuteRequest: Payload for ``POST /chutes``

Each resource has a ``ValidationSpec`` applied to the raw payload before
the model is built.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

from chuteskit.core.exceptions import InputValidationError, ResponseError
from chuteskit.http.validator import ValidationSpec

IMAGE_SPEC = ValidationSpec(
    required_fields=("id", "username", "name", "tag", "created_at"),
    defaults={"public": False},
)

CHUTE_SPEC = ValidationSpec(
    required_fields=("id", "username", "name", "image_id", "created_at", "status"),
    defaults={"public": False},
)

CORD_SPEC = ValidationSpec(required_fields=("name",))


def _known_fields(cls: type, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass
class NodeSelector:
    """GPU placement requirements.

    Attributes:
        gpu_count: Number of GPUs (>= 1).
        min_vram_gb_per_gpu: Minimum VRAM per GPU in GB (>= 1).
        include: Optional GPU types to allow.
        exclude: Optional GPU types to avoid.
    """

    gpu_count: int = 1
    min_vram_gb_per_gpu: int = 24
    include: Optional[List[str]] = None
    exclude: Optional[List[str]] = None

    def __post_init__(self) -> None:
        """Validate fields after initialization."""
        if self.gpu_count < 1:
            raise InputValidationError("GPU count must be at least 1", field="gpu_count")
        if self.min_vram_gb_per_gpu < 1:
            raise InputValidationError(
                "Minimum VRAM per GPU must be at least 1GB", field="min_vram_gb_per_gpu"
            )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["NodeSelector"]:
        """Parse a server-supplied selector; invalid values are a bad response."""
        if not isinstance(data, dict):
            return None
        try:
            return cls(**_known_fields(cls, data))
        except InputValidationError as e:
            raise ResponseError(
                f"Invalid node_selector in API response: {e.message}", details=data
            ) from e

    def to_payload(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ChuteImage:
    id: str
    username: str
    name: str
    tag: str
    created_at: str
    public: bool = False
    readme: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "ChuteImage":
        return cls(**_known_fields(cls, IMAGE_SPEC.apply(data)))


@dataclass
class Chute:
    id: str
    username: str
    name: str
    image_id: str
    created_at: str
    status: str
    public: bool = False
    readme: Optional[str] = None
    node_selector: Optional[NodeSelector] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Chute":
        validated = _known_fields(cls, CHUTE_SPEC.apply(data))
        validated["node_selector"] = NodeSelector.from_dict(validated.get("node_selector"))
        return cls(**validated)


@dataclass
class Cord:
    name: str
    description: Optional[str] = None
    input_schema: Optional[Dict[str, Any]] = None
    output_schema: Optional[Dict[str, Any]] = None
    public_api_path: Optional[str] = None
    public_api_method: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Cord":
        return cls(**_known_fields(cls, CORD_SPEC.apply(data)))


@dataclass
class DeployChuteRequest:
    """Request payload for ``POST /chutes``."""

    username: str
    name: str
    image_id: str
    node_selector: NodeSelector = field(default_factory=NodeSelector)
    readme: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.username:
            raise InputValidationError("Username is required", field="username")
        if not self.name:
            raise InputValidationError("Chute name is required", field="name")
        if not self.image_id:
            raise InputValidationError("Image ID is required", field="image_id")

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "username": self.username,
            "name": self.name,
            "image_id": self.image_id,
            "node_selector": self.node_selector.to_payload(),
        }
        if self.readme is not None:
            payload["readme"] = self.readme
        return payload
