from .client import ChutesClient, error_for_failure, is_empty_chute_listing
from .models import (
    CHUTE_SPEC,
    CORD_SPEC,
    IMAGE_SPEC,
    Chute,
    ChuteImage,
    Cord,
    DeployChuteRequest,
    NodeSelector,
)

__all__ = [
    "CHUTE_SPEC",
    "CORD_SPEC",
    "Chute",
    "ChuteImage",
    "ChutesClient",
    "Cord",
    "DeployChuteRequest",
    "IMAGE_SPEC",
    "NodeSelector",
    "error_for_failure",
    "is_empty_chute_listing",
]
