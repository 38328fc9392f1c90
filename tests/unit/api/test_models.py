"""Unit tests for API resource models."""

import pytest

from chuteskit.api.models import Chute, ChuteImage, Cord, DeployChuteRequest, NodeSelector
from chuteskit.core.exceptions import InputValidationError, ResponseError


class TestNodeSelector:
    """Tests for NodeSelector."""

    def test_defaults(self):
        """One 24GB GPU by default."""
        selector = NodeSelector()
        assert selector.to_payload() == {"gpu_count": 1, "min_vram_gb_per_gpu": 24}

    def test_validation(self):
        """Counts must be positive."""
        with pytest.raises(InputValidationError, match="GPU count"):
            NodeSelector(gpu_count=0)
        with pytest.raises(InputValidationError, match="VRAM"):
            NodeSelector(min_vram_gb_per_gpu=0)

    def test_from_dict_ignores_unknown_keys(self):
        """Extra API fields are dropped."""
        selector = NodeSelector.from_dict({"gpu_count": 4, "supported_gpus": ["h100"]})
        assert selector == NodeSelector(gpu_count=4)
        assert NodeSelector.from_dict(None) is None


class TestResources:
    """Tests for resource parsing."""

    def test_chute_from_dict(self, chute_payload):
        """Chutes get defaults and a parsed node selector."""
        chute_payload["unexpected"] = "ignored"
        chute = Chute.from_dict(chute_payload)
        assert chute.public is False
        assert chute.readme is None
        assert chute.node_selector.gpu_count == 2

    def test_chute_missing_field(self, chute_payload):
        """Missing required fields fail validation."""
        del chute_payload["image_id"]
        with pytest.raises(ResponseError, match="image_id"):
            Chute.from_dict(chute_payload)

    @pytest.mark.parametrize("selector", [{"gpu_count": 0}, {"min_vram_gb_per_gpu": 0}])
    def test_chute_invalid_node_selector_is_bad_response(self, chute_payload, selector):
        """Out-of-range selector values from the server are response errors."""
        chute_payload["node_selector"] = selector
        with pytest.raises(ResponseError, match="Invalid node_selector in API response") as exc:
            Chute.from_dict(chute_payload)
        assert not isinstance(exc.value, InputValidationError)
        assert exc.value.details == selector

    def test_image_from_dict(self, image_payload):
        """Images keep API-provided values over defaults."""
        image_payload["public"] = True
        assert ChuteImage.from_dict(image_payload).public is True

    def test_cord_requires_name(self):
        """Cords need a name."""
        assert Cord.from_dict({"name": "generate"}).name == "generate"
        with pytest.raises(ResponseError):
            Cord.from_dict({"description": "no name"})


class TestDeployChuteRequest:
    """Tests for DeployChuteRequest."""

    @pytest.mark.parametrize("field_name", ["username", "name", "image_id"])
    def test_required_fields(self, field_name):
        """Each identifying field must be set."""
        values = {"username": "alice", "name": "my-llm", "image_id": "img-1"}
        values[field_name] = ""
        with pytest.raises(InputValidationError) as exc:
            DeployChuteRequest(**values)
        assert exc.value.field == field_name

    def test_payload_includes_readme(self):
        """The readme is only sent when set."""
        request = DeployChuteRequest(username="alice", name="my-llm", image_id="img-1", readme="# hi")
        payload = request.to_payload()
        assert payload["readme"] == "# hi"
        assert payload["node_selector"] == {"gpu_count": 1, "min_vram_gb_per_gpu": 24}
