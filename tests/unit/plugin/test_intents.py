"""Unit tests for the intent table."""

import pytest

from chuteskit.plugin.intents import INTENTS, match_intent, parse_gpu_requirements


class TestMatchIntent:
    """Tests for routing text to intents."""

    @pytest.mark.parametrize("text", ["List all my chutes", "Show me my chutes", "what are my chutes?"])
    def test_list_chutes(self, text):
        """Listing phrasings route to list_chutes."""
        assert match_intent(text).intent.name == "list_chutes"

    @pytest.mark.parametrize(
        "text,chute",
        [
            ("Get details for chute abc-123", "abc-123"),
            ("Show me info about chute my-model", "my-model"),
            ("chute details for 'my_model'", "my_model"),
        ],
    )
    def test_get_chute(self, text, chute):
        """Detail phrasings extract the chute id or name."""
        matched = match_intent(text)
        assert matched.intent.name == "get_chute"
        assert matched.params == {"chute": chute}

    @pytest.mark.parametrize(
        "text,chute",
        [
            ("List cords for chute abc-123", "abc-123"),
            ("Show me functions in chute my-model", "my-model"),
        ],
    )
    def test_list_cords(self, text, chute):
        """Cord listing phrasings extract the chute."""
        matched = match_intent(text)
        assert matched.intent.name == "list_cords"
        assert matched.params["chute"] == chute

    def test_execute_cord_with_params_keyword(self):
        """Quoted cord names and 'with params' are accepted."""
        matched = match_intent('Execute "generate" on chute abc-123 with params {"prompt": "Hello"}')
        assert matched.intent.name == "execute_cord"
        assert matched.params == {"cord": "generate", "chute": "abc-123", "params": '{"prompt": "Hello"}'}

    def test_execute_cord_function_phrasing(self):
        """'Call X function on Y with {...}' is accepted."""
        matched = match_intent('Call chat function on my-model with {"message": "What is AI?"}')
        assert matched.intent.name == "execute_cord"
        assert matched.params["cord"] == "chat"
        assert matched.params["chute"] == "my-model"

    @pytest.mark.parametrize(
        "text,name,image",
        [
            ('Deploy chute "my-llm" from image abc-123 with 1 GPU with 24GB RAM', "my-llm", "abc-123"),
            ("deploy a new chute my-llm using image vllm", "my-llm", "vllm"),
        ],
    )
    def test_deploy_chute(self, text, name, image):
        """Deploy phrasings extract name and image."""
        matched = match_intent(text)
        assert matched.intent.name == "deploy_chute"
        assert matched.params == {"name": name, "image": image}

    @pytest.mark.parametrize("text", ["", "   ", "hello there", "what's the weather"])
    def test_no_match(self, text):
        """Unrelated text matches nothing."""
        assert match_intent(text) is None

    def test_every_example_routes_to_its_intent(self):
        """The advertised examples match their own intent."""
        for intent in INTENTS:
            for example in intent.examples:
                assert match_intent(example).intent.name == intent.name, example


class TestGpuRequirements:
    """Tests for GPU phrase parsing."""

    def test_explicit(self):
        """Count and VRAM are extracted."""
        assert parse_gpu_requirements("deploy x from y with 2 GPUs with 48GB VRAM") == (2, 48)
        assert parse_gpu_requirements("with 4 GPU having 80 G memory") == (4, 80)

    def test_defaults(self):
        """One 24GB GPU when unspecified."""
        assert parse_gpu_requirements("deploy x from y") == (1, 24)
