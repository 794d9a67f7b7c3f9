"""Tests for the curated model table."""

import pytest

from llm_conduit.models import ReasoningEffort, context_size, find_model, supports_reasoning
from llm_conduit.providers import Provider, ProviderTarget, LocalServer


class TestModels:
    """Test model lookup and reasoning detection."""

    def test_find_model_accepts_snapshots(self):
        model = find_model("claude-3-5-haiku-20241022")
        assert model is not None
        assert model.id == "claude-3-5-haiku"
        assert model.provider is Provider.ANTHROPIC

    def test_longest_prefix_wins(self):
        assert find_model("gpt-4o-mini-2024-07-18").id == "gpt-4o-mini"

    def test_unknown_model(self):
        assert find_model("llama3.2") is None

    @pytest.mark.parametrize(
        "model,expected",
        [
            ("o3-mini", True),
            ("gpt-5-mini", True),
            ("gpt-5.2-preview", True),
            ("claude-sonnet-4-5", True),
            ("claude-3-5-sonnet-20241022", False),
            ("gpt-4o", False),
            ("llama3.2", False),
        ],
    )
    def test_supports_reasoning(self, model, expected):
        assert supports_reasoning(model) is expected

    def test_context_size_fallbacks(self):
        assert context_size("gpt-4o") == 128_000
        assert context_size("claude-next") == 200_000
        assert context_size("mistral-small") == 32_000

    def test_reasoning_effort_values(self):
        assert ReasoningEffort.NONE.openai_value is None
        assert ReasoningEffort.HIGH.openai_value == "high"
        assert ReasoningEffort.NONE.anthropic_budget_tokens is None
        assert ReasoningEffort.LOW.anthropic_budget_tokens == 1024


class TestProviderTarget:
    def test_local_defaults(self):
        target = ProviderTarget.local(server=LocalServer.LM_STUDIO)
        assert target.endpoint("chat/completions") == "http://localhost:1234/v1/chat/completions"
        assert target.display_name == "LM Studio"

    def test_custom_base_url(self):
        target = ProviderTarget.openai(api_key="k", base_url="https://proxy.example/v1/")
        assert target.endpoint("/chat/completions") == "https://proxy.example/v1/chat/completions"
        assert target.display_name == "OpenAI"
