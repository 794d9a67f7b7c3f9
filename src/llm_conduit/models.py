"""Curated model table and reasoning knobs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final, Optional

from llm_conduit.providers import Provider

__all__ = [
    "ReasoningEffort",
    "ModelDefinition",
    "CURATED_MODELS",
    "find_model",
    "supports_reasoning",
    "context_size",
]


class ReasoningEffort(StrEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def openai_value(self) -> Optional[str]:
        """Value for OpenAI's ``reasoning_effort``, or None to leave it out."""
        if self is ReasoningEffort.NONE:
            return None
        return self.value

    @property
    def anthropic_budget_tokens(self) -> Optional[int]:
        return _ANTHROPIC_BUDGETS.get(self)


_ANTHROPIC_BUDGETS: Final[dict[ReasoningEffort, int]] = {
    ReasoningEffort.LOW: 1024,
    ReasoningEffort.MEDIUM: 8192,
    ReasoningEffort.HIGH: 32000,
}


@dataclass(frozen=True, slots=True)
class ModelDefinition:
    id: str
    display_name: str
    provider: Provider
    supports_reasoning: bool
    context_size: int


CURATED_MODELS: Final[tuple[ModelDefinition, ...]] = (
    # OpenAI GPT-5 series
    ModelDefinition("gpt-5.1", "GPT-5.1", Provider.OPENAI, True, 1_000_000),
    ModelDefinition("gpt-5", "GPT-5", Provider.OPENAI, True, 1_000_000),
    ModelDefinition("gpt-5-mini", "GPT-5 Mini", Provider.OPENAI, True, 1_000_000),
    ModelDefinition("gpt-5-nano", "GPT-5 Nano", Provider.OPENAI, True, 1_000_000),
    # OpenAI o-series
    ModelDefinition("o4-mini", "o4-mini", Provider.OPENAI, True, 200_000),
    ModelDefinition("o3", "o3", Provider.OPENAI, True, 200_000),
    ModelDefinition("o3-mini", "o3-mini", Provider.OPENAI, True, 200_000),
    ModelDefinition("o1", "o1", Provider.OPENAI, True, 200_000),
    ModelDefinition("o1-mini", "o1-mini", Provider.OPENAI, True, 128_000),
    ModelDefinition("o1-preview", "o1-preview", Provider.OPENAI, True, 128_000),
    # OpenAI without reasoning
    ModelDefinition("gpt-4.1", "GPT-4.1", Provider.OPENAI, False, 1_000_000),
    ModelDefinition("gpt-4.1-mini", "GPT-4.1 Mini", Provider.OPENAI, False, 1_000_000),
    ModelDefinition("gpt-4.1-nano", "GPT-4.1 Nano", Provider.OPENAI, False, 1_000_000),
    ModelDefinition("gpt-4o", "GPT-4o", Provider.OPENAI, False, 128_000),
    ModelDefinition("gpt-4o-mini", "GPT-4o Mini", Provider.OPENAI, False, 128_000),
    ModelDefinition("gpt-4-turbo", "GPT-4 Turbo", Provider.OPENAI, False, 128_000),
    # Anthropic
    ModelDefinition("claude-sonnet-4-5", "Claude Sonnet 4.5", Provider.ANTHROPIC, True, 200_000),
    ModelDefinition("claude-opus-4-5", "Claude Opus 4.5", Provider.ANTHROPIC, True, 200_000),
    ModelDefinition("claude-haiku-4-5", "Claude Haiku 4.5", Provider.ANTHROPIC, True, 200_000),
    ModelDefinition("claude-opus-4", "Claude Opus 4", Provider.ANTHROPIC, True, 200_000),
    ModelDefinition("claude-sonnet-4", "Claude Sonnet 4", Provider.ANTHROPIC, True, 200_000),
    ModelDefinition("claude-3-7-sonnet", "Claude Sonnet 3.7", Provider.ANTHROPIC, True, 200_000),
    ModelDefinition("claude-3-5-sonnet", "Claude Sonnet 3.5", Provider.ANTHROPIC, False, 200_000),
    ModelDefinition("claude-3-5-haiku", "Claude Haiku 3.5", Provider.ANTHROPIC, False, 200_000),
)

_BY_ID: Final[dict[str, ModelDefinition]] = {m.id: m for m in CURATED_MODELS}

# Uncurated ids in these families are still treated as reasoning models
_REASONING_PREFIXES: Final = ("gpt-5", "o1", "o3", "o4")

_DEFAULT_CONTEXT: Final = 32_000


def find_model(model_id: str) -> Optional[ModelDefinition]:
    """Look up a curated model, accepting dated snapshots like ``claude-3-5-haiku-20241022``."""
    model = _BY_ID.get(model_id)
    if model is not None:
        return model
    snapshots = [m for m in CURATED_MODELS if model_id.startswith(m.id + "-")]
    if not snapshots:
        return None
    return max(snapshots, key=lambda m: len(m.id))


def supports_reasoning(model_id: str) -> bool:
    model = find_model(model_id)
    if model is not None:
        return model.supports_reasoning
    return any(model_id.startswith(prefix) for prefix in _REASONING_PREFIXES)


def context_size(model_id: str) -> int:
    """Context window in tokens, falling back to family heuristics."""
    model = find_model(model_id)
    if model is not None:
        return model.context_size

    lowered = model_id.lower()
    if "gpt-5" in lowered:
        return 128_000
    if any(tag in lowered for tag in ("gpt-4o", "gpt-4.1", "gpt-4-turbo")):
        return 128_000
    if lowered.startswith(("o1", "o3", "o4")):
        return 200_000
    if "claude" in lowered:
        return 200_000
    return _DEFAULT_CONTEXT
