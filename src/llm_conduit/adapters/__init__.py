"""Per-backend request builders, stream decoders and event normalizers."""

from __future__ import annotations

from llm_conduit.providers import Provider, ProviderTarget

from .anthropic import AnthropicAdapter, AnthropicNormalizer
from .base import CompletionPayload, EventNormalizer, PreparedRequest, ProviderAdapter
from .google import GoogleAdapter, GoogleNormalizer
from .openai import OpenAIAdapter, OpenAINormalizer

_ADAPTER_REGISTRY: dict[Provider, type] = {
    Provider.OPENAI: OpenAIAdapter,
    Provider.LOCAL: OpenAIAdapter,
    Provider.ANTHROPIC: AnthropicAdapter,
    Provider.GOOGLE: GoogleAdapter,
}


def get_adapter(target: ProviderTarget) -> ProviderAdapter:
    """Pick the adapter that speaks ``target``'s wire format."""
    try:
        adapter_cls = _ADAPTER_REGISTRY[target.provider]
    except KeyError:
        raise ValueError(f"Unsupported provider: {target.provider!r}") from None
    return adapter_cls(target)


__all__ = [
    "AnthropicAdapter",
    "AnthropicNormalizer",
    "CompletionPayload",
    "EventNormalizer",
    "GoogleAdapter",
    "GoogleNormalizer",
    "OpenAIAdapter",
    "OpenAINormalizer",
    "PreparedRequest",
    "ProviderAdapter",
    "get_adapter",
]
