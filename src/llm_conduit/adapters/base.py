"""Shared shapes for the per-backend adapters."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional, Protocol, Sequence

from llm_conduit.providers import ProviderTarget
from llm_conduit.types.chat import CompletionParams, ConversationMessage
from llm_conduit.types.events import StreamEvent
from llm_conduit.types.tool import ToolSchema

__all__ = [
    "PreparedRequest",
    "CompletionPayload",
    "EventNormalizer",
    "ProviderAdapter",
    "JSON_HEADERS",
    "DEFAULT_MAX_OUTPUT_TOKENS",
]

JSON_HEADERS = {"Content-Type": "application/json"}

# Used by backends that require an output limit when the caller gives none
DEFAULT_MAX_OUTPUT_TOKENS = 64000


@dataclass(frozen=True, slots=True)
class PreparedRequest:
    """A fully built HTTP request, ready to POST."""

    url: str
    headers: dict[str, str]
    body: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CompletionPayload:
    """What a one-shot response body yielded; ``None`` where the backend was silent."""

    text: Optional[str]
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None


class EventNormalizer(Protocol):
    """Turns one request's backend-native events into canonical ``StreamEvent``s.

    ``feed`` is called once per decoded event in arrival order, ``finish``
    once after the decoder is exhausted. Instances are single-use.
    """

    def feed(self, event: Any) -> list[StreamEvent]: ...

    def finish(self) -> list[StreamEvent]: ...


class ProviderAdapter(Protocol):
    """Everything backend specific about one request."""

    target: ProviderTarget

    @property
    def error_label(self) -> Optional[str]:
        """Provider name used in error diagnostics, ``None`` for local servers."""
        ...

    def build_request(
        self,
        system_prompt: str,
        messages: Sequence[ConversationMessage],
        tools: Sequence[ToolSchema],
        model: str,
        params: CompletionParams,
        *,
        stream: bool,
    ) -> PreparedRequest:
        """Build the request. Raises MissingAPIKeyError before any I/O."""
        ...

    def decode_stream(self, lines: AsyncIterator[str]) -> AsyncIterator[Any]:
        ...

    def new_normalizer(self) -> EventNormalizer:
        ...

    def parse_completion(self, data: Any) -> CompletionPayload:
        """Extract text and usage from a non-streaming JSON body."""
        ...
