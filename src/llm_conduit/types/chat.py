"""Conversation history and request/response value types."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any, Iterable, Optional

from llm_conduit.models import ReasoningEffort
from llm_conduit.types.tool import ParsedToolCall, ToolCallResult


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(slots=True)
class ConversationMessage:
    """One turn of history in provider-neutral form.

    Assistant turns may carry the tool calls the model made; tool turns carry
    the results that answer them. Adapters translate these into each
    backend's message shape.
    """

    role: Role
    content: str = ""
    tool_calls: list[ParsedToolCall] = field(default_factory=list)
    tool_results: list[ToolCallResult] = field(default_factory=list)

    @classmethod
    def user(cls, text: str) -> "ConversationMessage":
        return cls(Role.USER, text)

    @classmethod
    def assistant(
        cls, text: str = "", tool_calls: Iterable[ParsedToolCall] = ()
    ) -> "ConversationMessage":
        return cls(Role.ASSISTANT, text, list(tool_calls))

    @classmethod
    def tool(cls, results: Iterable[ToolCallResult]) -> "ConversationMessage":
        return cls(Role.TOOL, tool_results=list(results))


@dataclass
class CompletionParams:
    """Request limits shared by every backend."""

    # None leaves the limit to the backend, or to its required default
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    reasoning_effort: ReasoningEffort = ReasoningEffort.NONE
    # Explicit Anthropic thinking budget; overrides the effort mapping
    thinking_budget: Optional[int] = None

    def as_dict(self, exclude_none: bool = True) -> dict[str, Any]:
        """
        Convert to dictionary, optionally excluding None values.

        Args:
            exclude_none: If True, exclude fields with None values
        """
        result = asdict(self)
        if exclude_none:
            return {k: v for k, v in result.items() if v is not None}
        return result

    def copy(self, **kwargs) -> "CompletionParams":
        """Return a copy with the given fields overridden."""
        current = self.as_dict(exclude_none=False)
        current.update(kwargs)
        return CompletionParams(**current)


@dataclass(frozen=True, slots=True)
class LLMCompletionResult:
    content: str
    prompt_tokens: int
    completion_tokens: int
    is_estimated: bool = False

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


__all__ = [
    "Role",
    "ConversationMessage",
    "CompletionParams",
    "LLMCompletionResult",
]
