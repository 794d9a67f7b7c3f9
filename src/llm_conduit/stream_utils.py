"""Shared streaming utilities for consumers of ``LLMClient`` event streams."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterable, Optional

from llm_conduit.types.events import (
    StopReason,
    StopReasonEvent,
    StreamEvent,
    TextDelta,
    ToolCallComplete,
    Usage,
)
from llm_conduit.types.tool import ParsedToolCall

__all__ = ["StreamResult", "collect_stream"]


@dataclass(slots=True)
class StreamResult:
    content: str = ""
    tool_calls: list[ParsedToolCall] = field(default_factory=list)
    prompt_tokens: int = 0
    completion_tokens: int = 0
    stop_reason: Optional[StopReason] = None

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


async def collect_stream(events: AsyncIterable[StreamEvent]) -> StreamResult:
    """
    Drain an event stream into a single result.

    Usage events are summed, so Anthropic's split reporting (input tokens at
    the start, output tokens at the end) adds up to the full count.

    Args:
        events: Any canonical event stream, e.g. from ``LLMClient.stream_with_tools``

    Returns:
        The concatenated text, every completed tool call in emission order,
        the summed usage and the final stop reason.
    """
    result = StreamResult()
    text_parts: list[str] = []

    async for event in events:
        if isinstance(event, TextDelta):
            text_parts.append(event.text)
        elif isinstance(event, ToolCallComplete):
            result.tool_calls.append(event.call)
        elif isinstance(event, Usage):
            result.prompt_tokens += event.prompt_tokens
            result.completion_tokens += event.completion_tokens
        elif isinstance(event, StopReasonEvent):
            result.stop_reason = event.reason

    result.content = "".join(text_parts)
    return result
