"""
Canonical stream events.

Every backend stream is normalized into this vocabulary. A healthy stream
ends with exactly one ``StopReasonEvent`` followed by ``Done``; a failed one
ends with the exception instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Optional, Union

from llm_conduit.types.tool import ParsedToolCall


class StopReason(StrEnum):
    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"
    CONTENT_FILTER = "content_filter"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class TextDelta:
    text: str


@dataclass(frozen=True, slots=True)
class ToolCallStart:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class ToolCallArgumentDelta:
    id: str
    fragment: str


@dataclass(frozen=True, slots=True)
class ToolCallComplete:
    call: ParsedToolCall


@dataclass(frozen=True, slots=True)
class Usage:
    prompt_tokens: int
    completion_tokens: int


@dataclass(frozen=True, slots=True)
class StopReasonEvent:
    reason: StopReason
    raw: Optional[str] = None  # backend's own spelling


@dataclass(frozen=True, slots=True)
class Done:
    pass


StreamEvent = Union[
    TextDelta,
    ToolCallStart,
    ToolCallArgumentDelta,
    ToolCallComplete,
    Usage,
    StopReasonEvent,
    Done,
]


__all__ = [
    "StopReason",
    "TextDelta",
    "ToolCallStart",
    "ToolCallArgumentDelta",
    "ToolCallComplete",
    "Usage",
    "StopReasonEvent",
    "Done",
    "StreamEvent",
]
