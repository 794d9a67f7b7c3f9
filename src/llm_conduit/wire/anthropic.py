"""
Anthropic Messages API wire format.

Stream envelopes are a discriminated union on ``type``; any envelope type not
listed here fails validation and is skipped by the decoder.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, TypedDict, Union

from anthropic.types import (
    MessageParam,
    TextBlockParam,
    ThinkingConfigEnabledParam,
    ToolParam,
    ToolResultBlockParam,
    ToolUseBlockParam,
)
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

__all__ = [
    "MessageParam",
    "TextBlockParam",
    "ThinkingConfigEnabledParam",
    "ToolParam",
    "ToolResultBlockParam",
    "ToolUseBlockParam",
    "MessagesRequest",
    "AnthropicUsage",
    "ContentBlock",
    "BlockDelta",
    "MessageStart",
    "ContentBlockStart",
    "ContentBlockDelta",
    "ContentBlockStop",
    "MessageDelta",
    "MessageStop",
    "Ping",
    "StreamError",
    "StreamEnvelope",
    "parse_stream_envelope",
    "MessagesResponse",
]


class MessagesRequest(TypedDict, total=False):
    model: str
    system: str
    messages: list[MessageParam]
    max_tokens: int
    stream: bool
    tools: list[ToolParam]
    thinking: ThinkingConfigEnabledParam
    temperature: float


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AnthropicUsage(_WireModel):
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None


class ContentBlock(_WireModel):
    """``text``, ``tool_use``, ``thinking`` and friends, flattened."""

    type: str
    id: Optional[str] = None
    name: Optional[str] = None
    text: Optional[str] = None
    thinking: Optional[str] = None
    input: Optional[dict[str, Any]] = None


class BlockDelta(_WireModel):
    type: str
    text: Optional[str] = None
    partial_json: Optional[str] = None
    thinking: Optional[str] = None


class _MessageInfo(_WireModel):
    id: Optional[str] = None
    model: Optional[str] = None
    usage: AnthropicUsage = Field(default_factory=AnthropicUsage)


class MessageStart(_WireModel):
    type: Literal["message_start"]
    message: _MessageInfo = Field(default_factory=_MessageInfo)


class ContentBlockStart(_WireModel):
    type: Literal["content_block_start"]
    index: int
    content_block: ContentBlock


class ContentBlockDelta(_WireModel):
    type: Literal["content_block_delta"]
    index: int
    delta: BlockDelta


class ContentBlockStop(_WireModel):
    type: Literal["content_block_stop"]
    index: int


class _StopInfo(_WireModel):
    stop_reason: Optional[str] = None
    stop_sequence: Optional[str] = None


class MessageDelta(_WireModel):
    type: Literal["message_delta"]
    delta: _StopInfo = Field(default_factory=_StopInfo)
    usage: AnthropicUsage = Field(default_factory=AnthropicUsage)


class MessageStop(_WireModel):
    type: Literal["message_stop"]


class Ping(_WireModel):
    type: Literal["ping"]


class _ErrorInfo(_WireModel):
    type: Optional[str] = None
    message: Optional[str] = None


class StreamError(_WireModel):
    type: Literal["error"]
    error: _ErrorInfo = Field(default_factory=_ErrorInfo)


StreamEnvelope = Annotated[
    Union[
        MessageStart,
        ContentBlockStart,
        ContentBlockDelta,
        ContentBlockStop,
        MessageDelta,
        MessageStop,
        Ping,
        StreamError,
    ],
    Field(discriminator="type"),
]

_ENVELOPE_ADAPTER: TypeAdapter[StreamEnvelope] = TypeAdapter(StreamEnvelope)


def parse_stream_envelope(payload: dict[str, Any]) -> StreamEnvelope:
    return _ENVELOPE_ADAPTER.validate_python(payload)


class MessagesResponse(_WireModel):
    id: Optional[str] = None
    model: Optional[str] = None
    content: list[ContentBlock] = Field(default_factory=list)
    stop_reason: Optional[str] = None
    usage: Optional[AnthropicUsage] = None
