"""
OpenAI Chat Completions wire format, also spoken by Ollama, LM Studio and vLLM.

Request messages reuse the SDK's own ``TypedDict`` params; responses are read
through lenient pydantic models because local servers omit fields freely.
"""

from __future__ import annotations

from typing import Any, Optional, TypedDict

from openai.types.chat import (
    ChatCompletionAssistantMessageParam,
    ChatCompletionMessageParam,
    ChatCompletionSystemMessageParam,
    ChatCompletionToolMessageParam,
    ChatCompletionToolParam,
    ChatCompletionUserMessageParam,
)
from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "ChatCompletionAssistantMessageParam",
    "ChatCompletionMessageParam",
    "ChatCompletionSystemMessageParam",
    "ChatCompletionToolMessageParam",
    "ChatCompletionToolParam",
    "ChatCompletionUserMessageParam",
    "ChatCompletionRequest",
    "FunctionDelta",
    "ToolCallDelta",
    "ChoiceDelta",
    "StreamChoice",
    "CompletionUsage",
    "ChatCompletionChunk",
    "ResponseMessage",
    "ResponseChoice",
    "ChatCompletion",
    "OllamaMessage",
    "OllamaResponse",
    "StreamDone",
    "STREAM_DONE",
]


class ChatCompletionRequest(TypedDict, total=False):
    model: str
    messages: list[ChatCompletionMessageParam]
    stream: bool
    stream_options: dict[str, Any]
    tools: list[ChatCompletionToolParam]
    tool_choice: str
    temperature: float
    max_tokens: int
    max_completion_tokens: int
    reasoning_effort: str


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


# --- streaming ---------------------------------------------------------------


class FunctionDelta(_WireModel):
    name: Optional[str] = None
    arguments: Optional[str] = None


class ToolCallDelta(_WireModel):
    # Some local servers leave out the index on single-call responses
    index: Optional[int] = None
    id: Optional[str] = None
    type: Optional[str] = None
    function: Optional[FunctionDelta] = None


class ChoiceDelta(_WireModel):
    role: Optional[str] = None
    content: Optional[str] = None
    tool_calls: Optional[list[ToolCallDelta]] = None


class StreamChoice(_WireModel):
    index: int = 0
    delta: ChoiceDelta = Field(default_factory=ChoiceDelta)
    finish_reason: Optional[str] = None


class CompletionUsage(_WireModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class ChatCompletionChunk(_WireModel):
    id: Optional[str] = None
    model: Optional[str] = None
    choices: list[StreamChoice] = Field(default_factory=list)
    usage: Optional[CompletionUsage] = None


# --- one-shot ----------------------------------------------------------------


class ResponseMessage(_WireModel):
    role: Optional[str] = None
    content: Optional[str] = None


class ResponseChoice(_WireModel):
    index: int = 0
    message: Optional[ResponseMessage] = None
    finish_reason: Optional[str] = None


class ChatCompletion(_WireModel):
    id: Optional[str] = None
    model: Optional[str] = None
    choices: list[ResponseChoice] = Field(default_factory=list)
    usage: Optional[CompletionUsage] = None


class OllamaMessage(_WireModel):
    role: Optional[str] = None
    content: Optional[str] = None


class OllamaResponse(_WireModel):
    """Ollama's native ``/api/chat`` and ``/api/generate`` shapes."""

    message: Optional[OllamaMessage] = None
    response: Optional[str] = None
    prompt_eval_count: Optional[int] = None
    eval_count: Optional[int] = None


class StreamDone:
    """Stands in for the ``data: [DONE]`` line once decoding reaches it."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "StreamDone()"


STREAM_DONE = StreamDone()
