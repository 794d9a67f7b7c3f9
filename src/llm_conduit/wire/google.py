"""
Gemini ``generateContent`` wire format.

Google has no request types in the SDKs this package depends on, so requests
are plain ``TypedDict``s keyed exactly as on the wire. Responses use
snake_case fields with camelCase aliases.
"""

from __future__ import annotations

from typing import Any, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "FunctionCallPart",
    "FunctionResponsePart",
    "Part",
    "Content",
    "GenerationConfig",
    "GenerateContentRequest",
    "FunctionCall",
    "ResponsePart",
    "ResponseContent",
    "Candidate",
    "UsageMetadata",
    "GenerateContentResponse",
]


class FunctionCallPart(TypedDict):
    name: str
    args: dict[str, Any]


class FunctionResponsePart(TypedDict):
    name: str
    response: dict[str, Any]


class Part(TypedDict, total=False):
    text: str
    functionCall: FunctionCallPart
    functionResponse: FunctionResponsePart


class Content(TypedDict):
    role: str
    parts: list[Part]


class GenerationConfig(TypedDict, total=False):
    maxOutputTokens: int
    temperature: float


class GenerateContentRequest(TypedDict, total=False):
    contents: list[Content]
    generationConfig: GenerationConfig
    systemInstruction: dict[str, Any]
    tools: list[dict[str, Any]]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class FunctionCall(_WireModel):
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ResponsePart(_WireModel):
    text: Optional[str] = None
    function_call: Optional[FunctionCall] = None
    # Thought summaries, only sent when explicitly requested
    thought: Optional[bool] = None


class ResponseContent(_WireModel):
    role: Optional[str] = None
    parts: list[ResponsePart] = Field(default_factory=list)


class Candidate(_WireModel):
    content: Optional[ResponseContent] = None
    finish_reason: Optional[str] = None
    index: Optional[int] = None


class UsageMetadata(_WireModel):
    prompt_token_count: Optional[int] = None
    candidates_token_count: Optional[int] = None
    total_token_count: Optional[int] = None


class GenerateContentResponse(_WireModel):
    """One streamed chunk or a whole one-shot response; the shapes match."""

    candidates: list[Candidate] = Field(default_factory=list)
    usage_metadata: Optional[UsageMetadata] = None
    model_version: Optional[str] = None
