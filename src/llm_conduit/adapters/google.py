"""Google Gemini (AI Studio) adapter."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Optional, Sequence

from llm_conduit.accumulator import ToolCallAccumulator
from llm_conduit.adapters.base import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    JSON_HEADERS,
    CompletionPayload,
    PreparedRequest,
)
from llm_conduit.providers import ProviderTarget
from llm_conduit.sse import iter_sse_events
from llm_conduit.types.chat import CompletionParams, ConversationMessage, Role
from llm_conduit.types.events import (
    StopReason,
    StopReasonEvent,
    StreamEvent,
    TextDelta,
    ToolCallArgumentDelta,
    ToolCallComplete,
    ToolCallStart,
    Usage,
)
from llm_conduit.types.tool import ToolSchema
from llm_conduit.wire.google import (
    Content,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    UsageMetadata,
)

__all__ = ["GoogleAdapter", "GoogleNormalizer", "map_finish_reason"]

logger = logging.getLogger(__name__)

_FINISH_REASONS = {
    "STOP": StopReason.END_TURN,
    "MAX_TOKENS": StopReason.MAX_TOKENS,
    "SAFETY": StopReason.CONTENT_FILTER,
    "RECITATION": StopReason.CONTENT_FILTER,
    "BLOCKLIST": StopReason.CONTENT_FILTER,
    "PROHIBITED_CONTENT": StopReason.CONTENT_FILTER,
    "SPII": StopReason.CONTENT_FILTER,
}


def map_finish_reason(raw: str, *, called_tools: bool = False) -> StopReason:
    """Gemini says STOP even when it stopped to call a function."""
    reason = _FINISH_REASONS.get(raw, StopReason.OTHER)
    if reason is StopReason.END_TURN and called_tools:
        return StopReason.TOOL_USE
    return reason


def build_contents(messages: Sequence[ConversationMessage]) -> list[Content]:
    contents: list[Content] = []
    for msg in messages:
        if msg.role is Role.USER:
            contents.append(Content(role="user", parts=[Part(text=msg.content)]))

        elif msg.role is Role.ASSISTANT:
            parts: list[Part] = []
            if msg.content:
                parts.append(Part(text=msg.content))
            for call in msg.tool_calls:
                parts.append(Part(functionCall={"name": call.name, "args": call.arguments}))
            if parts:
                contents.append(Content(role="model", parts=parts))

        else:
            # Gemini pairs responses with calls by function name, not id
            parts = [
                Part(
                    functionResponse={
                        "name": result.name,
                        "response": {"output": result.content},
                    }
                )
                for result in msg.tool_results
            ]
            if parts:
                contents.append(Content(role="function", parts=parts))
    return contents


class GoogleNormalizer:
    """
    ``generateContent`` chunks to canonical events.

    Function calls arrive whole, so each one is started, given its full
    arguments as a single delta, and completed right away under an ordinal
    ``google_call_{n}`` id. ``usageMetadata`` is a running total repeated on
    many chunks; only the last snapshot is reported, once, at the end.
    """

    def __init__(self) -> None:
        self._calls = ToolCallAccumulator()
        self._call_count = 0
        self._usage: Optional[UsageMetadata] = None
        self._finish_reason: Optional[str] = None

    def feed(self, event: GenerateContentResponse) -> list[StreamEvent]:
        if event.usage_metadata is not None:
            self._usage = event.usage_metadata

        if not event.candidates:
            return []
        candidate = event.candidates[0]
        if candidate.finish_reason:
            self._finish_reason = candidate.finish_reason
        if candidate.content is None:
            return []

        events: list[StreamEvent] = []
        for part in candidate.content.parts:
            if part.text and not part.thought:
                events.append(TextDelta(part.text))
            if part.function_call is not None:
                events.extend(self._emit_call(part.function_call.name, part.function_call.args))
        return events

    def _emit_call(self, name: str, args: dict[str, Any]) -> list[StreamEvent]:
        ordinal = self._call_count
        self._call_count += 1
        call_id = f"google_call_{ordinal}"

        fragment = json.dumps(args, separators=(",", ":"))
        self._calls.start(ordinal, call_id, name)
        self._calls.append(ordinal, fragment)
        call = self._calls.finish(ordinal)

        events: list[StreamEvent] = [
            ToolCallStart(call_id, name),
            ToolCallArgumentDelta(call_id, fragment),
        ]
        if call is not None:
            events.append(ToolCallComplete(call))
        return events

    def finish(self) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        if self._usage is not None:
            events.append(
                Usage(
                    self._usage.prompt_token_count or 0,
                    self._usage.candidates_token_count or 0,
                )
            )
        if self._finish_reason is not None:
            reason = map_finish_reason(self._finish_reason, called_tools=self._call_count > 0)
            events.append(StopReasonEvent(reason, self._finish_reason))
        return events


class GoogleAdapter:
    def __init__(self, target: ProviderTarget) -> None:
        self.target = target

    @property
    def error_label(self) -> Optional[str]:
        return self.target.display_name

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
        headers = dict(JSON_HEADERS)
        headers["x-goog-api-key"] = self.target.require_api_key()

        config = GenerationConfig(
            maxOutputTokens=params.max_tokens if params.max_tokens is not None else DEFAULT_MAX_OUTPUT_TOKENS
        )
        if params.temperature is not None:
            config["temperature"] = params.temperature

        body: GenerateContentRequest = {
            "contents": build_contents(messages),
            "generationConfig": config,
        }
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        if tools:
            body["tools"] = [{"functionDeclarations": [tool.to_google() for tool in tools]}]

        if stream:
            url = self.target.endpoint(f"models/{model}:streamGenerateContent") + "?alt=sse"
        else:
            url = self.target.endpoint(f"models/{model}:generateContent")

        logger.debug("Google AI request: model=%s, stream=%s, tools=%d", model, stream, len(tools))
        return PreparedRequest(url, headers, dict(body))

    def decode_stream(self, lines: AsyncIterator[str]) -> AsyncIterator[GenerateContentResponse]:
        return iter_sse_events(lines, GenerateContentResponse.model_validate)

    def new_normalizer(self) -> GoogleNormalizer:
        return GoogleNormalizer()

    def parse_completion(self, data: Any) -> CompletionPayload:
        response = GenerateContentResponse.model_validate(data)

        text: Optional[str] = None
        if response.candidates and response.candidates[0].content is not None:
            for part in response.candidates[0].content.parts:
                if part.text is not None and not part.thought:
                    text = part.text
                    break

        usage = response.usage_metadata
        return CompletionPayload(
            text,
            usage.prompt_token_count if usage else None,
            usage.candidates_token_count if usage else None,
        )
