"""Anthropic Messages API adapter."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Optional, Sequence

from llm_conduit._exceptions import APIError, describe_api_error
from llm_conduit.accumulator import ToolCallAccumulator
from llm_conduit.adapters.base import DEFAULT_MAX_OUTPUT_TOKENS, CompletionPayload, PreparedRequest
from llm_conduit.models import supports_reasoning
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
from llm_conduit.wire.anthropic import (
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    MessageDelta,
    MessageParam,
    MessagesRequest,
    MessagesResponse,
    MessageStart,
    StreamEnvelope,
    StreamError,
    TextBlockParam,
    ThinkingConfigEnabledParam,
    ToolResultBlockParam,
    ToolUseBlockParam,
    parse_stream_envelope,
)

__all__ = [
    "AnthropicAdapter",
    "AnthropicNormalizer",
    "ANTHROPIC_VERSION",
    "INTERLEAVED_THINKING_BETA",
    "map_stop_reason",
]

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
INTERLEAVED_THINKING_BETA = "interleaved-thinking-2025-05-14"

# HTTP status each in-stream error type would have carried as a response
_STREAM_ERROR_STATUS = {
    "invalid_request_error": 400,
    "authentication_error": 401,
    "permission_error": 403,
    "not_found_error": 404,
    "request_too_large": 413,
    "rate_limit_error": 429,
    "api_error": 500,
    "overloaded_error": 529,
}

# Room left for the visible answer on top of the thinking budget
_THINKING_HEADROOM = 1000

_STOP_REASONS = {
    "end_turn": StopReason.END_TURN,
    "stop_sequence": StopReason.END_TURN,
    "tool_use": StopReason.TOOL_USE,
    "max_tokens": StopReason.MAX_TOKENS,
    "refusal": StopReason.CONTENT_FILTER,
}


def map_stop_reason(raw: str) -> StopReason:
    return _STOP_REASONS.get(raw, StopReason.OTHER)


def build_messages(messages: Sequence[ConversationMessage]) -> list[MessageParam]:
    result: list[MessageParam] = []
    for msg in messages:
        if msg.role is Role.USER:
            result.append(MessageParam(role="user", content=msg.content))

        elif msg.role is Role.ASSISTANT:
            if not msg.tool_calls:
                result.append(MessageParam(role="assistant", content=msg.content))
                continue
            blocks: list[TextBlockParam | ToolUseBlockParam] = []
            if msg.content:
                blocks.append(TextBlockParam(type="text", text=msg.content))
            for call in msg.tool_calls:
                blocks.append(
                    ToolUseBlockParam(
                        type="tool_use", id=call.id, name=call.name, input=call.arguments
                    )
                )
            result.append(MessageParam(role="assistant", content=blocks))

        else:
            # Tool results travel back inside a user turn
            results: list[ToolResultBlockParam] = []
            for tool_result in msg.tool_results:
                block = ToolResultBlockParam(
                    type="tool_result",
                    tool_use_id=tool_result.id,
                    content=tool_result.content,
                )
                if tool_result.is_error:
                    block["is_error"] = True
                results.append(block)
            result.append(MessageParam(role="user", content=results))
    return result


def thinking_budget(model: str, params: CompletionParams) -> Optional[int]:
    """Budget for extended thinking, or None when thinking stays off."""
    if params.thinking_budget is not None:
        return params.thinking_budget
    if supports_reasoning(model):
        return params.reasoning_effort.anthropic_budget_tokens
    return None


class AnthropicNormalizer:
    """
    Messages API stream envelopes to canonical events, keyed by content block index.

    An ``error`` envelope on an otherwise successful stream ends it with
    ``APIError``; the reply so far is incomplete.
    """

    def __init__(self, provider: str = "Anthropic") -> None:
        self.provider = provider
        self._calls = ToolCallAccumulator()
        self._stop_reason: Optional[str] = None

    def feed(self, event: StreamEnvelope) -> list[StreamEvent]:
        if isinstance(event, MessageStart):
            input_tokens = event.message.usage.input_tokens
            return [Usage(input_tokens, 0)] if input_tokens is not None else []

        if isinstance(event, ContentBlockStart):
            block = event.content_block
            if block.type != "tool_use":
                return []
            entry = self._calls.start(event.index, block.id or "", block.name or "")
            return [ToolCallStart(entry.id, entry.name)]

        if isinstance(event, ContentBlockDelta):
            delta = event.delta
            if delta.type == "text_delta" and delta.text:
                return [TextDelta(delta.text)]
            if delta.type == "input_json_delta" and delta.partial_json:
                call_id = self._calls.append(event.index, delta.partial_json)
                if call_id is not None:
                    return [ToolCallArgumentDelta(call_id, delta.partial_json)]
            # thinking and signature deltas are not surfaced
            return []

        if isinstance(event, ContentBlockStop):
            call = self._calls.finish(event.index)
            return [ToolCallComplete(call)] if call is not None else []

        if isinstance(event, MessageDelta):
            if event.delta.stop_reason:
                self._stop_reason = event.delta.stop_reason
            if event.usage.output_tokens is not None:
                return [Usage(0, event.usage.output_tokens)]
            return []

        if isinstance(event, StreamError):
            raise self._stream_error(event)
        # message_stop and ping carry nothing
        return []

    def finish(self) -> list[StreamEvent]:
        self._calls.discard()
        if self._stop_reason is None:
            return []
        return [StopReasonEvent(map_stop_reason(self._stop_reason), self._stop_reason)]

    def _stream_error(self, event: StreamError) -> APIError:
        status_code = _STREAM_ERROR_STATUS.get(event.error.type or "", 500)
        body = json.dumps({"type": "error", "error": event.error.model_dump(exclude_none=True)})
        logger.error("%s stream error event: %s", self.provider, body)
        return APIError(status_code, describe_api_error(status_code, body, self.provider), body)


class AnthropicAdapter:
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
        headers = {
            "content-type": "application/json",
            "x-api-key": self.target.require_api_key(),
            "anthropic-version": ANTHROPIC_VERSION,
        }
        max_tokens = params.max_tokens if params.max_tokens is not None else DEFAULT_MAX_OUTPUT_TOKENS
        body: MessagesRequest = {
            "model": model,
            "system": system_prompt,
            "messages": build_messages(messages),
            "max_tokens": max_tokens,
        }
        if stream:
            body["stream"] = True
        if tools:
            body["tools"] = [tool.to_anthropic() for tool in tools]

        budget = thinking_budget(model, params)
        if budget is not None:
            headers["anthropic-beta"] = INTERLEAVED_THINKING_BETA
            body["max_tokens"] = max(max_tokens, budget + _THINKING_HEADROOM)
            body["thinking"] = ThinkingConfigEnabledParam(type="enabled", budget_tokens=budget)
            logger.info("Anthropic extended thinking enabled: budget=%d", budget)
        elif params.temperature is not None:
            body["temperature"] = params.temperature

        logger.debug(
            "Anthropic request: model=%s, thinking=%s, stream=%s, tools=%d",
            model,
            budget is not None,
            stream,
            len(tools),
        )
        return PreparedRequest(self.target.endpoint("messages"), headers, dict(body))

    def decode_stream(self, lines: AsyncIterator[str]) -> AsyncIterator[StreamEnvelope]:
        return iter_sse_events(lines, parse_stream_envelope)

    def new_normalizer(self) -> AnthropicNormalizer:
        return AnthropicNormalizer(self.target.display_name)

    def parse_completion(self, data: Any) -> CompletionPayload:
        response = MessagesResponse.model_validate(data)

        text: Optional[str] = None
        for block in response.content:
            if block.type == "thinking" and block.thinking:
                logger.debug("Model reasoning: %.200s...", block.thinking)
            elif block.type == "text" and text is None:
                text = block.text

        usage = response.usage
        return CompletionPayload(
            text,
            usage.input_tokens if usage else None,
            usage.output_tokens if usage else None,
        )
