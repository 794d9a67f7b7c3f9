"""OpenAI Chat Completions adapter, shared by OpenAI cloud and local servers."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional, Sequence

from llm_conduit.accumulator import ToolCallAccumulator
from llm_conduit.adapters.base import JSON_HEADERS, CompletionPayload, PreparedRequest
from llm_conduit.models import supports_reasoning
from llm_conduit.providers import Provider, ProviderTarget
from llm_conduit.sse import DONE_SENTINEL, iter_sse_events
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
from llm_conduit.wire.openai import (
    STREAM_DONE,
    ChatCompletion,
    ChatCompletionAssistantMessageParam,
    ChatCompletionChunk,
    ChatCompletionMessageParam,
    ChatCompletionRequest,
    ChatCompletionSystemMessageParam,
    ChatCompletionToolMessageParam,
    ChatCompletionUserMessageParam,
    OllamaResponse,
    StreamDone,
)

__all__ = ["OpenAIAdapter", "OpenAINormalizer", "map_finish_reason"]

logger = logging.getLogger(__name__)

_FINISH_REASONS = {
    "stop": StopReason.END_TURN,
    "tool_calls": StopReason.TOOL_USE,
    "function_call": StopReason.TOOL_USE,
    "length": StopReason.MAX_TOKENS,
    "content_filter": StopReason.CONTENT_FILTER,
}


def map_finish_reason(raw: str) -> StopReason:
    return _FINISH_REASONS.get(raw, StopReason.OTHER)


def build_messages(
    system_prompt: str, messages: Sequence[ConversationMessage]
) -> list[ChatCompletionMessageParam]:
    """Flatten history into Chat Completions messages, system prompt first."""
    result: list[ChatCompletionMessageParam] = [
        ChatCompletionSystemMessageParam(role="system", content=system_prompt)
    ]
    for msg in messages:
        if msg.role is Role.USER:
            result.append(ChatCompletionUserMessageParam(role="user", content=msg.content))

        elif msg.role is Role.ASSISTANT:
            assistant = ChatCompletionAssistantMessageParam(role="assistant")
            if msg.tool_calls:
                assistant["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": call.arguments_json()},
                    }
                    for call in msg.tool_calls
                ]
                # content must be null rather than empty next to tool_calls
                assistant["content"] = msg.content or None
            else:
                assistant["content"] = msg.content
            result.append(assistant)

        else:
            # One message per result; OpenAI matches them by tool_call_id
            for tool_result in msg.tool_results:
                result.append(
                    ChatCompletionToolMessageParam(
                        role="tool",
                        tool_call_id=tool_result.id,
                        content=tool_result.content,
                    )
                )
    return result


class OpenAINormalizer:
    """
    Chat Completions chunks to canonical events.

    Tool calls are keyed by ``tool_calls[].index`` and closed when a chunk
    carries ``finish_reason`` or the ``[DONE]`` line arrives. A call whose
    name shows up after its first argument fragment is announced late, with
    the fragments seen so far replayed as one delta.
    """

    def __init__(self) -> None:
        self._calls = ToolCallAccumulator()
        self._announced: set[int] = set()
        self._finish_reason: Optional[str] = None

    def feed(self, event: ChatCompletionChunk | StreamDone) -> list[StreamEvent]:
        if isinstance(event, StreamDone):
            return self._close_calls()

        events: list[StreamEvent] = []
        for choice in event.choices:
            if choice.index != 0:
                continue
            delta = choice.delta
            if delta.content:
                events.append(TextDelta(delta.content))
            for position, tool_call in enumerate(delta.tool_calls or ()):
                key = tool_call.index if tool_call.index is not None else position
                name = tool_call.function.name if tool_call.function else None
                fragment = tool_call.function.arguments if tool_call.function else None
                events.extend(self._on_tool_delta(key, tool_call.id, name, fragment))
            if choice.finish_reason:
                self._finish_reason = choice.finish_reason
                events.extend(self._close_calls())

        if event.usage is not None and (
            event.usage.prompt_tokens is not None or event.usage.completion_tokens is not None
        ):
            events.append(
                Usage(event.usage.prompt_tokens or 0, event.usage.completion_tokens or 0)
            )
        return events

    def _on_tool_delta(
        self, key: int, call_id: Optional[str], name: Optional[str], fragment: Optional[str]
    ) -> list[StreamEvent]:
        if key not in self._calls:
            self._calls.start(key, call_id or f"call_{key}", name or "")
        elif name:
            self._calls.start(key, "", name)

        announced = key in self._announced
        if fragment:
            self._calls.append(key, fragment)

        entry = self._calls.get(key)
        if entry is None or not entry.name:
            return []

        if not announced:
            self._announced.add(key)
            events: list[StreamEvent] = [ToolCallStart(entry.id, entry.name)]
            if entry.arguments:
                events.append(ToolCallArgumentDelta(entry.id, entry.arguments))
            return events
        if fragment:
            return [ToolCallArgumentDelta(entry.id, fragment)]
        return []

    def _close_calls(self) -> list[StreamEvent]:
        self._announced.clear()
        return [ToolCallComplete(call) for call in self._calls.finish_all()]

    def finish(self) -> list[StreamEvent]:
        # Anything still open never saw finish_reason or [DONE]
        self._calls.discard()
        if self._finish_reason is None:
            return []
        return [StopReasonEvent(map_finish_reason(self._finish_reason), self._finish_reason)]


class OpenAIAdapter:
    """Builds Chat Completions requests for OpenAI or an OpenAI-compatible local server."""

    def __init__(self, target: ProviderTarget) -> None:
        self.target = target

    @property
    def error_label(self) -> Optional[str]:
        return self.target.display_name if self.target.provider.is_cloud else None

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
        if self.target.provider.is_cloud:
            headers["Authorization"] = f"Bearer {self.target.require_api_key()}"

        body: ChatCompletionRequest = {
            "model": model,
            "messages": build_messages(system_prompt, messages),
            "stream": stream,
        }
        if stream:
            body["stream_options"] = {"include_usage": True}
        if tools:
            body["tools"] = [tool.to_openai() for tool in tools]
            body["tool_choice"] = "auto"

        reasoning = self.target.provider is Provider.OPENAI and supports_reasoning(model)
        if reasoning:
            # Reasoning models reject anything but the default temperature
            body["temperature"] = 1.0
            if params.max_tokens is not None:
                body["max_completion_tokens"] = params.max_tokens
            effort = params.reasoning_effort.openai_value
            if effort is not None:
                body["reasoning_effort"] = effort
        else:
            if params.temperature is not None:
                body["temperature"] = params.temperature
            if params.max_tokens is not None:
                body["max_tokens"] = params.max_tokens

        logger.debug(
            "%s request: model=%s, reasoning=%s, stream=%s, tools=%d",
            self.target.display_name,
            model,
            reasoning,
            stream,
            len(tools),
        )
        return PreparedRequest(self.target.endpoint("chat/completions"), headers, dict(body))

    def decode_stream(
        self, lines: AsyncIterator[str]
    ) -> AsyncIterator[ChatCompletionChunk | StreamDone]:
        return iter_sse_events(
            lines,
            ChatCompletionChunk.model_validate,
            done_sentinel=DONE_SENTINEL,
            done_event=STREAM_DONE,
        )

    def new_normalizer(self) -> OpenAINormalizer:
        return OpenAINormalizer()

    def parse_completion(self, data: Any) -> CompletionPayload:
        completion = ChatCompletion.model_validate(data)
        usage = completion.usage
        prompt_tokens = usage.prompt_tokens if usage else None
        completion_tokens = usage.completion_tokens if usage else None

        if completion.choices:
            message = completion.choices[0].message
            return CompletionPayload(
                message.content if message else None, prompt_tokens, completion_tokens
            )

        if self.target.provider is Provider.LOCAL:
            # Ollama's native endpoints answer in their own shape
            native = OllamaResponse.model_validate(data)
            text = native.message.content if native.message else native.response
            return CompletionPayload(text, native.prompt_eval_count, native.eval_count)

        return CompletionPayload(None, prompt_tokens, completion_tokens)
