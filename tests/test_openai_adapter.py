"""Tests for the OpenAI-compatible request builder and event normalizer."""

import pytest

from llm_conduit import MissingAPIKeyError
from llm_conduit.adapters.openai import OpenAIAdapter, OpenAINormalizer, map_finish_reason
from llm_conduit.models import ReasoningEffort
from llm_conduit.providers import LocalServer, ProviderTarget
from llm_conduit.types import (
    CompletionParams,
    ConversationMessage,
    ParsedToolCall,
    StopReason,
    StopReasonEvent,
    TextDelta,
    ToolCallArgumentDelta,
    ToolCallComplete,
    ToolCallResult,
    ToolCallStart,
    ToolParameter,
    ToolParameterType,
    ToolSchema,
    Usage,
)
from llm_conduit.wire.openai import STREAM_DONE, ChatCompletionChunk

LIST_DIR = ToolSchema(
    "list_dir",
    "List a directory",
    (ToolParameter("path", ToolParameterType.STRING, "Directory"),),
)


def chunk(delta=None, finish_reason=None, usage=None, choices=True) -> ChatCompletionChunk:
    data = {"id": "chatcmpl-1", "model": "gpt-4o", "choices": []}
    if choices:
        data["choices"] = [{"index": 0, "delta": delta or {}, "finish_reason": finish_reason}]
    if usage is not None:
        data["usage"] = usage
    return ChatCompletionChunk.model_validate(data)


def tool_delta(index=None, call_id=None, name=None, arguments=None) -> dict:
    entry: dict = {"function": {}}
    if index is not None:
        entry["index"] = index
    if call_id is not None:
        entry["id"] = call_id
        entry["type"] = "function"
    if name is not None:
        entry["function"]["name"] = name
    if arguments is not None:
        entry["function"]["arguments"] = arguments
    return {"tool_calls": [entry]}


def run(normalizer: OpenAINormalizer, *events) -> list:
    out = []
    for event in events:
        out.extend(normalizer.feed(event))
    out.extend(normalizer.finish())
    return out


class TestOpenAIRequestBuilder:
    """Test Chat Completions request construction."""

    def test_basic_cloud_request(self):
        """Test URL, auth header and body for a non-reasoning model."""
        adapter = OpenAIAdapter(ProviderTarget.openai(api_key="sk-test"))

        request = adapter.build_request(
            "be brief",
            [ConversationMessage.user("hi")],
            (),
            "gpt-4o",
            CompletionParams(max_tokens=100, temperature=0.7),
            stream=False,
        )

        assert request.url == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert request.body["messages"] == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
        ]
        assert request.body["max_tokens"] == 100
        assert request.body["temperature"] == 0.7
        assert request.body["stream"] is False
        assert "stream_options" not in request.body
        assert "tools" not in request.body
        assert "tool_choice" not in request.body

    def test_streaming_with_tools(self):
        adapter = OpenAIAdapter(ProviderTarget.openai(api_key="sk-test"))

        request = adapter.build_request(
            "sys", [], [LIST_DIR], "gpt-4o", CompletionParams(max_tokens=64000), stream=True
        )

        assert request.body["stream"] is True
        assert request.body["stream_options"] == {"include_usage": True}
        assert request.body["tools"] == [LIST_DIR.to_openai()]
        assert request.body["tool_choice"] == "auto"

    @pytest.mark.parametrize("model", ["gpt-4o", "gpt-4.1-mini", "o3-mini"])
    def test_no_output_limit_unless_given(self, model):
        """Test an unset max_tokens leaves every token limit out of the body."""
        adapter = OpenAIAdapter(ProviderTarget.openai(api_key="sk-test"))

        body = adapter.build_request("sys", [], [LIST_DIR], model, CompletionParams(), stream=True).body

        assert "max_tokens" not in body
        assert "max_completion_tokens" not in body

    def test_reasoning_model_adjustments(self):
        """Test reasoning models get temperature 1.0, max_completion_tokens and effort."""
        adapter = OpenAIAdapter(ProviderTarget.openai(api_key="sk-test"))
        params = CompletionParams(
            max_tokens=500, temperature=0.3, reasoning_effort=ReasoningEffort.HIGH
        )

        body = adapter.build_request("s", [], (), "o3-mini", params, stream=False).body

        assert body["temperature"] == 1.0
        assert body["max_completion_tokens"] == 500
        assert "max_tokens" not in body
        assert body["reasoning_effort"] == "high"

    def test_reasoning_effort_none_is_omitted(self):
        adapter = OpenAIAdapter(ProviderTarget.openai(api_key="sk-test"))

        body = adapter.build_request(
            "s", [], (), "gpt-5-mini", CompletionParams(max_tokens=10), stream=False
        ).body

        assert "reasoning_effort" not in body
        assert body["max_completion_tokens"] == 10

    def test_local_has_no_auth_and_no_reasoning(self):
        """Test local servers get no Authorization header and plain limits."""
        adapter = OpenAIAdapter(ProviderTarget.local(server=LocalServer.LM_STUDIO))
        params = CompletionParams(max_tokens=200, reasoning_effort=ReasoningEffort.HIGH)

        request = adapter.build_request("s", [], (), "o3-local-gguf", params, stream=True)

        assert request.url == "http://localhost:1234/v1/chat/completions"
        assert "Authorization" not in request.headers
        assert request.body["max_tokens"] == 200
        assert "reasoning_effort" not in request.body
        assert adapter.error_label is None

    def test_missing_api_key(self):
        """Test a missing key raises before anything is built."""
        adapter = OpenAIAdapter(ProviderTarget.openai())
        with pytest.raises(MissingAPIKeyError, match="OpenAI API key not configured"):
            adapter.build_request("s", [], (), "gpt-4o", CompletionParams(), stream=True)

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        adapter = OpenAIAdapter(ProviderTarget.openai())

        request = adapter.build_request("s", [], (), "gpt-4o", CompletionParams(), stream=True)

        assert request.headers["Authorization"] == "Bearer sk-env"

    def test_tool_history_conversion(self):
        """Test assistant tool calls and tool results map to OpenAI messages."""
        adapter = OpenAIAdapter(ProviderTarget.openai(api_key="sk-test"))
        call_a = ParsedToolCall("call_a", "list_dir", {"path": "/"})
        call_b = ParsedToolCall("call_b", "list_dir", {"path": "/tmp"})
        messages = [
            ConversationMessage.user("what is in / and /tmp?"),
            ConversationMessage.assistant("", [call_a, call_b]),
            ConversationMessage.tool(
                [
                    ToolCallResult("call_a", "list_dir", "bin\netc"),
                    ToolCallResult("call_b", "list_dir", "x.txt"),
                ]
            ),
            ConversationMessage.assistant("Done."),
        ]

        body = adapter.build_request(
            "sys", messages, [LIST_DIR], "gpt-4o", CompletionParams(), stream=True
        ).body
        converted = body["messages"]

        assert converted[2] == {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": "call_a",
                    "type": "function",
                    "function": {"name": "list_dir", "arguments": '{"path":"/"}'},
                },
                {
                    "id": "call_b",
                    "type": "function",
                    "function": {"name": "list_dir", "arguments": '{"path":"/tmp"}'},
                },
            ],
        }
        assert converted[3] == {"role": "tool", "tool_call_id": "call_a", "content": "bin\netc"}
        assert converted[4] == {"role": "tool", "tool_call_id": "call_b", "content": "x.txt"}
        assert converted[5] == {"role": "assistant", "content": "Done."}


class TestOpenAINormalizer:
    """Test Chat Completions chunk normalization."""

    def test_text_and_usage(self):
        events = run(
            OpenAINormalizer(),
            chunk({"role": "assistant", "content": ""}),
            chunk({"content": "Hel"}),
            chunk({"content": "lo"}),
            chunk({}, finish_reason="stop"),
            chunk(choices=False, usage={"prompt_tokens": 12, "completion_tokens": 2}),
            STREAM_DONE,
        )

        assert events == [
            TextDelta("Hel"),
            TextDelta("lo"),
            Usage(12, 2),
            StopReasonEvent(StopReason.END_TURN, "stop"),
        ]

    def test_interleaved_tool_calls_keep_wire_order(self):
        """Test fragments of parallel calls are routed by index and completed in order."""
        events = run(
            OpenAINormalizer(),
            chunk(tool_delta(0, "call_a", "read_file", "")),
            chunk(tool_delta(1, "call_b", "list_dir", "")),
            chunk(tool_delta(0, arguments='{"pa')),
            chunk(tool_delta(1, arguments='{"path":"/"}')),
            chunk(tool_delta(0, arguments='th":"a.txt"}')),
            chunk({}, finish_reason="tool_calls"),
        )

        assert events == [
            ToolCallStart("call_a", "read_file"),
            ToolCallStart("call_b", "list_dir"),
            ToolCallArgumentDelta("call_a", '{"pa'),
            ToolCallArgumentDelta("call_b", '{"path":"/"}'),
            ToolCallArgumentDelta("call_a", 'th":"a.txt"}'),
            ToolCallComplete(ParsedToolCall("call_a", "read_file", {"path": "a.txt"})),
            ToolCallComplete(ParsedToolCall("call_b", "list_dir", {"path": "/"})),
            StopReasonEvent(StopReason.TOOL_USE, "tool_calls"),
        ]

    def test_late_name_replays_buffered_arguments(self):
        """Test a call whose name arrives after its arguments starts late with one delta."""
        events = run(
            OpenAINormalizer(),
            chunk(tool_delta(0, "call_x", arguments='{"q":')),
            chunk(tool_delta(0, name="search", arguments='"x"}')),
            STREAM_DONE,
        )

        assert events == [
            ToolCallStart("call_x", "search"),
            ToolCallArgumentDelta("call_x", '{"q":"x"}'),
            ToolCallComplete(ParsedToolCall("call_x", "search", {"q": "x"})),
        ]

    def test_missing_index_and_id_are_synthesized(self):
        events = run(
            OpenAINormalizer(),
            chunk(tool_delta(name="ls", arguments="{}")),
            chunk({}, finish_reason="tool_calls"),
        )

        assert events[0] == ToolCallStart("call_0", "ls")
        assert events[2] == ToolCallComplete(ParsedToolCall("call_0", "ls", {}))

    def test_done_closes_open_calls(self):
        """Test [DONE] completes calls when no finish_reason was sent."""
        events = run(
            OpenAINormalizer(),
            chunk(tool_delta(0, "call_1", "list_dir", '{"path":"/"}')),
            STREAM_DONE,
        )

        assert events[-1] == ToolCallComplete(ParsedToolCall("call_1", "list_dir", {"path": "/"}))

    def test_truncated_stream_drops_incomplete_call(self):
        """Test a call never closed is never completed."""
        events = run(
            OpenAINormalizer(),
            chunk(tool_delta(0, "call_1", "list_dir", '{"path":')),
        )

        assert events == [
            ToolCallStart("call_1", "list_dir"),
            ToolCallArgumentDelta("call_1", '{"path":'),
        ]
        assert not any(isinstance(e, ToolCallComplete) for e in events)

    def test_other_choices_ignored(self):
        normalizer = OpenAINormalizer()
        event = ChatCompletionChunk.model_validate(
            {"choices": [{"index": 1, "delta": {"content": "alt"}}]}
        )
        assert normalizer.feed(event) == []

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("stop", StopReason.END_TURN),
            ("tool_calls", StopReason.TOOL_USE),
            ("function_call", StopReason.TOOL_USE),
            ("length", StopReason.MAX_TOKENS),
            ("content_filter", StopReason.CONTENT_FILTER),
            ("eos", StopReason.OTHER),
        ],
    )
    def test_finish_reason_mapping(self, raw, expected):
        assert map_finish_reason(raw) is expected


class TestOpenAICompletionParsing:
    """Test non-streaming body parsing."""

    def test_openai_shape(self):
        adapter = OpenAIAdapter(ProviderTarget.openai(api_key="sk-test"))
        payload = adapter.parse_completion(
            {
                "choices": [{"index": 0, "message": {"role": "assistant", "content": "Hi"}}],
                "usage": {"prompt_tokens": 9, "completion_tokens": 1},
            }
        )

        assert (payload.text, payload.prompt_tokens, payload.completion_tokens) == ("Hi", 9, 1)

    def test_ollama_native_shape_for_local(self):
        """Test local servers fall back to Ollama's native response shape."""
        adapter = OpenAIAdapter(ProviderTarget.local())

        chat = adapter.parse_completion(
            {"message": {"role": "assistant", "content": "pong"}, "prompt_eval_count": 12, "eval_count": 3}
        )
        generate = adapter.parse_completion({"response": "pong", "done": True})

        assert (chat.text, chat.prompt_tokens, chat.completion_tokens) == ("pong", 12, 3)
        assert (generate.text, generate.prompt_tokens) == ("pong", None)
