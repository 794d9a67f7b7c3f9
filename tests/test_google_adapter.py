"""Tests for the Gemini request builder and event normalizer."""

from llm_conduit.adapters.base import DEFAULT_MAX_OUTPUT_TOKENS
from llm_conduit.adapters.google import GoogleAdapter, GoogleNormalizer, map_finish_reason
from llm_conduit.providers import ProviderTarget
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
from llm_conduit.wire.google import GenerateContentResponse

TARGET = ProviderTarget.google(api_key="g-test")

LIST_DIR = ToolSchema(
    "list_dir",
    "List a directory",
    (ToolParameter("path", ToolParameterType.STRING, "Directory"),),
)


def run(normalizer: GoogleNormalizer, payloads) -> list:
    out = []
    for payload in payloads:
        out.extend(normalizer.feed(GenerateContentResponse.model_validate(payload)))
    out.extend(normalizer.finish())
    return out


def text_chunk(text, finish_reason=None, usage=None) -> dict:
    candidate = {"content": {"role": "model", "parts": [{"text": text}]}}
    if finish_reason:
        candidate["finishReason"] = finish_reason
    data = {"candidates": [candidate]}
    if usage:
        data["usageMetadata"] = usage
    return data


class TestGoogleRequestBuilder:
    """Test generateContent request construction."""

    def test_urls(self):
        """Test streaming and one-shot endpoints."""
        adapter = GoogleAdapter(TARGET)
        params = CompletionParams(max_tokens=100)

        stream = adapter.build_request("s", [], (), "gemini-2.5-flash", params, stream=True)
        oneshot = adapter.build_request("s", [], (), "gemini-2.5-flash", params, stream=False)

        base = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash"
        assert stream.url == f"{base}:streamGenerateContent?alt=sse"
        assert oneshot.url == f"{base}:generateContent"
        assert stream.headers["x-goog-api-key"] == "g-test"

    def test_body(self):
        adapter = GoogleAdapter(TARGET)

        body = adapter.build_request(
            "be brief",
            [ConversationMessage.user("hi")],
            [LIST_DIR],
            "gemini-2.5-pro",
            CompletionParams(max_tokens=256, temperature=0.3),
            stream=True,
        ).body

        assert body["contents"] == [{"role": "user", "parts": [{"text": "hi"}]}]
        assert body["generationConfig"] == {"maxOutputTokens": 256, "temperature": 0.3}
        assert body["systemInstruction"] == {"parts": [{"text": "be brief"}]}
        assert body["tools"] == [{"functionDeclarations": [LIST_DIR.to_google()]}]

    def test_empty_system_prompt_and_tools_omitted(self):
        adapter = GoogleAdapter(TARGET)

        body = adapter.build_request("", [], (), "gemini-2.5-pro", CompletionParams(), stream=True).body

        assert "systemInstruction" not in body
        assert "tools" not in body
        assert "temperature" not in body["generationConfig"]
        assert body["generationConfig"]["maxOutputTokens"] == DEFAULT_MAX_OUTPUT_TOKENS

    def test_api_key_falls_back_to_google_variable(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "g-env")
        adapter = GoogleAdapter(ProviderTarget.google())

        request = adapter.build_request("", [], (), "gemini-2.5-pro", CompletionParams(), stream=True)

        assert request.headers["x-goog-api-key"] == "g-env"

    def test_roles(self):
        """Test assistant turns become model role and results function role."""
        adapter = GoogleAdapter(TARGET)
        messages = [
            ConversationMessage.user("list /tmp"),
            ConversationMessage.assistant("", [ParsedToolCall("google_call_0", "list_dir", {"path": "/tmp"})]),
            ConversationMessage.tool([ToolCallResult("google_call_0", "list_dir", "a.txt")]),
            ConversationMessage.assistant("One file."),
        ]

        contents = adapter.build_request(
            "s", messages, [LIST_DIR], "gemini-2.5-pro", CompletionParams(), stream=True
        ).body["contents"]

        assert [c["role"] for c in contents] == ["user", "model", "function", "model"]
        assert contents[1]["parts"] == [{"functionCall": {"name": "list_dir", "args": {"path": "/tmp"}}}]
        assert contents[2]["parts"] == [
            {"functionResponse": {"name": "list_dir", "response": {"output": "a.txt"}}}
        ]
        assert contents[3]["parts"] == [{"text": "One file."}]


class TestGoogleNormalizer:
    """Test generateContent chunk normalization."""

    def test_single_function_call(self):
        """Test a whole function call yields start, one delta and complete."""
        events = run(
            GoogleNormalizer(),
            [
                {
                    "candidates": [
                        {
                            "content": {
                                "role": "model",
                                "parts": [{"functionCall": {"name": "list_dir", "args": {"path": "/tmp"}}}],
                            }
                        }
                    ]
                }
            ],
        )

        assert events == [
            ToolCallStart("google_call_0", "list_dir"),
            ToolCallArgumentDelta("google_call_0", '{"path":"/tmp"}'),
            ToolCallComplete(ParsedToolCall("google_call_0", "list_dir", {"path": "/tmp"})),
        ]

    def test_ordinal_ids_across_chunks(self):
        events = run(
            GoogleNormalizer(),
            [
                {"candidates": [{"content": {"parts": [{"functionCall": {"name": "a", "args": {}}}]}}]},
                {"candidates": [{"content": {"parts": [{"functionCall": {"name": "b"}}]}, "finishReason": "STOP"}]},
            ],
        )

        starts = [e for e in events if isinstance(e, ToolCallStart)]
        assert starts == [ToolCallStart("google_call_0", "a"), ToolCallStart("google_call_1", "b")]
        assert ToolCallArgumentDelta("google_call_1", "{}") in events
        assert events[-1] == StopReasonEvent(StopReason.TOOL_USE, "STOP")

    def test_cumulative_usage_reported_once(self):
        """Test only the last usage snapshot is emitted, at the end."""
        events = run(
            GoogleNormalizer(),
            [
                text_chunk("Hel", usage={"promptTokenCount": 10, "candidatesTokenCount": 2}),
                text_chunk("lo", usage={"promptTokenCount": 10, "candidatesTokenCount": 7}),
                text_chunk("", finish_reason="STOP", usage={"promptTokenCount": 10, "candidatesTokenCount": 7, "totalTokenCount": 17}),
            ],
        )

        assert events == [
            TextDelta("Hel"),
            TextDelta("lo"),
            Usage(10, 7),
            StopReasonEvent(StopReason.END_TURN, "STOP"),
        ]

    def test_thought_parts_skipped(self):
        events = run(
            GoogleNormalizer(),
            [{"candidates": [{"content": {"parts": [{"text": "thinking...", "thought": True}, {"text": "Hi"}]}}]}],
        )
        assert events == [TextDelta("Hi")]

    def test_finish_reason_mapping(self):
        assert map_finish_reason("STOP") is StopReason.END_TURN
        assert map_finish_reason("STOP", called_tools=True) is StopReason.TOOL_USE
        assert map_finish_reason("MAX_TOKENS") is StopReason.MAX_TOKENS
        assert map_finish_reason("SAFETY") is StopReason.CONTENT_FILTER
        assert map_finish_reason("MALFORMED_FUNCTION_CALL") is StopReason.OTHER


class TestGoogleCompletionParsing:
    def test_first_text_part(self):
        adapter = GoogleAdapter(TARGET)

        payload = adapter.parse_completion(
            {
                "candidates": [{"content": {"role": "model", "parts": [{"text": "Hi"}]}, "finishReason": "STOP"}],
                "usageMetadata": {"promptTokenCount": 4, "candidatesTokenCount": 1},
            }
        )

        assert (payload.text, payload.prompt_tokens, payload.completion_tokens) == ("Hi", 4, 1)

    def test_no_candidates(self):
        adapter = GoogleAdapter(TARGET)
        payload = adapter.parse_completion({"promptFeedback": {"blockReason": "SAFETY"}})
        assert payload.text is None and payload.prompt_tokens is None
