"""Shared test fixtures."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from llm_conduit import LLMClient


async def aiter_lines(lines):
    for line in lines:
        yield line


def sse_body(*payloads: Any, done: bool = False) -> bytes:
    """Render payloads as an SSE body, one ``data:`` line per event."""
    chunks = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        chunks.append(f"data: {data}\n\n")
    if done:
        chunks.append("data: [DONE]\n\n")
    return "".join(chunks).encode()


@pytest.fixture(autouse=True)
def _no_env_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer API keys out of the tests."""
    for var in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_client(requests_seen: list[httpx.Request]) -> Callable[..., LLMClient]:
    """Build an LLMClient whose transport answers with ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> LLMClient:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return handler(request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        return LLMClient(http_client=http_client, **kwargs)

    return factory
