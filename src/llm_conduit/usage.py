"""
Token usage bookkeeping.

``LLMClient`` reports every one-shot completion to a ``UsageRecorder``. The
in-memory ``UsageTracker`` is the bundled implementation; applications that
persist usage elsewhere provide their own recorder.
"""

from __future__ import annotations

import asyncio
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Final, Optional, Protocol, runtime_checkable

__all__ = [
    "UsageRequestType",
    "UsageRecord",
    "UsageTotals",
    "UsageRecorder",
    "UsageTracker",
    "estimate_tokens",
]


class UsageRequestType(StrEnum):
    CHAT = "Chat"
    TOOL_CALL = "Tool Call"
    TITLE_GENERATION = "Title Generation"
    SUMMARIZATION = "Summarization"
    PLANNING = "Planning"
    REFLECTION = "Reflection"
    TERMINAL_SUGGESTION = "Terminal Suggestion"
    SUGGESTION_RESEARCH = "Suggestion Research"
    TEST_RUNNER = "Test Runner"


@dataclass(frozen=True, slots=True)
class UsageRecord:
    provider: str
    model: str
    prompt_tokens: int
    completion_tokens: int
    is_estimated: bool
    request_type: UsageRequestType = UsageRequestType.CHAT
    tool_call_count: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass(slots=True)
class UsageTotals:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    request_count: int = 0
    tool_call_count: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def add(self, record: UsageRecord) -> None:
        self.prompt_tokens += record.prompt_tokens
        self.completion_tokens += record.completion_tokens
        self.request_count += 1
        self.tool_call_count += record.tool_call_count


@runtime_checkable
class UsageRecorder(Protocol):
    async def record_usage(
        self,
        provider: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        is_estimated: bool,
        request_type: UsageRequestType = UsageRequestType.CHAT,
        tool_call_count: int = 0,
    ) -> None: ...


class UsageTracker:
    """In-memory ``UsageRecorder``, safe to share between concurrent requests."""

    def __init__(self) -> None:
        self._records: list[UsageRecord] = []
        self._lock = asyncio.Lock()

    async def record_usage(
        self,
        provider: str,
        model: str,
        prompt_tokens: int,
        completion_tokens: int,
        is_estimated: bool,
        request_type: UsageRequestType = UsageRequestType.CHAT,
        tool_call_count: int = 0,
    ) -> None:
        record = UsageRecord(
            provider=provider,
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            is_estimated=is_estimated,
            request_type=request_type,
            tool_call_count=tool_call_count,
        )
        async with self._lock:
            self._records.append(record)

    def records(self) -> list[UsageRecord]:
        return list(self._records)

    def totals(self) -> UsageTotals:
        totals = UsageTotals()
        for record in self._records:
            totals.add(record)
        return totals

    def by_provider(self) -> dict[str, UsageTotals]:
        return self._group(lambda r: r.provider)

    def by_model(self) -> dict[str, UsageTotals]:
        return self._group(lambda r: r.model)

    def by_request_type(self) -> dict[UsageRequestType, UsageTotals]:
        return self._group(lambda r: r.request_type)

    def _group(self, key):
        groups: defaultdict = defaultdict(UsageTotals)
        for record in self._records:
            groups[key(record)].add(record)
        return dict(groups)

    async def clear(self) -> None:
        async with self._lock:
            self._records.clear()


# Substring -> characters per token; first match wins
_CHARS_PER_TOKEN: Final[tuple[tuple[tuple[str, ...], float], ...]] = (
    (("claude",), 3.5),
    (("gpt-4", "gpt-5", "o1", "o3", "o4"), 4.0),
    (("llama", "mistral", "qwen", "gemma"), 4.0),
)
_DEFAULT_CHARS_PER_TOKEN: Final = 3.8


def estimate_tokens(text: str, model: Optional[str] = "") -> int:
    """Rough token count for text the backend did not meter."""
    if not text:
        return 0
    lowered = (model or "").lower()
    ratio = _DEFAULT_CHARS_PER_TOKEN
    for needles, chars_per_token in _CHARS_PER_TOKEN:
        if any(needle in lowered for needle in needles):
            ratio = chars_per_token
            break
    return math.ceil(len(text) / ratio)
