"""Reassembly of streamed tool-call argument fragments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Hashable, Optional

from llm_conduit.types.tool import ParsedToolCall, parse_arguments

__all__ = ["PendingToolCall", "ToolCallAccumulator"]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PendingToolCall:
    id: str
    name: str
    fragments: list[str] = field(default_factory=list)

    @property
    def arguments(self) -> str:
        return "".join(self.fragments)


class ToolCallAccumulator:
    """
    Collects argument fragments per tool call until the backend closes it.

    Keys are whatever identifies a call on the wire: the ``tool_calls[].index``
    for OpenAI, the content block index for Anthropic, an ordinal for Google.
    One instance serves exactly one request; calls never closed are simply
    discarded with it.
    """

    def __init__(self) -> None:
        self._pending: dict[Hashable, PendingToolCall] = {}

    def __contains__(self, key: Hashable) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def pending(self) -> list[PendingToolCall]:
        return list(self._pending.values())

    def get(self, key: Hashable) -> Optional[PendingToolCall]:
        return self._pending.get(key)

    def start(self, key: Hashable, call_id: str, name: str) -> PendingToolCall:
        """Open a call at ``key``. Re-starting an open key keeps its fragments."""
        entry = self._pending.get(key)
        if entry is None:
            entry = PendingToolCall(call_id, name)
            self._pending[key] = entry
        else:
            entry.id = call_id or entry.id
            entry.name = name or entry.name
        return entry

    def append(self, key: Hashable, fragment: str) -> Optional[str]:
        """Add an argument fragment; returns the call id, or None for an unknown key."""
        entry = self._pending.get(key)
        if entry is None:
            logger.debug("Dropping argument fragment for unknown tool call %r", key)
            return None
        if fragment:
            entry.fragments.append(fragment)
        return entry.id

    def finish(self, key: Hashable) -> Optional[ParsedToolCall]:
        """Close the call at ``key`` and parse its arguments.

        Unparseable or non-object arguments become ``{}``. A call whose name
        never arrived cannot be dispatched and is dropped.
        """
        entry = self._pending.pop(key, None)
        if entry is None:
            return None
        if not entry.name:
            logger.debug("Dropping tool call %s with no function name", entry.id)
            return None

        raw = entry.arguments
        arguments = parse_arguments(raw)
        if raw.strip() and not arguments and raw.strip() != "{}":
            logger.debug("Tool call %s arguments were not a JSON object: %.200s", entry.id, raw)
        return ParsedToolCall(entry.id, entry.name, arguments)

    def finish_all(self) -> list[ParsedToolCall]:
        """Close every open call, ordered by key."""
        calls: list[ParsedToolCall] = []
        for key in sorted(self._pending, key=_sort_key):
            call = self.finish(key)
            if call is not None:
                calls.append(call)
        return calls

    def discard(self) -> int:
        """Forget every open call, returning how many were dropped."""
        count = len(self._pending)
        if count:
            logger.debug("Discarding %d incomplete tool call(s)", count)
        self._pending.clear()
        return count


def _sort_key(key: Hashable) -> tuple[int, str]:
    if isinstance(key, int):
        return (0, f"{key:020d}")
    return (1, str(key))
