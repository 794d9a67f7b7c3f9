"""
Line-oriented Server-Sent Events decoding shared by every backend.

Each ``data:`` line is treated as one complete JSON event; multi-line
``data:`` events are not joined since none of the supported backends emit
them.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Callable, Optional, TypeVar

from pydantic import ValidationError

__all__ = ["iter_sse_data", "iter_sse_events", "DONE_SENTINEL"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

DONE_SENTINEL = "[DONE]"

_DATA_PREFIX = "data:"


async def _iter_payloads(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    async for line in lines:
        if not line.startswith(_DATA_PREFIX):
            # event:, id:, retry:, comments and keep-alive blank lines
            continue
        payload = line[len(_DATA_PREFIX):].strip()
        if payload:
            yield payload


def _decode(payload: str) -> Optional[dict[str, Any]]:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug("Skipping undecodable SSE payload: %.200s", payload)
        return None
    if not isinstance(data, dict):
        logger.debug("Skipping non-object SSE payload: %.200s", payload)
        return None
    return data


async def iter_sse_data(
    lines: AsyncIterator[str], *, done_sentinel: Optional[str] = None
) -> AsyncIterator[dict[str, Any]]:
    """Yield every ``data:`` payload that decodes to a JSON object.

    Args:
        lines: Text lines as produced by ``httpx.Response.aiter_lines()``.
        done_sentinel: Payload that terminates the stream (``[DONE]`` for
            OpenAI-compatible servers). Anything read after it is ignored.
    """
    async for payload in _iter_payloads(lines):
        if done_sentinel is not None and payload == done_sentinel:
            return
        data = _decode(payload)
        if data is not None:
            yield data


async def iter_sse_events(
    lines: AsyncIterator[str],
    parse: Callable[[dict[str, Any]], T],
    *,
    done_sentinel: Optional[str] = None,
    done_event: Optional[T] = None,
) -> AsyncIterator[T]:
    """Like :func:`iter_sse_data`, validated into a backend-native model.

    Objects that ``parse`` rejects are skipped, same as malformed JSON. When
    ``done_event`` is given it is yielded once on reaching ``done_sentinel``
    so the consumer can tell a terminated stream from a truncated one.
    """
    async for payload in _iter_payloads(lines):
        if done_sentinel is not None and payload == done_sentinel:
            if done_event is not None:
                yield done_event
            return

        data = _decode(payload)
        if data is None:
            continue
        try:
            event = parse(data)
        except ValidationError as exc:
            logger.debug(
                "Skipping SSE event %s: %d validation error(s)",
                data.get("type", "<untyped>"),
                exc.error_count(),
            )
            continue
        yield event
