"""
LLMClient: one-shot and streaming completions over four backends.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from typing import AsyncIterator, Optional, Sequence

import httpx
from pydantic import ValidationError

from llm_conduit._exceptions import (
    APIError,
    EmptyResponseError,
    InvalidResponseError,
    describe_api_error,
)
from llm_conduit.adapters import ProviderAdapter, get_adapter
from llm_conduit.models import ReasoningEffort
from llm_conduit.providers import ProviderTarget
from llm_conduit.stream_utils import StreamResult
from llm_conduit.types.chat import CompletionParams, ConversationMessage, LLMCompletionResult
from llm_conduit.types.events import Done, StreamEvent
from llm_conduit.types.tool import ToolSchema
from llm_conduit.usage import UsageRecorder, UsageRequestType, estimate_tokens

__all__ = ["LLMClient"]

_ERROR_LOG_CHARS = 200


def _raise_if_cancelled() -> None:
    task = asyncio.current_task()
    if task is not None and task.cancelling():
        raise asyncio.CancelledError()


class LLMClient:
    """
    Provider-neutral façade over OpenAI, Anthropic, Google and local servers.

    Holds no per-request state: any number of completions and streams may run
    concurrently on one instance. The only shared pieces are the HTTP client
    and the optional usage recorder.
    """

    def __init__(
        self,
        usage_recorder: Optional[UsageRecorder] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 120.0,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        """
        Args:
            usage_recorder: Receives token usage for every one-shot completion.
            http_client: Shared transport. When omitted the client creates
                (and later closes) its own.
            timeout: Default timeout for a client created here; each call
                still passes its own.
            logger: Optional logger instance. If None, a logger named after
                this module will be used.
            name: Optional name for this component, used in logging.
        """
        self.usage_recorder = usage_recorder
        self.logger = logger or logging.getLogger(__name__)
        self.name = name if name is not None else self.__class__.__name__
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)

    # --- one-shot ----------------------------------------------------------
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        target: ProviderTarget,
        model: str,
        *,
        reasoning_effort: ReasoningEffort = ReasoningEffort.NONE,
        temperature: float = 0.3,
        max_tokens: int = 500,
        timeout: float = 30.0,
        request_type: UsageRequestType = UsageRequestType.CHAT,
    ) -> LLMCompletionResult:
        """
        Send a single system + user prompt and wait for the whole answer.

        Token counts the backend does not report are estimated from the
        prompt and answer text, and the result is flagged ``is_estimated``.

        Raises:
            MissingAPIKeyError: No key for a cloud backend; nothing was sent.
            APIError: The backend answered with a non-2xx status.
            InvalidResponseError: The body was not the expected JSON.
            EmptyResponseError: The answer held no text.
        """
        _raise_if_cancelled()

        adapter = get_adapter(target)
        params = CompletionParams(
            max_tokens=max_tokens,
            temperature=temperature,
            reasoning_effort=reasoning_effort,
        )
        request = adapter.build_request(
            system_prompt,
            [ConversationMessage.user(user_prompt)],
            (),
            model,
            params,
            stream=False,
        )

        self._log(f"Sending request to {target.display_name} model {model} (Stream: False)")
        response = await self._client.post(
            request.url, headers=request.headers, json=request.body, timeout=timeout
        )
        if not response.is_success:
            raise self._api_error(adapter, response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidResponseError("response body is not JSON") from exc
        try:
            payload = adapter.parse_completion(data)
        except ValidationError as exc:
            raise InvalidResponseError(f"unexpected {target.display_name} response shape") from exc

        if not payload.text:
            raise EmptyResponseError()

        is_estimated = payload.prompt_tokens is None or payload.completion_tokens is None
        prompt_tokens = payload.prompt_tokens
        if prompt_tokens is None:
            prompt_tokens = estimate_tokens(system_prompt + user_prompt, model)
        completion_tokens = payload.completion_tokens
        if completion_tokens is None:
            completion_tokens = estimate_tokens(payload.text, model)

        if self.usage_recorder is not None:
            await self.usage_recorder.record_usage(
                target.display_name,
                model,
                prompt_tokens,
                completion_tokens,
                is_estimated,
                request_type,
            )

        return LLMCompletionResult(payload.text, prompt_tokens, completion_tokens, is_estimated)

    async def complete_text(
        self,
        system_prompt: str,
        user_prompt: str,
        target: ProviderTarget,
        model: str,
        **kwargs,
    ) -> str:
        """Same as :meth:`complete`, returning only the text."""
        result = await self.complete(system_prompt, user_prompt, target, model, **kwargs)
        return result.content

    # --- streaming ---------------------------------------------------------
    async def stream_with_tools(
        self,
        system_prompt: str,
        messages: Sequence[ConversationMessage],
        tools: Sequence[ToolSchema],
        target: ProviderTarget,
        model: str,
        *,
        max_tokens: Optional[int] = None,
        timeout: float = 120.0,
        params: Optional[CompletionParams] = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Stream canonical events for one request, tool calls included.

        Bytes are read only as fast as events are consumed. Closing the
        generator releases the connection. A healthy stream ends with
        ``Done``; a failing one ends by raising instead.

        Args:
            max_tokens: Output limit. Left out of OpenAI and local requests when
                None; Anthropic and Google get their required default.
            params: Full request limits. When given, ``max_tokens`` is ignored.
        """
        _raise_if_cancelled()

        adapter = get_adapter(target)
        if params is None:
            params = CompletionParams(max_tokens=max_tokens)
        request = adapter.build_request(
            system_prompt, messages, tools, model, params, stream=True
        )
        normalizer = adapter.new_normalizer()

        self._log(
            f"Sending request to {target.display_name} model {model} "
            f"(Stream: True, tools: {len(tools)})",
            logging.DEBUG,
        )
        async with self._client.stream(
            "POST", request.url, headers=request.headers, json=request.body, timeout=timeout
        ) as response:
            if not response.is_success:
                await response.aread()
                raise self._api_error(adapter, response.status_code, response.text)

            async with aclosing(adapter.decode_stream(response.aiter_lines())) as native_events:
                async for native in native_events:
                    for event in normalizer.feed(native):
                        yield event

            for event in normalizer.finish():
                yield event

        yield Done()

    def stream(
        self,
        system_prompt: str,
        user_prompt: str,
        target: ProviderTarget,
        model: str,
        *,
        temperature: float = 0.3,
        max_tokens: int = 500,
        timeout: float = 30.0,
    ) -> AsyncIterator[StreamEvent]:
        """Stream a plain answer to a single prompt, no tools offered."""
        return self.stream_with_tools(
            system_prompt,
            [ConversationMessage.user(user_prompt)],
            (),
            target,
            model,
            timeout=timeout,
            params=CompletionParams(max_tokens=max_tokens, temperature=temperature),
        )

    async def record_stream_usage(
        self,
        target: ProviderTarget,
        model: str,
        result: StreamResult,
        request_type: UsageRequestType = UsageRequestType.TOOL_CALL,
    ) -> None:
        """Report a collected stream to the usage recorder, tool calls included."""
        if self.usage_recorder is None:
            return
        await self.usage_recorder.record_usage(
            target.display_name,
            model,
            result.prompt_tokens,
            result.completion_tokens,
            False,
            request_type,
            tool_call_count=len(result.tool_calls),
        )

    async def check_tool_support(self, target: ProviderTarget, model: str) -> Optional[bool]:
        """Whether ``model`` can call tools. Never probed, so always unknown (None)."""
        return None

    # --- helpers -----------------------------------------------------------
    def _api_error(self, adapter: ProviderAdapter, status_code: int, body: str) -> APIError:
        target = adapter.target
        self._log(
            f"{target.display_name} API error ({status_code}): {body[:_ERROR_LOG_CHARS]}",
            logging.ERROR,
        )
        message = describe_api_error(status_code, body, adapter.error_label)
        return APIError(status_code, message, body)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close the HTTP client if this instance created it. Safe to call
        multiple times.
        """
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "LLMClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
