"""
Closed error taxonomy for llm-conduit, plus translation of provider error
bodies into short, human-readable diagnostics.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Final, Optional

__all__: tuple[str, ...] = (
    "LLMClientError",
    "MissingAPIKeyError",
    "InvalidResponseError",
    "EmptyResponseError",
    "APIError",
    "ToolsNotSupportedError",
    "describe_api_error",
)

_log = logging.getLogger("llm_conduit.exceptions")

_TRUNCATE_AT: Final = 100


class LLMClientError(RuntimeError):
    """Base class for every error raised by llm-conduit."""


class MissingAPIKeyError(LLMClientError):
    """A cloud backend was selected but no API key could be resolved."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"{provider} API key not configured")
        self.provider = provider


class InvalidResponseError(LLMClientError):
    """The transport returned something that is not a usable HTTP/JSON envelope."""

    def __init__(self, detail: Optional[str] = None) -> None:
        msg = "Invalid response from server"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.detail = detail


class EmptyResponseError(LLMClientError):
    """A successful response carried no text content."""

    def __init__(self) -> None:
        super().__init__("Empty response from model")


class APIError(LLMClientError):
    """Non-2xx HTTP status.

    Attributes:
        status_code: The HTTP status returned by the backend.
        message: Provider-specific diagnostic extracted from the error body.
        details: The raw error body, for debugging.
    """

    def __init__(self, status_code: int, message: str, details: str = "") -> None:
        super().__init__(f"API error ({status_code}): {message}")
        self.status_code = status_code
        self.message = message
        self.details = details


class ToolsNotSupportedError(LLMClientError):
    """Reserved: the selected model cannot do tool calling.

    Nothing raises this today since tool support is never probed up front.
    """

    def __init__(self, model: str) -> None:
        super().__init__(
            f"Agent mode is not available with '{model}'. This model does not "
            "support tool/function calling. Please select a different model "
            "or use chat mode instead."
        )
        self.model = model


def _extract_error_fields(body: str) -> tuple[Optional[str], Optional[str]]:
    """Pull ``error.message`` and ``error.status`` out of a JSON error body.

    OpenAI:    {"error": {"message": ..., "type": ..., "code": ...}}
    Anthropic: {"type": "error", "error": {"type": ..., "message": ...}}
    Google:    {"error": {"code": ..., "message": ..., "status": ...}}
    """
    try:
        payload: Any = json.loads(body)
    except (json.JSONDecodeError, ValueError):
        return None, None

    # Google occasionally wraps the error object in a one-element list
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if not isinstance(payload, dict):
        return None, None

    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        status = error.get("status")
        return (
            message if isinstance(message, str) else None,
            status if isinstance(status, str) else None,
        )
    if isinstance(error, str):
        # Ollama and llama.cpp: {"error": "model not found"}
        return error, None
    return None, None


def _truncate(text: str) -> str:
    if len(text) > _TRUNCATE_AT:
        return text[:_TRUNCATE_AT] + "..."
    return text


def describe_api_error(
    status_code: int, body: str, provider: Optional[str] = None
) -> str:
    """Turn an HTTP error response into a short diagnostic.

    Args:
        status_code: HTTP status code of the failed response.
        body: The drained response body.
        provider: Display name of a cloud provider. ``None`` for local
            servers, which get their own message passed through verbatim.
    """
    message, status = _extract_error_fields(body)

    if provider is None:
        return message or body.strip() or f"HTTP {status_code}"

    lowered = (message or "").lower()

    if status_code == 400:
        if "api key" in lowered or "api_key" in lowered:
            return f"Invalid API key format. Please check your {provider} API key in Settings."
        if "model" in lowered:
            return "Invalid model configuration. The selected model may not support this request."
        if "content" in lowered or "safety" in lowered:
            return "Request was blocked due to content policy. Please modify your message."
        return f"Bad request to {provider}. {message or 'Please check your request.'}"

    if status_code == 401:
        return f"Authentication failed. Please verify your {provider} API key in Settings."

    if status_code == 403:
        if "permission" in lowered or "access" in lowered:
            return f"Access denied. Your {provider} API key may not have permission for this operation."
        if "region" in lowered or "country" in lowered:
            return f"{provider} service is not available in your region."
        return f"Access forbidden. Please check your {provider} API key permissions."

    if status_code == 404:
        if "model" in lowered:
            return "Model not found. The selected model may not be available or the name is incorrect."
        return f"Resource not found on {provider}. Please check your configuration."

    if status_code == 429:
        if "quota" in lowered or status == "RESOURCE_EXHAUSTED":
            return f"Quota exceeded on {provider}. Check your usage limits or upgrade your plan."
        if "token" in lowered or "rpm" in lowered or "tpm" in lowered:
            return "Rate limit reached. Please wait a moment before sending more requests."
        return f"Too many requests to {provider}. Please wait a moment and try again."

    if status_code == 500:
        return f"{provider} server error. The service is experiencing issues. Please try again."
    if status_code == 502:
        return f"{provider} gateway error. The service may be updating. Please try again in a moment."
    if status_code == 503:
        if "overloaded" in lowered or "capacity" in lowered:
            return f"{provider} is currently overloaded. Please try again in a few minutes."
        return f"{provider} service is temporarily unavailable. Please try again later."
    if status_code == 504:
        return f"{provider} request timed out. The service may be slow. Please try again."
    if status_code == 529:
        return f"{provider} is overloaded. Please try again in a few minutes."
    if status_code >= 500:
        return f"{provider} server error (HTTP {status_code}). Please try again later."

    _log.debug("Unmapped %s error status %s", provider, status_code)
    return f"{provider} error: {_truncate(message or body)}"
