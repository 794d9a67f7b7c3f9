"""
LLM Conduit - one streaming event vocabulary over OpenAI, Anthropic, Google and local servers.
"""

from ._exceptions import (
    APIError,
    EmptyResponseError,
    InvalidResponseError,
    LLMClientError,
    MissingAPIKeyError,
    ToolsNotSupportedError,
    describe_api_error,
)
from .accumulator import ToolCallAccumulator
from .client import LLMClient
from .models import ReasoningEffort, find_model, supports_reasoning
from .providers import LocalServer, Provider, ProviderTarget, get_api_key
from .stream_utils import StreamResult, collect_stream
from .types import (
    CompletionParams,
    ConversationMessage,
    Done,
    LLMCompletionResult,
    ParsedToolCall,
    StopReason,
    StopReasonEvent,
    StreamEvent,
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
from .usage import UsageRecorder, UsageRequestType, UsageTracker, estimate_tokens

__version__ = "0.1.0"

__all__ = [
    "LLMClient",
    "ProviderTarget",
    "Provider",
    "LocalServer",
    "get_api_key",
    "ReasoningEffort",
    "find_model",
    "supports_reasoning",
    "ToolSchema",
    "ToolParameter",
    "ToolParameterType",
    "ParsedToolCall",
    "ToolCallResult",
    "ConversationMessage",
    "CompletionParams",
    "LLMCompletionResult",
    "StreamEvent",
    "TextDelta",
    "ToolCallStart",
    "ToolCallArgumentDelta",
    "ToolCallComplete",
    "Usage",
    "StopReason",
    "StopReasonEvent",
    "Done",
    "ToolCallAccumulator",
    "StreamResult",
    "collect_stream",
    "UsageRecorder",
    "UsageRequestType",
    "UsageTracker",
    "estimate_tokens",
    "LLMClientError",
    "MissingAPIKeyError",
    "InvalidResponseError",
    "EmptyResponseError",
    "APIError",
    "ToolsNotSupportedError",
    "describe_api_error",
]
