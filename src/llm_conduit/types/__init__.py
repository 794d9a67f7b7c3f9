from .chat import CompletionParams, ConversationMessage, LLMCompletionResult, Role
from .events import (
    Done,
    StopReason,
    StopReasonEvent,
    StreamEvent,
    TextDelta,
    ToolCallArgumentDelta,
    ToolCallComplete,
    ToolCallStart,
    Usage,
)
from .tool import (
    ParsedToolCall,
    ToolCallResult,
    ToolParameter,
    ToolParameterType,
    ToolSchema,
    parse_arguments,
)

__all__ = [
    "CompletionParams",
    "ConversationMessage",
    "LLMCompletionResult",
    "Role",
    "Done",
    "StopReason",
    "StopReasonEvent",
    "StreamEvent",
    "TextDelta",
    "ToolCallArgumentDelta",
    "ToolCallComplete",
    "ToolCallStart",
    "Usage",
    "ParsedToolCall",
    "ToolCallResult",
    "ToolParameter",
    "ToolParameterType",
    "ToolSchema",
    "parse_arguments",
]
