"""
Provider‑neutral dataclasses for client‑side tool use.

A ``ToolSchema`` is described once and converted into each backend's
declaration shape; everything provider‑specific beyond that lives in adapters.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Optional

__all__ = [
    "ToolParameterType",
    "ToolParameter",
    "ToolSchema",
    "ParsedToolCall",
    "ToolCallResult",
    "parse_arguments",
]


class ToolParameterType(StrEnum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True, slots=True)
class ToolParameter:
    name: str
    type: ToolParameterType
    description: str
    required: bool = True
    enum_values: Optional[tuple[str, ...]] = None


@dataclass(frozen=True, slots=True)
class ToolSchema:
    """A callable tool, independent of any backend."""

    name: str
    description: str
    parameters: tuple[ToolParameter, ...] = ()

    def _json_schema(self, *, upper_case_types: bool = False) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        required: list[str] = []

        for param in self.parameters:
            type_name = param.type.value.upper() if upper_case_types else param.type.value
            definition: dict[str, Any] = {
                "type": type_name,
                "description": param.description,
            }
            if param.enum_values is not None:
                definition["enum"] = list(param.enum_values)
            properties[param.name] = definition
            if param.required:
                required.append(param.name)

        schema: dict[str, Any] = {
            "type": "OBJECT" if upper_case_types else "object",
            "properties": properties,
        }
        if required:
            schema["required"] = required
        return schema

    def to_openai(self) -> dict[str, Any]:
        """``{"type": "function", "function": {name, description, parameters}}``"""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self._json_schema(),
            },
        }

    def to_anthropic(self) -> dict[str, Any]:
        """``{name, description, input_schema}``"""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self._json_schema(),
        }

    def to_google(self) -> dict[str, Any]:
        """Gemini function declaration; Google spells types in upper case."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self._json_schema(upper_case_types=True),
        }


def parse_arguments(raw: str) -> dict[str, Any]:
    """Parse a tool-call argument buffer; anything but a JSON object yields ``{}``."""
    if not raw or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


@dataclass(slots=True)
class ParsedToolCall:
    """A model‑agnostic request emitted by the LLM to call a local tool."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    def arguments_json(self) -> str:
        return json.dumps(self.arguments, separators=(",", ":"))

    def string_arguments(self) -> dict[str, str]:
        """Every argument rendered as a string, complex values as compact JSON."""
        result: dict[str, str] = {}
        for key, value in self.arguments.items():
            if isinstance(value, str):
                result[key] = value
            elif isinstance(value, bool):
                result[key] = "true" if value else "false"
            elif isinstance(value, (int, float)):
                result[key] = str(value)
            else:
                result[key] = json.dumps(value, separators=(",", ":"))
        return result


@dataclass(slots=True)
class ToolCallResult:
    """Payload to send back to the LLM after the tool finished running."""

    id: str  # must match the call id
    name: str  # Google matches results by function name
    content: str
    is_error: bool = False
