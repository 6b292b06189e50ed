"""Core types shared by every tool: specs, calls, invocations, results and argument helpers."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any


class ToolError(Exception):
    """Raised when a tool cannot do its work; carries any output produced so far."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


@dataclass
class ToolSpec:
    """Name, description and JSON schema of a tool as shown to the model."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolCall:
    """A request from the model to run one tool."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class Invocation:
    """Everything a tool needs to run once."""

    cwd: str = ""
    sandbox: str = ""
    mode: str = ""
    context_files: list[str] = field(default_factory=list)
    args: dict[str, Any] = field(default_factory=dict)


@dataclass
class Result:
    """Text produced by a tool run."""

    output: str = ""


class Tool(abc.ABC):
    """A tool that can describe itself and run."""

    @abc.abstractmethod
    def spec(self) -> ToolSpec:
        """Return the tool's spec."""

    @abc.abstractmethod
    def run(self, inv: Invocation) -> Result:
        """Run the tool; raise ToolError on failure."""


def object_schema(properties: dict[str, Any], *args: str) -> dict[str, Any]:
    """Build a closed JSON object schema; positional extras name required properties."""
    schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "additionalProperties": False,
    }
    if args:
        schema["required"] = list(args)
    return schema


def string_property(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}


def integer_property(description: str, minimum: int) -> dict[str, Any]:
    return {"type": "integer", "description": description, "minimum": minimum}


def string_arg(args: dict[str, Any], name: str) -> str:
    """Return a required string argument."""
    if name not in args or args[name] is None:
        raise ToolError(f'missing argument "{name}"')
    value = args[name]
    if not isinstance(value, str):
        raise ToolError(f'argument "{name}" must be a string')
    return value


def optional_string_arg(args: dict[str, Any], name: str, default: str) -> str:
    """Return a string argument, or the default when it is absent."""
    value = args.get(name)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ToolError(f'argument "{name}" must be a string')
    return value


def optional_int_arg(args: dict[str, Any], name: str, default: int) -> int:
    """Return an integer argument, or the default when it is absent."""
    value = args.get(name)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ToolError(f'argument "{name}" must be an integer')
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ToolError(f'argument "{name}" must be an integer')


def compress_output(text: str, max_lines: int) -> str:
    """Trim trailing blanks and cap the output at max_lines lines."""
    stripped = text.rstrip()
    if not stripped:
        return ""
    lines = [line.rstrip() for line in stripped.split("\n")]
    if max_lines <= 0 or len(lines) <= max_lines:
        return "\n".join(lines)
    omitted = len(lines) - max_lines
    return "\n".join([*lines[:max_lines], f"... {omitted} more lines"])