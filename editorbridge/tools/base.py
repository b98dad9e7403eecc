"""Base class for bridge tools and the shared error-handling decorator."""

from __future__ import annotations

import asyncio
import functools
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

from editorbridge.utils.exceptions import (
    BridgeError,
    classify_exception,
    sanitize_error_message,
)

F = TypeVar("F", bound=Callable[..., Awaitable["ToolResult"]])


@dataclass(slots=True)
class ToolResult:
    """Text payload of a tool call plus the error flag."""

    text: str
    is_error: bool = False

    @classmethod
    def ok(cls, text: str) -> "ToolResult":
        return cls(text=text)

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        return cls(text=text, is_error=True)

    @classmethod
    def json(cls, payload: Any) -> "ToolResult":
        return cls(text=json.dumps(payload, indent=2, ensure_ascii=False))

    def to_call_result(self) -> dict[str, Any]:
        return {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }


class Tool(ABC):
    """
    A named operation callable through ``tools/call``.

    ``group`` names the capability group the tool belongs to; whole groups
    can be switched off in config.
    """

    group: str = "workspace"

    _TYPE_MAP = {
        "string": str,
        "integer": int,
        "number": (int, float),
        "boolean": bool,
        "array": list,
        "object": dict,
    }

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name used in tools/call."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Description shown to the client."""

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for the tool arguments."""

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Run the tool with validated arguments."""

    def validate_params(self, params: dict[str, Any]) -> list[str]:
        """Validate arguments against the schema. Returns a list of errors, empty when valid."""
        schema = self.parameters or {}
        if schema.get("type", "object") != "object":
            raise ValueError(f"Schema must be object type, got {schema.get('type')!r}")
        return self._validate(params, {**schema, "type": "object"}, "")

    def apply_defaults(self, params: dict[str, Any]) -> dict[str, Any]:
        """Fill in schema defaults for omitted top-level arguments."""
        merged = dict(params)
        for key, prop in (self.parameters.get("properties") or {}).items():
            if key not in merged and "default" in prop:
                merged[key] = prop["default"]
        return merged

    def _validate(self, val: Any, schema: dict[str, Any], path: str) -> list[str]:
        label = path or "parameter"
        t = schema.get("type")
        if t in self._TYPE_MAP:
            expected = self._TYPE_MAP[t]
            # bool is an int subclass
            if isinstance(val, bool) and t in ("integer", "number"):
                return [f"{label} should be {t}"]
            if not isinstance(val, expected):
                return [f"{label} should be {t}"]

        errors: list[str] = []
        if "enum" in schema and val not in schema["enum"]:
            errors.append(f"{label} must be one of {schema['enum']}")
        if t in ("integer", "number"):
            if "minimum" in schema and val < schema["minimum"]:
                errors.append(f"{label} must be >= {schema['minimum']}")
            if "maximum" in schema and val > schema["maximum"]:
                errors.append(f"{label} must be <= {schema['maximum']}")
        if t == "object":
            props = schema.get("properties", {})
            for key in schema.get("required", []):
                if key not in val:
                    errors.append(f"missing required {path + '.' + key if path else key}")
            for key, item in val.items():
                if key in props:
                    errors.extend(self._validate(item, props[key], path + "." + key if path else key))
        if t == "array" and "items" in schema:
            for i, item in enumerate(val):
                errors.extend(self._validate(item, schema["items"], f"{label}[{i}]"))
        return errors

    def to_schema(self) -> dict[str, Any]:
        """Definition as listed by tools/list."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.parameters,
        }


def tool_error_handler(
    default_message: str = "Operation failed",
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Turn exceptions raised by ``execute`` into error results.

    Usage:
        @tool_error_handler("Error reading file")
        async def execute(self, path: str, **kwargs) -> ToolResult:
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> ToolResult:
            try:
                return await func(*args, **kwargs)
            except BridgeError as e:
                if log_errors:
                    logger.warning(f"Tool error: {e.code} - {e.message}")
                return ToolResult.error(f"{default_message}: {e.message}")
            except FileNotFoundError as e:
                if log_errors:
                    logger.debug(f"File not found: {e}")
                return ToolResult.error(f"{default_message}: {sanitize_error_message(str(e))}")
            except PermissionError as e:
                if log_errors:
                    logger.warning(f"Permission denied: {sanitize_error_message(str(e))}")
                return ToolResult.error(f"{default_message}: Permission denied")
            except asyncio.TimeoutError:
                if log_errors:
                    logger.warning("Operation timed out")
                return ToolResult.error(f"{default_message}: Operation timed out")
            except Exception as e:
                code, _, _ = classify_exception(e)
                sanitized = sanitize_error_message(str(e))
                if log_errors:
                    logger.error(f"Unexpected error [{code}]: {sanitized}")
                return ToolResult.error(f"{default_message}: {sanitized or type(e).__name__}")

        return wrapper  # type: ignore[return-value]

    return decorator
