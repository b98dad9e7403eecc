"""Tool registry for the dispatcher.

Tools are grouped by capability (file, edit, shell, diagnostics, search);
tools of a disabled group are never registered.
"""

from typing import Any, Iterable

from loguru import logger

from editorbridge.tools.base import Tool, ToolResult
from editorbridge.utils.exceptions import (
    NotFoundError,
    ValidationError,
    classify_exception,
    sanitize_error_message,
)


class ToolRegistry:
    """
    Registry for bridge tools.

    Allows dynamic registration and execution of tools.
    """

    def __init__(self, disabled_groups: Iterable[str] | None = None):
        self._tools: dict[str, Tool] = {}
        self._disabled_groups: set[str] = {str(g).strip() for g in (disabled_groups or []) if str(g).strip()}

    def register(self, tool: Tool) -> bool:
        """Register a tool unless its group is disabled. Returns whether it was registered."""
        if tool.group in self._disabled_groups:
            logger.debug(f"Skipping tool '{tool.name}' (group '{tool.group}' disabled)")
            return False
        self._tools[tool.name] = tool
        return True

    def clear(self) -> None:
        self._tools.clear()

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def get_definitions(self) -> list[dict[str, Any]]:
        """Get all tool definitions for tools/list."""
        return [tool.to_schema() for tool in self._tools.values()]

    async def execute(self, name: str, params: dict[str, Any] | None) -> ToolResult:
        """
        Execute a tool by name with given arguments.

        Args:
            name: Tool name.
            params: Tool arguments.

        Returns:
            The tool result; failures inside the tool come back as error results.

        Raises:
            NotFoundError: if the tool is unknown or its group is disabled.
            ValidationError: if the arguments do not match the tool schema.
        """
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise ValidationError(f"Arguments for tool '{name}' must be an object", field="arguments")
        tool = self._tools.get(name)
        if not tool:
            raise NotFoundError("Tool", name)

        errors = tool.validate_params(params)
        if errors:
            raise ValidationError(f"Invalid parameters for tool '{name}': " + "; ".join(errors))
        try:
            return await tool.execute(**tool.apply_defaults(params))
        except Exception as e:
            code, _, _ = classify_exception(e)
            sanitized = sanitize_error_message(str(e))
            logger.error(f"Tool '{name}' raised [{code}]: {sanitized}")
            return ToolResult.error(f"Error executing {name}: {sanitized}")

    @property
    def tool_names(self) -> list[str]:
        """Get list of registered tool names."""
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
