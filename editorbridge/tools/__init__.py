"""Tools exposed through tools/list and tools/call."""

from editorbridge.tools.base import Tool, ToolResult, tool_error_handler
from editorbridge.tools.registry import ToolRegistry

__all__ = ["Tool", "ToolRegistry", "ToolResult", "tool_error_handler"]
