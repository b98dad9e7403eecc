"""Shell execution tool."""

from __future__ import annotations

from typing import Any

from loguru import logger

from editorbridge.host.context import BridgeContext
from editorbridge.tools.base import Tool, ToolResult, tool_error_handler

DEFAULT_TIMEOUT_MS = 180000


class ExecuteShellCommandTool(Tool):
    """Run a shell command in the workspace through the host."""

    group = "shell"

    def __init__(self, context: BridgeContext, default_timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self._context = context
        self._default_timeout_ms = default_timeout_ms

    @property
    def name(self) -> str:
        return "execute_shell_command_code"

    @property
    def description(self) -> str:
        return (
            "Executes a shell command in the workspace. Use cwd to run in a specific directory "
            f"(defaults to the workspace root). Commands must finish within the timeout "
            f"(default {self._default_timeout_ms // 1000} seconds). Set longLived=true for dev "
            "servers or watch processes; the command then starts and the tool returns immediately."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "command": {"type": "string", "description": "The shell command to execute"},
                "cwd": {
                    "type": "string",
                    "description": "Working directory for the command",
                    "default": ".",
                },
                "timeout": {
                    "type": "integer",
                    "description": "Command timeout in milliseconds",
                    "minimum": 1,
                    "default": self._default_timeout_ms,
                },
                "longLived": {
                    "type": "boolean",
                    "description": "Start the command and return without waiting",
                    "default": False,
                },
            },
            "required": ["command"],
        }

    @tool_error_handler("Error executing command")
    async def execute(
        self,
        command: str,
        cwd: str = ".",
        timeout: int = DEFAULT_TIMEOUT_MS,
        longLived: bool = False,
        **kwargs: Any,
    ) -> ToolResult:
        if not command.strip():
            return ToolResult.error("Error executing command: Empty command")
        logger.info(f"Executing command in {cwd!r}: {command}")
        result = await self._context.host.run_command(
            command,
            cwd=cwd or ".",
            timeout=None if longLived else timeout / 1000,
            long_lived=longLived,
        )
        text = f"Command: {command}\n\nOutput:\n{result.output}"
        if result.timed_out:
            return ToolResult.error(
                f"Command timed out after {timeout}ms: {command}\n\nOutput:\n{result.output}"
            )
        return ToolResult.ok(text)
