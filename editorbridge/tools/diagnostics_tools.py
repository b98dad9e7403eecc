"""Diagnostics tool."""

from __future__ import annotations

from typing import Any

from editorbridge.host.context import BridgeContext
from editorbridge.tools.base import Tool, ToolResult, tool_error_handler

DEFAULT_SEVERITIES = [0, 1]


class GetDiagnosticsTool(Tool):
    """Flat list of problems for one file or the whole workspace."""

    group = "diagnostics"

    def __init__(self, context: BridgeContext):
        self._context = context

    @property
    def name(self) -> str:
        return "get_diagnostics_code"

    @property
    def description(self) -> str:
        return (
            "Reports warnings and errors from the workspace linters and language servers. "
            "Run it after every series of code changes. Leave path empty for the whole workspace. "
            "Severities: 0=Error, 1=Warning, 2=Information, 3=Hint; errors and warnings by default."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "File to check; empty checks the entire workspace",
                    "default": "",
                },
                "severities": {
                    "type": "array",
                    "items": {"type": "integer", "minimum": 0, "maximum": 3},
                    "description": "Severity levels to include",
                    "default": DEFAULT_SEVERITIES,
                },
                "includeSource": {
                    "type": "boolean",
                    "description": "Include the linter or extension that reported each issue",
                    "default": True,
                },
            },
        }

    @tool_error_handler("Error getting diagnostics")
    async def execute(
        self,
        path: str = "",
        severities: list[int] | None = None,
        includeSource: bool = True,
        **kwargs: Any,
    ) -> ToolResult:
        wanted = set(DEFAULT_SEVERITIES if severities is None else severities)
        diagnostics = await self._context.host.get_diagnostics(path or None)
        return ToolResult.json(
            [d.to_dict(include_source=includeSource) for d in diagnostics if int(d.severity) in wanted]
        )
