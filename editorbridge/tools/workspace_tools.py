"""Workspace metadata tool."""

from __future__ import annotations

from typing import Any

from editorbridge.host.context import BridgeContext
from editorbridge.tools.base import Tool, ToolResult, tool_error_handler


class WorkspaceInfoTool(Tool):
    """Workspace paths and platform details (no file contents)."""

    group = "workspace"

    def __init__(self, context: BridgeContext):
        self._context = context

    @property
    def name(self) -> str:
        return "get_workspace_info"

    @property
    def description(self) -> str:
        return (
            "Returns workspace metadata: root path and name, workspace folders, open editors, "
            "platform and home directory. Intended for the client, not for the model."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}}

    @tool_error_handler("Error getting workspace info")
    async def execute(self, **kwargs: Any) -> ToolResult:
        return ToolResult.json(self._context.host.workspace_info().to_dict())
