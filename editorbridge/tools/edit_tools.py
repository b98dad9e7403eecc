"""Edit tools: whole-file writes and tolerant search/replace."""

from __future__ import annotations

import asyncio
import posixpath
from typing import Any

from loguru import logger

from editorbridge.host.context import BridgeContext
from editorbridge.host.virtual_fs import is_always_ephemeral
from editorbridge.patching.engine import PatchRequest, apply_patch
from editorbridge.tools.base import Tool, ToolResult, tool_error_handler
from editorbridge.utils.exceptions import sanitize_error_message


class _EditTool(Tool):
    group = "edit"

    def __init__(self, context: BridgeContext, diagnostics_delay: float = 0.0):
        self._context = context
        self._diagnostics_delay = diagnostics_delay

    async def _exists(self, path: str) -> bool:
        try:
            await self._context.host.read_file(path)
        except FileNotFoundError:
            return False
        return True

    async def _final_state(self, path: str) -> tuple[str, list[dict[str, Any]]]:
        """Contents as stored by the host (it may have reformatted them) and the file's diagnostics."""
        final_contents = (await self._context.host.read_file(path)).decode("utf-8", errors="replace")
        if self._diagnostics_delay > 0:
            await asyncio.sleep(self._diagnostics_delay)
        diagnostics = await self._context.host.get_diagnostics(path)
        return final_contents, [d.to_dict() for d in diagnostics]


class WriteToFileTool(_EditTool):
    """Create or overwrite a file, or write an in-memory override."""

    @property
    def name(self) -> str:
        return "write_to_file"

    @property
    def description(self) -> str:
        return (
            "Writes content to a file (creates new or overwrites existing). Use only for new files "
            "or when search_replace has failed. Returns the final file contents and the diagnostics "
            "for that file. With ephemeral=true the content is kept in memory instead of on disk."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "The path to the file to write"},
                "content": {"type": "string", "description": "The content to write to the file"},
                "ephemeral": {
                    "type": "boolean",
                    "description": "Write to an in-memory file instead of the real filesystem",
                    "default": False,
                },
                "ignoreIfExists": {
                    "type": "boolean",
                    "description": "Leave an existing file untouched",
                    "default": False,
                },
            },
            "required": ["path", "content"],
        }

    @tool_error_handler("Error writing file")
    async def execute(
        self,
        path: str,
        content: str,
        ephemeral: bool = False,
        ignoreIfExists: bool = False,
        **kwargs: Any,
    ) -> ToolResult:
        if is_always_ephemeral(path, self._context.virtual_files.root):
            ephemeral = True

        if ephemeral:
            logger.debug(f"Writing virtual file {path}")
            self._context.virtual_files.set(path, content)
            return ToolResult.json({"success": True, "path": path, "final_contents": content})

        if ignoreIfExists and await self._exists(path):
            logger.info(f"{path} exists; write skipped")
        else:
            await self._context.host.write_file(path, content.encode("utf-8"))

        final_contents, diagnostics = await self._final_state(path)
        return ToolResult.json(
            {
                "success": True,
                "path": path,
                "final_contents": final_contents,
                "diagnostics": diagnostics,
            }
        )


class SearchReplaceTool(_EditTool):
    """Replace one located region of a file using the patch engine."""

    @property
    def name(self) -> str:
        return "search_replace"

    @property
    def description(self) -> str:
        return (
            "Performs a search and replace on an existing file and shows a diff. Use a small, unique "
            "snippet for 'search'. Matching tries an exact match first, then a whitespace-tolerant "
            "line match, then (for 3+ line blocks) a match on the first and last lines. An empty "
            "search replaces the whole file. Returns the final file contents and the diagnostics "
            "for that file."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "The path to the file to modify"},
                "search": {
                    "type": "string",
                    "description": "The content to search for (empty to replace entire file)",
                },
                "replace": {"type": "string", "description": "The content to replace with"},
            },
            "required": ["path", "search", "replace"],
        }

    @tool_error_handler("Error performing search and replace")
    async def execute(self, path: str, search: str, replace: str, **kwargs: Any) -> ToolResult:
        virtual = self._context.virtual_files.get(path)
        if virtual is not None:
            outcome = apply_patch(PatchRequest(virtual, search, replace))
            self._context.virtual_files.set(path, outcome.text)
            logger.debug(f"Patched virtual file {path} ({outcome.strategy})")
            return ToolResult.json(
                {"success": True, "path": path, "final_contents": outcome.text, "diagnostics": []}
            )

        host = self._context.host
        before = (await host.read_file(path)).decode("utf-8")
        outcome = apply_patch(PatchRequest(before, search, replace))
        await host.write_file(path, outcome.text.encode("utf-8"))
        logger.info(f"Patched {path} ({outcome.strategy})")

        try:
            await host.show_diff(
                path, before, outcome.text, f"Search & Replace: {posixpath.basename(path)}"
            )
        except Exception as e:
            logger.warning(f"Could not show diff for {path}: {sanitize_error_message(str(e))}")

        final_contents, diagnostics = await self._final_state(path)
        return ToolResult.json(
            {
                "success": True,
                "path": path,
                "final_contents": final_contents,
                "diagnostics": diagnostics,
            }
        )
