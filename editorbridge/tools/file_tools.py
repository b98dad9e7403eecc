"""File tools: bounded listing and size-limited reads."""

from __future__ import annotations

import base64
import codecs
from typing import Any

from loguru import logger

from editorbridge.host.context import BridgeContext
from editorbridge.listing.traversal import (
    DEFAULT_IGNORE_GITIGNORE,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_FILES,
    ListingOptions,
    list_workspace_files,
)
from editorbridge.tools.base import Tool, ToolResult, tool_error_handler
from editorbridge.utils.exceptions import ToolError, ValidationError

DEFAULT_MAX_CHARACTERS = 100000


def _text_encoding(encoding: str) -> str:
    try:
        return codecs.lookup(encoding).name
    except LookupError as e:
        raise ValidationError(f"Unknown encoding: {encoding}", field="encoding") from e


def select_lines(text: str, start_line: int = -1, end_line: int = -1) -> str:
    """
    Return lines ``start_line``..``end_line`` (1-based, inclusive) of ``text``.

    ``-1`` leaves that side open. Out-of-range ends are clamped; a start past
    the last line is an error.
    """
    if start_line <= 0 and end_line <= 0:
        return text
    lines = text.split("\n")
    start = start_line - 1 if start_line > 0 else 0
    end = min(end_line - 1, len(lines) - 1) if end_line > 0 else len(lines) - 1
    if start >= len(lines):
        raise ValidationError(f"Start line {start + 1} is out of range (1-{len(lines)})", field="startLine")
    if end < start:
        raise ValidationError(f"End line {end + 1} is less than start line {start + 1}", field="endLine")
    return "\n".join(lines[start : end + 1])


class ListFilesTool(Tool):
    """Bounded directory listing of the workspace."""

    group = "file"

    def __init__(self, context: BridgeContext, defaults: ListingOptions | None = None):
        self._context = context
        self._defaults = defaults or ListingOptions()

    @property
    def name(self) -> str:
        return "list_files_code"

    @property
    def description(self) -> str:
        return (
            "Explores the directory structure of the workspace with safety limits. "
            f"Returns at most {self._defaults.max_files} entries and recurses at most "
            f"{self._defaults.max_depth} levels by default. Git-ignored files and common "
            "build/dependency directories are excluded. Start with path='.' and recursive=false, "
            "then list specific subdirectories. A final entry of type 'truncated' means the "
            "listing was cut short."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "The path to list files from"},
                "recursive": {
                    "type": "boolean",
                    "description": "Whether to list files recursively",
                    "default": False,
                },
                "ignore_gitignore": {
                    "type": "boolean",
                    "description": "Whether to exclude git-ignored files",
                    "default": self._defaults.ignore_gitignore,
                },
                "max_depth": {
                    "type": "integer",
                    "description": "Maximum depth for recursive listing",
                    "minimum": 1,
                    "default": self._defaults.max_depth,
                },
                "max_files": {
                    "type": "integer",
                    "description": "Maximum number of entries to return",
                    "minimum": 1,
                    "default": self._defaults.max_files,
                },
            },
            "required": ["path"],
        }

    @tool_error_handler("Error listing files")
    async def execute(
        self,
        path: str,
        recursive: bool = False,
        ignore_gitignore: bool = DEFAULT_IGNORE_GITIGNORE,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_files: int = DEFAULT_MAX_FILES,
        **kwargs: Any,
    ) -> ToolResult:
        options = ListingOptions(
            ignore_gitignore=ignore_gitignore,
            max_depth=max_depth,
            max_files=max_files,
        )
        entries = await list_workspace_files(self._context.host, path, recursive, options)
        return ToolResult.json([entry.to_dict() for entry in entries])


class ReadFileTool(Tool):
    """Read a workspace file (or its in-memory override)."""

    group = "file"

    def __init__(self, context: BridgeContext, max_characters: int = DEFAULT_MAX_CHARACTERS):
        self._context = context
        self._max_characters = max_characters

    @property
    def name(self) -> str:
        return "read_file_code"

    @property
    def description(self) -> str:
        return (
            "Retrieves file contents with size limits and partial reading support. "
            f"Files over {self._max_characters} characters fail; use startLine/endLine "
            "(1-based, inclusive) to read a section. Use encoding 'base64' for binary files."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "The path to the file to read"},
                "encoding": {
                    "type": "string",
                    "description": 'Text encoding, or "base64" for a base64-encoded string',
                    "default": "utf-8",
                },
                "maxCharacters": {
                    "type": "integer",
                    "description": "Maximum character count",
                    "minimum": 1,
                    "default": self._max_characters,
                },
                "startLine": {
                    "type": "integer",
                    "description": "Start line (1-based, inclusive); -1 reads from the beginning",
                    "default": -1,
                },
                "endLine": {
                    "type": "integer",
                    "description": "End line (1-based, inclusive); -1 reads to the end",
                    "default": -1,
                },
            },
            "required": ["path"],
        }

    @tool_error_handler("Error reading file")
    async def execute(
        self,
        path: str,
        encoding: str = "utf-8",
        maxCharacters: int = DEFAULT_MAX_CHARACTERS,
        startLine: int = -1,
        endLine: int = -1,
        **kwargs: Any,
    ) -> ToolResult:
        virtual = self._context.virtual_files.get(path)
        if virtual is not None:
            logger.debug(f"Reading {path} from the virtual file store")
            self._check_size(len(virtual), maxCharacters)
            if encoding == "base64":
                return ToolResult.ok(base64.b64encode(virtual.encode("utf-8")).decode("ascii"))
            return ToolResult.ok(select_lines(virtual, startLine, endLine))

        data = await self._context.host.read_file(path)
        if encoding == "base64":
            self._check_size(len(data), maxCharacters, unit="bytes")
            if startLine > 0 or endLine > 0:
                logger.warning(f"Line range ignored for base64 read of {path}")
            return ToolResult.ok(base64.b64encode(data).decode("ascii"))

        text = data.decode(_text_encoding(encoding))
        self._check_size(len(text), maxCharacters)
        return ToolResult.ok(select_lines(text, startLine, endLine))

    def _check_size(self, size: int, limit: int, unit: str = "characters") -> None:
        if size > limit:
            raise ToolError(
                self.name,
                f"File content exceeds the maximum character limit ({size} {unit} vs {limit} allowed)",
            )
