"""Narrow interfaces through which tools reach the editor host.

Paths handed to a host are workspace-relative (``"."`` is the root) unless
they are absolute. A host decides how to resolve them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Protocol, runtime_checkable


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class DiagnosticSeverity(IntEnum):
    ERROR = 0
    WARNING = 1
    INFORMATION = 2
    HINT = 3


@dataclass(frozen=True, slots=True)
class DirEntry:
    """One immediate child returned by ``list_directory``."""

    name: str
    kind: EntryKind

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single problem reported for a file. ``line`` and ``column`` are 0-based."""

    path: str
    line: int
    column: int
    severity: DiagnosticSeverity
    message: str
    source: str | None = None

    def to_dict(self, include_source: bool = True) -> dict[str, Any]:
        item: dict[str, Any] = {
            "file": self.path,
            "line": self.line + 1,
            "column": self.column + 1,
            "severity": self.severity.name.capitalize(),
            "message": self.message,
        }
        if include_source and self.source:
            item["source"] = self.source
        return item


@dataclass(slots=True)
class CommandResult:
    output: str
    exit_code: int | None = None
    timed_out: bool = False
    started_in_background: bool = False


@dataclass(slots=True)
class WorkspaceInfo:
    workspace_root: str | None
    workspace_name: str | None
    workspace_folders: list[dict[str, str]] = field(default_factory=list)
    open_editors: list[str] = field(default_factory=list)
    platform: str = ""
    home_dir: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "workspaceRoot": self.workspace_root,
            "workspaceName": self.workspace_name,
            "workspaceFolders": self.workspace_folders,
            "openEditors": self.open_editors,
            "platform": self.platform,
            "homeDir": self.home_dir,
        }


@runtime_checkable
class EditorHost(Protocol):
    """Host primitives the tool set delegates to."""

    @property
    def workspace_root(self) -> str: ...

    async def list_directory(self, path: str) -> list[DirEntry]: ...

    async def read_file(self, path: str) -> bytes: ...

    async def write_file(self, path: str, data: bytes) -> None: ...

    async def get_diagnostics(self, path: str | None = None) -> list[Diagnostic]: ...

    async def run_command(
        self,
        command: str,
        cwd: str = ".",
        timeout: float | None = None,
        long_lived: bool = False,
    ) -> CommandResult: ...

    async def show_diff(self, path: str, before: str, after: str, title: str) -> None: ...

    def workspace_info(self) -> WorkspaceInfo: ...
