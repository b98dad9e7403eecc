"""Host backed by the local filesystem and subprocesses."""

from __future__ import annotations

import asyncio
import difflib
import os
import platform
from collections import defaultdict
from pathlib import Path

from loguru import logger

from editorbridge.host.contracts import (
    CommandResult,
    Diagnostic,
    DirEntry,
    EntryKind,
    WorkspaceInfo,
)
from editorbridge.utils.exceptions import sanitize_error_message

_MAX_OUTPUT_LENGTH = 10000


def _resolve_path(path: str, root: Path, restrict: bool = True) -> Path:
    """Resolve ``path`` against ``root`` and optionally keep it inside the root."""
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = root / candidate
    resolved = candidate.resolve()
    if restrict:
        try:
            resolved.relative_to(root)
        except ValueError as e:
            raise PermissionError(f"Path {path} is outside the workspace {root}") from e
    return resolved


class DiagnosticsStore:
    """
    In-memory diagnostics collection.

    A real editor owns its language servers; locally, linters or tests
    publish results here and ``get_diagnostics_code`` reads them back.
    """

    def __init__(self):
        self._by_path: dict[str, list[Diagnostic]] = defaultdict(list)

    def publish(self, path: str, diagnostics: list[Diagnostic]) -> None:
        """Replace all diagnostics for ``path``."""
        if diagnostics:
            self._by_path[path] = list(diagnostics)
        else:
            self._by_path.pop(path, None)

    def clear(self) -> None:
        self._by_path.clear()

    def get(self, path: str | None = None) -> list[Diagnostic]:
        if path is not None:
            return list(self._by_path.get(path, []))
        result: list[Diagnostic] = []
        for key in sorted(self._by_path):
            result.extend(self._by_path[key])
        return result


class LocalHost:
    """EditorHost implementation for a workspace directory on disk."""

    def __init__(
        self,
        workspace_root: str | Path,
        restrict_to_workspace: bool = True,
        diagnostics: DiagnosticsStore | None = None,
    ):
        self._root = Path(workspace_root).expanduser().resolve()
        self.restrict_to_workspace = restrict_to_workspace
        self.diagnostics = diagnostics or DiagnosticsStore()
        self._background: set[asyncio.subprocess.Process] = set()

    @property
    def workspace_root(self) -> str:
        return str(self._root)

    def resolve(self, path: str) -> Path:
        return _resolve_path(path or ".", self._root, self.restrict_to_workspace)

    def relative(self, path: Path) -> str:
        try:
            return path.relative_to(self._root).as_posix() or "."
        except ValueError:
            return str(path)

    async def list_directory(self, path: str) -> list[DirEntry]:
        dir_path = self.resolve(path)
        if not dir_path.exists():
            raise FileNotFoundError(f"Directory not found: {path}")
        if not dir_path.is_dir():
            raise NotADirectoryError(f"Not a directory: {path}")
        entries = []
        for item in sorted(dir_path.iterdir(), key=lambda p: p.name):
            kind = EntryKind.DIRECTORY if item.is_dir() else EntryKind.FILE
            entries.append(DirEntry(name=item.name, kind=kind))
        return entries

    async def read_file(self, path: str) -> bytes:
        file_path = self.resolve(path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        if not file_path.is_file():
            raise IsADirectoryError(f"Not a file: {path}")
        return file_path.read_bytes()

    async def write_file(self, path: str, data: bytes) -> None:
        file_path = self.resolve(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(data)

    async def get_diagnostics(self, path: str | None = None) -> list[Diagnostic]:
        if path:
            return self.diagnostics.get(self.relative(self.resolve(path)))
        return self.diagnostics.get()

    async def run_command(
        self,
        command: str,
        cwd: str = ".",
        timeout: float | None = None,
        long_lived: bool = False,
    ) -> CommandResult:
        """Run ``command`` through the user's shell with ``cwd`` resolved in the workspace."""
        work_dir = self.resolve(cwd or ".")
        shell = os.environ.get("SHELL", "/bin/sh")
        if shell.endswith("fish"):
            shell = "/bin/sh"

        if long_lived:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                cwd=str(work_dir),
                executable=shell,
            )
            self._background.add(process)
            logger.info(f"Started long-lived command (pid {process.pid}): {command}")
            return CommandResult(
                output=(
                    f"Long-lived command started: {command}\n\n"
                    f"The command is now running in the background (pid {process.pid})."
                ),
                started_in_background=True,
            )

        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(work_dir),
            executable=shell,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return CommandResult(
                output=f"Command timed out after {timeout} seconds",
                timed_out=True,
            )

        output_parts = []
        if stdout:
            output_parts.append(stdout.decode("utf-8", errors="replace"))
        if stderr:
            stderr_text = stderr.decode("utf-8", errors="replace")
            if stderr_text.strip():
                output_parts.append(f"STDERR:\n{stderr_text}")
        if process.returncode != 0:
            output_parts.append(f"\nExit code: {process.returncode}")
        result = "\n".join(output_parts) if output_parts else "(no output)"
        if len(result) > _MAX_OUTPUT_LENGTH:
            result = result[:_MAX_OUTPUT_LENGTH] + f"\n... (truncated, {len(result) - _MAX_OUTPUT_LENGTH} more chars)"
        return CommandResult(output=result, exit_code=process.returncode)

    async def show_diff(self, path: str, before: str, after: str, title: str) -> None:
        diff = difflib.unified_diff(
            before.splitlines(keepends=True),
            after.splitlines(keepends=True),
            fromfile=f"a/{path}",
            tofile=f"b/{path}",
        )
        text = "".join(diff)
        logger.info(f"{title}\n{text}" if text else f"{title}: no changes")

    def workspace_info(self) -> WorkspaceInfo:
        root = str(self._root)
        return WorkspaceInfo(
            workspace_root=root,
            workspace_name=self._root.name,
            workspace_folders=[{"name": self._root.name, "path": root}],
            open_editors=[],
            platform=platform.system().lower(),
            home_dir=str(Path.home()),
        )

    async def aclose(self) -> None:
        """Terminate background commands still running."""
        for process in list(self._background):
            if process.returncode is None:
                try:
                    process.terminate()
                except ProcessLookupError:
                    pass
                except OSError as e:
                    logger.warning(f"Failed to stop pid {process.pid}: {sanitize_error_message(str(e))}")
        self._background.clear()
