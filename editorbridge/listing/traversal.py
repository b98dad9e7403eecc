"""Bounded, depth-first workspace listing.

Several limits apply at once: recursion depth, total entry count, wall-clock
time and per-directory fan-out. Callers may tighten the depth and count
limits but never raise them above the hidden ceilings. Any truncation is
reported by exactly one synthetic entry at the end of the result.
"""

from __future__ import annotations

import posixpath
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from loguru import logger

from editorbridge.host.contracts import EditorHost
from editorbridge.listing.ignore import IgnoreMatcher, load_gitignore

DEFAULT_MAX_DEPTH = 5
DEFAULT_MAX_FILES = 200
DEFAULT_IGNORE_GITIGNORE = True

ABSOLUTE_MAX_DEPTH = 10
ABSOLUTE_MAX_FILES = 500
TIMEOUT_SECONDS = 5.0
MAX_IMMEDIATE_CHILDREN = 1000

ALWAYS_EXCLUDED_DIRS = frozenset({
    "node_modules",
    ".git",
    ".venv",
    "venv",
    "env",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    "dist",
    "build",
    "out",
    "target",
    ".next",
    ".nuxt",
    "coverage",
    ".nyc_output",
    ".tox",
    "eggs",
    ".eggs",
    "htmlcov",
    ".coverage",
    ".hypothesis",
    ".ruff_cache",
})

TRUNCATED = "truncated"


class TruncationReason(str, Enum):
    MAX_FILES = "max_files"
    TIMEOUT = "timeout"
    FAN_OUT = "fan_out"


@dataclass(frozen=True, slots=True)
class ListingOptions:
    ignore_gitignore: bool = DEFAULT_IGNORE_GITIGNORE
    max_depth: int = DEFAULT_MAX_DEPTH
    max_files: int = DEFAULT_MAX_FILES

    @property
    def effective_max_depth(self) -> int:
        return min(self.max_depth, ABSOLUTE_MAX_DEPTH)

    @property
    def effective_max_files(self) -> int:
        return min(self.max_files, ABSOLUTE_MAX_FILES)


@dataclass(frozen=True, slots=True)
class ListingEntry:
    """``kind`` is ``file``, ``directory`` or ``truncated`` (the marker)."""

    path: str
    kind: str
    reason: str | None = None

    @property
    def is_marker(self) -> bool:
        return self.kind == TRUNCATED

    def to_dict(self) -> dict[str, Any]:
        item: dict[str, Any] = {"path": self.path, "type": self.kind}
        if self.reason:
            item["reason"] = self.reason
        return item


class BoundedTraversal:
    """
    One listing call. Holds the running count, the clock and the lazily
    loaded ignore patterns; create a new instance per top-level call.
    """

    def __init__(
        self,
        host: EditorHost,
        path: str = ".",
        recursive: bool = False,
        options: ListingOptions | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.host = host
        self.path = posixpath.normpath((path or ".").replace("\\", "/"))
        self.recursive = recursive
        self.options = options or ListingOptions()
        self.max_depth = self.options.effective_max_depth
        self.max_files = self.options.effective_max_files
        self._clock = clock
        self._started_at = 0.0
        self._entries: list[ListingEntry] = []
        self._count = 0
        self._stopped = False
        self._truncation: TruncationReason | None = None
        self._truncated_at: str | None = None
        self._ignore: IgnoreMatcher | None = None

    @property
    def truncation(self) -> TruncationReason | None:
        return self._truncation

    async def run(self) -> list[ListingEntry]:
        logger.debug(
            f"Listing {self.path} (recursive={self.recursive}, max_depth={self.max_depth}, "
            f"max_files={self.max_files}, ignore_gitignore={self.options.ignore_gitignore})"
        )
        self._started_at = self._clock()
        await self._walk("", 0)
        if self._truncation is not None:
            logger.warning(
                f"Listing of {self.path} truncated ({self._truncation.value}) after {self._count} entries"
            )
            self._entries.append(self._marker())
        else:
            logger.debug(f"Listing of {self.path} found {self._count} entries")
        return self._entries

    async def _walk(self, rel_dir: str, depth: int) -> None:
        if self._stopped:
            return
        if self._clock() - self._started_at > TIMEOUT_SECONDS:
            self._truncate(TruncationReason.TIMEOUT, rel_dir)
            self._stopped = True
            return
        if self.recursive and depth >= self.max_depth:
            return

        children = await self.host.list_directory(self._host_path(rel_dir))
        if len(children) > MAX_IMMEDIATE_CHILDREN:
            logger.warning(
                f"Directory {rel_dir or self.path} has {len(children)} entries, not enumerating"
            )
            if depth == 0:
                # Nested directories were already emitted by their parent.
                self._entries.append(ListingEntry(self.path, "directory"))
                self._count += 1
            self._truncate(TruncationReason.FAN_OUT, rel_dir or self.path)
            return

        for child in children:
            if self._stopped:
                break
            rel = f"{rel_dir}/{child.name}" if rel_dir else child.name
            if child.is_dir and child.name in ALWAYS_EXCLUDED_DIRS:
                continue
            if self.options.ignore_gitignore and await self._is_ignored(rel, child.is_dir):
                continue
            if self._count >= self.max_files:
                self._truncate(TruncationReason.MAX_FILES, rel)
                self._stopped = True
                break

            self._entries.append(ListingEntry(rel, child.kind.value))
            self._count += 1
            if self.recursive and child.is_dir:
                await self._walk(rel, depth + 1)

    async def _is_ignored(self, rel: str, is_dir: bool) -> bool:
        if self._ignore is None:
            self._ignore = await load_gitignore(self.host)
        return self._ignore.matches(self._root_relative(rel), is_dir)

    def _host_path(self, rel_dir: str) -> str:
        if not rel_dir:
            return self.path
        return rel_dir if self.path == "." else f"{self.path}/{rel_dir}"

    def _root_relative(self, rel: str) -> str:
        return rel if self.path == "." else f"{self.path.lstrip('/')}/{rel}"

    def _truncate(self, reason: TruncationReason, where: str) -> None:
        if self._truncation is None:
            self._truncation = reason
            self._truncated_at = where

    def _marker(self) -> ListingEntry:
        reason = self._truncation
        if reason is TruncationReason.MAX_FILES:
            text = f"[TRUNCATED: Reached limit of {self.max_files} files]"
        elif reason is TruncationReason.TIMEOUT:
            text = f"[TRUNCATED: Listing timed out after {TIMEOUT_SECONDS:g}s]"
        else:
            text = (
                f"[TRUNCATED: Directory {self._truncated_at} has more than "
                f"{MAX_IMMEDIATE_CHILDREN} entries]"
            )
        return ListingEntry(text, TRUNCATED, reason=reason.value)


async def list_workspace_files(
    host: EditorHost,
    path: str = ".",
    recursive: bool = False,
    options: ListingOptions | None = None,
) -> list[ListingEntry]:
    """List ``path`` under the workspace; see ``BoundedTraversal``."""
    return await BoundedTraversal(host, path, recursive, options).run()
