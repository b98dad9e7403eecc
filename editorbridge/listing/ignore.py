"""``.gitignore`` matching for workspace listings."""

from __future__ import annotations

import pathspec
from loguru import logger

from editorbridge.host.contracts import EditorHost

GITIGNORE_FILE = ".gitignore"


class IgnoreMatcher:
    """Wraps a gitwildmatch ``PathSpec``; an empty matcher ignores nothing."""

    def __init__(self, spec: pathspec.PathSpec | None = None):
        self._spec = spec

    @classmethod
    def from_lines(cls, lines) -> "IgnoreMatcher":
        return cls(pathspec.PathSpec.from_lines("gitwildmatch", lines))

    @property
    def empty(self) -> bool:
        return self._spec is None or not self._spec.patterns

    def matches(self, rel_path: str, is_dir: bool = False) -> bool:
        """``rel_path`` is relative to the workspace root, posix separators."""
        if self.empty:
            return False
        check_path = rel_path + "/" if is_dir and not rel_path.endswith("/") else rel_path
        return self._spec.match_file(check_path)


async def load_gitignore(host: EditorHost, directory: str = ".") -> IgnoreMatcher:
    """Read ``.gitignore`` from ``directory`` through the host. Missing file means no patterns."""
    path = GITIGNORE_FILE if directory in ("", ".") else f"{directory.rstrip('/')}/{GITIGNORE_FILE}"
    try:
        raw = await host.read_file(path)
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        return IgnoreMatcher()
    except OSError as e:
        logger.debug(f"Failed to read {path}: {e}")
        return IgnoreMatcher()
    try:
        return IgnoreMatcher.from_lines(raw.decode("utf-8", errors="replace").splitlines())
    except ValueError as e:
        logger.debug(f"Failed to parse {path}: {e}")
        return IgnoreMatcher()
