"""In-memory file overrides (ephemeral writes)."""

from __future__ import annotations

import posixpath

EPHEMERAL_PATHS = frozenset({"QUESTIONS", "MEMORY"})


def normalize_virtual_path(path: str, root: str | None = None) -> str:
    """
    Collapse ``./a/../b`` style paths so lookups are path-equivalent.

    With ``root``, an absolute path inside the root is made root-relative,
    so ``/ws/QUESTIONS`` and ``QUESTIONS`` name the same file.
    """
    normalized = posixpath.normpath(path.replace("\\", "/"))
    if root and posixpath.isabs(normalized):
        base = posixpath.normpath(root.replace("\\", "/"))
        relative = posixpath.relpath(normalized, base)
        if relative != ".." and not relative.startswith("../"):
            return relative
    return normalized


class VirtualFileStore:
    """
    Path-keyed text overrides consulted before the real filesystem.

    Held on the ``BridgeContext``; one store per running bridge. ``root`` is
    the workspace root that absolute paths are resolved against.
    """

    def __init__(self, root: str | None = None):
        self.root = root
        self._files: dict[str, str] = {}

    def key(self, path: str) -> str:
        return normalize_virtual_path(path, self.root)

    def get(self, path: str) -> str | None:
        return self._files.get(self.key(path))

    def set(self, path: str, content: str) -> None:
        self._files[self.key(path)] = content

    def delete(self, path: str) -> None:
        self._files.pop(self.key(path), None)

    def clear(self) -> None:
        self._files.clear()

    def paths(self) -> list[str]:
        return list(self._files)

    def __contains__(self, path: str) -> bool:
        return self.key(path) in self._files

    def __len__(self) -> int:
        return len(self._files)


def is_always_ephemeral(path: str, root: str | None = None) -> bool:
    return normalize_virtual_path(path, root) in EPHEMERAL_PATHS
