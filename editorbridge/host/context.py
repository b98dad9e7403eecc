"""Shared collaborators handed to every tool."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from editorbridge.host.contracts import EditorHost
from editorbridge.host.virtual_fs import VirtualFileStore

if TYPE_CHECKING:
    from editorbridge.config.schema import Config


@dataclass
class BridgeContext:
    """Non-owning references to the host, the virtual store and the loaded config."""

    host: EditorHost
    virtual_files: VirtualFileStore = field(default_factory=VirtualFileStore)
    config: "Config | None" = None

    def __post_init__(self) -> None:
        if self.virtual_files.root is None:
            self.virtual_files.root = self.host.workspace_root
