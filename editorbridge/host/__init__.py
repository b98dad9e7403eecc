"""Editor host contract and the local implementation."""

from editorbridge.host.context import BridgeContext
from editorbridge.host.contracts import (
    CommandResult,
    Diagnostic,
    DiagnosticSeverity,
    DirEntry,
    EditorHost,
    EntryKind,
    WorkspaceInfo,
)
from editorbridge.host.local import DiagnosticsStore, LocalHost
from editorbridge.host.virtual_fs import VirtualFileStore

__all__ = [
    "BridgeContext",
    "CommandResult",
    "Diagnostic",
    "DiagnosticSeverity",
    "DiagnosticsStore",
    "DirEntry",
    "EditorHost",
    "EntryKind",
    "LocalHost",
    "VirtualFileStore",
    "WorkspaceInfo",
]
