"""Configuration schema using Pydantic.

The single data model for the bridge and its defaults, persisted to
~/.editorbridge/config.json.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

from editorbridge.listing.traversal import (
    ABSOLUTE_MAX_DEPTH,
    ABSOLUTE_MAX_FILES,
    DEFAULT_IGNORE_GITIGNORE,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_FILES,
    ListingOptions,
)
from editorbridge.transport.backoff import ReconnectPolicy

TOOL_GROUPS = ("file", "edit", "shell", "diagnostics", "search")


class ReconnectConfig(BaseModel):
    """Reconnect backoff policy."""
    max_attempts: int = Field(default=20, ge=0)
    initial_delay_seconds: float = Field(default=1.0, gt=0)
    max_delay_seconds: float = Field(default=300.0, gt=0)
    multiplier: float = Field(default=2.0, ge=1.0)

    def to_policy(self) -> ReconnectPolicy:
        return ReconnectPolicy(
            max_attempts=self.max_attempts,
            initial_delay_seconds=self.initial_delay_seconds,
            max_delay_seconds=self.max_delay_seconds,
            multiplier=self.multiplier,
        )


class ConnectionConfig(BaseModel):
    """Outbound WebSocket connection."""
    url: str = "ws://localhost:8765/editorbridge"
    token: str = ""  # Sent as ?token=...; never logged unmasked
    ping_interval: float | None = 20.0
    ping_timeout: float | None = 10.0
    open_timeout: float = 10.0
    reconnect: ReconnectConfig = Field(default_factory=ReconnectConfig)


class ToolGroupsConfig(BaseModel):
    """Capability groups; a disabled group's tools are never registered."""
    file: bool = True
    edit: bool = True
    shell: bool = True
    diagnostics: bool = True
    search: bool = True

    def disabled_groups(self) -> list[str]:
        return [name for name in TOOL_GROUPS if not getattr(self, name)]


class ListingConfig(BaseModel):
    """Default limits for list_files_code."""
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, le=ABSOLUTE_MAX_DEPTH)
    max_files: int = Field(default=DEFAULT_MAX_FILES, ge=1, le=ABSOLUTE_MAX_FILES)
    ignore_gitignore: bool = DEFAULT_IGNORE_GITIGNORE

    def to_options(self) -> ListingOptions:
        return ListingOptions(
            ignore_gitignore=self.ignore_gitignore,
            max_depth=self.max_depth,
            max_files=self.max_files,
        )


class ShellConfig(BaseModel):
    """Shell command tool."""
    timeout_ms: int = Field(default=180000, ge=1)


class FilesConfig(BaseModel):
    """File read/write tools."""
    max_characters: int = Field(default=100000, ge=1)
    diagnostics_delay_seconds: float = Field(default=0.0, ge=0)  # Wait before collecting diagnostics after an edit


class WorkspaceConfig(BaseModel):
    """Local workspace served by the bridge."""
    root: str = "."
    restrict_to_workspace: bool = True  # Reject paths that resolve outside the root


class Config(BaseSettings):
    """Root configuration for editorbridge."""
    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    tools: ToolGroupsConfig = Field(default_factory=ToolGroupsConfig)
    listing: ListingConfig = Field(default_factory=ListingConfig)
    shell: ShellConfig = Field(default_factory=ShellConfig)
    files: FilesConfig = Field(default_factory=FilesConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)

    @property
    def workspace_path(self) -> Path:
        """Expanded, absolute workspace root."""
        return Path(self.workspace.root).expanduser().resolve()

    model_config = ConfigDict(
        env_prefix="EDITORBRIDGE_",
        env_nested_delimiter="__"
    )
