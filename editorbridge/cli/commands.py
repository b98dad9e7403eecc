"""CLI commands for editorbridge.

``run`` serves the local workspace over the outbound websocket; ``status``,
``ls`` and ``patch`` are local helpers that never connect.
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from editorbridge import __logo__, __version__
from editorbridge.cli.logging_utils import configure_console_logging, ensure_rotating_log_file
from editorbridge.config.schema import TOOL_GROUPS

app = typer.Typer(
    name="editorbridge",
    help=f"{__logo__} editorbridge - expose a workspace to a remote tool client",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} editorbridge v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True
    ),
):
    """editorbridge - workspace tools over JSON-RPC."""
    pass


def mask_secret(value: str) -> str:
    """Show only enough of a credential to recognise it."""
    if not value:
        return ""
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}***"


def _load(config_path: Path | None):
    from editorbridge.config.access import get_config

    try:
        return get_config(config_path=config_path)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Run
# ============================================================================


@app.command()
def run(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file (default ~/.editorbridge/config.json)"),
    workspace: Path = typer.Option(None, "--workspace", "-w", help="Workspace root (overrides config)"),
    url: str = typer.Option(None, "--url", help="WebSocket URL (overrides config)"),
    token: str = typer.Option(None, "--token", help="Connection token (overrides config)", envvar="EDITORBRIDGE_TOKEN"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Connect to the tool client and serve the workspace until stopped."""
    from loguru import logger

    from editorbridge.host.local import LocalHost
    from editorbridge.server.controller import BridgeController
    from editorbridge.utils.exceptions import BridgeError

    configure_console_logging(verbose)
    log_path = ensure_rotating_log_file("run", level="DEBUG" if verbose else "INFO")

    config = _load(config_path).model_copy(deep=True)
    if workspace is not None:
        config.workspace.root = str(workspace)
    if url:
        config.connection.url = url
    if token:
        config.connection.token = token

    root = config.workspace_path
    if not root.is_dir():
        console.print(f"[red]Workspace not found: {root}[/red]")
        raise typer.Exit(1)

    host = LocalHost(root, restrict_to_workspace=config.workspace.restrict_to_workspace)

    def notify(message: str) -> None:
        console.print(f"[red]{escape(message)}[/red]")

    controller = BridgeController(config, host, on_operator_notice=notify)

    async def serve() -> int:
        try:
            await controller.enable()
        except BridgeError as e:
            console.print(f"[red]{escape(e.message)}[/red]")
            return 1
        console.print(f"[green]✓[/green] Serving {root} ({len(controller.registry)} tools)")
        try:
            await controller.wait_stopped()
        finally:
            await controller.disable()
            await host.aclose()
        return 0

    console.print(f"{__logo__} editorbridge v{__version__}")
    console.print(f"[dim]Logs: {log_path}[/dim]")
    try:
        code = asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Interrupted")
        console.print("\nStopped.")
        code = 0
    raise typer.Exit(code)


# ============================================================================
# Status
# ============================================================================


@app.command()
def status(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file (default ~/.editorbridge/config.json)"),
):
    """Show configuration (the token is masked)."""
    from editorbridge.config.loader import get_config_path
    from editorbridge.utils.exceptions import mask_url_token
    from editorbridge.utils.helpers import build_ws_url

    path = config_path or get_config_path()
    config = _load(config_path)
    workspace = config.workspace_path
    conn = config.connection

    console.print(f"{__logo__} editorbridge Status\n")
    console.print(f"Config: {path} {'[green]✓[/green]' if path.exists() else '[red]✗[/red]'}")
    console.print(f"Workspace: {workspace} {'[green]✓[/green]' if workspace.is_dir() else '[red]✗[/red]'}")
    console.print(f"URL: {mask_url_token(build_ws_url(conn.url, conn.token))}")
    console.print(f"Token: {mask_secret(conn.token) if conn.token else '[dim]not set[/dim]'}")
    console.print(
        f"Reconnect: up to {conn.reconnect.max_attempts} attempts, "
        f"{conn.reconnect.initial_delay_seconds:g}s doubling to {conn.reconnect.max_delay_seconds:g}s"
    )

    table = Table(title="Tool groups")
    table.add_column("Group", style="cyan")
    table.add_column("Enabled")
    for group in TOOL_GROUPS:
        enabled = getattr(config.tools, group)
        table.add_row(group, "[green]✓[/green]" if enabled else "[dim]off[/dim]")
    console.print(table)


# ============================================================================
# Local helpers
# ============================================================================


@app.command("ls")
def list_files(
    path: str = typer.Argument(".", help="Directory relative to the workspace"),
    workspace: Path = typer.Option(Path("."), "--workspace", "-w", help="Workspace root"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Descend into subdirectories"),
    max_depth: int = typer.Option(None, "--max-depth", help="Maximum recursion depth"),
    max_files: int = typer.Option(None, "--max-files", help="Maximum entries"),
    no_gitignore: bool = typer.Option(False, "--no-gitignore", help="Include git-ignored files"),
):
    """List workspace files with the same limits the bridge applies."""
    from editorbridge.host.local import LocalHost
    from editorbridge.listing.traversal import (
        DEFAULT_MAX_DEPTH,
        DEFAULT_MAX_FILES,
        ListingOptions,
        list_workspace_files,
    )

    host = LocalHost(workspace)
    options = ListingOptions(
        ignore_gitignore=not no_gitignore,
        max_depth=max_depth or DEFAULT_MAX_DEPTH,
        max_files=max_files or DEFAULT_MAX_FILES,
    )
    try:
        entries = asyncio.run(list_workspace_files(host, path, recursive, options))
    except (OSError, ValueError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    for entry in entries:
        if entry.is_marker:
            console.print(f"[yellow]{escape(entry.path)}[/yellow]")
        elif entry.kind == "directory":
            console.print(f"[cyan]{escape(entry.path)}/[/cyan]")
        else:
            console.print(entry.path, markup=False)


@app.command()
def patch(
    file: Path = typer.Argument(..., help="File to modify"),
    search: str = typer.Option(None, "--search", "-s", help="Text to find (empty replaces the whole file)"),
    replace: str = typer.Option("", "--replace", "-r", help="Replacement text"),
    search_file: Path = typer.Option(None, "--search-file", help="Read the search text from a file"),
    replace_file: Path = typer.Option(None, "--replace-file", help="Read the replacement text from a file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the result instead of writing it"),
):
    """Apply one search/replace to a local file using the tolerant matcher."""
    from editorbridge.patching.engine import PatchRequest, apply_patch
    from editorbridge.utils.exceptions import PatchNotFoundError

    if search_file is not None:
        search = search_file.read_text(encoding="utf-8")
    if replace_file is not None:
        replace = replace_file.read_text(encoding="utf-8")
    if not file.is_file():
        console.print(f"[red]File not found: {file}[/red]")
        raise typer.Exit(1)

    document = file.read_text(encoding="utf-8")
    try:
        outcome = apply_patch(PatchRequest(document, search or "", replace))
    except PatchNotFoundError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(1)

    if dry_run:
        console.print(outcome.text, markup=False, highlight=False)
        return
    file.write_text(outcome.text, encoding="utf-8")
    console.print(f"[green]✓[/green] Patched {file} ({outcome.strategy})")


@app.command()
def version():
    """Show the editorbridge version."""
    console.print(f"{__logo__} editorbridge v{__version__}")


if __name__ == "__main__":
    app()
