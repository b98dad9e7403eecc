"""Bridge lifecycle: enable, disable and fatal-failure handling."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable

from loguru import logger

from editorbridge.config.schema import Config
from editorbridge.host.context import BridgeContext
from editorbridge.host.contracts import EditorHost
from editorbridge.server.dispatcher import ToolDispatcher
from editorbridge.tools.diagnostics_tools import GetDiagnosticsTool
from editorbridge.tools.edit_tools import SearchReplaceTool, WriteToFileTool
from editorbridge.tools.file_tools import ListFilesTool, ReadFileTool
from editorbridge.tools.registry import ToolRegistry
from editorbridge.tools.search_tools import SearchCodeTool
from editorbridge.tools.shell_tools import ExecuteShellCommandTool
from editorbridge.tools.workspace_tools import WorkspaceInfoTool
from editorbridge.transport.websocket import (
    Connector,
    WebSocketTransport,
    websockets_connector,
)
from editorbridge.utils.exceptions import (
    TransportConnectError,
    TransportFatalError,
    ValidationError,
)
from editorbridge.utils.helpers import build_ws_url

NoticeCallback = Callable[[str], Any]


def register_default_tools(registry: ToolRegistry, context: BridgeContext, config: Config) -> None:
    """Register the default set of tools; the registry drops disabled groups."""
    # File tools
    registry.register(ListFilesTool(context, defaults=config.listing.to_options()))
    registry.register(ReadFileTool(context, max_characters=config.files.max_characters))

    # Edit tools
    delay = config.files.diagnostics_delay_seconds
    registry.register(WriteToFileTool(context, diagnostics_delay=delay))
    registry.register(SearchReplaceTool(context, diagnostics_delay=delay))

    # Shell, diagnostics, search
    registry.register(ExecuteShellCommandTool(context, default_timeout_ms=config.shell.timeout_ms))
    registry.register(GetDiagnosticsTool(context))
    registry.register(SearchCodeTool(context))

    # Always available
    registry.register(WorkspaceInfoTool(context))


class BridgeController:
    """
    Owns one bridge session: registry, dispatcher and transport.

    ``enable`` connects and serves until ``disable`` is called or the
    transport gives up reconnecting. In the latter case the bridge disables
    itself and ``on_operator_notice`` is called once with a short message.
    """

    def __init__(
        self,
        config: Config,
        host: EditorHost,
        *,
        connector: Connector | None = None,
        on_operator_notice: NoticeCallback | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self.host = host
        self.on_operator_notice = on_operator_notice
        self._connector = connector
        self._sleep = sleep
        self.context = BridgeContext(host=host, config=config)
        self.registry: ToolRegistry | None = None
        self.dispatcher: ToolDispatcher | None = None
        self.transport: WebSocketTransport | None = None
        self._enabled = False
        self._notice_sent = False
        self._stopped = asyncio.Event()
        self._stopped.set()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def is_connected(self) -> bool:
        return self.transport is not None and self.transport.is_open

    async def enable(self) -> None:
        """
        Register tools and connect.

        Raises:
            ValidationError: no token is configured.
            TransportConnectError: the first connection attempt failed.
        """
        if self._enabled:
            logger.warning("Bridge already enabled")
            return
        conn = self.config.connection
        token = conn.token.strip()
        if not token:
            raise ValidationError("No connection token configured", field="connection.token")

        self.registry = ToolRegistry(disabled_groups=self.config.tools.disabled_groups())
        register_default_tools(self.registry, self.context, self.config)
        logger.info(f"Registered {len(self.registry)} tools: {', '.join(self.registry.tool_names)}")

        self.transport = WebSocketTransport(
            build_ws_url(conn.url, token),
            policy=conn.reconnect.to_policy(),
            connector=self._connector
            or websockets_connector(
                ping_interval=conn.ping_interval,
                ping_timeout=conn.ping_timeout,
                open_timeout=conn.open_timeout,
            ),
            on_message=self._on_message,
            on_open=self._on_open,
            on_close=self._on_close,
            on_error=self._on_error,
            on_fatal=self._on_fatal,
            sleep=self._sleep,
        )
        self.dispatcher = ToolDispatcher(self.transport, self.registry, self.context)
        self._enabled = True
        self._notice_sent = False
        self._stopped.clear()
        try:
            await self.transport.start()
        except TransportConnectError:
            await self.disable()
            raise

    async def disable(self) -> None:
        """Close the connection and drop the session's tools."""
        if not self._enabled:
            return
        self._enabled = False
        if self.dispatcher is not None:
            self.dispatcher.cancel_pending("bridge disabled")
        if self.transport is not None:
            await self.transport.close()
        if self.registry is not None:
            self.registry.clear()
        self.context.virtual_files.clear()
        logger.info("Bridge disabled")
        self._stopped.set()

    async def toggle(self) -> bool:
        """Flip between enabled and disabled. Returns the new state."""
        if self._enabled:
            await self.disable()
        else:
            await self.enable()
        return self._enabled

    async def wait_stopped(self) -> None:
        """Wait until the bridge is disabled (explicitly or after a fatal failure)."""
        await self._stopped.wait()

    async def _on_message(self, message: Any) -> None:
        if self.dispatcher is not None:
            await self.dispatcher.handle_message(message)

    def _on_open(self) -> None:
        logger.info("Bridge connected")

    def _on_close(self, reason: str) -> None:
        logger.warning(f"Bridge connection lost: {reason}")

    def _on_error(self, exc: Exception) -> None:
        logger.warning(f"Bridge transport error: {exc}")

    async def _on_fatal(self, exc: TransportFatalError) -> None:
        logger.error(f"Bridge stopped: {exc.message}")
        await self.disable()
        if self._notice_sent:
            return
        self._notice_sent = True
        if self.on_operator_notice is not None:
            result = self.on_operator_notice(
                f"Editor bridge disconnected and gave up reconnecting: {exc.message}"
            )
            if inspect.isawaitable(result):
                await result
