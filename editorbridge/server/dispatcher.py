"""JSON-RPC method dispatch for the bridge.

Inbound requests (``initialize``, ``ping``, ``tools/list``, ``tools/call``)
are answered through the transport; responses to requests we issued
ourselves resolve the matching future.
"""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, Awaitable, Callable

from loguru import logger

from editorbridge import __version__
from editorbridge.host.context import BridgeContext
from editorbridge.rpc.error_boundary import (
    bridge_error_result,
    unhandled_exception_result,
    unknown_method_result,
)
from editorbridge.rpc.protocol import (
    RpcErrorResponse,
    RpcMessage,
    RpcNotification,
    RpcRequest,
    RpcResponse,
)
from editorbridge.rpc.serialization import safe_dict
from editorbridge.tools.registry import ToolRegistry
from editorbridge.utils.exceptions import (
    BridgeError,
    RpcRemoteError,
    TimeoutError,
    TransportError,
    ValidationError,
    sanitize_error_message,
)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "editorbridge"
DEFAULT_REQUEST_TIMEOUT = 30.0

Handler = Callable[[Any], Awaitable[Any]]


class ToolDispatcher:
    """
    Routes JSON-RPC messages arriving on a transport.

    ``transport`` only needs a non-blocking ``send(message)``.
    """

    def __init__(self, transport: Any, registry: ToolRegistry, context: BridgeContext):
        self.transport = transport
        self.registry = registry
        self.context = context
        self.client_info: dict[str, Any] = {}
        self._ids = itertools.count(1)
        self._pending: dict[int | str, tuple[str, asyncio.Future[Any]]] = {}
        self._methods: dict[str, Handler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    @property
    def pending_requests(self) -> int:
        return len(self._pending)

    async def handle_message(self, message: RpcMessage) -> None:
        """Entry point wired to the transport's ``on_message``."""
        if isinstance(message, RpcRequest):
            await self._handle_request(message)
        elif isinstance(message, RpcNotification):
            logger.debug(f"Notification {message.method} acknowledged")
        elif isinstance(message, (RpcResponse, RpcErrorResponse)):
            self._resolve(message)

    async def _handle_request(self, request: RpcRequest) -> None:
        handler = self._methods.get(request.method)
        if handler is None:
            self._reply(
                unknown_method_result(
                    request_id=request.id,
                    method=request.method,
                    log_warning=logger.warning,
                )
            )
            return
        try:
            result = await handler(request.params)
        except BridgeError as e:
            self._reply(
                bridge_error_result(
                    request_id=request.id,
                    method=request.method,
                    exc=e,
                    log_warning=logger.warning,
                )
            )
        except Exception as e:
            self._reply(
                unhandled_exception_result(
                    request_id=request.id,
                    method=request.method,
                    exc=e,
                    log_exception=logger.error,
                )
            )
        else:
            self._reply(RpcResponse(id=request.id, result=result))

    def _reply(self, message: RpcResponse | RpcErrorResponse) -> None:
        try:
            self.transport.send(message)
        except TransportError as e:
            logger.warning(f"Reply to request {message.id} dropped: {e.message}")

    async def _initialize(self, params: Any) -> dict[str, Any]:
        params = safe_dict(params)
        self.client_info = safe_dict(params.get("clientInfo"))
        logger.info(
            "Client initialized: {} {} (protocol {})",
            self.client_info.get("name", "unknown"),
            self.client_info.get("version", ""),
            params.get("protocolVersion", "?"),
        )
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}, "logging": {}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    async def _ping(self, params: Any) -> dict[str, Any]:
        return {}

    async def _tools_list(self, params: Any) -> dict[str, Any]:
        return {"tools": self.registry.get_definitions()}

    async def _tools_call(self, params: Any) -> dict[str, Any]:
        params = safe_dict(params)
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise ValidationError("tools/call requires a tool name", field="name")
        logger.info(f"Calling tool {name}")
        result = await self.registry.execute(name, params.get("arguments"))
        if result.is_error:
            logger.info(f"Tool {name} returned an error result")
        return result.to_call_result()

    async def request(
        self,
        method: str,
        params: Any = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> Any:
        """
        Send a request to the client and wait for its result.

        Raises:
            RpcRemoteError: the client answered with an error response.
            TimeoutError: no answer within ``timeout`` seconds.
        """
        request_id = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = (method, future)
        try:
            self.transport.send(RpcRequest(id=request_id, method=method, params=params))
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise TimeoutError(method, timeout) from e
        finally:
            self._pending.pop(request_id, None)

    def _resolve(self, message: RpcResponse | RpcErrorResponse) -> None:
        pending = self._pending.get(message.id) if message.id is not None else None
        if pending is None:
            logger.warning(f"Discarding response for unknown request id {message.id!r}")
            return
        method, future = pending
        if future.done():
            return
        if isinstance(message, RpcErrorResponse):
            future.set_exception(
                RpcRemoteError(
                    method,
                    message.error.code,
                    sanitize_error_message(message.error.message),
                    message.error.data,
                )
            )
        else:
            future.set_result(message.result)

    def cancel_pending(self, reason: str = "dispatcher stopped") -> None:
        """Fail every outstanding outbound request."""
        for method, future in list(self._pending.values()):
            if not future.done():
                future.set_exception(
                    BridgeError(f"Request '{method}' abandoned: {reason}", code="REQUEST_ABANDONED")
                )
        self._pending.clear()
