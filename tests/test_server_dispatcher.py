"""Tests for JSON-RPC method dispatch."""

import asyncio
import json
from typing import Any

import pytest

from editorbridge import __version__
from editorbridge.host.context import BridgeContext
from editorbridge.rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    RpcErrorObject,
    RpcErrorResponse,
    RpcNotification,
    RpcRequest,
    RpcResponse,
)
from editorbridge.server.dispatcher import PROTOCOL_VERSION, ToolDispatcher
from editorbridge.tools.base import Tool, ToolResult
from editorbridge.tools.registry import ToolRegistry
from editorbridge.utils.exceptions import RpcRemoteError, TimeoutError


class _RecordingTransport:
    def __init__(self):
        self.sent: list[Any] = []

    def send(self, message) -> None:
        self.sent.append(message)


class _EchoTool(Tool):
    group = "file"

    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Echo text back."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        }

    async def execute(self, text: str, **kwargs: Any) -> ToolResult:
        if text == "fail":
            return ToolResult.error("it failed")
        return ToolResult.ok(text)


@pytest.fixture
def dispatcher(local_host):
    registry = ToolRegistry()
    registry.register(_EchoTool())
    return ToolDispatcher(_RecordingTransport(), registry, BridgeContext(host=local_host))


async def _call(dispatcher: ToolDispatcher, method: str, params=None, request_id=1):
    await dispatcher.handle_message(RpcRequest(id=request_id, method=method, params=params))
    return dispatcher.transport.sent[-1]


@pytest.mark.asyncio
async def test_initialize(dispatcher) -> None:
    reply = await _call(
        dispatcher,
        "initialize",
        {"protocolVersion": PROTOCOL_VERSION, "clientInfo": {"name": "client", "version": "1.0"}},
    )
    assert isinstance(reply, RpcResponse)
    assert reply.result == {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {"tools": {"listChanged": False}, "logging": {}},
        "serverInfo": {"name": "editorbridge", "version": __version__},
    }
    assert dispatcher.client_info["name"] == "client"


@pytest.mark.asyncio
async def test_ping_and_tools_list(dispatcher) -> None:
    assert (await _call(dispatcher, "ping")).result == {}
    reply = await _call(dispatcher, "tools/list", request_id=2)
    assert reply.id == 2
    assert [t["name"] for t in reply.result["tools"]] == ["echo"]
    assert reply.result["tools"][0]["inputSchema"]["required"] == ["text"]


@pytest.mark.asyncio
async def test_tools_call_success_and_error_result(dispatcher) -> None:
    reply = await _call(dispatcher, "tools/call", {"name": "echo", "arguments": {"text": "hi"}})
    assert reply.result == {"content": [{"type": "text", "text": "hi"}], "isError": False}

    reply = await _call(dispatcher, "tools/call", {"name": "echo", "arguments": {"text": "fail"}})
    assert isinstance(reply, RpcResponse)
    assert reply.result["isError"] is True


@pytest.mark.asyncio
async def test_unknown_method(dispatcher) -> None:
    reply = await _call(dispatcher, "resources/list")
    assert isinstance(reply, RpcErrorResponse)
    assert reply.error.code == METHOD_NOT_FOUND


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        {"name": "missing_tool", "arguments": {}},
        {"name": "echo", "arguments": {"text": 5}},
        {"name": "echo", "arguments": {}},
        {"arguments": {"text": "hi"}},
        {"name": "echo", "arguments": ["hi"]},
    ],
)
async def test_invalid_tool_calls_are_invalid_params(dispatcher, params) -> None:
    reply = await _call(dispatcher, "tools/call", params)
    assert isinstance(reply, RpcErrorResponse)
    assert reply.error.code == INVALID_PARAMS


@pytest.mark.asyncio
async def test_unexpected_failure_is_internal_error(dispatcher, monkeypatch) -> None:
    def broken():
        raise RuntimeError("registry exploded")

    monkeypatch.setattr(dispatcher.registry, "get_definitions", broken)
    reply = await _call(dispatcher, "tools/list")
    assert isinstance(reply, RpcErrorResponse)
    assert reply.error.code == INTERNAL_ERROR
    assert "registry exploded" in reply.error.message


@pytest.mark.asyncio
async def test_notifications_get_no_reply(dispatcher) -> None:
    await dispatcher.handle_message(RpcNotification(method="notifications/initialized"))
    assert dispatcher.transport.sent == []


@pytest.mark.asyncio
async def test_outbound_request_resolves_by_id(dispatcher) -> None:
    task = asyncio.create_task(dispatcher.request("roots/list", {}, timeout=1.0))
    await asyncio.sleep(0)
    sent = dispatcher.transport.sent[-1]
    assert isinstance(sent, RpcRequest)
    assert sent.method == "roots/list"

    await dispatcher.handle_message(RpcResponse(id=sent.id, result={"roots": []}))
    assert await task == {"roots": []}
    assert dispatcher.pending_requests == 0


@pytest.mark.asyncio
async def test_outbound_request_error_response(dispatcher) -> None:
    task = asyncio.create_task(dispatcher.request("sampling/createMessage"))
    await asyncio.sleep(0)
    sent = dispatcher.transport.sent[-1]
    await dispatcher.handle_message(
        RpcErrorResponse(id=sent.id, error=RpcErrorObject(code=-32601, message="not supported"))
    )
    with pytest.raises(RpcRemoteError) as exc_info:
        await task
    assert exc_info.value.rpc_code == -32601


@pytest.mark.asyncio
async def test_outbound_request_timeout(dispatcher) -> None:
    with pytest.raises(TimeoutError):
        await dispatcher.request("roots/list", timeout=0.01)
    assert dispatcher.pending_requests == 0


@pytest.mark.asyncio
async def test_response_with_unknown_id_is_discarded(dispatcher) -> None:
    await dispatcher.handle_message(RpcResponse(id=999, result={}))
    await dispatcher.handle_message(
        RpcErrorResponse(id=None, error=RpcErrorObject(code=-32700, message="Parse error"))
    )
    assert dispatcher.transport.sent == []


@pytest.mark.asyncio
async def test_cancel_pending_fails_waiters(dispatcher) -> None:
    task = asyncio.create_task(dispatcher.request("roots/list", timeout=5.0))
    await asyncio.sleep(0)
    dispatcher.cancel_pending("shutting down")
    with pytest.raises(Exception, match="shutting down"):
        await task


@pytest.mark.asyncio
async def test_replies_serialize_to_valid_frames(dispatcher) -> None:
    reply = await _call(dispatcher, "tools/call", {"name": "echo", "arguments": {"text": "hi"}}, request_id="r-1")
    frame = json.loads(json.dumps(reply.to_dict()))
    assert frame["jsonrpc"] == "2.0"
    assert frame["id"] == "r-1"


@pytest.mark.asyncio
async def test_request_with_null_id_is_answered_with_null_id(dispatcher) -> None:
    reply = await _call(dispatcher, "ping", request_id=None)
    assert isinstance(reply, RpcResponse)
    assert reply.id is None
    assert reply.to_dict() == {"jsonrpc": "2.0", "id": None, "result": {}}
