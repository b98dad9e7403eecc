"""Bridge controller lifecycle tests with an in-memory socket."""

import asyncio
import json

import pytest

from editorbridge.config.schema import Config
from editorbridge.server.controller import BridgeController
from editorbridge.utils.exceptions import TransportConnectError, ValidationError


class _Socket:
    def __init__(self):
        self.sent: list[str] = []
        self.closed = False
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str) -> None:
        self.sent.append(message)

    async def close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(None)

    def feed(self, frame: dict) -> None:
        self._inbox.put_nowait(json.dumps(frame))

    def drop(self) -> None:
        self._inbox.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        frame = await self._inbox.get()
        if frame is None:
            raise StopAsyncIteration
        return frame


class _Connector:
    def __init__(self, *sockets):
        self.sockets = list(sockets)
        self.urls: list[str] = []

    async def __call__(self, url: str):
        self.urls.append(url)
        if not self.sockets:
            raise ConnectionRefusedError("refused")
        return self.sockets.pop(0)


async def _no_sleep(delay: float) -> None:
    await asyncio.sleep(0)


async def _eventually(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.001)


def _config(**overrides) -> Config:
    config = Config()
    config.connection.url = "ws://localhost:9/bridge"
    config.connection.token = "tok-123"
    for section, values in overrides.items():
        for key, value in values.items():
            setattr(getattr(config, section), key, value)
    return config


@pytest.mark.asyncio
async def test_enable_requires_token(local_host) -> None:
    config = _config()
    config.connection.token = "  "
    controller = BridgeController(config, local_host, connector=_Connector(_Socket()))
    with pytest.raises(ValidationError):
        await controller.enable()
    assert not controller.enabled


@pytest.mark.asyncio
async def test_enable_connects_and_serves_tools_list(local_host) -> None:
    socket = _Socket()
    connector = _Connector(socket)
    controller = BridgeController(_config(tools={"shell": False}), local_host, connector=connector)

    await controller.enable()
    assert controller.enabled
    assert controller.is_connected
    assert connector.urls == ["ws://localhost:9/bridge?token=tok-123"]
    assert "execute_shell_command_code" not in controller.registry
    assert "read_file_code" in controller.registry

    socket.feed({"jsonrpc": "2.0", "id": 7, "method": "tools/list"})
    await _eventually(lambda: socket.sent)
    reply = json.loads(socket.sent[0])
    assert reply["id"] == 7
    names = {tool["name"] for tool in reply["result"]["tools"]}
    assert "execute_shell_command_code" not in names
    assert "get_workspace_info" in names

    await controller.disable()
    assert not controller.enabled
    assert socket.closed
    assert len(controller.registry) == 0


@pytest.mark.asyncio
async def test_disable_clears_virtual_files(local_host) -> None:
    controller = BridgeController(_config(), local_host, connector=_Connector(_Socket()))
    await controller.enable()
    controller.context.virtual_files.set("QUESTIONS", "why?")
    await controller.disable()
    assert len(controller.context.virtual_files) == 0


@pytest.mark.asyncio
async def test_first_connect_failure_raises_and_stays_disabled(local_host) -> None:
    controller = BridgeController(_config(), local_host, connector=_Connector())
    with pytest.raises(TransportConnectError) as exc_info:
        await controller.enable()
    assert "tok-123" not in exc_info.value.message
    assert not controller.enabled


@pytest.mark.asyncio
async def test_fatal_disables_and_notifies_once(local_host) -> None:
    socket = _Socket()
    notices: list[str] = []
    config = _config()
    config.connection.reconnect.max_attempts = 1
    controller = BridgeController(
        config,
        local_host,
        connector=_Connector(socket),
        on_operator_notice=notices.append,
        sleep=_no_sleep,
    )
    await controller.enable()

    socket.drop()
    await asyncio.wait_for(controller.wait_stopped(), timeout=1.0)
    await _eventually(lambda: notices)

    assert not controller.enabled
    assert len(notices) == 1
    assert notices[0].startswith("Editor bridge disconnected and gave up reconnecting")
    assert "tok-123" not in notices[0]


@pytest.mark.asyncio
async def test_async_notice_callback_is_awaited(local_host) -> None:
    socket = _Socket()
    received = asyncio.Event()

    async def notice(message: str) -> None:
        received.set()

    config = _config()
    config.connection.reconnect.max_attempts = 0
    controller = BridgeController(
        config, local_host, connector=_Connector(socket), on_operator_notice=notice, sleep=_no_sleep
    )
    await controller.enable()
    socket.drop()
    await asyncio.wait_for(received.wait(), timeout=1.0)
    assert not controller.enabled


@pytest.mark.asyncio
async def test_toggle(local_host) -> None:
    controller = BridgeController(_config(), local_host, connector=_Connector(_Socket(), _Socket()))
    assert await controller.toggle() is True
    assert await controller.toggle() is False
    assert await controller.toggle() is True
    await controller.disable()
