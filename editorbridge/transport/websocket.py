"""Outbound websocket transport with queueing and automatic reconnect."""

from __future__ import annotations

import asyncio
import inspect
import json
from collections import deque
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol

import websockets
from loguru import logger
from websockets.exceptions import ConnectionClosed

from editorbridge.rpc.protocol import RpcMessage
from editorbridge.rpc.serialization import encode_message, parse_message
from editorbridge.transport.backoff import Backoff, ReconnectPolicy
from editorbridge.transport.state import (
    Closing,
    Connecting,
    ConnectionState,
    Disconnected,
    Open,
    Phase,
)
from editorbridge.utils.exceptions import (
    ErrorCategory,
    RpcProtocolError,
    TransportClosedError,
    TransportConnectError,
    TransportError,
    TransportFatalError,
    mask_url_token,
    sanitize_error_message,
)


class SocketLike(Protocol):
    """The subset of a websocket connection the transport uses."""

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


Connector = Callable[[str], Awaitable[SocketLike]]
Callback = Callable[..., Any]


def websockets_connector(
    ping_interval: float | None = 20,
    ping_timeout: float | None = 10,
    open_timeout: float | None = 10,
) -> Connector:
    """Default connector: ``websockets.connect`` with keepalive settings."""

    async def connect(url: str) -> SocketLike:
        return await websockets.connect(
            url,
            ping_interval=ping_interval,
            ping_timeout=ping_timeout,
            open_timeout=open_timeout,
        )

    return connect


class WebSocketTransport:
    """
    Keeps one logical connection to ``url`` alive across drops.

    ``send`` never suspends: frames go to the open connection's writer, or to
    the pending queue while the connection is down. The pending queue is
    flushed in order before the connection is reported open, so frames sent
    while disconnected always precede frames sent afterwards.

    Callbacks may be plain functions or coroutine functions:

    - ``on_message(message)`` for every valid inbound JSON-RPC message,
      each in its own task
    - ``on_open()`` after the connection (re)opens
    - ``on_close(reason)`` after an unexpected close
    - ``on_error(exc)`` for non-fatal errors after the connection opened
    - ``on_fatal(exc)`` once, when reconnect attempts are exhausted
    """

    def __init__(
        self,
        url: str,
        *,
        policy: ReconnectPolicy | None = None,
        connector: Connector | None = None,
        on_message: Callback | None = None,
        on_open: Callback | None = None,
        on_close: Callback | None = None,
        on_error: Callback | None = None,
        on_fatal: Callback | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.url = url
        self.policy = policy or ReconnectPolicy()
        self._connector = connector or websockets_connector()
        self.on_message = on_message
        self.on_open = on_open
        self.on_close = on_close
        self.on_error = on_error
        self.on_fatal = on_fatal
        self._sleep = sleep

        self._state: ConnectionState = Disconnected()
        self._pending: deque[str] = deque()
        self._backoff = Backoff(self.policy)
        self._explicit_close = False
        self._fatal_fired = False
        self._last_error: str | None = None
        self._reconnect_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def is_open(self) -> bool:
        return isinstance(self._state, Open)

    @property
    def masked_url(self) -> str:
        return mask_url_token(self.url)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def reconnect_attempts(self) -> int:
        return self._backoff.attempts

    @property
    def current_delay(self) -> float:
        return self._backoff.delay

    @property
    def fatal(self) -> bool:
        return self._fatal_fired

    async def start(self) -> None:
        """
        Open the connection and return once it is open.

        Raises:
            TransportConnectError: if this first attempt fails.
        """
        if not isinstance(self._state, Disconnected):
            logger.warning(f"Transport already {self.phase.value}; start() ignored")
            return
        self._explicit_close = False
        self._fatal_fired = False
        self._cancel_reconnect()
        self._backoff.reset()
        try:
            await self._open_connection()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._explicit_close:
                logger.info(f"Connection to {self.masked_url} abandoned by close()")
                return
            reason = sanitize_error_message(str(e)) or type(e).__name__
            raise TransportConnectError(self.url, reason) from e

    def send(self, message: RpcMessage | dict[str, Any] | str) -> None:
        """
        Queue one frame for delivery without suspending.

        Raises:
            TransportClosedError: while the transport is closing.
        """
        frame = self._serialize(message)
        state = self._state
        if isinstance(state, Closing):
            raise TransportClosedError(state.phase.value)
        if isinstance(state, Open):
            state.outbox.put_nowait(frame)
            return
        self._pending.append(frame)

    async def close(self) -> None:
        """Close the connection and suppress automatic reconnect."""
        self._explicit_close = True
        self._cancel_reconnect()
        state = self._state
        if isinstance(state, (Disconnected, Closing)):
            return
        self._state = Closing(socket=state.socket)
        if isinstance(state, Open):
            self._requeue_unsent(state)
            await self._stop_io(state)
        if state.socket is not None:
            await self._close_socket(state.socket)
        self._state = Disconnected()
        logger.info(f"Transport to {self.masked_url} closed")

    async def wait_idle(self) -> None:
        """Wait for in-flight message handlers and callbacks to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -- connection lifecycle -------------------------------------------

    async def _open_connection(self) -> bool:
        """Connect, flush pending frames, enter Open. False if close() intervened."""
        connecting = Connecting()
        self._state = connecting
        logger.info(f"Connecting to {self.masked_url}")
        try:
            socket = await self._connector(self.url)
        except BaseException:
            if self._state is connecting:
                self._state = Disconnected()
            raise

        if self._state is not connecting:
            await self._close_socket(socket)
            return False
        connecting.socket = socket

        try:
            while self._pending:
                await socket.send(self._pending[0])
                self._pending.popleft()
        except BaseException:
            if self._state is connecting:
                self._state = Disconnected()
                await self._close_socket(socket)
            raise

        if self._state is not connecting:
            return False

        opened = Open(socket=socket)
        self._state = opened
        self._backoff.reset()
        self._last_error = None
        opened.writer = asyncio.create_task(self._write_loop(opened))
        opened.reader = asyncio.create_task(self._read_loop(opened))
        logger.info(f"Connected to {self.masked_url}")
        self._invoke(self.on_open)
        return True

    async def _read_loop(self, state: Open) -> None:
        error: Exception | None = None
        try:
            async for raw in state.socket:
                self._handle_frame(raw)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = e
        if self._state is state:
            if error is not None:
                self._report_error(error)
            await self._handle_unexpected_close(state, error)

    async def _write_loop(self, state: Open) -> None:
        while True:
            frame = await state.outbox.get()
            state.in_flight = frame
            try:
                await state.socket.send(frame)
            except asyncio.CancelledError:
                raise
            except ConnectionClosed:
                # The read loop sees the close; the in-flight frame is reported there.
                return
            except Exception as e:
                if self._state is state:
                    self._report_lost_frame(frame, e)
            state.in_flight = None

    async def _handle_unexpected_close(self, state: Open, error: Exception | None) -> None:
        self._requeue_unsent(state)
        lost = state.in_flight
        state.in_flight = None
        self._state = Disconnected()
        await self._stop_io(state)
        await self._close_socket(state.socket)

        reason = sanitize_error_message(str(error)) if error else "connection closed"
        self._last_error = reason
        logger.warning(f"Connection to {self.masked_url} closed unexpectedly: {reason}")
        if lost is not None:
            self._report_lost_frame(lost, error)
        self._invoke(self.on_close, reason)
        if self._explicit_close:
            return
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        delay = self._backoff.next_delay()
        if delay is None:
            self._fire_fatal()
            return
        logger.info(
            f"Reconnecting to {self.masked_url} in {delay:g}s "
            f"(attempt {self._backoff.attempts}/{self.policy.max_attempts})"
        )
        self._reconnect_task = asyncio.create_task(self._reconnect_after(delay))

    async def _reconnect_after(self, delay: float) -> None:
        await self._sleep(delay)
        if self._explicit_close or not isinstance(self._state, Disconnected):
            return
        try:
            await self._open_connection()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._last_error = sanitize_error_message(str(e)) or type(e).__name__
            logger.warning(f"Reconnect attempt {self._backoff.attempts} failed: {self._last_error}")
            if not self._explicit_close:
                self._schedule_reconnect()

    def _fire_fatal(self) -> None:
        if self._fatal_fired:
            return
        self._fatal_fired = True
        attempts = self.policy.max_attempts
        logger.error(f"Giving up on {self.masked_url} after {attempts} reconnect attempts")
        self._invoke(self.on_fatal, TransportFatalError(attempts, self._last_error))

    def _cancel_reconnect(self) -> None:
        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    # -- helpers ----------------------------------------------------------

    def _requeue_unsent(self, state: Open) -> None:
        self._pending.extendleft(reversed(state.drain_outbox()))

    async def _stop_io(self, state: Open) -> None:
        current = asyncio.current_task()
        tasks = [t for t in (state.reader, state.writer) if t is not None and t is not current and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _close_socket(self, socket: SocketLike) -> None:
        try:
            await socket.close()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Ignoring error while closing socket: {e}")

    def _handle_frame(self, raw: str | bytes) -> None:
        try:
            message = parse_message(raw)
        except RpcProtocolError as e:
            logger.debug(f"Discarding non-protocol frame: {e.message}")
            return
        if self.on_message is not None:
            self._spawn(self._deliver(message))

    async def _deliver(self, message: RpcMessage) -> None:
        try:
            result = self.on_message(message)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Message handler failed: {sanitize_error_message(str(e))}")

    def _report_error(self, exc: Exception) -> None:
        logger.warning(f"Transport error: {exc}")
        self._invoke(self.on_error, exc)

    def _report_lost_frame(self, frame: str, cause: Exception | None) -> None:
        reason = sanitize_error_message(str(cause)) if cause else "connection closed"
        self._report_error(
            TransportError(
                f"Message lost while being written: {reason}",
                code="TRANSPORT_SEND_LOST",
                category=ErrorCategory.RETRYABLE,
                details={"frame_preview": frame[:200]},
            )
        )

    def _invoke(self, callback: Callback | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            result = callback(*args)
        except Exception as e:
            logger.error(f"Transport callback {getattr(callback, '__name__', callback)} failed: {e}")
            return
        if inspect.isawaitable(result):
            self._spawn(self._await_callback(result))

    async def _await_callback(self, awaitable: Awaitable[Any]) -> None:
        try:
            await awaitable
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Transport callback failed: {e}")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @staticmethod
    def _serialize(message: RpcMessage | dict[str, Any] | str) -> str:
        if isinstance(message, str):
            return message
        if isinstance(message, dict):
            return json.dumps(message, ensure_ascii=False)
        return encode_message(message)
