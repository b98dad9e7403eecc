"""Connection states as a tagged variant.

Only ``Connecting`` and ``Open`` carry a socket; only ``Open`` carries the
writer queue, so queueing onto a closing connection cannot be expressed.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union


class Phase(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"


@dataclass(slots=True)
class Disconnected:
    phase: ClassVar[Phase] = Phase.DISCONNECTED


@dataclass(slots=True)
class Connecting:
    """Handshake in progress; ``socket`` is set once it completes and pending frames are flushing."""

    phase: ClassVar[Phase] = Phase.CONNECTING
    socket: Any = None


@dataclass(slots=True)
class Open:
    phase: ClassVar[Phase] = Phase.OPEN
    socket: Any
    outbox: asyncio.Queue = field(default_factory=asyncio.Queue)
    reader: asyncio.Task | None = None
    writer: asyncio.Task | None = None
    in_flight: str | None = None

    def drain_outbox(self) -> list[str]:
        """Frames handed to this connection but not yet taken by the writer."""
        frames = []
        while not self.outbox.empty():
            frames.append(self.outbox.get_nowait())
        return frames


@dataclass(slots=True)
class Closing:
    phase: ClassVar[Phase] = Phase.CLOSING
    socket: Any = None


ConnectionState = Union[Disconnected, Connecting, Open, Closing]
