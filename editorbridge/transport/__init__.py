"""Resilient outbound websocket transport."""

from editorbridge.transport.backoff import Backoff, ReconnectPolicy
from editorbridge.transport.state import (
    Closing,
    Connecting,
    ConnectionState,
    Disconnected,
    Open,
    Phase,
)
from editorbridge.transport.websocket import WebSocketTransport, websockets_connector

__all__ = [
    "Backoff",
    "Closing",
    "Connecting",
    "ConnectionState",
    "Disconnected",
    "Open",
    "Phase",
    "ReconnectPolicy",
    "WebSocketTransport",
    "websockets_connector",
]
