"""Dispatch and lifecycle for the bridge."""

from editorbridge.server.controller import BridgeController, register_default_tools
from editorbridge.server.dispatcher import PROTOCOL_VERSION, ToolDispatcher

__all__ = ["BridgeController", "PROTOCOL_VERSION", "ToolDispatcher", "register_default_tools"]
