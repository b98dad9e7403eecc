"""JSON-RPC 2.0 message frames carried one per websocket text frame."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

JSONRPC_VERSION = "2.0"

RequestId = Union[int, str]


@dataclass(slots=True)
class RpcErrorObject:
    """Error member of an error response."""

    code: int
    message: str
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            row["data"] = self.data
        return row


@dataclass(slots=True)
class RpcRequest:
    """Request frame; a reply with the same id (possibly null) is expected."""

    id: RequestId | None
    method: str
    params: Any = None

    def to_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id, "method": self.method}
        if self.params is not None:
            row["params"] = self.params
        return row


@dataclass(slots=True)
class RpcNotification:
    """Request frame without an id; never answered."""

    method: str
    params: Any = None

    def to_dict(self) -> dict[str, Any]:
        row: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": self.method}
        if self.params is not None:
            row["params"] = self.params
        return row


@dataclass(slots=True)
class RpcResponse:
    """Successful response frame."""

    id: RequestId | None
    result: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "result": self.result}


@dataclass(slots=True)
class RpcErrorResponse:
    """Error response frame. ``id`` is None when the request id could not be read."""

    id: RequestId | None
    error: RpcErrorObject

    def to_dict(self) -> dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "error": self.error.to_dict()}


RpcMessage = Union[RpcRequest, RpcNotification, RpcResponse, RpcErrorResponse]
