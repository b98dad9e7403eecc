"""JSON-RPC 2.0 envelope."""

from editorbridge.rpc.protocol import (
    JSONRPC_VERSION,
    RpcErrorObject,
    RpcErrorResponse,
    RpcMessage,
    RpcNotification,
    RpcRequest,
    RpcResponse,
)
from editorbridge.rpc.serialization import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    encode_message,
    make_error_response,
    parse_message,
    parse_payload,
)

__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "JSONRPC_VERSION",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "RpcErrorObject",
    "RpcErrorResponse",
    "RpcMessage",
    "RpcNotification",
    "RpcRequest",
    "RpcResponse",
    "encode_message",
    "make_error_response",
    "parse_message",
    "parse_payload",
]
