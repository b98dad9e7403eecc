"""Decode, validate and encode JSON-RPC 2.0 frames."""

from __future__ import annotations

import json
from typing import Any

from editorbridge.rpc.protocol import (
    JSONRPC_VERSION,
    RpcErrorObject,
    RpcErrorResponse,
    RpcMessage,
    RpcNotification,
    RpcRequest,
    RpcResponse,
)
from editorbridge.utils.exceptions import RpcProtocolError

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

_BODY_KEYS = ("method", "result", "error")


def safe_dict(value: Any) -> dict[str, Any]:
    """Return the value when dict-like, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def _is_valid_id(value: Any) -> bool:
    return isinstance(value, (int, str)) and not isinstance(value, bool)


def _parse_error_object(value: Any, raw: Any) -> RpcErrorObject:
    if not isinstance(value, dict):
        raise RpcProtocolError("error member must be an object", raw)
    code = value.get("code")
    message = value.get("message")
    if not isinstance(code, int) or isinstance(code, bool):
        raise RpcProtocolError("error.code must be an integer", raw)
    if not isinstance(message, str):
        raise RpcProtocolError("error.message must be a string", raw)
    return RpcErrorObject(code=code, message=message, data=value.get("data"))


def parse_payload(payload: Any, raw: Any = None) -> RpcMessage:
    """
    Validate an already decoded JSON value against the envelope.

    Raises:
        RpcProtocolError: when the value is not exactly one JSON-RPC 2.0 message.
    """
    raw = payload if raw is None else raw
    if not isinstance(payload, dict):
        raise RpcProtocolError("message must be a JSON object", raw)
    if payload.get("jsonrpc") != JSONRPC_VERSION:
        raise RpcProtocolError("jsonrpc must be '2.0'", raw)

    present = [key for key in _BODY_KEYS if key in payload]
    if len(present) != 1:
        raise RpcProtocolError("message must carry exactly one of method, result or error", raw)
    body = present[0]
    has_id = "id" in payload
    msg_id = payload.get("id")

    if body == "method":
        method = payload["method"]
        if not isinstance(method, str) or not method:
            raise RpcProtocolError("method must be a non-empty string", raw)
        params = payload.get("params")
        if params is not None and not isinstance(params, (dict, list)):
            raise RpcProtocolError("params must be an object or array", raw)
        if not has_id:
            return RpcNotification(method=method, params=params)
        # null is a legal request id; the reply echoes it
        if msg_id is not None and not _is_valid_id(msg_id):
            raise RpcProtocolError("id must be an integer, string or null", raw)
        return RpcRequest(id=msg_id, method=method, params=params)

    if body == "result":
        if not _is_valid_id(msg_id):
            raise RpcProtocolError("response id must be an integer or string", raw)
        return RpcResponse(id=msg_id, result=payload["result"])

    if msg_id is not None and not _is_valid_id(msg_id):
        raise RpcProtocolError("response id must be an integer, string or null", raw)
    return RpcErrorResponse(id=msg_id, error=_parse_error_object(payload["error"], raw))


def parse_message(raw: str | bytes) -> RpcMessage:
    """Decode one text frame into a message."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RpcProtocolError(f"frame is not valid UTF-8: {e}") from e
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as e:
        raise RpcProtocolError(f"frame is not valid JSON: {e.msg}", raw) from e
    return parse_payload(payload, raw)


def encode_message(message: RpcMessage) -> str:
    """Encode a message into one JSON text frame."""
    return json.dumps(message.to_dict(), ensure_ascii=False)


def make_error_response(
    request_id: Any,
    code: int,
    message: str,
    data: Any = None,
) -> RpcErrorResponse:
    return RpcErrorResponse(
        id=request_id if _is_valid_id(request_id) else None,
        error=RpcErrorObject(code=code, message=message, data=data),
    )


def method_not_found(request_id: Any, method: str) -> RpcErrorResponse:
    return make_error_response(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")


