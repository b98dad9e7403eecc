"""Tests for JSON-RPC envelope parsing and error mapping."""

import json

import pytest

from editorbridge.rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    RpcErrorResponse,
    RpcNotification,
    RpcRequest,
    RpcResponse,
    encode_message,
    make_error_response,
    parse_message,
)
from editorbridge.rpc.error_boundary import (
    bridge_error_result,
    unhandled_exception_result,
    unknown_method_result,
)
from editorbridge.utils.exceptions import NotFoundError, RpcProtocolError, ToolError, ValidationError


def test_parse_request_and_notification() -> None:
    request = parse_message('{"jsonrpc": "2.0", "id": "a1", "method": "tools/list", "params": {}}')
    assert request == RpcRequest(id="a1", method="tools/list", params={})

    note = parse_message(b'{"jsonrpc": "2.0", "method": "notifications/initialized"}')
    assert isinstance(note, RpcNotification)
    assert note.params is None


def test_request_with_null_id_is_a_request() -> None:
    request = parse_message('{"jsonrpc": "2.0", "id": null, "method": "ping"}')
    assert request == RpcRequest(id=None, method="ping")
    assert encode_message(RpcResponse(id=None, result={})) == '{"jsonrpc": "2.0", "id": null, "result": {}}'


def test_parse_responses() -> None:
    ok = parse_message('{"jsonrpc": "2.0", "id": 4, "result": {"roots": []}}')
    assert ok == RpcResponse(id=4, result={"roots": []})

    err = parse_message('{"jsonrpc": "2.0", "id": null, "error": {"code": -32700, "message": "Parse error"}}')
    assert isinstance(err, RpcErrorResponse)
    assert err.id is None
    assert err.error.code == -32700


@pytest.mark.parametrize(
    "frame",
    [
        "{not json",
        "[]",
        '{"jsonrpc": "1.0", "id": 1, "method": "ping"}',
        '{"jsonrpc": "2.0", "id": 1}',
        '{"jsonrpc": "2.0", "id": 1, "method": "ping", "result": {}}',
        '{"jsonrpc": "2.0", "id": true, "method": "ping"}',
        '{"jsonrpc": "2.0", "id": 1, "method": "ping", "params": "x"}',
        '{"jsonrpc": "2.0", "id": 1, "error": {"code": "bad", "message": "m"}}',
        '{"jsonrpc": "2.0", "id": null, "result": {}}',
    ],
)
def test_invalid_envelopes_raise_protocol_error(frame: str) -> None:
    with pytest.raises(RpcProtocolError):
        parse_message(frame)


def test_encode_omits_absent_params() -> None:
    assert json.loads(encode_message(RpcRequest(id=1, method="ping"))) == {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "ping",
    }


def test_error_response_drops_invalid_id() -> None:
    response = make_error_response({"bad": "id"}, INTERNAL_ERROR, "oops")
    assert response.id is None
    assert response.to_dict()["error"] == {"code": INTERNAL_ERROR, "message": "oops"}


def test_unknown_method_result() -> None:
    warnings = []
    response = unknown_method_result(
        request_id=3, method="nope", log_warning=lambda *args: warnings.append(args)
    )
    assert response.error.code == METHOD_NOT_FOUND
    assert "nope" in response.error.message
    assert warnings


@pytest.mark.parametrize(
    "exc, code",
    [
        (ValidationError("bad args"), INVALID_PARAMS),
        (NotFoundError("Tool", "x"), INVALID_PARAMS),
        (ToolError("x", "broken"), INTERNAL_ERROR),
    ],
)
def test_bridge_error_mapping(exc, code: int) -> None:
    response = bridge_error_result(request_id=1, method="tools/call", exc=exc, log_warning=lambda *a: None)
    assert response.error.code == code
    assert response.error.data["error_code"] == exc.code


def test_unhandled_exception_is_sanitized() -> None:
    response = unhandled_exception_result(
        request_id=9,
        method="tools/list",
        exc=RuntimeError("boom token=abc123"),
        log_exception=lambda *a: None,
    )
    assert response.error.code == INTERNAL_ERROR
    assert response.error.message.startswith("Internal error: boom")
    assert "abc123" not in response.error.message
