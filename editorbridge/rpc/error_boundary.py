"""Map dispatch failures onto JSON-RPC error responses."""

from __future__ import annotations

from typing import Any, Callable

from editorbridge.rpc.protocol import RpcErrorResponse
from editorbridge.rpc.serialization import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    make_error_response,
    method_not_found,
)
from editorbridge.utils.exceptions import (
    BridgeError,
    ErrorCategory,
    classify_exception,
    sanitize_error_message,
)

_PARAMS_CATEGORIES = {ErrorCategory.VALIDATION, ErrorCategory.NOT_FOUND}


def unknown_method_result(
    *,
    request_id: Any,
    method: str,
    log_warning: Callable[..., None],
) -> RpcErrorResponse:
    """Build the standard unknown-method response."""
    log_warning("RPC unknown method {}", method)
    return method_not_found(request_id, method)


def bridge_error_result(
    *,
    request_id: Any,
    method: str,
    exc: BridgeError,
    log_warning: Callable[..., None],
) -> RpcErrorResponse:
    """Validation-like failures become invalid params; the rest internal errors."""
    log_warning("RPC method {} failed with {}: {}", method, exc.code, exc.message)
    code = INVALID_PARAMS if exc.category in _PARAMS_CATEGORIES else INTERNAL_ERROR
    return make_error_response(
        request_id,
        code,
        sanitize_error_message(exc.message),
        {"error_code": exc.code, "category": exc.category.value},
    )


def unhandled_exception_result(
    *,
    request_id: Any,
    method: str,
    exc: Exception,
    log_exception: Callable[..., None],
) -> RpcErrorResponse:
    """Map unexpected exceptions to a sanitized internal error."""
    code, category, _ = classify_exception(exc)
    sanitized = sanitize_error_message(str(exc)) or type(exc).__name__
    log_exception("RPC method {} failed with [{}]: {}", method, code, sanitized)
    return make_error_response(
        request_id,
        INTERNAL_ERROR,
        f"Internal error: {sanitized}",
        {"error_code": code, "category": category.value},
    )
