"""
Exception hierarchy and error handling utilities for editorbridge.

Provides:
- Custom exception classes with error codes
- Error categorization (recoverable, retryable, fatal)
- Safe error message formatting (no credential leak)
"""

from __future__ import annotations

import asyncio
import json
import re
from enum import Enum
from typing import Any


class ErrorCategory(Enum):
    """Error categories for classification."""
    RECOVERABLE = "recoverable"
    RETRYABLE = "retryable"
    FATAL = "fatal"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERMISSION = "permission"
    TIMEOUT = "timeout"
    PROTOCOL = "protocol"


class BridgeError(Exception):
    """Base exception for all editorbridge errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        category: ErrorCategory = ErrorCategory.FATAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ValidationError(BridgeError):
    """Arguments or config values rejected before any work was done."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            category=ErrorCategory.VALIDATION,
            details={"field": field} if field else {},
        )
        self.field = field


class NotFoundError(BridgeError):
    """A named tool, request or resource is not registered."""

    def __init__(self, kind: str, name: str):
        super().__init__(
            f"{kind} not found: {name}",
            code="NOT_FOUND",
            category=ErrorCategory.NOT_FOUND,
            details={"kind": kind, "name": name},
        )


class TimeoutError(BridgeError):
    """An outbound request got no answer in time."""

    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            f"'{operation}' got no answer within {timeout_seconds:g}s",
            code="TIMEOUT",
            category=ErrorCategory.TIMEOUT,
            details={"operation": operation, "timeout_seconds": timeout_seconds},
        )


class ToolError(BridgeError):
    """A tool could not complete; reported to the client as an error result."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(
            f"{tool_name}: {message}",
            code="TOOL_ERROR",
            category=ErrorCategory.RECOVERABLE,
            details={"tool_name": tool_name},
        )


class PatchNotFoundError(BridgeError):
    """Search content matched none of the patch strategies; the document is unchanged."""

    def __init__(self, message: str | None = None, strategies: list[str] | None = None):
        super().__init__(
            message
            or (
                "Could not find the specified content in the file. "
                "The search content does not match any part of the file."
            ),
            code="PATCH_NOT_FOUND",
            category=ErrorCategory.RECOVERABLE,
            details={"strategies_tried": list(strategies or [])},
        )


class RpcProtocolError(BridgeError):
    """Inbound frame does not match the JSON-RPC envelope."""

    def __init__(self, message: str, raw: Any = None):
        preview = raw[:200] if isinstance(raw, str) else None
        super().__init__(
            message,
            code="RPC_PROTOCOL_ERROR",
            category=ErrorCategory.PROTOCOL,
            details={"preview": preview} if preview else {},
        )


class RpcRemoteError(BridgeError):
    """The client answered one of our requests with an error response."""

    def __init__(self, method: str, code: int, message: str, data: Any = None):
        super().__init__(
            f"Request '{method}' failed [{code}]: {message}",
            code="RPC_REMOTE_ERROR",
            category=ErrorCategory.PROTOCOL,
            details={"rpc_code": code, "data": data},
        )
        self.rpc_code = code


class TransportError(BridgeError):
    """Base class for connection level failures."""


class TransportConnectError(TransportError):
    """The connection could not be established (initial start or a reconnect attempt)."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            f"Failed to connect to {mask_url_token(url)}: {reason}",
            code="TRANSPORT_CONNECT_FAILED",
            category=ErrorCategory.FATAL,
            details={"url": mask_url_token(url)},
        )


class TransportFatalError(TransportError):
    """Reconnection gave up; the bridge is down until restarted."""

    def __init__(self, attempts: int, last_error: str | None = None):
        message = f"Gave up reconnecting after {attempts} attempts"
        if last_error:
            message += f": {last_error}"
        super().__init__(
            message,
            code="TRANSPORT_FATAL",
            category=ErrorCategory.FATAL,
            details={"attempts": attempts, "last_error": last_error},
        )


class TransportClosedError(TransportError):
    """Send attempted while the transport is shutting down."""

    def __init__(self, state: str):
        super().__init__(
            f"Transport is {state}; message not accepted",
            code="TRANSPORT_CLOSED",
            category=ErrorCategory.FATAL,
            details={"state": state},
        )


_SENSITIVE_PATTERNS = [
    re.compile(r"(api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?([^\s'\"&]+)['\"]?", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"sk-[a-zA-Z0-9]{20,}"),
    re.compile(r"[a-zA-Z0-9]{40,}"),
]

_TOKEN_QUERY = re.compile(r"token=[^&]+")


def sanitize_error_message(message: str, replacement: str = "[REDACTED]") -> str:
    """Remove sensitive information from error messages."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def mask_url_token(url: str) -> str:
    """Mask the credential query parameter of a connection URL for logging."""
    return _TOKEN_QUERY.sub("token=***", url)


def classify_exception(exc: Exception) -> tuple[str, ErrorCategory, bool]:
    """
    Classify an exception and return (error_code, category, should_retry).

    Returns:
        Tuple of (error_code, category, should_retry)
    """
    exc_str = str(exc).lower()

    if isinstance(exc, BridgeError):
        return exc.code, exc.category, exc.category is ErrorCategory.RETRYABLE

    if isinstance(exc, FileNotFoundError):
        return "FILE_NOT_FOUND", ErrorCategory.NOT_FOUND, False

    if isinstance(exc, (IsADirectoryError, NotADirectoryError)):
        return "INVALID_PATH", ErrorCategory.VALIDATION, False

    if isinstance(exc, PermissionError):
        return "PERMISSION_DENIED", ErrorCategory.PERMISSION, False

    if isinstance(exc, asyncio.TimeoutError):
        return "TIMEOUT", ErrorCategory.TIMEOUT, True

    if isinstance(exc, ConnectionError):
        return "CONNECTION_ERROR", ErrorCategory.RETRYABLE, True

    if isinstance(exc, json.JSONDecodeError):
        return "JSON_PARSE_ERROR", ErrorCategory.VALIDATION, False

    if isinstance(exc, UnicodeDecodeError):
        return "DECODE_ERROR", ErrorCategory.VALIDATION, False

    if isinstance(exc, ValueError):
        return "INVALID_VALUE", ErrorCategory.VALIDATION, False

    if isinstance(exc, KeyError):
        return "MISSING_KEY", ErrorCategory.VALIDATION, False

    if isinstance(exc, TypeError):
        return "TYPE_ERROR", ErrorCategory.VALIDATION, False

    if "timeout" in exc_str or "timed out" in exc_str:
        return "TIMEOUT", ErrorCategory.TIMEOUT, True

    if "not found" in exc_str:
        return "NOT_FOUND", ErrorCategory.NOT_FOUND, False

    if "permission" in exc_str or "forbidden" in exc_str:
        return "PERMISSION_DENIED", ErrorCategory.PERMISSION, False

    if "connection" in exc_str or "network" in exc_str:
        return "CONNECTION_ERROR", ErrorCategory.RETRYABLE, True

    return "INTERNAL_ERROR", ErrorCategory.FATAL, False
