"""Error types shared by the mock engine, the tool bridge and the HTTP surface.

Purpose:
- Provide one typed exception per failure kind so that resolution, rendering
  and tool execution can fail with a specific, named error.
- Carry both transports' views of the failure: the HTTP status used by the mock
  and admin endpoints, and the JSON-RPC error code used by the bridge.

Usage:
- Catch ``MockBridgeError`` for any domain failure and read ``status_code`` or
  ``rpc_code``.
- The FastAPI exception handlers render these as ``{"error": message}``.
"""

from __future__ import annotations

from typing import Any, Optional

# JSON-RPC 2.0 reserved codes
RPC_PARSE_ERROR = -32700
RPC_INVALID_REQUEST = -32600
RPC_METHOD_NOT_FOUND = -32601
RPC_INVALID_PARAMS = -32602
RPC_INTERNAL_ERROR = -32603

# Server-defined band (-32000 .. -32099)
RPC_MISSING_API_KEY = -32000
RPC_INVALID_API_KEY = -32001
RPC_SERVER_NOT_FOUND = -32004


class MockBridgeError(Exception):
    """Base error for domain failures.

    Args:
        message: Human-readable error description.
        details: Optional structured payload describing the failure.
    """

    status_code: int = 500
    rpc_code: int = RPC_INTERNAL_ERROR

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class MethodNotAllowedError(MockBridgeError):
    """The HTTP method is outside the supported set."""

    status_code = 405

    def __init__(self, method: str) -> None:
        super().__init__("Method not allowed", details={"method": method})
        self.method = method


class MissingCredentialError(MockBridgeError):
    """No session and no API key, and nothing public matched."""

    status_code = 401
    rpc_code = RPC_MISSING_API_KEY

    def __init__(self, message: str = "Missing API key") -> None:
        super().__init__(message)


class InvalidCredentialError(MockBridgeError):
    """An API key was supplied but is not bound to any enabled definition."""

    status_code = 401
    rpc_code = RPC_INVALID_API_KEY

    def __init__(self, message: str = "Invalid API key") -> None:
        super().__init__(message)


class NotFoundError(MockBridgeError):
    """No route, server or record matches the request."""

    status_code = 404
    rpc_code = RPC_SERVER_NOT_FOUND


class ConflictError(MockBridgeError):
    """A unique constraint (dataset key, tool name, slug, API key) was violated."""

    status_code = 409


class ValidationError(MockBridgeError):
    """Malformed caller input or a missing required field."""

    status_code = 400
    rpc_code = RPC_INVALID_PARAMS


class InvalidPathPatternError(ValidationError):
    """A route path pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid path pattern {pattern!r}: {reason}", details={"pattern": pattern})
        self.pattern = pattern
        self.reason = reason


class OpenApiParseError(ValidationError):
    """An OpenAPI document could not be parsed as JSON or YAML."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class InternalRenderError(MockBridgeError):
    """Stored response or dataset content fails to parse as declared."""

    status_code = 500
    rpc_code = RPC_INTERNAL_ERROR


class ToolExecutionError(MockBridgeError):
    """The outbound request of a tool could not be performed."""

    status_code = 502

    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        super().__init__(message, details={"url": url} if url else None)
        self.url = url
