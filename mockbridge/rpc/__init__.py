"""JSON-RPC 2.0 bridge exposing tool servers as MCP endpoints."""

from .dispatcher import McpDispatcher, resolve_tool_server, tool_call_content
from .framing import (
    RpcError,
    RpcRequest,
    normalize_slug,
    notification_ack,
    parse_rpc_request,
    require_slug,
    rpc_error,
    rpc_result,
)

__all__ = [
    "McpDispatcher",
    "RpcError",
    "RpcRequest",
    "normalize_slug",
    "notification_ack",
    "parse_rpc_request",
    "require_slug",
    "resolve_tool_server",
    "rpc_error",
    "rpc_result",
    "tool_call_content",
]
