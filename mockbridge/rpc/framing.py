"""JSON-RPC 2.0 framing for the slug-addressed tool bridge.

Purpose:
- Validate one HTTP request as a JSON-RPC 2.0 envelope before anything else
  happens: media type (415), JSON syntax (400, -32700), envelope shape
  (400, -32600).
- Build success and error envelopes.

Usage:
- ``parse_rpc_request(content_type, body)`` returns an ``RpcRequest`` or raises
  ``RpcError`` carrying the JSON-RPC code and the HTTP status to answer with.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from mockbridge.core.errors import (
    RPC_INVALID_PARAMS,
    RPC_INVALID_REQUEST,
    RPC_PARSE_ERROR,
)

JSONRPC_VERSION = "2.0"
JSON_MEDIA_TYPE = "application/json"
SLUG_MAX_LENGTH = 60


class RpcError(Exception):
    """A JSON-RPC failure with the HTTP status it is answered with.

    Args:
        code: JSON-RPC error code.
        message: Human-readable error description.
        http_status: HTTP status of the response carrying the error envelope.
        data: Optional structured payload placed in ``error.data``.
        request_id: Id of the request being answered, when known.
    """

    def __init__(
        self,
        code: int,
        message: str,
        *,
        http_status: int = 200,
        data: Optional[Any] = None,
        request_id: Any = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.data = data
        self.request_id = request_id


@dataclass
class RpcRequest:
    method: str
    params: Any = field(default_factory=dict)
    id: Any = None
    is_notification: bool = False


def rpc_result(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(request_id: Any, code: int, message: str, data: Optional[Any] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def notification_ack() -> Dict[str, Any]:
    """Acknowledgement of a notification; never carries an error."""
    return {"jsonrpc": JSONRPC_VERSION, "id": None, "result": None}


def media_type(content_type: Optional[str]) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def _valid_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return value is None or isinstance(value, (str, int, float))


def parse_rpc_request(content_type: Optional[str], body: bytes) -> RpcRequest:
    """Validate and decode one JSON-RPC 2.0 request.

    Args:
        content_type: ``Content-Type`` header value; parameters are ignored
        body: Raw request body

    Returns:
        The decoded request; ``is_notification`` is set when ``id`` is absent

    Raises:
        RpcError: 415/-32700 for a non-JSON media type, 400/-32700 for invalid
            JSON, 400/-32600 for a malformed envelope
    """
    if media_type(content_type) != JSON_MEDIA_TYPE:
        raise RpcError(RPC_PARSE_ERROR, "Content-Type must be application/json", http_status=415)

    try:
        payload = json.loads(body or b"")
    except ValueError as e:
        raise RpcError(RPC_PARSE_ERROR, "Parse error: Invalid JSON body", http_status=400) from e

    if not isinstance(payload, dict):
        raise RpcError(RPC_INVALID_REQUEST, "Invalid JSON-RPC 2.0 request", http_status=400)

    has_id = "id" in payload
    request_id = payload.get("id") if has_id and _valid_id(payload.get("id")) else None
    method = payload.get("method")
    if payload.get("jsonrpc") != JSONRPC_VERSION or not isinstance(method, str) or not method:
        raise RpcError(RPC_INVALID_REQUEST, "Invalid JSON-RPC 2.0 request", http_status=400, request_id=request_id)
    if has_id and not _valid_id(payload.get("id")):
        raise RpcError(RPC_INVALID_REQUEST, "Invalid JSON-RPC 2.0 request id", http_status=400)

    params = payload.get("params")
    if params is not None and not isinstance(params, (dict, list)):
        raise RpcError(RPC_INVALID_REQUEST, "params must be an object or array", http_status=400, request_id=request_id)

    return RpcRequest(
        method=method,
        params=params if params is not None else {},
        id=request_id,
        is_notification=not has_id,
    )


def normalize_slug(value: Optional[str]) -> str:
    """Lower-case, collapse non-alphanumerics to ``-``, trim dashes, cap at 60 characters."""
    slug = re.sub(r"[^a-z0-9]+", "-", str(value or "").lower().strip()).strip("-")
    return slug[:SLUG_MAX_LENGTH]


def require_slug(value: Optional[str]) -> str:
    """Normalized slug, or -32602 / HTTP 400 when nothing usable remains."""
    slug = normalize_slug(value)
    if not slug:
        raise RpcError(RPC_INVALID_PARAMS, "Invalid MCP server slug", http_status=400)
    return slug
