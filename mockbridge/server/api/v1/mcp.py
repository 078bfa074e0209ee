"""
MCP Bridge Endpoints.

Slug-addressed JSON-RPC 2.0 endpoint exposing a tool server's tools. Framing
is validated first, then the server is resolved for the caller, then the MCP
method is dispatched.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from mockbridge.core.database.repositories import ToolRepository, ToolServerRepository
from mockbridge.core.errors import MockBridgeError
from mockbridge.core.logging_config import get_logger
from mockbridge.rpc import (
    McpDispatcher,
    RpcError,
    normalize_slug,
    notification_ack,
    parse_rpc_request,
    require_slug,
    resolve_tool_server,
    rpc_error,
)
from mockbridge.server.core.config import settings
from mockbridge.server.services.deps import ExecutorDep, IdentityDep, SessionDep

logger = get_logger(__name__)

router = APIRouter()

NO_STORE_HEADERS = {"cache-control": "no-store"}


def _rpc_response(status: int, envelope: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status, content=envelope, headers=NO_STORE_HEADERS)


@router.get(
    "/{slug}",
    summary="MCP Endpoint Liveness",
    description="Confirm that the MCP endpoint for a server slug is reachable.",
    response_description="Liveness object.",
)
async def mcp_liveness(slug: str) -> JSONResponse:
    """Report the endpoint as running without resolving the server."""
    return JSONResponse(
        content={"ok": True, "slug": normalize_slug(slug), "message": "MCP endpoint is running"},
        headers=NO_STORE_HEADERS,
    )


@router.post(
    "/{slug}",
    summary="MCP JSON-RPC Call",
    description="Handle one JSON-RPC 2.0 request for the tool server addressed by slug.",
    response_description="JSON-RPC 2.0 response envelope.",
)
async def mcp_call(
    slug: str,
    request: Request,
    session: SessionDep,
    identity: IdentityDep,
    executor: ExecutorDep,
) -> JSONResponse:
    """
    Handle a JSON-RPC call.

    Notifications (requests without ``id``) are always acknowledged with
    ``result: null``; their failures are only logged.
    """
    try:
        rpc_request = parse_rpc_request(request.headers.get("content-type"), await request.body())
    except RpcError as e:
        logger.info(f"Rejected MCP request for {slug!r}: {e.message}")
        return _rpc_response(e.http_status, rpc_error(e.request_id, e.code, e.message, e.data))

    try:
        server_slug = require_slug(slug)
        servers = ToolServerRepository(session)
        server = await resolve_tool_server(servers, server_slug, identity)
    except RpcError as e:
        if rpc_request.is_notification:
            return _rpc_response(200, notification_ack())
        return _rpc_response(e.http_status, rpc_error(rpc_request.id, e.code, e.message, e.data))
    except MockBridgeError as e:
        if rpc_request.is_notification:
            logger.warning(f"Dropped notification {rpc_request.method} for {slug!r}: {e.message}")
            return _rpc_response(200, notification_ack())
        return _rpc_response(e.status_code, rpc_error(rpc_request.id, e.rpc_code, e.message))

    mcp = settings.mcp
    dispatcher = McpDispatcher(
        ToolRepository(session),
        servers,
        executor,
        protocol_version=mcp.protocol_version,
        server_version=mcp.server_version,
    )
    status, envelope = await dispatcher.handle(server, rpc_request)
    return _rpc_response(status, envelope)
