"""MCP method dispatch over JSON-RPC.

Overview
--------
``resolve_tool_server`` picks the tool server answering a slug with the same
credential precedence used for mock routes. ``McpDispatcher`` then answers the
MCP methods this bridge supports:

- ``initialize``: protocol version (echoed or default), capabilities, server info
- ``ping``: empty result
- ``tools/list``: enabled tools with their input schemas
- ``tools/call``: argument validation, then the outbound HTTP call
- ``notifications/*``: accepted without a result

Tool results follow the MCP shape ``{content: [{type: "text", text}],
structuredContent?, isError}``; upstream error statuses and transport failures
become ``isError: true`` results rather than JSON-RPC errors.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from jsonschema import SchemaError
from jsonschema.validators import Draft202012Validator, validator_for

from mockbridge.core.database.entities import ToolServer
from mockbridge.core.database.repositories import ToolRepository, ToolServerRepository
from mockbridge.core.errors import (
    RPC_INTERNAL_ERROR,
    RPC_INVALID_PARAMS,
    RPC_METHOD_NOT_FOUND,
    MockBridgeError,
    ToolExecutionError,
)
from mockbridge.core.logging_config import get_logger
from mockbridge.engine.resolution import CallerIdentity, resolve_with_precedence
from mockbridge.tooling.executor import HttpToolExecutor, ToolCallResult

from .framing import RpcError, RpcRequest, notification_ack, rpc_error, rpc_result

logger = get_logger(__name__)

DEFAULT_PROTOCOL_VERSION = "2024-11-05"
NOTIFICATION_PREFIX = "notifications/"

Handler = Callable[[ToolServer, Dict[str, Any]], Awaitable[Any]]


async def resolve_tool_server(
    repository: ToolServerRepository, slug: str, identity: CallerIdentity
) -> ToolServer:
    """Pick the enabled server answering ``slug`` for ``identity``.

    Raises:
        NotFoundError, InvalidCredentialError, MissingCredentialError: see ``resolve_with_precedence``
    """

    async def scoped(tenant_id: str, project_id: str) -> Optional[ToolServer]:
        return await repository.get_enabled_for_scope(tenant_id, project_id, slug)

    async def public() -> Optional[ToolServer]:
        return await repository.get_enabled_public(slug)

    return await resolve_with_precedence(
        identity,
        scoped_lookup=scoped,
        key_lookup=repository.get_enabled_by_api_key,
        key_matches=lambda server: server if server.slug == slug else None,
        public_lookup=public,
        subject="server",
    )


def tool_call_content(result: ToolCallResult) -> Dict[str, Any]:
    """Map an upstream response onto an MCP tool result."""
    content: Dict[str, Any] = {
        "content": [{"type": "text", "text": result.raw_body}],
        "isError": result.is_error,
    }
    if isinstance(result.json, dict):
        content["structuredContent"] = result.json
    return content


class McpDispatcher:
    """Answer MCP methods for one resolved tool server."""

    def __init__(
        self,
        tools: ToolRepository,
        servers: ToolServerRepository,
        executor: HttpToolExecutor,
        *,
        protocol_version: str = DEFAULT_PROTOCOL_VERSION,
        server_version: str = "0.1.0",
    ) -> None:
        self.tools = tools
        self.servers = servers
        self.executor = executor
        self.protocol_version = protocol_version
        self.server_version = server_version
        self._handlers: Dict[str, Handler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    async def handle(self, server: ToolServer, request: RpcRequest) -> Tuple[int, Dict[str, Any]]:
        """Dispatch ``request`` and build the HTTP status and JSON-RPC envelope.

        Notifications are processed but always acknowledged without an error.
        """
        if request.is_notification:
            try:
                await self.dispatch(server, request.method, request.params)
            except Exception as e:  # noqa: BLE001
                logger.warning(f"Notification {request.method} on server {server.slug} failed: {e}")
            return 200, notification_ack()

        try:
            result = await self.dispatch(server, request.method, request.params)
        except RpcError as e:
            return e.http_status, rpc_error(request.id, e.code, e.message, e.data)
        except MockBridgeError as e:
            return e.status_code, rpc_error(request.id, e.rpc_code, e.message, e.details)
        except Exception:
            logger.error(f"Unexpected failure dispatching {request.method} on server {server.slug}", exc_info=True)
            return 500, rpc_error(request.id, RPC_INTERNAL_ERROR, "Internal MCP server error")
        return 200, rpc_result(request.id, result)

    async def dispatch(self, server: ToolServer, method: str, params: Any) -> Any:
        """Run one MCP method and return its result.

        Raises:
            RpcError: -32601 for unknown methods, -32602 for invalid params
        """
        if method.startswith(NOTIFICATION_PREFIX):
            logger.debug(f"Accepted {method} for server {server.slug}")
            return None
        handler = self._handlers.get(method)
        if handler is None:
            raise RpcError(RPC_METHOD_NOT_FOUND, f"Method not found: {method}")
        if not isinstance(params, dict):
            raise RpcError(RPC_INVALID_PARAMS, "params must be an object")
        return await handler(server, params)

    async def _initialize(self, server: ToolServer, params: Dict[str, Any]) -> Dict[str, Any]:
        requested = params.get("protocolVersion")
        return {
            "protocolVersion": requested if isinstance(requested, str) and requested else self.protocol_version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": server.name or server.slug, "version": self.server_version},
        }

    async def _ping(self, server: ToolServer, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _tools_list(self, server: ToolServer, params: Dict[str, Any]) -> Dict[str, Any]:
        tools = await self.tools.list_enabled(server.id)
        return {
            "tools": [
                {"name": tool.name, "description": tool.description or "", "inputSchema": tool.get_input_schema_dict()}
                for tool in tools
            ]
        }

    async def _tools_call(self, server: ToolServer, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name.strip():
            raise RpcError(RPC_INVALID_PARAMS, "params.name is required")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise RpcError(RPC_INVALID_PARAMS, "params.arguments must be an object")

        tool = await self.tools.get_enabled_by_name(server.id, name)
        if tool is None:
            raise RpcError(RPC_INVALID_PARAMS, f"Unknown tool: {name}")

        self._validate_arguments(tool.name, tool.get_input_schema_dict(), arguments)

        auth_config = await self.servers.get_auth_config(server.id)
        try:
            result = await self.executor.execute(tool, arguments, auth_config, server.base_url)
        except ToolExecutionError as e:
            return {"content": [{"type": "text", "text": e.message}], "isError": True}

        logger.info(f"Tool {tool.name} on server {server.slug} returned status {result.status}")
        return tool_call_content(result)

    @staticmethod
    def _validate_arguments(tool_name: str, schema: Dict[str, Any], arguments: Dict[str, Any]) -> None:
        if not schema:
            return
        validator_cls = validator_for(schema, default=Draft202012Validator)
        try:
            validator_cls.check_schema(schema)
        except SchemaError as e:
            raise RpcError(RPC_INTERNAL_ERROR, f"Tool {tool_name} has an invalid input schema", http_status=500) from e
        error = next(iter(validator_cls(schema).iter_errors(arguments)), None)
        if error is not None:
            raise RpcError(
                RPC_INVALID_PARAMS,
                f"Invalid arguments for tool {tool_name}: {error.message}",
                data={"path": list(error.absolute_path)},
            )
