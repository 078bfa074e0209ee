"""Unit tests for MCP method dispatch and tool-server resolution."""

import json
from typing import Callable

import httpx
import pytest

from mockbridge.core.database.entities import ServerAuthConfig, Tool, ToolServer
from mockbridge.core.database.repositories import ToolRepository, ToolServerRepository
from mockbridge.core.errors import (
    RPC_INVALID_PARAMS,
    RPC_METHOD_NOT_FOUND,
    InvalidCredentialError,
    MissingCredentialError,
    NotFoundError,
)
from mockbridge.core.models.domain import AuthType
from mockbridge.engine import CallerIdentity
from mockbridge.rpc import McpDispatcher, RpcRequest, resolve_tool_server
from mockbridge.tooling.executor import HttpToolExecutor
from mockbridge.tooling.schema_builder import build_input_schema

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def servers(in_memory_session) -> ToolServerRepository:
    return ToolServerRepository(in_memory_session)


@pytest.fixture
def tools(in_memory_session) -> ToolRepository:
    return ToolRepository(in_memory_session)


@pytest.fixture
async def server(servers) -> ToolServer:
    auth = ServerAuthConfig(server_id=0, auth_type=AuthType.bearer_token, bearer_token="tok")
    return await servers.create(
        ToolServer(tenant_id="t1", project_id="p1", name="Users API", slug="users", base_url="http://mock.upstream"),
        auth,
    )


@pytest.fixture
async def user_tool(tools, server) -> Tool:
    tool = Tool(server_id=server.id, name="get_user", description="Fetch", http_method="GET", path_template="/users/:id")
    tool.set_input_schema_dict(build_input_schema(path_params=["id"]))
    tool.set_mappings()
    return await tools.create(tool)


class _Upstream:
    def __init__(self) -> None:
        self.handler: Handler = lambda request: httpx.Response(200, json={"id": request.url.path.rsplit("/", 1)[-1]})
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


@pytest.fixture
def upstream() -> _Upstream:
    return _Upstream()


@pytest.fixture
async def dispatcher(tools, servers, upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
        yield McpDispatcher(tools, servers, HttpToolExecutor(client), protocol_version="2024-11-05", server_version="9.9")


def _call(method: str, params=None, request_id=1) -> RpcRequest:
    return RpcRequest(method=method, params={} if params is None else params, id=request_id)


class TestLifecycleMethods:
    async def test_initialize_defaults_protocol_version(self, dispatcher, server):
        status, envelope = await dispatcher.handle(server, _call("initialize"))
        assert status == 200
        result = envelope["result"]
        assert result["protocolVersion"] == "2024-11-05"
        assert result["capabilities"] == {"tools": {"listChanged": False}}
        assert result["serverInfo"] == {"name": "Users API", "version": "9.9"}

    async def test_initialize_echoes_requested_version(self, dispatcher, server):
        _, envelope = await dispatcher.handle(server, _call("initialize", {"protocolVersion": "2025-03-26"}))
        assert envelope["result"]["protocolVersion"] == "2025-03-26"

    async def test_ping(self, dispatcher, server):
        assert await dispatcher.handle(server, _call("ping", request_id="a")) == (
            200,
            {"jsonrpc": "2.0", "id": "a", "result": {}},
        )

    async def test_unknown_method(self, dispatcher, server):
        status, envelope = await dispatcher.handle(server, _call("resources/list"))
        assert status == 200
        assert envelope["error"]["code"] == RPC_METHOD_NOT_FOUND

    async def test_notifications_never_error(self, dispatcher, server):
        for method in ("notifications/initialized", "does/not/exist"):
            request = RpcRequest(method=method, params={}, is_notification=True)
            assert await dispatcher.handle(server, request) == (200, {"jsonrpc": "2.0", "id": None, "result": None})

    async def test_list_params_are_invalid(self, dispatcher, server):
        _, envelope = await dispatcher.handle(server, _call("ping", params=[1]))
        assert envelope["error"]["code"] == RPC_INVALID_PARAMS


class TestTools:
    async def test_list_skips_disabled(self, dispatcher, tools, server, user_tool):
        await tools.create(Tool(server_id=server.id, name="off", enabled=False))
        _, envelope = await dispatcher.handle(server, _call("tools/list"))
        listed = envelope["result"]["tools"]
        assert [tool["name"] for tool in listed] == ["get_user"]
        assert listed[0]["inputSchema"]["required"] == ["id"]

    async def test_call_success(self, dispatcher, server, user_tool, upstream):
        status, envelope = await dispatcher.handle(server, _call("tools/call", {"name": "get_user", "arguments": {"id": "7"}}))
        assert status == 200
        result = envelope["result"]
        assert result["isError"] is False
        assert result["structuredContent"] == {"id": "7"}
        assert json.loads(result["content"][0]["text"]) == {"id": "7"}
        assert upstream.requests[0].headers["authorization"] == "Bearer tok"

    async def test_call_upstream_error_is_tool_error(self, dispatcher, server, user_tool, upstream):
        upstream.handler = lambda request: httpx.Response(404, text="missing")
        _, envelope = await dispatcher.handle(server, _call("tools/call", {"name": "get_user", "arguments": {"id": "7"}}))
        assert envelope["result"] == {"content": [{"type": "text", "text": "missing"}], "isError": True}

    async def test_transport_failure_is_tool_error(self, dispatcher, server, user_tool, upstream):
        def _boom(request):
            raise httpx.ConnectError("refused", request=request)

        upstream.handler = _boom
        _, envelope = await dispatcher.handle(server, _call("tools/call", {"name": "get_user", "arguments": {"id": "7"}}))
        assert envelope["result"]["isError"] is True
        assert "refused" in envelope["result"]["content"][0]["text"]

    async def test_schema_violation_is_invalid_params(self, dispatcher, server, user_tool, upstream):
        _, envelope = await dispatcher.handle(server, _call("tools/call", {"name": "get_user", "arguments": {"id": {"nested": 5}}}))
        assert envelope["error"]["code"] == RPC_INVALID_PARAMS
        assert envelope["error"]["data"] == {"path": ["id"]}
        assert upstream.requests == []

    async def test_integer_path_argument_reaches_upstream(self, dispatcher, server, user_tool, upstream):
        status, envelope = await dispatcher.handle(server, _call("tools/call", {"name": "get_user", "arguments": {"id": 42}}))
        assert status == 200
        assert envelope["result"]["isError"] is False
        assert upstream.requests[0].url.path == "/users/42"

    async def test_typed_path_parameter_is_enforced(self, dispatcher, tools, server, upstream):
        tool = Tool(server_id=server.id, name="get_pet", http_method="GET", path_template="/pets/{petId}")
        tool.set_input_schema_dict(build_input_schema(path_params=[{"name": "petId", "type": "integer"}]))
        tool.set_mappings()
        await tools.create(tool)

        _, ok = await dispatcher.handle(server, _call("tools/call", {"name": "get_pet", "arguments": {"petId": 7}}))
        assert ok["result"]["isError"] is False
        assert upstream.requests[0].url.path == "/pets/7"

        _, rejected = await dispatcher.handle(server, _call("tools/call", {"name": "get_pet", "arguments": {"petId": "seven"}}))
        assert rejected["error"]["code"] == RPC_INVALID_PARAMS
        assert len(upstream.requests) == 1

    async def test_missing_required_argument(self, dispatcher, server, user_tool):
        _, envelope = await dispatcher.handle(server, _call("tools/call", {"name": "get_user"}))
        assert envelope["error"]["code"] == RPC_INVALID_PARAMS
        assert "'id' is a required property" in envelope["error"]["message"]

    async def test_unknown_tool(self, dispatcher, server):
        status, envelope = await dispatcher.handle(server, _call("tools/call", {"name": "nope"}))
        assert status == 200
        assert envelope["error"]["code"] == RPC_INVALID_PARAMS
        assert envelope["error"]["message"] == "Unknown tool: nope"

    async def test_arguments_must_be_an_object(self, dispatcher, server, user_tool):
        _, envelope = await dispatcher.handle(server, _call("tools/call", {"name": "get_user", "arguments": [1]}))
        assert envelope["error"]["code"] == RPC_INVALID_PARAMS


class TestResolveToolServer:
    async def test_scoped(self, servers, server):
        found = await resolve_tool_server(servers, "users", CallerIdentity(tenant_id="t1", project_id="p1"))
        assert found.id == server.id

    async def test_scoped_miss_does_not_fall_back(self, servers, server):
        with pytest.raises(NotFoundError):
            await resolve_tool_server(servers, "users", CallerIdentity(tenant_id="t2", project_id="p2"))

    async def test_api_key(self, servers):
        keyed = await servers.create(
            ToolServer(tenant_id="t1", project_id="p1", name="K", slug="keyed", require_api_key=True, api_key="sk")
        )
        assert (await resolve_tool_server(servers, "keyed", CallerIdentity(api_key="sk"))).id == keyed.id
        with pytest.raises(NotFoundError):
            await resolve_tool_server(servers, "other", CallerIdentity(api_key="sk"))
        with pytest.raises(InvalidCredentialError):
            await resolve_tool_server(servers, "keyed", CallerIdentity(api_key="wrong"))
        with pytest.raises(MissingCredentialError):
            await resolve_tool_server(servers, "keyed", CallerIdentity())

    async def test_public(self, servers, server):
        assert (await resolve_tool_server(servers, "users", CallerIdentity())).id == server.id
