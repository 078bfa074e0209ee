"""Unit tests for outbound tool execution."""

import base64
import json
from typing import List

import httpx
import pytest

from mockbridge.core.database.entities import ServerAuthConfig, Tool
from mockbridge.core.errors import ToolExecutionError
from mockbridge.core.models.domain import AuthType
from mockbridge.tooling.executor import (
    HttpToolExecutor,
    apply_path_template,
    auth_headers,
    build_body,
    build_headers,
    build_query_params,
    build_url,
)


def _tool(**fields) -> Tool:
    data = {"id": 1, "server_id": 1, "name": "t", "http_method": "GET", "path_template": "/"}
    data.update(fields)
    return Tool(**data)


class TestPathTemplate:
    def test_colon_and_brace_tokens(self):
        assert apply_path_template("/users/:id/orders/{orderId}", {"id": 42, "orderId": "a b"}) == "/users/42/orders/a%20b"

    def test_missing_argument_keeps_token(self):
        assert apply_path_template("/users/:id/{x}", {"id": None}) == "/users/:id/{x}"

    def test_values_are_fully_encoded(self):
        assert apply_path_template("/files/:name", {"name": "a/b?c"}) == "/files/a%2Fb%3Fc"

    def test_empty_template_is_root(self):
        assert apply_path_template(None, {}) == "/"


class TestRequestFragments:
    def test_query_skips_missing_and_null(self):
        pairs = build_query_params({"q": "term", "page": "p", "x": "missing"}, {"term": "hi", "p": None})
        assert pairs == [("q", "hi")]

    def test_query_stringifies(self):
        assert build_query_params({"flag": "f", "n": "n"}, {"f": True, "n": 3}) == [("flag", "true"), ("n", "3")]

    def test_body_empty_mapping_forwards_all(self):
        assert build_body({}, {"a": 1}, "POST") == {"a": 1}
        assert build_body({}, {}, "POST") is None

    def test_body_mapping_copies_supplied_only(self):
        assert build_body({"title": "t", "n": "n"}, {"t": "x"}, "PUT") == {"title": "x"}

    @pytest.mark.parametrize("method", ["GET", "head"])
    def test_bodyless_methods(self, method):
        assert build_body({}, {"a": 1}, method) is None

    def test_headers_static_and_from_arg(self):
        headers = build_headers({"X-Static": "s", "X-Arg": {"fromArg": "trace"}, "X-None": {"fromArg": "nope"}}, {"trace": 7})
        assert headers["x-static"] == "s"
        assert headers["x-arg"] == "7"
        assert "x-none" not in headers

    def test_auth_headers_override_tool_headers_case_insensitively(self):
        auth = ServerAuthConfig(server_id=1, auth_type=AuthType.bearer_token, bearer_token="tok")
        headers = build_headers({"authorization": "mine"}, {}, auth)
        assert headers["Authorization"] == "Bearer tok"
        assert headers.get_list("authorization") == ["Bearer tok"]

    def test_auth_header_kinds(self):
        api_key = ServerAuthConfig(server_id=1, auth_type=AuthType.api_key_header, api_key_value="k")
        assert auth_headers(api_key) == {"X-API-Key": "k"}

        basic = ServerAuthConfig(server_id=1, auth_type=AuthType.basic, basic_username="u", basic_password="p")
        assert auth_headers(basic) == {"Authorization": "Basic " + base64.b64encode(b"u:p").decode()}

        extra = ServerAuthConfig(server_id=1, auth_type=AuthType.none)
        extra.set_extra_headers_dict({"X-Tenant": "acme"})
        assert auth_headers(extra) == {"X-Tenant": "acme"}
        assert auth_headers(None) == {}

    def test_url_join_and_query(self):
        assert build_url("http://mock.api/", "users", [("q", "a b")]) == "http://mock.api/users?q=a+b"
        assert build_url("http://mock.api", "/x", []) == "http://mock.api/x"

    def test_url_api_key_query(self):
        auth = ServerAuthConfig(server_id=1, auth_type=AuthType.api_key_query, api_key_query_value="s3")
        assert build_url("http://mock.api", "/x", [("a", "1")], auth) == "http://mock.api/x?a=1&api_key=s3"


class _Recorder:
    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


@pytest.fixture
def recorder() -> _Recorder:
    return _Recorder(httpx.Response(200, json={"ok": True}))


@pytest.fixture
async def executor(recorder):
    async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as client:
        yield HttpToolExecutor(client)


class TestHttpToolExecutor:
    async def test_post_forwards_all_arguments(self, executor, recorder):
        tool = _tool(http_method="POST", base_url="http://mock.upstream", path_template="/users/:id")
        result = await executor.execute(tool, {"id": "42", "note": "x"})

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/users/42"
        assert json.loads(request.content) == {"id": "42", "note": "x"}
        assert request.headers["content-type"] == "application/json"
        assert result.status == 200
        assert result.json == {"ok": True}
        assert result.is_error is False

    async def test_server_base_url_fallback_and_query_auth(self, executor, recorder):
        tool = _tool(path_template="/search")
        tool.set_mappings(query={"q": "term"})
        auth = ServerAuthConfig(server_id=1, auth_type=AuthType.api_key_query, api_key_query_name="key", api_key_query_value="s")
        await executor.execute(tool, {"term": "cats"}, auth, server_base_url="http://mock.upstream/api")

        request = recorder.requests[0]
        assert str(request.url) == "http://mock.upstream/api/search?q=cats&key=s"
        assert request.content == b""

    async def test_upstream_error_status_is_returned_not_raised(self, recorder):
        recorder.response = httpx.Response(503, text="down")
        async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as client:
            result = await HttpToolExecutor(client).execute(_tool(base_url="http://mock.upstream"))
        assert result.status == 503
        assert result.is_error is True
        assert result.raw_body == "down"
        assert result.json is None

    async def test_transport_failure_raises_tool_execution_error(self):
        def _boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(_boom)) as client:
            with pytest.raises(ToolExecutionError) as exc_info:
                await HttpToolExecutor(client).execute(_tool(base_url="http://mock.upstream", path_template="/x"))
        assert exc_info.value.url == "http://mock.upstream/x"
        assert exc_info.value.status_code == 502
