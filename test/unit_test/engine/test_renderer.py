"""Unit tests for response rendering strategies."""

import asyncio
import json
from typing import List
from unittest.mock import AsyncMock

import pytest

from mockbridge.core.database.entities import MockRoute
from mockbridge.core.errors import InternalRenderError
from mockbridge.core.models.domain import ResponseMode
from mockbridge.engine import (
    DatasetResult,
    JinjaTemplateRenderer,
    RequestContext,
    ResponseRenderer,
    RouteMatch,
    TemplateRenderer,
)
from mockbridge.engine.renderer import build_response_headers, build_template_context, iso_now


def _route(**fields) -> MockRoute:
    data = {"id": 1, "tenant_id": "t1", "project_id": "p1", "method": "GET", "path": "/users/:id"}
    data.update(fields)
    return MockRoute(**data)


def _request(**fields) -> RequestContext:
    data = {"method": "GET", "path": "/users/7", "url": "http://localhost/users/7?x=1", "query": {"x": "1"}}
    data.update(fields)
    return RequestContext(**data)


class _Sleeper:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def dataset_resolver() -> AsyncMock:
    resolver = AsyncMock()
    resolver.resolve.return_value = DatasetResult(status=404, payload={"error": "Not found"})
    return resolver


@pytest.fixture
def sleeper() -> _Sleeper:
    return _Sleeper()


@pytest.fixture
def renderer(dataset_resolver, sleeper) -> ResponseRenderer:
    return ResponseRenderer(dataset_resolver, JinjaTemplateRenderer(), sleep=sleeper)


class TestRequestContext:
    def test_json_body(self):
        assert _request(raw_body='{"a": 1}').json_body == {"a": 1}

    def test_non_json_body(self):
        assert _request(raw_body="plain").json_body is None
        assert _request().json_body is None


class TestHeaders:
    def test_defaults(self):
        headers = build_response_headers(_route())
        assert headers == {"content-type": "application/json", "cache-control": "no-store"}

    def test_custom_headers_override_case_insensitively(self):
        route = _route()
        route.set_response_headers_dict({"Content-Type": "application/vnd.api+json", "X-Trace": "abc"})
        headers = build_response_headers(route)
        assert headers["content-type"] == "application/vnd.api+json"
        assert headers["x-trace"] == "abc"
        assert "Content-Type" not in headers


class TestTemplateContext:
    def test_shape(self):
        match = RouteMatch(route=_route(), params={"id": "7"}, vars={"v": "1"})
        context = build_template_context(match, _request(raw_body='{"k": "v"}', method="POST"))
        assert context["params"] == {"id": "7"}
        assert context["vars"] == {"v": "1"}
        assert context["request"]["method"] == "POST"
        assert context["request"]["json"] == {"k": "v"}
        assert context["request"]["body"] == {"k": "v"}
        assert context["request"]["rawBody"] == '{"k": "v"}'
        assert context["request"]["query"] == {"x": "1"}
        assert context["now"].endswith("Z")

    def test_iso_now_has_milliseconds(self):
        assert len(iso_now().split(".")[-1]) == 4  # "123Z"


class TestResponseRenderer:
    async def test_static_json(self, renderer):
        route = _route(response_body='{"ok": true}', response_status=201)
        rendered = await renderer.render(RouteMatch(route=route), _request())
        assert rendered.status == 201
        assert rendered.payload == {"ok": True}
        assert rendered.headers["content-type"] == "application/json"

    async def test_static_text_is_wrapped(self, renderer):
        route = _route(response_body="hello", response_is_json=False)
        rendered = await renderer.render(RouteMatch(route=route), _request())
        assert rendered.payload == {"body": "hello"}

    async def test_static_invalid_json_is_internal_error(self, renderer):
        route = _route(response_body="{oops")
        with pytest.raises(InternalRenderError):
            await renderer.render(RouteMatch(route=route), _request())

    async def test_template_interpolates_params_vars_and_request(self, renderer):
        route = _route(
            response_mode=ResponseMode.TEMPLATE,
            response_body=(
                '{"id": "{{ params.id }}", "greeting": "{{ vars.greeting }}", "echo": {{ request.json | tojson }}}'
            ),
        )
        match = RouteMatch(route=route, params={"id": "7"}, vars={"greeting": "hi"})
        rendered = await renderer.render(match, _request(raw_body='{"a": [1, 2]}'))
        assert rendered.payload == {"id": "7", "greeting": "hi", "echo": {"a": [1, 2]}}

    async def test_template_syntax_error_is_internal_error(self, renderer):
        route = _route(response_mode=ResponseMode.TEMPLATE, response_body="{{ params.id ")
        with pytest.raises(InternalRenderError):
            await renderer.render(RouteMatch(route=route, params={"id": "1"}), _request())

    async def test_template_renderer_is_pluggable(self, dataset_resolver, sleeper):
        class Upper:
            def render(self, template, context):
                return template.upper()

        assert isinstance(Upper(), TemplateRenderer)
        renderer = ResponseRenderer(dataset_resolver, Upper(), sleep=sleeper)
        route = _route(response_mode=ResponseMode.TEMPLATE, response_body="abc", response_is_json=False)
        rendered = await renderer.render(RouteMatch(route=route), _request())
        assert rendered.payload == {"body": "ABC"}

    async def test_dataset_result_bypasses_json_handling(self, renderer, dataset_resolver):
        dataset_resolver.resolve.return_value = DatasetResult(status=200, payload="raw-string")
        route = _route(response_mode=ResponseMode.DATASET_LOOKUP, response_status=418)
        match = RouteMatch(route=route, params={"id": "7"})
        rendered = await renderer.render(match, _request())
        assert (rendered.status, rendered.payload) == (200, "raw-string")
        dataset_resolver.resolve.assert_awaited_once_with(route, {"id": "7"}, {"x": "1"})

    async def test_delay_is_awaited(self, renderer, sleeper):
        route = _route(response_body="{}", response_delay_ms=250)
        await renderer.render(RouteMatch(route=route), _request())
        assert sleeper.calls == [0.25]

    async def test_delay_does_not_block_concurrent_renders(self, dataset_resolver):
        renderer = ResponseRenderer(dataset_resolver, JinjaTemplateRenderer())
        finished: List[str] = []

        async def render(label: str, route: MockRoute) -> None:
            await renderer.render(RouteMatch(route=route), _request())
            finished.append(label)

        slow = _route(id=1, response_body="{}", response_delay_ms=200)
        fast = _route(id=2, response_body="{}")
        await asyncio.gather(render("slow", slow), render("fast", fast))
        assert finished == ["fast", "slow"]

    async def test_no_delay_by_default(self, renderer, sleeper):
        await renderer.render(RouteMatch(route=_route(response_body="{}")), _request())
        assert sleeper.calls == []

    async def test_headers_in_rendered_response(self, renderer):
        route = _route(response_body="[]", response_headers=json.dumps({"X-Mock": "1"}))
        rendered = await renderer.render(RouteMatch(route=route), _request())
        assert rendered.headers["x-mock"] == "1"
        assert rendered.payload == []
