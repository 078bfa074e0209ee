"""
Response rendering for matched mock routes.

Each ``ResponseMode`` maps to exactly one strategy in ``ResponseRenderer``.
STATIC and TEMPLATE produce text which is parsed as JSON (``response_is_json``)
or wrapped as ``{"body": text}``; DATASET_LOOKUP returns the dataset resolver's
status and payload untouched.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from mockbridge.core.database.entities import MockRoute
from mockbridge.core.errors import InternalRenderError
from mockbridge.core.logging_config import get_logger
from mockbridge.core.models.domain import ResponseMode

from .dataset_lookup import DatasetLookupResolver, normalize_json
from .route_resolver import RouteMatch
from .templating import JinjaTemplateRenderer, TemplateRenderer

logger = get_logger(__name__)

DEFAULT_RESPONSE_HEADERS: Dict[str, str] = {
    "content-type": "application/json",
    "cache-control": "no-store",
}


@dataclass
class RequestContext:
    """The parts of an inbound request that rendering can see."""

    method: str
    path: str
    url: str = ""
    query: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    raw_body: str = ""

    @property
    def json_body(self) -> Any:
        if not self.raw_body:
            return None
        try:
            return json.loads(self.raw_body)
        except ValueError:
            return None


@dataclass
class RenderedResponse:
    status: int
    headers: Dict[str, str]
    payload: Any


def iso_now() -> str:
    """Current UTC time as ISO-8601 with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_template_context(match: RouteMatch, request: RequestContext) -> Dict[str, Any]:
    json_body = request.json_body
    return {
        "request": {
            "method": request.method,
            "path": request.path,
            "url": request.url or request.path,
            "params": match.params,
            "query": request.query,
            "headers": request.headers,
            "body": json_body if json_body is not None else request.raw_body,
            "rawBody": request.raw_body,
            "json": json_body,
        },
        "params": match.params,
        "vars": match.vars,
        "now": iso_now(),
    }


def build_response_headers(route: MockRoute) -> Dict[str, str]:
    """Default headers overlaid case-insensitively by the route's custom headers."""
    headers = dict(DEFAULT_RESPONSE_HEADERS)
    for name, value in route.get_response_headers_dict().items():
        if value is None:
            continue
        headers[str(name).lower()] = str(value)
    return headers


Strategy = Callable[[RouteMatch, RequestContext], Awaitable[Tuple[int, Any]]]


class ResponseRenderer:
    """Produce the concrete response of a matched route."""

    def __init__(
        self,
        dataset_resolver: DatasetLookupResolver,
        template_renderer: Optional[TemplateRenderer] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.dataset_resolver = dataset_resolver
        self.template_renderer = template_renderer or JinjaTemplateRenderer()
        self._sleep = sleep
        self._strategies: Dict[ResponseMode, Strategy] = {
            ResponseMode.STATIC: self._render_static,
            ResponseMode.TEMPLATE: self._render_template,
            ResponseMode.DATASET_LOOKUP: self._render_dataset,
        }
        missing = set(ResponseMode) - set(self._strategies)
        if missing:
            raise RuntimeError(f"No rendering strategy for {sorted(m.value for m in missing)}")

    async def render(self, match: RouteMatch, request: RequestContext) -> RenderedResponse:
        """Render ``match`` for ``request``.

        Raises:
            InternalRenderError: The stored body, template or dataset value cannot be rendered as declared
        """
        route = match.route
        headers = build_response_headers(route)

        delay_ms = route.response_delay_ms or 0
        if delay_ms > 0:
            await self._sleep(delay_ms / 1000.0)

        strategy = self._strategies[ResponseMode(route.response_mode)]
        status, payload = await strategy(match, request)
        return RenderedResponse(status=status, headers=headers, payload=payload)

    async def _render_static(self, match: RouteMatch, request: RequestContext) -> Tuple[int, Any]:
        return self._finish(match.route, match.route.response_body or "")

    async def _render_template(self, match: RouteMatch, request: RequestContext) -> Tuple[int, Any]:
        context = build_template_context(match, request)
        text = self.template_renderer.render(match.route.response_body or "", context)
        return self._finish(match.route, text)

    async def _render_dataset(self, match: RouteMatch, request: RequestContext) -> Tuple[int, Any]:
        result = await self.dataset_resolver.resolve(match.route, match.params, request.query)
        return result.status, result.payload

    @staticmethod
    def _finish(route: MockRoute, text: str) -> Tuple[int, Any]:
        status = route.response_status or 200
        if not route.response_is_json:
            return status, {"body": text}
        try:
            return status, normalize_json(text)
        except ValueError as e:
            logger.error(f"Route id={route.id} produced a body that is not valid JSON")
            raise InternalRenderError("Invalid JSON in route response body") from e
