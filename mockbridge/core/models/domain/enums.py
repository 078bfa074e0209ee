"""Domain enums for mock routes and tool servers."""

from __future__ import annotations

from enum import Enum


class ResponseMode(str, Enum):
    """
    Strategy used to produce a mock route's response.

    Exactly one strategy applies per route; the renderer dispatches on this value once.
    """

    STATIC = "STATIC"  # Stored body returned verbatim.
    TEMPLATE = "TEMPLATE"  # Stored body interpolated against the request context.
    DATASET_LOOKUP = "DATASET_LOOKUP"  # Body taken from the route's keyed dataset.


class HttpMethod(str, Enum):
    """HTTP methods a mock route can be registered for."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class AuthType(str, Enum):
    """Outbound authentication scheme of a tool server."""

    none = "none"
    api_key_header = "api_key_header"
    api_key_query = "api_key_query"
    bearer_token = "bearer_token"
    basic = "basic"


class ToolSourceType(str, Enum):
    """Origin recorded in a generated tool's input schema."""

    mock_route = "mock-route"
    openapi = "openapi"


SUPPORTED_MOCK_METHODS = frozenset(m.value for m in HttpMethod)
