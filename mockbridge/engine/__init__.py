"""Request resolution and response rendering for mock routes.

An inbound ``(method, path)`` is matched against stored route patterns by the
path matcher, one route is selected by the shared credential precedence
(session scope, then API key, then public), and the route's ``ResponseMode``
picks the strategy that produces the response.

The main entry points are ``RouteResolver`` and ``ResponseRenderer``.
"""

from .dataset_lookup import DatasetLookupResolver, DatasetResult, normalize_json, resolve_lookup_key
from .path_matcher import PathMatch, PathMatcher, compile_path, find_matching_route, normalize_path
from .renderer import RenderedResponse, RequestContext, ResponseRenderer
from .resolution import CallerIdentity, resolve_with_precedence
from .route_resolver import RouteMatch, RouteResolver
from .templating import JinjaTemplateRenderer, TemplateRenderer

__all__ = [
    "CallerIdentity",
    "DatasetLookupResolver",
    "DatasetResult",
    "JinjaTemplateRenderer",
    "PathMatch",
    "PathMatcher",
    "RenderedResponse",
    "RequestContext",
    "ResponseRenderer",
    "RouteMatch",
    "RouteResolver",
    "TemplateRenderer",
    "compile_path",
    "find_matching_route",
    "normalize_json",
    "normalize_path",
    "resolve_lookup_key",
    "resolve_with_precedence",
]
