"""
Mock Dispatch Endpoint.

Catch-all router answering every path not claimed by another router with the
matching mock route. It must be included after all other routers.
"""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from mockbridge.core.database.repositories import MockRouteRepository, RouteDatasetRepository
from mockbridge.core.logging_config import get_logger
from mockbridge.engine import DatasetLookupResolver, RequestContext, ResponseRenderer, RouteResolver
from mockbridge.server.services.deps import IdentityDep, SessionDep, TemplateRendererDep

logger = get_logger(__name__)

router = APIRouter()

# Every method reaches the resolver so that unsupported ones answer 405 in the domain format
DISPATCH_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE"]


def raw_request_path(request: Request) -> str:
    """The undecoded request path, without the query string."""
    raw = request.scope.get("raw_path")
    if raw:
        return raw.decode("latin-1").split("?", 1)[0]
    return request.url.path


@router.api_route(
    "/{mock_path:path}",
    methods=DISPATCH_METHODS,
    include_in_schema=False,
)
async def dispatch_mock(
    request: Request,
    session: SessionDep,
    identity: IdentityDep,
    template_renderer: TemplateRendererDep,
) -> JSONResponse:
    """
    Serve a mock route.

    Resolves the route for the caller's identity, then renders it with its
    response mode. Resolution and rendering failures surface as domain errors.
    """
    path = raw_request_path(request)
    match = await RouteResolver(MockRouteRepository(session)).resolve(request.method, path, identity)

    body = await request.body()
    context = RequestContext(
        method=request.method.upper(),
        path=path,
        url=str(request.url),
        query=dict(request.query_params),
        headers={name.lower(): value for name, value in request.headers.items()},
        raw_body=body.decode("utf-8", errors="replace"),
    )
    renderer = ResponseRenderer(DatasetLookupResolver(RouteDatasetRepository(session)), template_renderer)
    rendered = await renderer.render(match, context)

    headers = {name: value for name, value in rendered.headers.items() if name != "content-length"}
    logger.debug(f"Mock route id={match.route.id} answered {request.method} {path} with {rendered.status}")
    return JSONResponse(status_code=rendered.status, content=rendered.payload, headers=headers)
