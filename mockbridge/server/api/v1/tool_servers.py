"""
Tool Server Management Endpoints.

This module handles tool servers of the caller's scope, their tools, bulk tool
import from mock routes or OpenAPI operations, and OpenAPI import previews.
"""

from typing import List

from fastapi import APIRouter, Response, status

from mockbridge.core.database.entities import ServerAuthConfig, ToolServer
from mockbridge.core.database.repositories import MockRouteRepository, ToolRepository, ToolServerRepository
from mockbridge.core.database.repositories.tools import DUPLICATE_NAME_MESSAGE
from mockbridge.core.errors import ConflictError, NotFoundError, ValidationError
from mockbridge.core.logging_config import get_logger
from mockbridge.core.models.io import (
    ImportToolsRequest,
    ImportToolsResponse,
    OpenApiPreviewRequest,
    ToolRead,
    ToolServerCreate,
    ToolServerRead,
    ToolUpdate,
)
from mockbridge.rpc import normalize_slug
from mockbridge.server.services.deps import ScopeDep, SessionDep
from mockbridge.server.services.identity import SessionScope
from mockbridge.server.services.serializers import server_to_read, tool_to_read
from mockbridge.tooling import (
    OpenApiPreview,
    ToolImporter,
    ensure_operation_names,
    extract_operations,
    infer_auth,
    infer_base_url,
    parse_openapi_spec,
    slugify_tool_name,
)

logger = get_logger(__name__)

router = APIRouter()


async def get_server_in_scope(repository: ToolServerRepository, server_id: int, scope: SessionScope) -> ToolServer:
    server = await repository.get_for_scope(server_id, scope.tenant_id, scope.project_id)
    if server is None:
        raise NotFoundError("Server not found")
    return server


@router.post(
    "",
    response_model=ToolServerRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Tool Server",
    description="Create a slug-addressed tool server with its outbound auth configuration.",
    response_description="The created server; secrets are not echoed.",
    responses={409: {"description": "Slug or API key already in use"}},
)
async def create_server(payload: ToolServerCreate, session: SessionDep, scope: ScopeDep) -> ToolServerRead:
    """
    Create a tool server.

    The slug defaults to the normalized name.
    """
    slug = normalize_slug(payload.slug or payload.name)
    if not slug:
        raise ValidationError("Server slug must contain at least one letter or digit")

    server = ToolServer(
        tenant_id=scope.tenant_id,
        project_id=scope.project_id,
        name=payload.name,
        slug=slug,
        description=payload.description,
        base_url=payload.base_url,
        is_enabled=payload.is_enabled,
        require_api_key=payload.require_api_key,
        api_key=payload.api_key,
    )
    auth = ServerAuthConfig()
    if payload.auth is not None:
        auth = ServerAuthConfig(**payload.auth.model_dump(exclude={"extra_headers"}))
        auth.set_extra_headers_dict(payload.auth.extra_headers)

    repository = ToolServerRepository(session)
    server = await repository.create(server, auth)
    logger.info(f"Created tool server id={server.id} slug={server.slug}")
    return server_to_read(server, await repository.get_auth_config(server.id))


@router.get(
    "",
    response_model=List[ToolServerRead],
    summary="List Tool Servers",
    description="List the tool servers of the caller's scope.",
)
async def list_servers(session: SessionDep, scope: ScopeDep) -> List[ToolServerRead]:
    repository = ToolServerRepository(session)
    servers = await repository.list(filters={"tenant_id": scope.tenant_id, "project_id": scope.project_id})
    return [server_to_read(server, await repository.get_auth_config(server.id)) for server in servers]


@router.get(
    "/{server_id}",
    response_model=ToolServerRead,
    summary="Get Tool Server",
    responses={404: {"description": "Server not found"}},
)
async def get_server(server_id: int, session: SessionDep, scope: ScopeDep) -> ToolServerRead:
    repository = ToolServerRepository(session)
    server = await get_server_in_scope(repository, server_id, scope)
    return server_to_read(server, await repository.get_auth_config(server.id))


@router.get(
    "/{server_id}/tools",
    response_model=List[ToolRead],
    summary="List Tools",
    description="List the tools of a server with the provenance recorded in their input schema.",
    responses={404: {"description": "Server not found"}},
)
async def list_tools(server_id: int, session: SessionDep, scope: ScopeDep) -> List[ToolRead]:
    server = await get_server_in_scope(ToolServerRepository(session), server_id, scope)
    tools = await ToolRepository(session).list(filters={"server_id": server.id})
    return [tool_to_read(tool) for tool in tools]


@router.post(
    "/{server_id}/tools",
    response_model=ImportToolsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Import Tools",
    description="Create tools from selected mock routes or OpenAPI operations. All tools are created or none.",
    response_description="The created tools.",
    responses={
        400: {"description": "Nothing selected or nothing matched"},
        404: {"description": "Server not found"},
        409: {"description": "Tool name already in use"},
    },
)
async def import_tools(
    server_id: int, payload: ImportToolsRequest, session: SessionDep, scope: ScopeDep
) -> ImportToolsResponse:
    """
    Bulk import tools.

    ``mode: routes`` generates one tool per selected route of the server's
    scope; ``mode: openapi`` one per selected operation, usually as returned by
    the preview endpoint.
    """
    server = await get_server_in_scope(ToolServerRepository(session), server_id, scope)
    importer = ToolImporter(ToolRepository(session), MockRouteRepository(session))
    if payload.mode == "routes":
        created = await importer.create_tools_from_routes(server, payload.routes)
    else:
        created = await importer.create_tools_from_openapi(server, payload.operations, payload.base_url)
    return ImportToolsResponse(created=[tool_to_read(tool) for tool in created])


@router.patch(
    "/{server_id}/tools/{tool_id}",
    response_model=ToolRead,
    summary="Update Tool",
    description="Partially update a tool's request configuration, input schema or enabled flag.",
    response_description="The updated tool.",
    responses={
        400: {"description": "Nothing to update"},
        404: {"description": "Server or tool not found"},
        409: {"description": "Tool name already in use"},
    },
)
async def update_tool(
    server_id: int, tool_id: int, payload: ToolUpdate, session: SessionDep, scope: ScopeDep
) -> ToolRead:
    """
    Update a tool.

    A new name is slugified the same way imported names are. Mapping tables and
    the input schema are replaced as a whole.
    """
    server = await get_server_in_scope(ToolServerRepository(session), server_id, scope)
    tools = ToolRepository(session)
    tool = await tools.get_for_server(tool_id, server.id)
    if tool is None:
        raise NotFoundError("Tool not found")

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("Nothing to update")
    for field, value in changes.items():
        if value is None:
            raise ValidationError(f"{field} cannot be null")

    if "name" in changes:
        name = slugify_tool_name(changes.pop("name"))
        if name != tool.name and name in await tools.list_names(server.id):
            raise ConflictError(DUPLICATE_NAME_MESSAGE)
        tool.name = name
    if "input_schema" in changes:
        tool.set_input_schema_dict(changes.pop("input_schema"))
    tool.set_mappings(
        query=changes.pop("query_mapping", tool.get_query_mapping_dict()),
        body=changes.pop("body_mapping", tool.get_body_mapping_dict()),
        headers=changes.pop("headers_mapping", tool.get_headers_mapping_dict()),
    )
    for field, value in changes.items():
        setattr(tool, field, value)

    tool = await tools.update(tool)
    logger.info(f"Updated tool id={tool.id} on server id={server.id}")
    return tool_to_read(tool)


@router.delete(
    "/{server_id}/tools/{tool_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Tool",
    responses={404: {"description": "Server or tool not found"}},
)
async def delete_tool(server_id: int, tool_id: int, session: SessionDep, scope: ScopeDep) -> Response:
    server = await get_server_in_scope(ToolServerRepository(session), server_id, scope)
    tools = ToolRepository(session)
    tool = await tools.get_for_server(tool_id, server.id)
    if tool is None:
        raise NotFoundError("Tool not found")
    await tools.delete(tool.id)
    logger.info(f"Deleted tool id={tool_id} from server id={server.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{server_id}/openapi/preview",
    response_model=OpenApiPreview,
    summary="Preview OpenAPI Import",
    description="Parse an OpenAPI document and list its operations with tool names unique within the server.",
    response_description="Operations, inferred base URL and inferred auth.",
    responses={400: {"description": "Document cannot be parsed"}, 404: {"description": "Server not found"}},
)
async def preview_openapi(
    server_id: int, payload: OpenApiPreviewRequest, session: SessionDep, scope: ScopeDep
) -> OpenApiPreview:
    server = await get_server_in_scope(ToolServerRepository(session), server_id, scope)
    parsed = parse_openapi_spec(payload.spec)
    existing = await ToolRepository(session).list_names(server.id)
    operations = ensure_operation_names(extract_operations(parsed.document), existing)
    return OpenApiPreview(
        format=parsed.format,
        base_url=infer_base_url(parsed.document),
        auth=infer_auth(parsed.document),
        operations=operations,
    )
