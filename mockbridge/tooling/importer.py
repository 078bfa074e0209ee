"""
Bulk tool creation.

Generates tool definitions from mock routes or from selected OpenAPI
operations. Names are made unique against the server's existing tools and the
batch itself, and the whole batch is persisted in one transaction.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from mockbridge.core.database.entities import Tool, ToolServer
from mockbridge.core.database.repositories import MockRouteRepository, ToolRepository
from mockbridge.core.errors import ValidationError
from mockbridge.core.logging_config import get_logger
from mockbridge.core.models.io import OperationToolSelection, RouteToolSelection

from .schema_builder import (
    build_input_schema,
    ensure_unique_tool_name,
    extract_path_params,
    mock_route_source,
    openapi_source,
)

logger = get_logger(__name__)


class ToolImporter:
    """Create tool sets for a server."""

    def __init__(self, tools: ToolRepository, routes: MockRouteRepository) -> None:
        self.tools = tools
        self.routes = routes

    async def create_tools_from_routes(
        self, server: ToolServer, selections: Sequence[RouteToolSelection]
    ) -> List[Tool]:
        """One tool per selected mock route of the server's scope.

        Routes outside the server's scope are skipped.

        Raises:
            ValidationError: Nothing selected, or none of the selected routes exist in scope
            ConflictError: A generated name collides; nothing is persisted
        """
        if not selections:
            raise ValidationError("Select at least one route to continue")

        used = await self.tools.list_names(server.id)
        creations: List[Tool] = []
        for selection in selections:
            route = await self.routes.get_for_scope(selection.route_id, server.tenant_id, server.project_id)
            if route is None:
                continue
            method = (route.method or "GET").upper()
            name = ensure_unique_tool_name(
                selection.tool_name.strip() or route.name or f"{method}_{route.path or '/'}", used
            )
            tool = Tool(
                server_id=server.id,
                name=name,
                description=selection.description.strip() or route.description or "",
                http_method=method,
                base_url=(server.base_url or "").strip(),
                path_template=route.path or "/",
                enabled=True,
            )
            tool.set_input_schema_dict(
                build_input_schema(
                    path_params=extract_path_params(route.path),
                    source=mock_route_source(route.id),
                    summary=route.description or "",
                )
            )
            tool.set_mappings()
            creations.append(tool)

        if not creations:
            raise ValidationError("No matching routes were found for this server")
        created = await self.tools.create_many(creations)
        logger.info(f"Created {len(created)} tool(s) from mock routes on server id={server.id}")
        return created

    async def create_tools_from_openapi(
        self,
        server: ToolServer,
        selections: Sequence[OperationToolSelection],
        base_url: Optional[str] = None,
    ) -> List[Tool]:
        """One tool per selected OpenAPI operation.

        Query parameters and body properties map one-to-one onto arguments of
        the same name; operations without body properties forward all arguments.

        Raises:
            ValidationError: Nothing selected
            ConflictError: A generated name collides; nothing is persisted
        """
        if not selections:
            raise ValidationError("Select at least one OpenAPI operation to continue")

        used = await self.tools.list_names(server.id)
        target_base_url = (base_url or "").strip() or (server.base_url or "").strip()
        creations: List[Tool] = []
        for selection in selections:
            method = selection.method or "GET"
            path = selection.path.strip()
            operation_id = selection.operation_id.strip() or f"{method}_{path}"
            summary = selection.summary.strip()

            path_params = [
                p if isinstance(p, str) else p.model_dump(exclude_unset=True)
                for p in selection.path_params
                if (p if isinstance(p, str) else p.name).strip()
            ] or extract_path_params(path)
            query_params = [p.model_dump() for p in selection.query_params if p.name.strip()]
            body_properties = [p.model_dump() for p in selection.body_properties if p.name.strip()]

            tool = Tool(
                server_id=server.id,
                name=ensure_unique_tool_name(selection.tool_name.strip() or operation_id, used),
                description=selection.description.strip() or summary,
                http_method=method,
                base_url=target_base_url,
                path_template=path,
                enabled=True,
            )
            tool.set_input_schema_dict(
                build_input_schema(
                    path_params=path_params,
                    query_params=query_params,
                    body_properties=body_properties,
                    source=openapi_source(operation_id, path, method),
                    summary=summary,
                )
            )
            tool.set_mappings(
                query={p["name"]: p["name"] for p in query_params},
                body={p["name"]: p["name"] for p in body_properties},
            )
            creations.append(tool)

        created = await self.tools.create_many(creations)
        logger.info(f"Created {len(created)} tool(s) from OpenAPI on server id={server.id}")
        return created
