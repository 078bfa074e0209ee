"""
Mock Route Management Endpoints.

This module handles registration of mock routes inside the caller's tenant and
project scope. Routes of another scope are reported as not found.
"""

import json
from typing import Any, List, Optional

from fastapi import APIRouter, Response, status

from mockbridge.core.database.entities import MockRoute
from mockbridge.core.database.repositories import MockRouteRepository
from mockbridge.core.errors import NotFoundError, ValidationError
from mockbridge.core.logging_config import get_logger
from mockbridge.core.models.io import MockRouteCreate, MockRouteRead, MockRouteUpdate
from mockbridge.engine.path_matcher import compile_path
from mockbridge.server.services.deps import ScopeDep, SessionDep
from mockbridge.server.services.identity import SessionScope
from mockbridge.server.services.serializers import route_to_read

logger = get_logger(__name__)

router = APIRouter()

# Columns that accept an explicit null on update
NULLABLE_FIELDS = frozenset(
    {"api_key", "lookup_param_name", "not_found_status", "not_found_body", "return_all_when_no_key"}
)


async def get_route_in_scope(repository: MockRouteRepository, route_id: int, scope: SessionScope) -> MockRoute:
    route = await repository.get_for_scope(route_id, scope.tenant_id, scope.project_id)
    if route is None:
        raise NotFoundError("Route not found")
    return route


def _dump_not_found_body(value: Any) -> Optional[str]:
    return None if value is None else json.dumps(value)


@router.post(
    "",
    response_model=MockRouteRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Mock Route",
    description="Register a mock route in the caller's scope.",
    response_description="The created route.",
    responses={400: {"description": "Invalid path pattern or payload"}, 409: {"description": "API key already in use"}},
)
async def create_route(payload: MockRouteCreate, session: SessionDep, scope: ScopeDep) -> MockRouteRead:
    """
    Create a mock route.

    The path pattern is compiled before anything is stored so that malformed
    patterns are rejected at registration.
    """
    path = payload.path.strip()
    compile_path(path)
    route = MockRoute(
        tenant_id=scope.tenant_id,
        project_id=scope.project_id,
        name=payload.name,
        description=payload.description,
        method=payload.method.value,
        path=path,
        enabled=payload.enabled,
        require_api_key=payload.require_api_key,
        api_key=payload.api_key,
        response_mode=payload.response_mode,
        response_status=payload.response_status,
        response_body=payload.response_body,
        response_is_json=payload.response_is_json,
        response_delay_ms=payload.response_delay_ms,
        lookup_param_name=payload.lookup_param_name,
        not_found_status=payload.not_found_status,
        not_found_body=_dump_not_found_body(payload.not_found_body),
        return_all_when_no_key=payload.return_all_when_no_key,
    )
    route.set_response_headers_dict(payload.response_headers)

    repository = MockRouteRepository(session)
    route = await repository.create(route, [(var.key, var.value) for var in payload.vars])
    logger.info(f"Created mock route id={route.id} {route.method} {route.path}")
    return route_to_read(route, await repository.list_vars(route.id))


@router.get(
    "",
    response_model=List[MockRouteRead],
    summary="List Mock Routes",
    description="List the mock routes of the caller's scope.",
    response_description="Routes in creation order.",
)
async def list_routes(session: SessionDep, scope: ScopeDep) -> List[MockRouteRead]:
    repository = MockRouteRepository(session)
    routes = await repository.list(filters={"tenant_id": scope.tenant_id, "project_id": scope.project_id})
    return [route_to_read(route, await repository.list_vars(route.id)) for route in routes]


@router.get(
    "/{route_id}",
    response_model=MockRouteRead,
    summary="Get Mock Route",
    responses={404: {"description": "Route not found"}},
)
async def get_route(route_id: int, session: SessionDep, scope: ScopeDep) -> MockRouteRead:
    repository = MockRouteRepository(session)
    route = await get_route_in_scope(repository, route_id, scope)
    return route_to_read(route, await repository.list_vars(route.id))


@router.patch(
    "/{route_id}",
    response_model=MockRouteRead,
    summary="Update Mock Route",
    description="Partially update a mock route. A supplied `vars` list replaces all template variables.",
    response_description="The updated route.",
    responses={404: {"description": "Route not found"}, 409: {"description": "API key already in use"}},
)
async def update_route(route_id: int, payload: MockRouteUpdate, session: SessionDep, scope: ScopeDep) -> MockRouteRead:
    """
    Update a mock route.

    Omitted fields keep their value. Explicit nulls are only accepted for the
    optional settings (API key and dataset lookup options).
    """
    repository = MockRouteRepository(session)
    route = await get_route_in_scope(repository, route_id, scope)

    changes = payload.model_dump(exclude_unset=True, exclude={"vars"})
    for field, value in changes.items():
        if value is None and field not in NULLABLE_FIELDS:
            raise ValidationError(f"{field} cannot be null")

    if "path" in changes:
        changes["path"] = changes["path"].strip()
        compile_path(changes["path"])
    if "method" in changes:
        changes["method"] = payload.method.value
    if "response_headers" in changes:
        route.set_response_headers_dict(changes.pop("response_headers"))
    if "not_found_body" in changes:
        changes["not_found_body"] = _dump_not_found_body(changes["not_found_body"])

    for field, value in changes.items():
        setattr(route, field, value)

    if changes or "response_headers" in payload.model_fields_set:
        route = await repository.update(route)
    if "vars" in payload.model_fields_set and payload.vars is not None:
        await repository.replace_vars(route.id, [(var.key, var.value) for var in payload.vars])

    logger.info(f"Updated mock route id={route.id}")
    return route_to_read(route, await repository.list_vars(route.id))


@router.delete(
    "/{route_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Mock Route",
    description="Delete a mock route with its template variables and dataset records.",
    responses={404: {"description": "Route not found"}},
)
async def delete_route(route_id: int, session: SessionDep, scope: ScopeDep) -> Response:
    repository = MockRouteRepository(session)
    route = await get_route_in_scope(repository, route_id, scope)
    await repository.delete(route.id)
    logger.info(f"Deleted mock route id={route_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
