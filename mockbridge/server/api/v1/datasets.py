"""
Dataset Record Endpoints.

Keyed JSON records served by DATASET_LOOKUP routes. Records are nested under
their route, which must belong to the caller's scope.
"""

import json
from typing import List

from fastapi import APIRouter, Response, status

from mockbridge.core.database.entities import RouteDataset
from mockbridge.core.database.repositories import MockRouteRepository, RouteDatasetRepository
from mockbridge.core.errors import NotFoundError, ValidationError
from mockbridge.core.logging_config import get_logger
from mockbridge.core.models.io import DatasetRecordCreate, DatasetRecordRead, DatasetRecordUpdate
from mockbridge.server.services.deps import ScopeDep, SessionDep
from mockbridge.server.services.serializers import record_to_read

from .routes import get_route_in_scope

logger = get_logger(__name__)

router = APIRouter()


async def get_record_in_route(repository: RouteDatasetRepository, record_id: int, route_id: int) -> RouteDataset:
    record = await repository.get_for_route(record_id, route_id)
    if record is None:
        raise NotFoundError("Dataset record not found")
    return record


@router.get(
    "/{route_id}/dataset",
    response_model=List[DatasetRecordRead],
    summary="List Dataset Records",
    description="List all dataset records of a route, enabled or not.",
    responses={404: {"description": "Route not found"}},
)
async def list_records(route_id: int, session: SessionDep, scope: ScopeDep) -> List[DatasetRecordRead]:
    route = await get_route_in_scope(MockRouteRepository(session), route_id, scope)
    records = await RouteDatasetRepository(session).list(filters={"route_id": route.id})
    return [record_to_read(record) for record in records]


@router.post(
    "/{route_id}/dataset",
    response_model=DatasetRecordRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Dataset Record",
    description="Add a keyed JSON record to a route's dataset.",
    response_description="The created record.",
    responses={404: {"description": "Route not found"}, 409: {"description": "Duplicate key"}},
)
async def create_record(
    route_id: int, payload: DatasetRecordCreate, session: SessionDep, scope: ScopeDep
) -> DatasetRecordRead:
    """
    Create a dataset record.

    ``valueJson`` may be JSON text or a JSON value; it is stored as JSON text.
    A key already used by the route is a conflict, never an overwrite.
    """
    route = await get_route_in_scope(MockRouteRepository(session), route_id, scope)
    record = RouteDataset(
        route_id=route.id,
        key=payload.key,
        value_json=json.dumps(payload.value_json),
        enabled=payload.enabled,
    )
    record = await RouteDatasetRepository(session).create(record)
    logger.info(f"Created dataset record id={record.id} for route id={route.id}")
    return record_to_read(record)


@router.put(
    "/{route_id}/dataset/{record_id}",
    response_model=DatasetRecordRead,
    summary="Update Dataset Record",
    description="Update the key, value or enabled flag of a dataset record.",
    response_description="The updated record.",
    responses={
        400: {"description": "Nothing to update"},
        404: {"description": "Route or record not found"},
        409: {"description": "Duplicate key"},
    },
)
async def update_record(
    route_id: int, record_id: int, payload: DatasetRecordUpdate, session: SessionDep, scope: ScopeDep
) -> DatasetRecordRead:
    route = await get_route_in_scope(MockRouteRepository(session), route_id, scope)
    repository = RouteDatasetRepository(session)
    record = await get_record_in_route(repository, record_id, route.id)

    updated = False
    if payload.key is not None:
        record.key = payload.key
        updated = True
    if "value_json" in payload.model_fields_set:
        record.value_json = json.dumps(payload.value_json)
        updated = True
    if payload.enabled is not None:
        record.enabled = payload.enabled
        updated = True
    if not updated:
        raise ValidationError("Nothing to update")

    record = await repository.update(record)
    logger.info(f"Updated dataset record id={record.id} for route id={route.id}")
    return record_to_read(record)


@router.delete(
    "/{route_id}/dataset/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Dataset Record",
    responses={404: {"description": "Route or record not found"}},
)
async def delete_record(route_id: int, record_id: int, session: SessionDep, scope: ScopeDep) -> Response:
    route = await get_route_in_scope(MockRouteRepository(session), route_id, scope)
    repository = RouteDatasetRepository(session)
    record = await get_record_in_route(repository, record_id, route.id)
    await repository.delete(record.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
