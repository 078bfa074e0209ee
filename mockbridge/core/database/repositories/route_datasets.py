"""
Route dataset repository.

Data access for keyed dataset records. Key uniqueness per route is enforced by
the ``(route_id, key)`` constraint and surfaces as ``ConflictError``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlmodel import select

from ..entities.route_datasets import RouteDataset
from .base import AsyncBaseRepository, QueryBuilder

DUPLICATE_KEY_MESSAGE = "A record with this key already exists for this route"


class RouteDatasetRepository(AsyncBaseRepository[RouteDataset]):
    """Repository for dataset records using SQLModel."""

    def __init__(self, session) -> None:
        super().__init__(session, RouteDataset)

    async def create(self, record: RouteDataset) -> RouteDataset:
        """Create a dataset record.

        Raises:
            ConflictError: If the route already has a record with this key
        """
        self.session.add(record)
        await self.commit_or_conflict(DUPLICATE_KEY_MESSAGE)
        await self.session.refresh(record)
        return record

    async def update(self, record: RouteDataset) -> RouteDataset:
        """Update a dataset record.

        Raises:
            ConflictError: If the new key is already used by another record of the route
        """
        self.session.add(record)
        await self.commit_or_conflict(DUPLICATE_KEY_MESSAGE)
        await self.session.refresh(record)
        return record

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[RouteDataset]:
        """List records ordered by id.

        Args:
            filters: Field filters (route_id, enabled, key)
        """
        stmt = select(RouteDataset).order_by(RouteDataset.id)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, RouteDataset, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_for_route(self, record_id: int, route_id: int) -> Optional[RouteDataset]:
        """Get a record only if it belongs to ``route_id``."""
        stmt = select(RouteDataset).where((RouteDataset.id == record_id) & (RouteDataset.route_id == route_id))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_enabled(self, route_id: int) -> List[RouteDataset]:
        """Enabled records of a route in store order."""
        return await self.list(filters={"route_id": route_id, "enabled": True})

    async def get_enabled_by_key(self, route_id: int, key: str) -> Optional[RouteDataset]:
        """The enabled record stored under ``key`` for the route."""
        stmt = select(RouteDataset).where(
            (RouteDataset.route_id == route_id)
            & (RouteDataset.key == key)
            & (RouteDataset.enabled == True)  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
