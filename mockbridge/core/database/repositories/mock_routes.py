"""
Mock route repository.

Data access for mock routes and their template variables, including the three
lookups used by request resolution (scoped, by API key, public).
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete as sa_delete
from sqlmodel import select

from ..entities.mock_routes import MockRoute, RouteVar
from ..entities.route_datasets import RouteDataset
from .base import AsyncBaseRepository, QueryBuilder


class MockRouteRepository(AsyncBaseRepository[MockRoute]):
    """Repository for mock route data access operations using SQLModel."""

    def __init__(self, session) -> None:
        super().__init__(session, MockRoute)

    async def create(self, route: MockRoute, variables: Iterable[Tuple[str, str]] = ()) -> MockRoute:
        """Create a mock route together with its template variables.

        Args:
            route: MockRoute instance to persist
            variables: Ordered ``(key, value)`` pairs

        Returns:
            Persisted MockRoute

        Raises:
            ConflictError: If the API key or a variable key is already taken
        """
        self.session.add(route)
        await self.flush_or_conflict("Route API key already exists")
        for key, value in variables:
            self.session.add(RouteVar(route_id=route.id, key=key, value=value))
        await self.commit_or_conflict("Route API key or variable key already exists")
        await self.session.refresh(route)
        return route

    async def delete(self, entity_id: int) -> bool:
        route = await self.get_by_id(entity_id)
        if route is None:
            return False
        await self.session.execute(sa_delete(RouteVar).where(RouteVar.route_id == entity_id))
        # Dataset rows are owned by the route
        await self.session.execute(sa_delete(RouteDataset).where(RouteDataset.route_id == entity_id))
        await self.session.delete(route)
        await self.session.commit()
        return True

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[MockRoute]:
        """List routes ordered by id.

        Args:
            limit: Maximum records to return
            offset: Records to skip
            filters: Field filters (tenant_id, project_id, method, enabled)
        """
        stmt = select(MockRoute).order_by(MockRoute.id)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, MockRoute, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_for_scope(self, route_id: int, tenant_id: str, project_id: str) -> Optional[MockRoute]:
        """Get a route only if it belongs to the given scope."""
        stmt = select(MockRoute).where(
            (MockRoute.id == route_id) & (MockRoute.tenant_id == tenant_id) & (MockRoute.project_id == project_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_enabled_for_scope(self, tenant_id: str, project_id: str, method: str) -> List[MockRoute]:
        """Enabled routes of one scope and method, lowest id first."""
        stmt = (
            select(MockRoute)
            .where(
                (MockRoute.tenant_id == tenant_id)
                & (MockRoute.project_id == project_id)
                & (MockRoute.method == method)
                & (MockRoute.enabled == True)  # noqa: E712
            )
            .order_by(MockRoute.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_enabled_by_api_key(self, api_key: str) -> Optional[MockRoute]:
        """The single enabled route bound to ``api_key``."""
        stmt = select(MockRoute).where((MockRoute.api_key == api_key) & (MockRoute.enabled == True))  # noqa: E712
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_enabled_public(self, method: str) -> List[MockRoute]:
        """Enabled routes across all scopes that do not require a key, lowest id first."""
        stmt = (
            select(MockRoute)
            .where(
                (MockRoute.method == method)
                & (MockRoute.enabled == True)  # noqa: E712
                & (MockRoute.require_api_key == False)  # noqa: E712
            )
            .order_by(MockRoute.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_vars(self, route_id: int) -> List[RouteVar]:
        """Template variables of a route in definition order."""
        stmt = select(RouteVar).where(RouteVar.route_id == route_id).order_by(RouteVar.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_vars(self, route_id: int, variables: Iterable[Tuple[str, str]]) -> List[RouteVar]:
        """Replace all template variables of a route.

        Raises:
            ConflictError: If ``variables`` repeats a key
        """
        await self.session.execute(sa_delete(RouteVar).where(RouteVar.route_id == route_id))
        for key, value in variables:
            self.session.add(RouteVar(route_id=route_id, key=key, value=value))
        await self.commit_or_conflict("Duplicate template variable key")
        return await self.list_vars(route_id)
