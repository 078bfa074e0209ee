"""
Tool server repository.

Data access for tool servers and their auth configs, including the three
slug lookups used by the JSON-RPC bridge (scoped, by API key, public).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlmodel import select

from ..entities.tool_servers import ServerAuthConfig, ToolServer
from .base import AsyncBaseRepository, QueryBuilder


class ToolServerRepository(AsyncBaseRepository[ToolServer]):
    """Repository for tool servers using SQLModel."""

    def __init__(self, session) -> None:
        super().__init__(session, ToolServer)

    async def create(self, server: ToolServer, auth_config: Optional[ServerAuthConfig] = None) -> ToolServer:
        """Create a server and its auth config in one transaction.

        Raises:
            ConflictError: If the slug is taken in the scope or the API key is in use
        """
        self.session.add(server)
        await self.flush_or_conflict("A server with this slug or API key already exists")
        auth = auth_config or ServerAuthConfig(server_id=server.id)
        auth.server_id = server.id
        self.session.add(auth)
        await self.commit_or_conflict("A server with this slug or API key already exists")
        await self.session.refresh(server)
        return server

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[ToolServer]:
        """List servers ordered by id.

        Args:
            filters: Field filters (tenant_id, project_id, slug, is_enabled)
        """
        stmt = select(ToolServer).order_by(ToolServer.id)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, ToolServer, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_for_scope(self, server_id: int, tenant_id: str, project_id: str) -> Optional[ToolServer]:
        """Get a server only if it belongs to the given scope."""
        stmt = select(ToolServer).where(
            (ToolServer.id == server_id) & (ToolServer.tenant_id == tenant_id) & (ToolServer.project_id == project_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_enabled_for_scope(self, tenant_id: str, project_id: str, slug: str) -> Optional[ToolServer]:
        """The enabled server with ``slug`` in the given scope."""
        stmt = select(ToolServer).where(
            (ToolServer.tenant_id == tenant_id)
            & (ToolServer.project_id == project_id)
            & (ToolServer.slug == slug)
            & (ToolServer.is_enabled == True)  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_enabled_by_api_key(self, api_key: str) -> Optional[ToolServer]:
        """The enabled server bound to ``api_key``."""
        stmt = select(ToolServer).where(
            (ToolServer.api_key == api_key) & (ToolServer.is_enabled == True)  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_enabled_public(self, slug: str) -> Optional[ToolServer]:
        """The lowest-id enabled server with ``slug`` that does not require a key."""
        stmt = (
            select(ToolServer)
            .where(
                (ToolServer.slug == slug)
                & (ToolServer.is_enabled == True)  # noqa: E712
                & (ToolServer.require_api_key == False)  # noqa: E712
            )
            .order_by(ToolServer.id)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_auth_config(self, server_id: int) -> Optional[ServerAuthConfig]:
        """Auth config of a server, if any."""
        stmt = select(ServerAuthConfig).where(ServerAuthConfig.server_id == server_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
