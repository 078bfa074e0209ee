"""
Tool repository.

Data access for tool definitions. Bulk creation is a single transaction so a
generated tool set is either persisted completely or not at all.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Set

from sqlmodel import select

from ..entities.tools import Tool
from .base import AsyncBaseRepository, QueryBuilder

DUPLICATE_NAME_MESSAGE = "A tool with this name already exists on this server"


class ToolRepository(AsyncBaseRepository[Tool]):
    """Repository for tool definitions using SQLModel."""

    def __init__(self, session) -> None:
        super().__init__(session, Tool)

    async def create(self, tool: Tool) -> Tool:
        """Create one tool.

        Raises:
            ConflictError: If the server already has a tool with this name
        """
        self.session.add(tool)
        await self.commit_or_conflict(DUPLICATE_NAME_MESSAGE)
        await self.session.refresh(tool)
        return tool

    async def update(self, tool: Tool) -> Tool:
        """Persist changes to a tool.

        Raises:
            ConflictError: If the new name is already used on the server
        """
        self.session.add(tool)
        await self.commit_or_conflict(DUPLICATE_NAME_MESSAGE)
        await self.session.refresh(tool)
        return tool

    async def create_many(self, tools: Iterable[Tool]) -> List[Tool]:
        """Create several tools atomically.

        Raises:
            ConflictError: If any name collides; no tool is persisted in that case
        """
        created = list(tools)
        self.session.add_all(created)
        await self.commit_or_conflict(DUPLICATE_NAME_MESSAGE)
        for tool in created:
            await self.session.refresh(tool)
        return created

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[Tool]:
        """List tools ordered by id.

        Args:
            filters: Field filters (server_id, enabled, name)
        """
        stmt = select(Tool).order_by(Tool.id)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, Tool, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_enabled(self, server_id: int) -> List[Tool]:
        """Enabled tools of a server in id order."""
        return await self.list(filters={"server_id": server_id, "enabled": True})

    async def get_for_server(self, tool_id: int, server_id: int) -> Optional[Tool]:
        """Get a tool only if it belongs to ``server_id``."""
        stmt = select(Tool).where((Tool.id == tool_id) & (Tool.server_id == server_id))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_enabled_by_name(self, server_id: int, name: str) -> Optional[Tool]:
        """The enabled tool called ``name`` on the server."""
        stmt = select(Tool).where(
            (Tool.server_id == server_id) & (Tool.name == name) & (Tool.enabled == True)  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_names(self, server_id: int) -> Set[str]:
        """All tool names already used on the server, enabled or not."""
        result = await self.session.execute(select(Tool.name).where(Tool.server_id == server_id))
        return set(result.scalars().all())
