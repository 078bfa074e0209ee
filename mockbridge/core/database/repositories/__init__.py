"""
Database repository layer using SQLModel.

All repositories share the ``AsyncBaseRepository`` CRUD interface and translate
unique-constraint violations into ``ConflictError``.

Modules:
- base: AsyncBaseRepository interface and QueryBuilder utilities
- mock_routes: Mock route and template variable operations
- route_datasets: Dataset record operations
- tool_servers: Tool server and auth config operations
- tools: Tool definition operations
"""

from .mock_routes import MockRouteRepository
from .route_datasets import RouteDatasetRepository
from .tool_servers import ToolServerRepository
from .tools import ToolRepository

__all__ = [
    "MockRouteRepository",
    "RouteDatasetRepository",
    "ToolRepository",
    "ToolServerRepository",
]
