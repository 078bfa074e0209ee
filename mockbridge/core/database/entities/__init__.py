"""
Database entity models.

Modules:
- mock_routes: Mock route definitions and their template variables
- route_datasets: Keyed dataset records for DATASET_LOOKUP routes
- tool_servers: Slug-addressed tool servers and their outbound auth config
- tools: Outbound HTTP tool definitions
"""

from . import mock_routes, route_datasets, tool_servers, tools
from .mock_routes import MockRoute, RouteVar
from .route_datasets import RouteDataset
from .tool_servers import ServerAuthConfig, ToolServer
from .tools import Tool

__all__ = [
    "MockRoute",
    "RouteDataset",
    "RouteVar",
    "ServerAuthConfig",
    "Tool",
    "ToolServer",
    "mock_routes",
    "route_datasets",
    "tool_servers",
    "tools",
]
