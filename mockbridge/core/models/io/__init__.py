"""Wire models of the administrative API (camelCase on the wire)."""

from .base import BaseSchema
from .datasets import DatasetRecordCreate, DatasetRecordRead, DatasetRecordUpdate
from .routes import MockRouteCreate, MockRouteRead, MockRouteUpdate, RouteVarIO
from .tool_servers import (
    AuthConfigIO,
    AuthConfigRead,
    ImportToolsRequest,
    ImportToolsResponse,
    OpenApiPreviewRequest,
    OperationToolSelection,
    RouteToolSelection,
    ToolParamIO,
    ToolRead,
    ToolServerCreate,
    ToolServerRead,
    ToolUpdate,
)

__all__ = [
    "AuthConfigIO",
    "AuthConfigRead",
    "BaseSchema",
    "DatasetRecordCreate",
    "DatasetRecordRead",
    "DatasetRecordUpdate",
    "ImportToolsRequest",
    "ImportToolsResponse",
    "MockRouteCreate",
    "MockRouteRead",
    "MockRouteUpdate",
    "OpenApiPreviewRequest",
    "OperationToolSelection",
    "RouteToolSelection",
    "RouteVarIO",
    "ToolParamIO",
    "ToolRead",
    "ToolServerCreate",
    "ToolServerRead",
    "ToolUpdate",
]
