"""Request and response models for tool servers and tools."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import ConfigDict, Field, field_validator

from mockbridge.core.models.domain import AuthType

from .base import BaseSchema


class AuthConfigIO(BaseSchema):
    """Outbound authentication of a tool server.

    Secrets are accepted on write and never echoed back on read.
    """

    auth_type: AuthType = AuthType.none
    api_key_header_name: Optional[str] = None
    api_key_value: Optional[str] = None
    api_key_query_name: Optional[str] = None
    api_key_query_value: Optional[str] = None
    bearer_token: Optional[str] = None
    basic_username: Optional[str] = None
    basic_password: Optional[str] = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)


class AuthConfigRead(BaseSchema):
    auth_type: AuthType
    api_key_header_name: Optional[str] = None
    api_key_query_name: Optional[str] = None
    extra_header_names: List[str] = Field(default_factory=list)


class ToolServerCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, description="Defaults to the normalized name")
    description: str = ""
    base_url: str = Field(default="", max_length=2048)
    is_enabled: bool = True
    require_api_key: bool = False
    api_key: Optional[str] = Field(default=None, max_length=255)
    auth: Optional[AuthConfigIO] = None

    @field_validator("name", "base_url")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_key_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value


class ToolServerRead(BaseSchema):
    id: int
    tenant_id: str
    project_id: str
    name: str
    slug: str
    description: str
    base_url: str
    is_enabled: bool
    require_api_key: bool
    api_key: Optional[str] = None
    auth: Optional[AuthConfigRead] = None
    created_at: datetime
    updated_at: datetime


class ToolRead(BaseSchema):
    id: int
    server_id: int
    name: str
    description: str
    input_schema: Dict[str, Any]
    http_method: str
    base_url: str
    path_template: str
    query_mapping: Dict[str, Any]
    body_mapping: Dict[str, Any]
    headers_mapping: Dict[str, Any]
    enabled: bool
    source: Optional[Dict[str, Any]] = Field(default=None, description="Provenance of generated tools")
    created_at: datetime


class ToolUpdate(BaseSchema):
    """Partial update of a tool; omitted fields keep their value."""

    name: Optional[str] = None
    description: Optional[str] = None
    http_method: Optional[str] = None
    path_template: Optional[str] = Field(default=None, max_length=1024)
    base_url: Optional[str] = Field(default=None, max_length=2048)
    enabled: Optional[bool] = None
    query_mapping: Optional[Dict[str, Any]] = None
    body_mapping: Optional[Dict[str, Any]] = None
    headers_mapping: Optional[Dict[str, Any]] = None
    input_schema: Optional[Dict[str, Any]] = None

    @field_validator("description", "path_template", "base_url")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if isinstance(value, str) else value

    @field_validator("http_method")
    @classmethod
    def normalize_method(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        method = value.strip().upper()
        if not method.isalpha():
            raise ValueError("httpMethod must be an HTTP method name")
        return method


class ToolParamIO(BaseSchema):
    model_config = ConfigDict(extra="ignore")

    name: str
    type: str = "string"
    description: str = ""
    required: bool = False
    items: Optional[Dict[str, Any]] = None


class RouteToolSelection(BaseSchema):
    route_id: int
    tool_name: str = ""
    description: str = ""


class OperationToolSelection(BaseSchema):
    """One OpenAPI operation chosen for import, as returned by the preview."""

    model_config = ConfigDict(extra="ignore")

    operation_id: str = ""
    method: str = "GET"
    path: str = Field(min_length=1)
    tool_name: str = ""
    description: str = ""
    summary: str = ""
    path_params: List[Union[str, ToolParamIO]] = Field(default_factory=list)
    query_params: List[ToolParamIO] = Field(default_factory=list)
    body_properties: List[ToolParamIO] = Field(default_factory=list)

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value


class ImportToolsRequest(BaseSchema):
    mode: Literal["routes", "openapi"]
    routes: List[RouteToolSelection] = Field(default_factory=list)
    operations: List[OperationToolSelection] = Field(default_factory=list)
    base_url: Optional[str] = None

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class ImportToolsResponse(BaseSchema):
    created: List[ToolRead]


class OpenApiPreviewRequest(BaseSchema):
    spec: str = Field(..., description="OpenAPI document as JSON or YAML text")
