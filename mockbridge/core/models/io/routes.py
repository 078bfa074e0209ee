"""Request and response models for mock route administration."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from mockbridge.core.models.domain import HttpMethod, ResponseMode

from .base import BaseSchema


class RouteVarIO(BaseSchema):
    key: str = Field(min_length=1, max_length=128)
    value: str = ""


def _upper_method(value: Any) -> Any:
    return value.strip().upper() if isinstance(value, str) else value


def _check_json_value(value: Any) -> Any:
    if value is not None:
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise ValueError("notFoundBody must be JSON-serializable") from e
    return value


class MockRouteCreate(BaseSchema):
    """Payload registering a mock route.

    ``path`` is validated as a route pattern by the endpoint so that malformed
    patterns surface as ``InvalidPathPatternError``.
    """

    name: str = Field(default="", max_length=255)
    description: str = ""
    method: HttpMethod
    path: str = Field(min_length=1, max_length=1024)
    enabled: bool = True
    require_api_key: bool = False
    api_key: Optional[str] = Field(default=None, max_length=255)

    response_mode: ResponseMode = ResponseMode.STATIC
    response_status: int = Field(default=200, ge=100, le=599)
    response_headers: Dict[str, str] = Field(default_factory=dict)
    response_body: str = ""
    response_is_json: bool = True
    response_delay_ms: int = Field(default=0, ge=0)

    lookup_param_name: Optional[str] = Field(default=None, max_length=128)
    not_found_status: Optional[int] = Field(default=None, ge=100, le=599)
    not_found_body: Optional[Any] = None
    return_all_when_no_key: Optional[bool] = None

    vars: List[RouteVarIO] = Field(default_factory=list)

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, value: Any) -> Any:
        return _upper_method(value)

    @field_validator("not_found_body")
    @classmethod
    def check_not_found_body(cls, value: Any) -> Any:
        return _check_json_value(value)

    @field_validator("api_key", "lookup_param_name", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("vars")
    @classmethod
    def unique_var_keys(cls, value: List[RouteVarIO]) -> List[RouteVarIO]:
        keys = [var.key for var in value]
        if len(keys) != len(set(keys)):
            raise ValueError("template variable keys must be unique")
        return value


class MockRouteUpdate(BaseSchema):
    """Partial update; omitted fields keep their value and ``vars`` replaces all variables."""

    name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    method: Optional[HttpMethod] = None
    path: Optional[str] = Field(default=None, min_length=1, max_length=1024)
    enabled: Optional[bool] = None
    require_api_key: Optional[bool] = None
    api_key: Optional[str] = Field(default=None, max_length=255)

    response_mode: Optional[ResponseMode] = None
    response_status: Optional[int] = Field(default=None, ge=100, le=599)
    response_headers: Optional[Dict[str, str]] = None
    response_body: Optional[str] = None
    response_is_json: Optional[bool] = None
    response_delay_ms: Optional[int] = Field(default=None, ge=0)

    lookup_param_name: Optional[str] = Field(default=None, max_length=128)
    not_found_status: Optional[int] = Field(default=None, ge=100, le=599)
    not_found_body: Optional[Any] = None
    return_all_when_no_key: Optional[bool] = None

    vars: Optional[List[RouteVarIO]] = None

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, value: Any) -> Any:
        return _upper_method(value)

    @field_validator("not_found_body")
    @classmethod
    def check_not_found_body(cls, value: Any) -> Any:
        return _check_json_value(value)

    @field_validator("api_key", "lookup_param_name", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("vars")
    @classmethod
    def unique_var_keys(cls, value: Optional[List[RouteVarIO]]) -> Optional[List[RouteVarIO]]:
        keys = [var.key for var in value or []]
        if len(keys) != len(set(keys)):
            raise ValueError("template variable keys must be unique")
        return value


class MockRouteRead(BaseSchema):
    id: int
    tenant_id: str
    project_id: str
    name: str
    description: str
    method: str
    path: str
    enabled: bool
    require_api_key: bool
    api_key: Optional[str] = None
    response_mode: ResponseMode
    response_status: int
    response_headers: Dict[str, Any]
    response_body: str
    response_is_json: bool
    response_delay_ms: int
    lookup_param_name: Optional[str] = None
    not_found_status: Optional[int] = None
    not_found_body: Optional[Any] = None
    return_all_when_no_key: Optional[bool] = None
    vars: List[RouteVarIO] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
