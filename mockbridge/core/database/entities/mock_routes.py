"""
Mock route entity models.

This module contains the database entities for operator-defined virtual HTTP
endpoints: the route definition itself and its ordered template variables.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Text, UniqueConstraint
from sqlmodel import Field

from mockbridge.core.models.domain.enums import ResponseMode

from ..base import Base, dump_json_text, load_json_text, utc_now


class MockRouteBase(Base):
    """Base fields for a mock route definition."""

    # Owner scope
    tenant_id: str = Field(max_length=128, index=True, description="Owning tenant")
    project_id: str = Field(max_length=128, index=True, description="Owning project")

    # Matching
    name: str = Field(default="", max_length=255, description="Display name")
    description: str = Field(default="", description="Free-form description")
    method: str = Field(max_length=10, index=True, description="HTTP method (upper case)")
    path: str = Field(max_length=1024, description="Path pattern (:name, :name?, {name})")
    enabled: bool = Field(default=True, description="Whether the route answers requests")

    # Access
    require_api_key: bool = Field(default=False, description="Exclude from anonymous public matching")
    api_key: Optional[str] = Field(default=None, max_length=255, unique=True, index=True)

    # Response
    response_mode: ResponseMode = Field(default=ResponseMode.STATIC, description="Rendering strategy")
    response_status: int = Field(default=200, description="Status code for STATIC/TEMPLATE responses")
    response_headers: str = Field(default="{}", description="JSON object of custom response headers")
    response_body: str = Field(default="", sa_type=Text, description="Stored body or template text")
    response_is_json: bool = Field(default=True, description="Rendered body must be valid JSON")
    response_delay_ms: int = Field(default=0, ge=0, description="Artificial delay before responding")

    # Dataset lookup options
    lookup_param_name: Optional[str] = Field(default=None, max_length=128)
    not_found_status: Optional[int] = Field(default=None)
    not_found_body: Optional[str] = Field(default=None, description="JSON body returned on dataset miss")
    return_all_when_no_key: Optional[bool] = Field(
        default=None, description="List all records when no key is given (only an explicit False disables)"
    )


class MockRoute(MockRouteBase, table=True):
    """Persistent mock route definition.

    Table: mock_routes
    """

    __tablename__ = "mock_routes"

    id: Optional[int] = Field(default=None, primary_key=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_response_headers_dict(self) -> Dict[str, Any]:
        """Get custom response headers as a dictionary."""
        headers = load_json_text(self.response_headers, {})
        return headers if isinstance(headers, dict) else {}

    def set_response_headers_dict(self, headers: Dict[str, Any]) -> None:
        """Set custom response headers from a dictionary."""
        self.response_headers = dump_json_text(headers or {})

    def __repr__(self) -> str:
        return f"MockRoute(id={self.id}, method={self.method}, path={self.path}, mode={self.response_mode})"


class RouteVar(Base, table=True):
    """Template variable bound to a mock route.

    Variables are exposed to TEMPLATE rendering as ``vars``, in id order.

    Table: mock_route_vars
    """

    __tablename__ = "mock_route_vars"
    __table_args__ = (UniqueConstraint("route_id", "key", name="uq_mock_route_vars_route_key"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    route_id: int = Field(foreign_key="mock_routes.id", index=True)
    key: str = Field(max_length=128)
    value: str = Field(default="")
