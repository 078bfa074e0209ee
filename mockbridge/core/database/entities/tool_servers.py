"""
Tool server entity models.

A tool server is a slug-addressed collection of tools reachable over the
JSON-RPC bridge, together with the outbound authentication its tools use.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from mockbridge.core.models.domain.enums import AuthType

from ..base import Base, dump_json_text, load_json_text, utc_now


class ToolServer(Base, table=True):
    """Slug-addressed tool server.

    Table: tool_servers
    """

    __tablename__ = "tool_servers"
    __table_args__ = (UniqueConstraint("tenant_id", "project_id", "slug", name="uq_tool_servers_scope_slug"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: str = Field(max_length=128, index=True)
    project_id: str = Field(max_length=128, index=True)
    name: str = Field(max_length=255)
    slug: str = Field(max_length=60, index=True)
    description: str = Field(default="")
    base_url: str = Field(default="", max_length=2048, description="Default base URL for tools")
    is_enabled: bool = Field(default=True)
    require_api_key: bool = Field(default=False)
    api_key: Optional[str] = Field(default=None, max_length=255, unique=True, index=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"ToolServer(id={self.id}, slug={self.slug})"


class ServerAuthConfig(Base, table=True):
    """Outbound authentication settings of a tool server.

    Table: tool_server_auth_configs
    """

    __tablename__ = "tool_server_auth_configs"

    id: Optional[int] = Field(default=None, primary_key=True)
    server_id: int = Field(foreign_key="tool_servers.id", unique=True, index=True)
    auth_type: AuthType = Field(default=AuthType.none)
    api_key_header_name: Optional[str] = Field(default=None, max_length=255)
    api_key_value: Optional[str] = Field(default=None)
    api_key_query_name: Optional[str] = Field(default=None, max_length=255)
    api_key_query_value: Optional[str] = Field(default=None)
    bearer_token: Optional[str] = Field(default=None)
    basic_username: Optional[str] = Field(default=None)
    basic_password: Optional[str] = Field(default=None)
    extra_headers: str = Field(default="{}", description="JSON object of additional auth headers")

    def get_extra_headers_dict(self) -> Dict[str, str]:
        """Get extra auth headers as a dictionary."""
        headers = load_json_text(self.extra_headers, {})
        if not isinstance(headers, dict):
            return {}
        return {str(k): str(v) for k, v in headers.items() if v is not None}

    def set_extra_headers_dict(self, headers: Dict[str, str]) -> None:
        """Set extra auth headers from a dictionary."""
        self.extra_headers = dump_json_text(headers or {})

    def __repr__(self) -> str:
        # Credentials are deliberately omitted
        return f"ServerAuthConfig(server_id={self.server_id}, auth_type={self.auth_type})"
