"""
Tool entity model.

A tool is a configured outbound HTTP call exposed as an RPC-callable function.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Text, UniqueConstraint
from sqlmodel import Field

from ..base import Base, dump_json_text, load_json_text, utc_now


class Tool(Base, table=True):
    """Outbound HTTP tool definition.

    Mapping tables are JSON objects keyed by destination name (query parameter,
    body field or header) whose values name the source argument.

    Table: tools
    """

    __tablename__ = "tools"
    __table_args__ = (UniqueConstraint("server_id", "name", name="uq_tools_server_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    server_id: int = Field(foreign_key="tool_servers.id", index=True)
    name: str = Field(max_length=128)
    description: str = Field(default="")
    input_schema: str = Field(default="{}", sa_type=Text, description="JSON input schema with provenance")
    http_method: str = Field(default="GET", max_length=10)
    base_url: str = Field(default="", max_length=2048)
    path_template: str = Field(default="/", max_length=1024)
    query_mapping: str = Field(default="{}")
    body_mapping: str = Field(default="{}")
    headers_mapping: str = Field(default="{}")
    enabled: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_input_schema_dict(self) -> Dict[str, Any]:
        """Get the input schema as a dictionary."""
        schema = load_json_text(self.input_schema, {})
        return schema if isinstance(schema, dict) else {}

    def set_input_schema_dict(self, schema: Dict[str, Any]) -> None:
        """Set the input schema from a dictionary."""
        self.input_schema = dump_json_text(schema or {})

    def get_query_mapping_dict(self) -> Dict[str, Any]:
        """Get the query mapping as a dictionary."""
        return _as_dict(load_json_text(self.query_mapping, {}))

    def get_body_mapping_dict(self) -> Dict[str, Any]:
        """Get the body mapping as a dictionary."""
        return _as_dict(load_json_text(self.body_mapping, {}))

    def get_headers_mapping_dict(self) -> Dict[str, Any]:
        """Get the headers mapping as a dictionary."""
        return _as_dict(load_json_text(self.headers_mapping, {}))

    def set_mappings(
        self,
        *,
        query: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Set all three mapping tables at once."""
        self.query_mapping = dump_json_text(query or {})
        self.body_mapping = dump_json_text(body or {})
        self.headers_mapping = dump_json_text(headers or {})

    def __repr__(self) -> str:
        return f"Tool(id={self.id}, server_id={self.server_id}, name={self.name})"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}
