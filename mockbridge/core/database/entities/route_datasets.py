"""
Route dataset entity model.

Dataset records are per-route keyed JSON values served by DATASET_LOOKUP routes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Text, UniqueConstraint
from sqlmodel import Field

from ..base import Base, utc_now


class RouteDataset(Base, table=True):
    """Keyed JSON record belonging to exactly one mock route.

    ``value_json`` holds JSON text. Legacy rows may hold a JSON document whose
    value is itself a JSON-encoded string; readers normalize both forms.

    Table: mock_route_datasets
    """

    __tablename__ = "mock_route_datasets"
    __table_args__ = (UniqueConstraint("route_id", "key", name="uq_mock_route_datasets_route_key"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    route_id: int = Field(foreign_key="mock_routes.id", index=True)
    key: str = Field(max_length=255)
    value_json: str = Field(sa_type=Text, description="JSON-encoded record value")
    enabled: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"RouteDataset(id={self.id}, route_id={self.route_id}, key={self.key})"
