"""Pydantic base schema for wire-facing models.

Provides a common :class:`BaseSchema` that enforces aliasing and extra-field
policy for the request/response models of the administrative API and for the
descriptors produced by the tooling layer.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def _to_camel(s: str) -> str:
    """Convert snake_case to camelCase for JSON aliasing."""
    parts = s.split("_")
    return parts[0] + "".join(p.capitalize() or "_" for p in parts[1:])


class BaseSchema(BaseModel):
    """Shared base for wire-facing Pydantic models.

    - Rejects unknown fields
    - Enables ``populate_by_name`` for using either snake_case or camelCase
    - Uses a snake->camel alias generator for JSON interop
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        alias_generator=_to_camel,
    )

    def to_wire(self) -> dict:
        """Dump using camelCase aliases."""
        return self.model_dump(by_alias=True, mode="json")
