"""Request and response models for route dataset records."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from .base import BaseSchema


def normalize_record_key(value: Any) -> str:
    key = str(value if value is not None else "").strip()
    if not key:
        raise ValueError("key is required")
    return key


def parse_json_value(value: Any) -> Any:
    """Accept a JSON document as text or an already-structured value."""
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("valueJson is required")
        try:
            return json.loads(trimmed)
        except ValueError as e:
            raise ValueError("valueJson must be valid JSON") from e
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError) as e:
        raise ValueError("valueJson must be JSON-serializable") from e


class DatasetRecordCreate(BaseSchema):
    key: str
    value_json: Any = Field(..., description="JSON text or a JSON value")
    enabled: bool = True

    @field_validator("key", mode="before")
    @classmethod
    def check_key(cls, value: Any) -> str:
        return normalize_record_key(value)

    @field_validator("value_json", mode="before")
    @classmethod
    def check_value(cls, value: Any) -> Any:
        return parse_json_value(value)


class DatasetRecordUpdate(BaseSchema):
    """Partial update. ``valueJson`` is applied whenever it is present, even as ``null``."""

    key: Optional[str] = None
    value_json: Any = None
    enabled: Optional[bool] = None

    @field_validator("key", mode="before")
    @classmethod
    def check_key(cls, value: Any) -> Optional[str]:
        return None if value is None else normalize_record_key(value)

    @field_validator("value_json", mode="before")
    @classmethod
    def check_value(cls, value: Any) -> Any:
        return parse_json_value(value)


class DatasetRecordRead(BaseSchema):
    id: int
    route_id: int
    key: str
    value_json: Any = None
    enabled: bool
    created_at: datetime
    updated_at: datetime
