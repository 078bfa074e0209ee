"""
Dataset lookup for DATASET_LOOKUP routes.

A lookup key is taken from the route's configured parameter (path first, then
query), falling back to the ``key`` and ``bookingId`` query parameters kept for
existing clients. With a key, the matching enabled record's value is returned;
without one, all enabled records are listed unless the route opts out.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from mockbridge.core.database.entities import MockRoute, RouteDataset
from mockbridge.core.database.repositories import RouteDatasetRepository
from mockbridge.core.errors import InternalRenderError
from mockbridge.core.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_NOT_FOUND_STATUS = 404
DEFAULT_NOT_FOUND_BODY: Dict[str, Any] = {"error": "Not found"}

# Query aliases honoured when no configured parameter yields a key
LEGACY_KEY_ALIASES = ("key", "bookingId")


def normalize_json(value: Any) -> Any:
    """Return ``value`` as a parsed JSON structure.

    Already-parsed values pass through; strings are trimmed and parsed.

    Raises:
        ValueError: If a string is not valid JSON
    """
    if value is None or not isinstance(value, str):
        return value
    return json.loads(value.strip())


def _has_key(value: Optional[str]) -> bool:
    return value is not None and str(value).strip() != ""


def resolve_lookup_key(
    route: MockRoute, params: Mapping[str, Optional[str]], query: Mapping[str, str]
) -> Optional[str]:
    """Find the lookup key for a request, or None when no key was given."""
    key: Optional[str] = None
    if route.lookup_param_name:
        key = params.get(route.lookup_param_name)
        if key is None:
            key = query.get(route.lookup_param_name)
    if not _has_key(key):
        key = None
        for alias in LEGACY_KEY_ALIASES:
            if query.get(alias) is not None:
                key = query.get(alias)
                break
    return str(key) if _has_key(key) else None


@dataclass
class DatasetResult:
    status: int
    payload: Any


class DatasetLookupResolver:
    """Serve dataset records for a matched route."""

    def __init__(self, repository: RouteDatasetRepository) -> None:
        self.repository = repository

    async def resolve(
        self, route: MockRoute, params: Mapping[str, Optional[str]], query: Mapping[str, str]
    ) -> DatasetResult:
        """Resolve the dataset response of ``route``.

        Raises:
            InternalRenderError: A stored record value is not valid JSON
        """
        key = resolve_lookup_key(route, params, query)

        if key is None:
            if route.return_all_when_no_key is False:
                return self._not_found(route)
            records = await self.repository.list_enabled(route.id)
            items = [{"key": record.key, "value": self._record_value(record)} for record in records]
            return DatasetResult(status=200, payload={"count": len(items), "items": items})

        record = await self.repository.get_enabled_by_key(route.id, key)
        if record is None:
            logger.debug(f"No dataset record for route id={route.id} key={key}")
            return self._not_found(route)
        return DatasetResult(status=200, payload=self._record_value(record))

    @staticmethod
    def _record_value(record: RouteDataset) -> Any:
        try:
            value = json.loads(record.value_json)
        except (ValueError, TypeError) as e:
            logger.error(f"Dataset record id={record.id} holds invalid JSON")
            raise InternalRenderError(f"Invalid JSON in dataset value for key={record.key}") from e
        # Older records hold the JSON document as a string value
        try:
            return normalize_json(value)
        except ValueError:
            return value

    @staticmethod
    def _not_found(route: MockRoute) -> DatasetResult:
        status = route.not_found_status or DEFAULT_NOT_FOUND_STATUS
        if route.not_found_body is None:
            return DatasetResult(status=status, payload=DEFAULT_NOT_FOUND_BODY)
        try:
            body = normalize_json(json.loads(route.not_found_body))
        except (ValueError, TypeError):
            body = DEFAULT_NOT_FOUND_BODY
        return DatasetResult(status=status, payload=body)
