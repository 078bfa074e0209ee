"""
Input-schema construction for tool definitions.

Tool input contracts are JSON Schema objects built from three parameter lists
(path, query, body). Properties are first-seen-wins in that order; every path
parameter is required, query and body parameters only when flagged. The
schema may carry provenance under ``x-mockbridge-source`` recording whether the
tool was generated from a mock route or an OpenAPI operation.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, MutableSet, Optional, Sequence, Union

from mockbridge.core.models.domain import ToolSourceType
from mockbridge.core.models.io.base import BaseSchema

PROVENANCE_KEY = "x-mockbridge-source"

JSON_SCHEMA_TYPES = frozenset({"string", "integer", "number", "boolean", "object", "array"})

# Path parameters without a declared type accept any scalar; the executor stringifies them
UNTYPED_PATH_PARAM_TYPES = ["string", "integer", "number", "boolean"]

_PATH_TOKEN = re.compile(r"\{([^}]+)\}|:([A-Za-z0-9_]+)")


class ParamSpec(BaseSchema):
    """One input parameter of a tool."""

    name: str
    type: Optional[str] = None
    description: str = ""
    required: bool = False
    items: Optional[Dict[str, Any]] = None


ParamLike = Union[str, ParamSpec, Mapping[str, Any]]


def _coerce_param(param: ParamLike) -> Optional[ParamSpec]:
    if isinstance(param, ParamSpec):
        return param
    if isinstance(param, str):
        return ParamSpec(name=param) if param else None
    if isinstance(param, Mapping) and param.get("name"):
        return ParamSpec.model_validate(
            {k: v for k, v in param.items() if k in ParamSpec.model_fields and v is not None}
        )
    return None


def property_schema(param: ParamSpec, default_description: str) -> Dict[str, Any]:
    """JSON Schema for one parameter, restricted to valid JSON Schema types."""
    kind = param.type if param.type in JSON_SCHEMA_TYPES else "string"
    prop: Dict[str, Any] = {"type": kind, "description": param.description or default_description}
    if kind == "array":
        items = dict(param.items or {})
        if items.get("type") not in JSON_SCHEMA_TYPES:
            items["type"] = "string"
        prop["items"] = items
    return prop


def build_input_schema(
    path_params: Sequence[ParamLike] = (),
    query_params: Sequence[ParamLike] = (),
    body_properties: Sequence[ParamLike] = (),
    source: Optional[Dict[str, Any]] = None,
    summary: str = "",
) -> Dict[str, Any]:
    """Build a tool input schema.

    Args:
        path_params: Path parameter names or specs; always required
        query_params: Query parameter specs
        body_properties: Request-body property specs
        source: Provenance metadata stored under ``x-mockbridge-source``
        summary: Optional schema description

    Returns:
        JSON Schema object with ``additionalProperties`` allowed
    """
    schema: Dict[str, Any] = {
        "type": "object",
        "additionalProperties": True,
        "properties": {},
        "required": [],
    }
    if summary:
        schema["description"] = summary
    if source:
        schema[PROVENANCE_KEY] = source

    properties: Dict[str, Any] = schema["properties"]
    required: List[str] = []

    for raw in path_params:
        param = _coerce_param(raw)
        if param is None or param.name in properties:
            continue
        if param.type is None:
            properties[param.name] = {
                "type": list(UNTYPED_PATH_PARAM_TYPES),
                "description": param.description or "Path parameter",
            }
        else:
            properties[param.name] = property_schema(param, "Path parameter")
        required.append(param.name)

    for group, label in ((query_params, "Query parameter"), (body_properties, "Body property")):
        for raw in group:
            param = _coerce_param(raw)
            if param is None or param.name in properties:
                continue
            properties[param.name] = property_schema(param, label)
            if param.required:
                required.append(param.name)

    schema["required"] = list(dict.fromkeys(required))
    return schema


def extract_path_params(path: Optional[str]) -> List[str]:
    """Parameter names of a path template (``{name}`` and ``:name``), de-duplicated."""
    if not path:
        return []
    names: List[str] = []
    for match in _PATH_TOKEN.finditer(path):
        name = match.group(1) or match.group(2)
        if name and name not in names:
            names.append(name)
    return names


def slugify_tool_name(value: Optional[str]) -> str:
    """Lower-case ``value`` and collapse anything outside ``[a-z0-9]`` into single underscores."""
    normalized = re.sub(r"[^a-z0-9]+", "_", str(value or "").lower().strip())
    normalized = re.sub(r"_{2,}", "_", normalized.strip("_"))
    return normalized or "tool"


def ensure_unique_tool_name(base_name: str, used_names: MutableSet[str]) -> str:
    """Return a slugified name not in ``used_names`` and record it there.

    Collisions get ``_2``, ``_3``, ... suffixes.
    """
    base = slugify_tool_name(base_name)
    candidate = base
    suffix = 2
    while candidate in used_names:
        candidate = f"{base}_{suffix}"
        suffix += 1
    used_names.add(candidate)
    return candidate


def describe_source(schema: Any) -> Optional[Dict[str, Any]]:
    """Provenance metadata of a schema, if any."""
    if not isinstance(schema, dict):
        return None
    meta = schema.get(PROVENANCE_KEY)
    return meta if isinstance(meta, dict) else None


def mock_route_source(route_id: int) -> Dict[str, Any]:
    return {"type": ToolSourceType.mock_route.value, "routeId": route_id}


def openapi_source(operation_id: str, path: str, method: str) -> Dict[str, Any]:
    return {"type": ToolSourceType.openapi.value, "operationId": operation_id, "path": path, "method": method}

