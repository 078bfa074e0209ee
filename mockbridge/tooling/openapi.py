"""OpenAPI operation extraction

Overview
--------
Turns a pasted OpenAPI (3.x) or Swagger (2.0) document into a normalized list of
operations that the tool importer can turn into tool definitions, plus the
defaults a new tool server should start from.

- ``parse_openapi_spec``: strict JSON first, then YAML via ``yaml.safe_load``.
- ``extract_operations``: every path x ``get, post, put, patch, delete, options, head``.
- ``ensure_operation_names``: unique tool names inside the target server.
- ``infer_base_url`` / ``infer_auth``: server URL and primary auth scheme.

Request bodies are only broken into per-field properties when the JSON media
type carries an object schema with ``properties``; other shapes stay opaque and
callers forward the whole argument object instead.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import yaml
from pydantic import Field, computed_field

from mockbridge.core.errors import OpenApiParseError
from mockbridge.core.logging_config import get_logger
from mockbridge.core.models.domain import AuthType
from mockbridge.core.models.io.base import BaseSchema

from .schema_builder import JSON_SCHEMA_TYPES, ParamSpec, ensure_unique_tool_name, slugify_tool_name

logger = get_logger(__name__)

HTTP_METHODS = ("get", "post", "put", "patch", "delete", "options", "head")
KEPT_PARAMETER_LOCATIONS = ("path", "query")


@dataclass
class ParsedSpec:
    document: Dict[str, Any]
    format: str


class OperationParameter(ParamSpec):
    """A path or query parameter of an operation."""

    location: str = Field(default="query", description="OpenAPI ``in`` value")


class OpenApiOperation(BaseSchema):
    """Normalized view of one OpenAPI operation."""

    id: str
    operation_id: str
    method: str
    path: str
    summary: str = ""
    description: str = ""
    suggested_name: str
    tool_name: Optional[str] = None
    parameters: List[OperationParameter] = Field(default_factory=list)
    body_properties: List[ParamSpec] = Field(default_factory=list)

    @computed_field
    @property
    def path_params(self) -> List[OperationParameter]:
        return [p for p in self.parameters if p.location == "path"]

    @computed_field
    @property
    def query_params(self) -> List[OperationParameter]:
        return [p for p in self.parameters if p.location == "query"]


class InferredAuth(BaseSchema):
    auth_type: AuthType = AuthType.none
    api_key_header_name: Optional[str] = None
    api_key_query_name: Optional[str] = None


class OpenApiPreview(BaseSchema):
    """What an import from this document would start from."""

    format: str
    base_url: str
    auth: InferredAuth
    operations: List[OpenApiOperation]


def parse_openapi_spec(raw: Optional[str]) -> ParsedSpec:
    """Parse an OpenAPI document.

    Args:
        raw: Document text, JSON or YAML

    Returns:
        The parsed mapping and the format that parsed it

    Raises:
        OpenApiParseError: Empty input, neither format parses, or the document is not a mapping
    """
    text = str(raw or "").strip()
    if not text:
        raise OpenApiParseError("OpenAPI document is empty")

    try:
        document, fmt = json.loads(text), "json"
    except ValueError:
        try:
            document, fmt = yaml.safe_load(text), "yaml"
        except yaml.YAMLError as e:
            raise OpenApiParseError(f"Unable to parse OpenAPI spec: {e}", cause=e) from e

    if not isinstance(document, dict):
        raise OpenApiParseError(f"OpenAPI document must be a mapping, got {type(document).__name__}")
    logger.debug(f"Parsed OpenAPI document as {fmt}")
    return ParsedSpec(document=document, format=fmt)


def normalize_schema(schema: Any) -> Dict[str, Any]:
    """Reduce an OpenAPI schema to ``{type, description, items?}`` with a valid JSON Schema type."""
    if not isinstance(schema, dict):
        return {"type": "string", "description": ""}
    if "$ref" in schema:
        return {"type": "object", "description": "Referenced schema"}

    kind = schema.get("type")
    if isinstance(kind, list):
        # OpenAPI 3.1 style ["string", "null"]
        kind = next((k for k in kind if k in JSON_SCHEMA_TYPES), None)
    if kind not in JSON_SCHEMA_TYPES:
        kind = "object" if isinstance(schema.get("properties"), dict) else "string"

    normalized: Dict[str, Any] = {"type": kind, "description": schema.get("description") or ""}
    if kind == "array":
        child = normalize_schema(schema.get("items"))
        normalized["items"] = {"type": child["type"]}
    return normalized


def _spec_from_schema(name: str, schema: Any, *, description: str = "", required: bool = False) -> Dict[str, Any]:
    normalized = normalize_schema(schema)
    return {
        "name": name,
        "type": normalized["type"],
        "description": description or normalized["description"],
        "required": required,
        "items": normalized.get("items"),
    }


def collect_parameters(path_item: Dict[str, Any], operation: Dict[str, Any]) -> List[OperationParameter]:
    """Merge path-item and operation parameters; operation-level entries override on ``(name, in)``."""
    merged: Dict[tuple, OperationParameter] = {}
    for level in (path_item.get("parameters"), operation.get("parameters")):
        if not isinstance(level, list):
            continue
        for param in level:
            if not isinstance(param, dict) or "$ref" in param:
                continue
            name = param.get("name") or ""
            location = param.get("in") or "query"
            if not name or location not in KEPT_PARAMETER_LOCATIONS:
                continue
            spec = _spec_from_schema(
                name,
                param.get("schema", {"type": param.get("type")}),
                description=param.get("description") or "",
                required=bool(param.get("required")) or location == "path",
            )
            merged[(name, location)] = OperationParameter(location=location, **spec)
    return list(merged.values())


def _is_json_media_type(media_type: str) -> bool:
    base = media_type.split(";", 1)[0].strip().lower()
    return base == "application/json" or base.endswith("+json")


def collect_body_properties(operation: Dict[str, Any]) -> List[ParamSpec]:
    """Per-field body properties of a JSON object request body, or ``[]`` for opaque bodies."""
    request_body = operation.get("requestBody")
    if not isinstance(request_body, dict):
        return []
    content = request_body.get("content")
    if not isinstance(content, dict):
        return []

    media = next((value for key, value in content.items() if _is_json_media_type(key)), None)
    schema = media.get("schema") if isinstance(media, dict) else None
    if not isinstance(schema, dict) or "$ref" in schema:
        return []
    if schema.get("type", "object") != "object" or not isinstance(schema.get("properties"), dict):
        return []

    required = schema.get("required") if isinstance(schema.get("required"), list) else []
    return [
        ParamSpec(**_spec_from_schema(name, prop_schema, required=name in required))
        for name, prop_schema in schema["properties"].items()
    ]


def extract_operations(document: Dict[str, Any]) -> List[OpenApiOperation]:
    """List every operation of ``document`` in path then verb order."""
    paths = document.get("paths") if isinstance(document, dict) else None
    if not isinstance(paths, dict):
        return []

    operations: List[OpenApiOperation] = []
    for path_key, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for verb in HTTP_METHODS:
            op = path_item.get(verb)
            if not isinstance(op, dict):
                continue
            method = verb.upper()
            fallback_name = f"{method}_{path_key}"
            operation_id = op.get("operationId") or fallback_name
            operations.append(
                OpenApiOperation(
                    id=f"{method}_{path_key}_{operation_id}",
                    operation_id=operation_id,
                    method=method,
                    path=path_key,
                    summary=op.get("summary") or "",
                    description=op.get("description") or "",
                    suggested_name=slugify_tool_name(op.get("operationId") or op.get("summary") or fallback_name),
                    parameters=collect_parameters(path_item, op),
                    body_properties=collect_body_properties(op),
                )
            )
    return operations


def ensure_operation_names(
    operations: Iterable[OpenApiOperation], existing_names: Iterable[str] = ()
) -> List[OpenApiOperation]:
    """Assign each operation a ``tool_name`` unique against ``existing_names`` and the batch."""
    used = set(existing_names)
    return [op.model_copy(update={"tool_name": ensure_unique_tool_name(op.suggested_name, used)}) for op in operations]


def infer_base_url(document: Dict[str, Any]) -> str:
    """First ``servers[].url``, else Swagger 2 ``basePath``, else an empty string."""
    servers = document.get("servers")
    if isinstance(servers, list) and servers:
        first = servers[0]
        if isinstance(first, dict) and isinstance(first.get("url"), str):
            return first["url"].strip()
    base_path = document.get("basePath")
    return base_path if isinstance(base_path, str) else ""


def _declared_schemes(document: Dict[str, Any]) -> Dict[str, Any]:
    components = document.get("components")
    if isinstance(components, dict) and isinstance(components.get("securitySchemes"), dict):
        return components["securitySchemes"]
    definitions = document.get("securityDefinitions")
    return definitions if isinstance(definitions, dict) else {}


def infer_auth(document: Dict[str, Any]) -> InferredAuth:
    """Infer the primary outbound auth scheme of a document.

    The first entry of the top-level ``security`` requirement wins, else the
    first declared scheme. Anything unrecognized maps to ``none``.
    """
    schemes = _declared_schemes(document)

    primary_key: Optional[str] = None
    security = document.get("security")
    if isinstance(security, list) and security and isinstance(security[0], dict) and security[0]:
        primary_key = next(iter(security[0]))
    if primary_key is None and schemes:
        primary_key = next(iter(schemes))

    scheme = schemes.get(primary_key) if primary_key else None
    if not isinstance(scheme, dict):
        return InferredAuth()

    kind = scheme.get("type")
    if kind == "apiKey":
        if scheme.get("in") == "header":
            return InferredAuth(auth_type=AuthType.api_key_header, api_key_header_name=scheme.get("name") or "X-API-Key")
        if scheme.get("in") == "query":
            return InferredAuth(auth_type=AuthType.api_key_query, api_key_query_name=scheme.get("name") or "api_key")
    elif kind == "http":
        http_scheme = str(scheme.get("scheme") or "").lower()
        if http_scheme == "bearer":
            return InferredAuth(auth_type=AuthType.bearer_token)
        if http_scheme == "basic":
            return InferredAuth(auth_type=AuthType.basic)
    elif kind == "basic":
        return InferredAuth(auth_type=AuthType.basic)
    return InferredAuth()
