"""Entity to wire-model conversion for the administrative API."""

import json
from typing import Iterable, Optional

from mockbridge.core.database.entities import (
    MockRoute,
    RouteDataset,
    RouteVar,
    ServerAuthConfig,
    Tool,
    ToolServer,
)
from mockbridge.core.models.io import (
    AuthConfigRead,
    DatasetRecordRead,
    MockRouteRead,
    RouteVarIO,
    ToolRead,
    ToolServerRead,
)
from mockbridge.engine.dataset_lookup import normalize_json
from mockbridge.tooling.schema_builder import describe_source


def _loads_or_raw(text: Optional[str]):
    if text is None:
        return None
    try:
        value = json.loads(text)
    except ValueError:
        return text
    try:
        return normalize_json(value)
    except ValueError:
        return value


def route_to_read(route: MockRoute, variables: Iterable[RouteVar] = ()) -> MockRouteRead:
    return MockRouteRead(
        id=route.id,
        tenant_id=route.tenant_id,
        project_id=route.project_id,
        name=route.name,
        description=route.description,
        method=route.method,
        path=route.path,
        enabled=route.enabled,
        require_api_key=route.require_api_key,
        api_key=route.api_key,
        response_mode=route.response_mode,
        response_status=route.response_status,
        response_headers=route.get_response_headers_dict(),
        response_body=route.response_body,
        response_is_json=route.response_is_json,
        response_delay_ms=route.response_delay_ms,
        lookup_param_name=route.lookup_param_name,
        not_found_status=route.not_found_status,
        not_found_body=_loads_or_raw(route.not_found_body),
        return_all_when_no_key=route.return_all_when_no_key,
        vars=[RouteVarIO(key=var.key, value=var.value) for var in variables],
        created_at=route.created_at,
        updated_at=route.updated_at,
    )


def record_to_read(record: RouteDataset) -> DatasetRecordRead:
    """Dataset record with its value decoded; legacy string-encoded values are unwrapped."""
    return DatasetRecordRead(
        id=record.id,
        route_id=record.route_id,
        key=record.key,
        value_json=_loads_or_raw(record.value_json),
        enabled=record.enabled,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def auth_to_read(auth: Optional[ServerAuthConfig]) -> Optional[AuthConfigRead]:
    if auth is None:
        return None
    return AuthConfigRead(
        auth_type=auth.auth_type,
        api_key_header_name=auth.api_key_header_name,
        api_key_query_name=auth.api_key_query_name,
        extra_header_names=sorted(auth.get_extra_headers_dict()),
    )


def server_to_read(server: ToolServer, auth: Optional[ServerAuthConfig] = None) -> ToolServerRead:
    return ToolServerRead(
        id=server.id,
        tenant_id=server.tenant_id,
        project_id=server.project_id,
        name=server.name,
        slug=server.slug,
        description=server.description,
        base_url=server.base_url,
        is_enabled=server.is_enabled,
        require_api_key=server.require_api_key,
        api_key=server.api_key,
        auth=auth_to_read(auth),
        created_at=server.created_at,
        updated_at=server.updated_at,
    )


def tool_to_read(tool: Tool) -> ToolRead:
    schema = tool.get_input_schema_dict()
    return ToolRead(
        id=tool.id,
        server_id=tool.server_id,
        name=tool.name,
        description=tool.description,
        input_schema=schema,
        http_method=tool.http_method,
        base_url=tool.base_url,
        path_template=tool.path_template,
        query_mapping=tool.get_query_mapping_dict(),
        body_mapping=tool.get_body_mapping_dict(),
        headers_mapping=tool.get_headers_mapping_dict(),
        enabled=tool.enabled,
        source=describe_source(schema),
        created_at=tool.created_at,
    )
