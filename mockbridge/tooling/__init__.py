"""Outbound tool bridge.

- ``schema_builder``: JSON Schema input contracts with provenance metadata
- ``openapi``: OpenAPI parsing and operation extraction
- ``executor``: configuration-driven outbound HTTP calls
- ``importer``: all-or-nothing bulk tool creation
"""

from .executor import HttpToolExecutor, ToolCallResult
from .importer import ToolImporter
from .openapi import (
    InferredAuth,
    OpenApiOperation,
    OpenApiPreview,
    ParsedSpec,
    ensure_operation_names,
    extract_operations,
    infer_auth,
    infer_base_url,
    parse_openapi_spec,
)
from .schema_builder import (
    PROVENANCE_KEY,
    build_input_schema,
    describe_source,
    ensure_unique_tool_name,
    extract_path_params,
    slugify_tool_name,
)

__all__ = [
    "HttpToolExecutor",
    "InferredAuth",
    "OpenApiOperation",
    "OpenApiPreview",
    "PROVENANCE_KEY",
    "ParsedSpec",
    "ToolCallResult",
    "ToolImporter",
    "build_input_schema",
    "describe_source",
    "ensure_operation_names",
    "ensure_unique_tool_name",
    "extract_operations",
    "extract_path_params",
    "infer_auth",
    "infer_base_url",
    "parse_openapi_spec",
    "slugify_tool_name",
]
