"""Unit tests for tool input schema construction."""

import pytest
from jsonschema import Draft202012Validator

from mockbridge.tooling.schema_builder import (
    PROVENANCE_KEY,
    build_input_schema,
    describe_source,
    ensure_unique_tool_name,
    extract_path_params,
    mock_route_source,
    openapi_source,
    slugify_tool_name,
)


class TestBuildInputSchema:
    def test_path_and_optional_query(self):
        schema = build_input_schema(path_params=["id"], query_params=[{"name": "q", "required": False}])
        assert schema["type"] == "object"
        assert schema["additionalProperties"] is True
        assert schema["required"] == ["id"]
        assert set(schema["properties"]) == {"id", "q"}
        assert schema["properties"]["id"]["type"] == ["string", "integer", "number", "boolean"]

    def test_typed_path_params_keep_their_type(self):
        schema = build_input_schema(path_params=[{"name": "petId", "type": "integer", "description": "Pet id"}])
        assert schema["properties"]["petId"] == {"type": "integer", "description": "Pet id"}
        assert schema["required"] == ["petId"]

    def test_untyped_path_param_accepts_scalars(self):
        validator = Draft202012Validator(build_input_schema(path_params=["id"]))
        for value in ("42", 42, 4.2, True):
            assert validator.is_valid({"id": value})
        assert not validator.is_valid({"id": {"nested": 1}})

    def test_required_flags_and_dedup(self):
        schema = build_input_schema(
            path_params=["id", "id"],
            query_params=[{"name": "limit", "type": "integer", "required": True}],
            body_properties=[{"name": "limit", "type": "string", "required": True}, {"name": "note", "required": True}],
        )
        assert schema["required"] == ["id", "limit", "note"]
        # first-seen wins
        assert schema["properties"]["limit"]["type"] == "integer"

    def test_invalid_types_fall_back_to_string(self):
        schema = build_input_schema(query_params=[{"name": "when", "type": "date-time"}])
        assert schema["properties"]["when"]["type"] == "string"

    def test_arrays_carry_items(self):
        schema = build_input_schema(query_params=[{"name": "ids", "type": "array", "items": {"type": "integer"}}])
        assert schema["properties"]["ids"] == {"type": "array", "description": "Query parameter", "items": {"type": "integer"}}

    def test_array_without_items_defaults_to_strings(self):
        schema = build_input_schema(body_properties=[{"name": "tags", "type": "array"}])
        assert schema["properties"]["tags"]["items"] == {"type": "string"}

    def test_summary_and_provenance(self):
        schema = build_input_schema(source=mock_route_source(3), summary="Get a user")
        assert schema["description"] == "Get a user"
        assert schema[PROVENANCE_KEY] == {"type": "mock-route", "routeId": 3}
        assert describe_source(schema) == {"type": "mock-route", "routeId": 3}

    def test_no_provenance(self):
        schema = build_input_schema()
        assert PROVENANCE_KEY not in schema
        assert describe_source(schema) is None
        assert describe_source("nope") is None

    def test_openapi_source(self):
        assert openapi_source("listUsers", "/users", "GET") == {
            "type": "openapi",
            "operationId": "listUsers",
            "path": "/users",
            "method": "GET",
        }


class TestNames:
    def test_extract_path_params_both_forms(self):
        assert extract_path_params("/users/:id/orders/{orderId}/:id") == ["id", "orderId"]
        assert extract_path_params(None) == []

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("listUsers", "listusers"),
            ("GET /users/{id}", "get_users_id"),
            ("  --  ", "tool"),
            (None, "tool"),
        ],
    )
    def test_slugify(self, raw, expected):
        assert slugify_tool_name(raw) == expected

    def test_ensure_unique_suffixes(self):
        used = {"list_users"}
        assert ensure_unique_tool_name("list users", used) == "list_users_2"
        assert ensure_unique_tool_name("list_users", used) == "list_users_3"
        assert used == {"list_users", "list_users_2", "list_users_3"}

