"""Tests for apibind.generator.classifier."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from apibind.exceptions import EmptyProfile, NoSuccessResponse, UnresolvedReference
from apibind.generator.classifier import (
    BodyKind,
    ResponseKind,
    cache_key,
    cache_label,
    classify,
    group_operations,
    invalidation_keys,
    is_selected,
    path_params,
    response_shape,
    select_success_response,
)
from apibind.models import (
    APIOperation,
    HTTPMethod,
    ParsedSpec,
    ProfileSelection,
    ResponseInfo,
)
from apibind.schema import SchemaRegistry
from apibind.schema.nodes import ObjectNode, PrimitiveNode, RefNode


def _find(spec: ParsedSpec, method: str, path: str) -> APIOperation:
    for operation in spec.operations:
        if operation.method.value == method and operation.path == path:
            return operation
    raise AssertionError(f"{method} {path} not in fixture")


@pytest.fixture
def registry(todo_raw: dict[str, Any]) -> SchemaRegistry:
    return SchemaRegistry.from_document(todo_raw)


# ---------------------------------------------------------------------------
# Response unwrapping
# ---------------------------------------------------------------------------


class TestResponseShape:
    def test_data_array_is_sequence_of_items(self, registry: SchemaRegistry) -> None:
        node = registry.parse(
            {"properties": {"data": {"type": "array", "items": {"$ref": "#/components/schemas/Todo"}}}}
        )
        shape = response_shape(node, registry)
        assert shape.kind is ResponseKind.SEQUENCE
        assert shape.payload == RefNode("Todo")

    def test_data_ref_is_passthrough(self, registry: SchemaRegistry) -> None:
        node = registry.parse({"properties": {"data": {"$ref": "#/components/schemas/Todo"}}})
        shape = response_shape(node, registry)
        assert shape.kind is ResponseKind.PASSTHROUGH
        assert shape.payload == RefNode("Todo")

    def test_without_data_the_schema_is_the_payload(self, registry: SchemaRegistry) -> None:
        node = registry.parse({"properties": {"success": {"type": "boolean"}}})
        shape = response_shape(node, registry)
        assert shape.kind is ResponseKind.OBJECT
        assert shape.payload == node

    def test_bare_ref_without_data_is_passthrough(self, registry: SchemaRegistry) -> None:
        shape = response_shape(RefNode("Todo"), registry)
        assert shape.kind is ResponseKind.PASSTHROUGH
        assert shape.payload == RefNode("Todo")

    def test_ref_to_envelope_is_unwrapped(self) -> None:
        registry = SchemaRegistry(
            {
                "Todo": {"type": "object", "properties": {"id": {"type": "integer"}}},
                "TodoEnvelope": {
                    "type": "object",
                    "properties": {"data": {"$ref": "#/components/schemas/Todo"}},
                },
            }
        )
        shape = response_shape(RefNode("TodoEnvelope"), registry)
        assert shape.payload == RefNode("Todo")

    def test_all_of_last_data_part_wins(self) -> None:
        registry = SchemaRegistry(
            {
                "Envelope": {"type": "object", "properties": {"data": {"type": "string"}}},
                "Todo": {"type": "object", "properties": {"id": {"type": "integer"}}},
            }
        )
        node = registry.parse(
            {
                "allOf": [
                    {"$ref": "#/components/schemas/Envelope"},
                    {"properties": {"data": {"$ref": "#/components/schemas/Todo"}}},
                ]
            }
        )
        shape = response_shape(node, registry)
        assert shape.payload == RefNode("Todo")

    def test_empty_object_is_opaque(self, registry: SchemaRegistry) -> None:
        shape = response_shape(ObjectNode(), registry)
        assert shape.kind is ResponseKind.OPAQUE

    def test_primitive_data(self, registry: SchemaRegistry) -> None:
        node = registry.parse({"properties": {"data": {"type": "integer"}}})
        shape = response_shape(node, registry)
        assert shape.kind is ResponseKind.PASSTHROUGH
        assert shape.payload == PrimitiveNode("integer")


class TestSelectSuccessResponse:
    def _op(self, *codes: str) -> APIOperation:
        return APIOperation(
            path="/x",
            method=HTTPMethod.GET,
            responses=[ResponseInfo(status_code=code) for code in codes],
        )

    def test_prefers_200_then_201(self) -> None:
        assert select_success_response(self._op("201", "200")).status_code == "200"
        assert select_success_response(self._op("202", "201")).status_code == "201"

    def test_first_2xx(self) -> None:
        assert select_success_response(self._op("400", "204", "202")).status_code == "204"

    def test_no_2xx(self) -> None:
        with pytest.raises(NoSuccessResponse):
            select_success_response(self._op("default", "404"))


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassify:
    def test_pagination_scenario(self, todo_spec: ParsedSpec, registry: SchemaRegistry) -> None:
        shape = classify(_find(todo_spec, "get", "/api/todos"), registry)
        assert shape.is_query
        assert not shape.has_path_params
        assert [p.name for p in shape.query_params] == ["page", "limit", "completed"]
        assert shape.query_nodes == (
            PrimitiveNode("integer"),
            PrimitiveNode("integer"),
            PrimitiveNode("boolean"),
        )
        assert shape.response.kind is ResponseKind.SEQUENCE
        assert shape.response.payload == RefNode("Todo")
        assert shape.body is None

    def test_path_params_in_order(self) -> None:
        assert path_params("/api/users/{userId}/todos/{id}") == ["userId", "id"]

    def test_ref_body_needs_no_dto(self, todo_spec: ParsedSpec, registry: SchemaRegistry) -> None:
        shape = classify(_find(todo_spec, "post", "/api/todos"), registry)
        assert shape.body is not None
        assert shape.body.kind is BodyKind.JSON
        assert shape.body.schema == RefNode("CreateTodoInput")
        assert not shape.body.needs_dto

    def test_inline_body_needs_dto(self, todo_spec: ParsedSpec, registry: SchemaRegistry) -> None:
        shape = classify(_find(todo_spec, "put", "/api/todos/{id}"), registry)
        assert shape.path_params == ("id",)
        assert shape.body is not None and shape.body.needs_dto
        assert shape.query_params == ()

    def test_multipart_body(self, todo_spec: ParsedSpec, registry: SchemaRegistry) -> None:
        shape = classify(_find(todo_spec, "post", "/api/uploads"), registry)
        assert shape.body_content_kind is BodyKind.MULTIPART
        assert shape.response.kind is ResponseKind.OBJECT

    def test_missing_success_response_degrades_to_opaque(
        self, todo_spec: ParsedSpec, registry: SchemaRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.DEBUG, logger="apibind"):
            shape = classify(_find(todo_spec, "post", "/api/todos/{id}/archive"), registry)
        assert shape.response.kind is ResponseKind.OPAQUE
        assert "declares no 2xx response" in caplog.text

    def test_json_preferred_over_multipart(self, registry: SchemaRegistry) -> None:
        operation = APIOperation.model_validate(
            {
                "path": "/api/files",
                "method": "post",
                "request_body": {
                    "content": {
                        "multipart/form-data": {"type": "object", "properties": {"f": {"type": "string"}}},
                        "application/json": {"$ref": "#/components/schemas/Todo"},
                    }
                },
            }
        )
        shape = classify(operation, registry)
        assert shape.body.kind is BodyKind.JSON

    def test_get_ignores_request_body(self, registry: SchemaRegistry) -> None:
        operation = APIOperation.model_validate(
            {
                "path": "/api/search",
                "method": "get",
                "request_body": {"content": {"application/json": {"type": "object"}}},
            }
        )
        assert classify(operation, registry).body is None

    def test_dangling_response_ref_is_fatal(self, registry: SchemaRegistry) -> None:
        operation = APIOperation.model_validate(
            {
                "path": "/api/ghosts",
                "method": "get",
                "responses": [
                    {
                        "status_code": "200",
                        "content": {"application/json": {"$ref": "#/components/schemas/Ghost"}},
                    }
                ],
            }
        )
        with pytest.raises(UnresolvedReference):
            classify(operation, registry)


# ---------------------------------------------------------------------------
# Tag filtering and grouping
# ---------------------------------------------------------------------------


class TestGrouping:
    def test_app_profile(self, todo_spec: ParsedSpec, app_selection: ProfileSelection) -> None:
        groups = group_operations(todo_spec.operations, app_selection)
        assert [group.tag for group in groups] == ["Todos", "Uploads"]
        assert len(groups[0].operations) == 6
        assert all("AdminUsers" not in op.tags for group in groups for op in group.operations)

    def test_operation_profile(
        self, todo_spec: ParsedSpec, operation_selection: ProfileSelection
    ) -> None:
        groups = group_operations(todo_spec.operations, operation_selection)
        assert [group.tag for group in groups] == ["Uploads", "AdminUsers"]
        assert groups[1].module_name == "adminusers"

    def test_owner_tag_selects_without_allow_list(self) -> None:
        selection = ProfileSelection(name="app", allow_list=[])
        kept = APIOperation(path="/a", method=HTTPMethod.GET, tags=["Todos", "App"])
        dropped = APIOperation(path="/b", method=HTTPMethod.GET, tags=["AdminUsers", "Operation"])
        assert is_selected(kept, selection)
        assert not is_selected(dropped, selection)

    def test_any_tag_in_allow_list(self) -> None:
        selection = ProfileSelection(name="x", allow_list=["Orders"])
        op = APIOperation(path="/a", method=HTTPMethod.GET, tags=["Misc", "Other", "Orders"])
        assert is_selected(op, selection)

    def test_untagged_operations_group_as_default(self) -> None:
        selection = ProfileSelection(name="x", allow_list=[])
        op = APIOperation(path="/a", method=HTTPMethod.GET)
        assert op.primary_tag == "default"
        with pytest.raises(EmptyProfile):
            group_operations([op], selection)

    def test_empty_profile(self, todo_spec: ParsedSpec) -> None:
        selection = ProfileSelection(name="mobile", allow_list=["Nothing"])
        with pytest.raises(EmptyProfile, match="project: mobile"):
            group_operations(todo_spec.operations, selection)


class TestCacheKeys:
    def test_pagination_query_key(self, todo_spec: ParsedSpec) -> None:
        operation = _find(todo_spec, "get", "/api/todos")
        assert cache_label(operation) == "get_all_todos"
        assert cache_key(operation) == [
            "'todos'",
            "'get_all_todos'",
            "queryParams?.page",
            "queryParams?.limit",
            "queryParams?.completed",
        ]

    def test_path_params_in_key(self, todo_spec: ParsedSpec) -> None:
        operation = _find(todo_spec, "get", "/api/todos/{id}")
        assert cache_key(operation) == ["'todos'", "'get_a_todo'", "pathParams.id"]

    def test_label_falls_back_to_operation_id(self) -> None:
        operation = APIOperation(path="/a", method=HTTPMethod.GET, operation_id="listThings")
        assert cache_label(operation) == "listthings"

    def test_invalidation_keys_cover_every_tag(self, todo_spec: ParsedSpec) -> None:
        operation = _find(todo_spec, "delete", "/api/todos/{id}")
        assert invalidation_keys(operation) == ["'todos'", "'app'"]

    def test_invalidation_default(self) -> None:
        assert invalidation_keys(APIOperation(path="/a", method=HTTPMethod.POST)) == ["'default'"]
