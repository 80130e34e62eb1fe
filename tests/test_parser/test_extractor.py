"""Tests for apibind.parser.extractor."""

from __future__ import annotations

from typing import Any

import pytest

from apibind.exceptions import SpecParseError
from apibind.models import HTTPMethod, ParameterLocation, ParsedSpec
from apibind.parser.extractor import extract_spec


class TestTodoDocument:
    def test_info(self, todo_spec: ParsedSpec) -> None:
        assert todo_spec.info.title == "Todo API"
        assert todo_spec.info.version == "1.0.0"
        assert todo_spec.openapi_version == "3.0.3"

    def test_operations_in_document_order(self, todo_spec: ParsedSpec) -> None:
        assert [(op.method.value, op.path) for op in todo_spec.operations] == [
            ("get", "/api/todos"),
            ("post", "/api/todos"),
            ("get", "/api/todos/{id}"),
            ("put", "/api/todos/{id}"),
            ("delete", "/api/todos/{id}"),
            ("post", "/api/todos/{id}/archive"),
            ("post", "/api/uploads"),
            ("get", "/api/admin/users"),
        ]

    def test_tags_and_owner(self, todo_spec: ParsedSpec) -> None:
        first = todo_spec.operations[0]
        assert first.tags == ["Todos", "App"]
        assert first.primary_tag == "Todos"
        assert first.owner_tag == "App"

    def test_path_level_parameters_are_inherited(self, todo_spec: ParsedSpec) -> None:
        delete = todo_spec.operations[4]
        assert [(p.name, p.location) for p in delete.parameters] == [("id", ParameterLocation.PATH)]
        assert delete.parameters[0].required

    def test_query_parameter_schema(self, todo_spec: ParsedSpec) -> None:
        page = todo_spec.operations[0].parameters[0]
        assert page.location is ParameterLocation.QUERY
        assert not page.required
        assert page.schema_ == {"type": "integer", "default": 1}

    def test_request_body_content(self, todo_spec: ParsedSpec) -> None:
        upload = todo_spec.operations[6]
        assert upload.request_body is not None
        assert upload.request_body.content_types == ["multipart/form-data"]

    def test_responses(self, todo_spec: ParsedSpec) -> None:
        get_todo = todo_spec.operations[2]
        assert [r.status_code for r in get_todo.responses] == ["200", "404"]
        assert get_todo.response_for("404").json_schema is None
        assert get_todo.response_for("200").json_schema["properties"]["data"] == {
            "$ref": "#/components/schemas/TodoDetail"
        }

    def test_schemas_are_kept_raw(self, todo_spec: ParsedSpec) -> None:
        assert list(todo_spec.schemas) == ["Todo", "Pagination", "CreateTodoInput", "TodoDetail", "User"]


class TestEdgeCases:
    def _doc(self, paths: dict[str, Any], components: dict[str, Any] | None = None) -> dict[str, Any]:
        return {"openapi": "3.0.3", "paths": paths, "components": components or {}}

    def test_unsupported_methods_are_skipped(self) -> None:
        spec = extract_spec(
            self._doc({"/a": {"get": {}, "head": {}, "options": {}, "summary": "not an operation"}})
        )
        assert [op.method for op in spec.operations] == [HTTPMethod.GET]

    def test_missing_info_defaults(self) -> None:
        spec = extract_spec(self._doc({}))
        assert spec.info.title == "Untitled API"
        assert spec.openapi_version == "unknown"

    def test_operation_parameter_overrides_path_parameter(self) -> None:
        spec = extract_spec(
            self._doc(
                {
                    "/a": {
                        "parameters": [{"name": "q", "in": "query", "description": "path level"}],
                        "get": {"parameters": [{"name": "q", "in": "query", "description": "op level"}]},
                    }
                }
            )
        )
        params = spec.operations[0].parameters
        assert len(params) == 1
        assert params[0].description == "op level"

    def test_header_and_cookie_parameters_are_dropped(self) -> None:
        spec = extract_spec(
            self._doc(
                {
                    "/a": {
                        "get": {
                            "parameters": [
                                {"name": "X-Trace", "in": "header"},
                                {"name": "session", "in": "cookie"},
                                {"name": "q", "in": "query"},
                            ]
                        }
                    }
                }
            )
        )
        assert [p.name for p in spec.operations[0].parameters] == ["q"]

    def test_path_parameters_are_always_required(self) -> None:
        spec = extract_spec(
            self._doc({"/a/{id}": {"get": {"parameters": [{"name": "id", "in": "path", "required": False}]}}})
        )
        assert spec.operations[0].parameters[0].required

    def test_component_references_are_followed(self) -> None:
        components = {
            "parameters": {"Page": {"name": "page", "in": "query", "schema": {"type": "integer"}}},
            "requestBodies": {
                "TodoBody": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Todo"}}}}
            },
            "responses": {
                "TodoOk": {"description": "ok", "content": {"application/json": {"schema": {"type": "string"}}}}
            },
            "schemas": {"Todo": {"type": "object"}},
        }
        spec = extract_spec(
            self._doc(
                {
                    "/a": {
                        "post": {
                            "parameters": [{"$ref": "#/components/parameters/Page"}],
                            "requestBody": {"$ref": "#/components/requestBodies/TodoBody"},
                            "responses": {"200": {"$ref": "#/components/responses/TodoOk"}},
                        }
                    }
                },
                components,
            )
        )
        op = spec.operations[0]
        assert op.parameters[0].name == "page"
        assert op.request_body.content["application/json"] == {"$ref": "#/components/schemas/Todo"}
        assert op.responses[0].json_schema == {"type": "string"}

    def test_dangling_component_reference(self) -> None:
        with pytest.raises(SpecParseError, match="Cannot resolve"):
            extract_spec(self._doc({"/a": {"get": {"parameters": [{"$ref": "#/components/parameters/Nope"}]}}}))
