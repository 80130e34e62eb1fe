"""Tests for apibind.generator.assembler."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import pytest

from apibind.exceptions import SpecParseError, UnresolvedReference
from apibind.generator import DirectorySink, MemorySink, generate
from apibind.generator.assembler import INDEX_ARTIFACT, TYPES_ARTIFACT, _atomic_write
from apibind.models import ProfileSelection


class TestGenerate:
    def test_app_profile_artifacts(self, todo_raw: dict[str, Any], app_selection: ProfileSelection) -> None:
        sink = MemorySink()
        report = generate(todo_raw, app_selection, sink)
        assert list(sink.artifacts) == ["types.ts", "todos.ts", "uploads.ts", "index.ts"]
        assert report.artifacts == list(sink.artifacts)
        assert report.groups == ["todos", "uploads"]
        assert report.function_count == 7
        assert report.operation_count == 8
        assert report.skipped_operations == 1
        assert not report.empty

    def test_operation_profile_only_has_its_operations(
        self, todo_raw: dict[str, Any], operation_selection: ProfileSelection
    ) -> None:
        sink = MemorySink()
        report = generate(todo_raw, operation_selection, sink)
        assert report.groups == ["uploads", "adminusers"]
        assert "todos.ts" not in sink
        assert "export async function adminUsers(" in sink["adminusers.ts"]
        assert "getTodos" not in "".join(sink.artifacts.values())

    def test_index_lists_group_modules(self, todo_raw: dict[str, Any], app_selection: ProfileSelection) -> None:
        sink = MemorySink()
        generate(todo_raw, app_selection, sink)
        assert sink[INDEX_ARTIFACT].splitlines() == [
            "// Auto-generated API code",
            "export * from './types';",
            "export * from './todos';",
            "export * from './uploads';",
        ]

    def test_deterministic(self, todo_raw: dict[str, Any], app_selection: ProfileSelection) -> None:
        first, second = MemorySink(), MemorySink()
        generate(todo_raw, app_selection, first)
        generate(copy.deepcopy(todo_raw), app_selection, second)
        assert first.artifacts == second.artifacts

    def test_runtime_module(self, todo_raw: dict[str, Any]) -> None:
        selection = ProfileSelection(name="app", allow_list=["Uploads"], runtime_module="~/lib/http")
        sink = MemorySink()
        generate(todo_raw, selection, sink)
        assert "from '~/lib/http';" in sink["uploads.ts"]

    def test_empty_profile_writes_only_types(
        self, todo_raw: dict[str, Any], caplog: pytest.LogCaptureFixture
    ) -> None:
        selection = ProfileSelection(name="mobile", allow_list=["Nothing"])
        sink = MemorySink()
        with caplog.at_level(logging.INFO, logger="apibind"):
            report = generate(todo_raw, selection, sink)
        assert report.empty
        assert list(sink.artifacts) == [TYPES_ARTIFACT]
        assert report.skipped_operations == report.operation_count
        assert "No matching operations found (project: mobile, tags: Nothing)" in caplog.text

    def test_later_group_failure_keeps_earlier_artifacts(
        self, todo_raw: dict[str, Any], app_selection: ProfileSelection
    ) -> None:
        broken = copy.deepcopy(todo_raw)
        upload = broken["paths"]["/api/uploads"]["post"]
        upload["responses"]["200"]["content"]["application/json"]["schema"] = {
            "$ref": "#/components/schemas/Missing"
        }
        sink = MemorySink()
        with pytest.raises(UnresolvedReference):
            generate(broken, app_selection, sink)
        assert list(sink.artifacts) == ["types.ts", "todos.ts"]

    def test_tags_differing_only_by_case_share_one_module(
        self, make_document, caplog: pytest.LogCaptureFixture
    ) -> None:
        document = make_document(
            paths={
                "/api/todos": {"get": _operation("listTodos", "Todos")},
                "/api/items": {"get": _operation("listItems", "todos")},
            }
        )
        selection = ProfileSelection(name="app", allow_list=["Todos", "todos"])
        sink = MemorySink()
        with caplog.at_level(logging.WARNING, logger="apibind"):
            report = generate(document, selection, sink)
        assert report.groups == ["todos"]
        assert report.artifacts == ["types.ts", "todos.ts", "index.ts"]
        assert sink[INDEX_ARTIFACT].count("export * from './todos';") == 1
        assert "Tag 'todos' maps to module 'todos'" in caplog.text

    def test_broken_schema_fails_before_anything_is_written(self, make_document) -> None:
        document = make_document(
            schemas={"Todo": {"properties": {"owner": {"$ref": "#/components/schemas/User"}}}}
        )
        sink = MemorySink()
        with pytest.raises(UnresolvedReference):
            generate(document, ProfileSelection(name="app"), sink)
        assert sink.artifacts == {}


class TestDirectorySink:
    def test_writes_files(self, tmp_path: Path, todo_raw: dict[str, Any], app_selection: ProfileSelection) -> None:
        out = tmp_path / "src" / "lib" / "apis"
        generate(todo_raw, app_selection, DirectorySink(out))
        assert sorted(p.name for p in out.iterdir()) == ["index.ts", "todos.ts", "types.ts", "uploads.ts"]
        assert (out / "todos.ts").read_text(encoding="utf-8").startswith("/* eslint-disable")

    def test_tag_cannot_escape_output_directory(self, tmp_path: Path, make_document) -> None:
        document = make_document(
            paths={"/api/things": {"get": _operation("listThings", "../../escaped")}}
        )
        out = tmp_path / "a" / "out"
        selection = ProfileSelection(name="app", allow_list=["../../escaped"], output_dir=str(out))
        with pytest.raises(SpecParseError, match="outside"):
            generate(document, selection, DirectorySink(out))
        assert not (tmp_path / "escaped.ts").exists()
        assert [p.name for p in out.iterdir()] == ["types.ts"]

    def test_nested_name_inside_directory_is_allowed(self, tmp_path: Path) -> None:
        DirectorySink(tmp_path).write("admin/users.ts", "x")
        assert (tmp_path / "admin" / "users.ts").read_text(encoding="utf-8") == "x"

    def test_overwrites(self, tmp_path: Path) -> None:
        sink = DirectorySink(tmp_path)
        sink.write("index.ts", "old\n")
        sink.write("index.ts", "new\n")
        assert (tmp_path / "index.ts").read_text(encoding="utf-8") == "new\n"


class TestAtomicWrite:
    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "types.ts"
        _atomic_write(target, "export {};\n")
        assert target.read_text(encoding="utf-8") == "export {};\n"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        _atomic_write(tmp_path / "types.ts", "x")
        assert [p.name for p in tmp_path.iterdir()] == ["types.ts"]

    def test_no_temp_files_left_on_error(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def _fail(src: str, dst: Path) -> None:
            raise OSError("disk full")

        monkeypatch.setattr("apibind.generator.assembler.os.replace", _fail)
        with pytest.raises(OSError):
            _atomic_write(tmp_path / "types.ts", "x")
        assert list(tmp_path.iterdir()) == []


def _operation(operation_id: str, tag: str) -> dict[str, Any]:
    return {
        "operationId": operation_id,
        "tags": [tag],
        "responses": {
            "200": {
                "description": "OK",
                "content": {
                    "application/json": {
                        "schema": {"type": "object", "properties": {"data": {"type": "string"}}}
                    }
                },
            }
        },
    }
