"""Shared test fixtures for apibind.

Provides reusable fixtures for loading API description fixtures, building a
generation context, isolating configuration, managing output state, and
running CLI commands. These fixtures are automatically discovered by pytest
and available to all test modules without explicit imports.
"""

from __future__ import annotations

import copy
import json
import logging
import shutil
from pathlib import Path
from typing import Any

import pytest

from apibind.models import ParsedSpec, ProfileSelection
from apibind.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the ``apibind`` logger after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, and the CLI callback installs a RichHandler bound to
    them.  When Typer's CliRunner redirects those streams during a test and
    the test finishes, the cached references become stale ("I/O operation
    on closed file").  Resetting forces a fresh manager to be created on
    next use and leaves log levels to ``caplog``.
    """
    yield
    reset_output()
    logger = logging.getLogger("apibind")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Raw document fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


@pytest.fixture
def todo_raw() -> dict[str, Any]:
    """Load the raw Todo API document."""
    with open(FIXTURES_DIR / "todo_api.json") as f:
        return json.load(f)


@pytest.fixture
def todo_file(tmp_path: Path) -> Path:
    """Copy the Todo API document into tmp_path and return its path."""
    target = tmp_path / "swagger.json"
    shutil.copyfile(FIXTURES_DIR / "todo_api.json", target)
    return target


@pytest.fixture
def make_document():
    """Factory for small in-memory documents.

    ``make_document(paths, schemas)`` returns an OpenAPI 3.0 document with
    the given ``paths`` and ``components.schemas`` (both deep-copied).
    """

    def _make(paths: dict[str, Any] | None = None, schemas: dict[str, Any] | None = None):
        return {
            "openapi": "3.0.3",
            "info": {"title": "Test API", "version": "1.0.0"},
            "paths": copy.deepcopy(paths or {}),
            "components": {"schemas": copy.deepcopy(schemas or {})},
        }

    return _make


# ---------------------------------------------------------------------------
# Parsed fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def todo_spec(todo_raw: dict[str, Any]) -> ParsedSpec:
    """Parsed Todo API document."""
    from apibind.parser.extractor import extract_spec

    return extract_spec(todo_raw, "3.0.3")


@pytest.fixture
def todo_context(todo_raw: dict[str, Any]):
    """Generation context (schemas, enums, resolver) for the Todo API."""
    from apibind.generator.context import GenerationContext

    return GenerationContext.from_document(todo_raw)


@pytest.fixture
def app_selection() -> ProfileSelection:
    """The built-in ``app`` profile with no output directory."""
    from apibind.config import BUILTIN_PROFILES

    return ProfileSelection(name="app", allow_list=list(BUILTIN_PROFILES["app"].tags))


@pytest.fixture
def operation_selection() -> ProfileSelection:
    """The built-in ``operation`` profile with no output directory."""
    from apibind.config import BUILTIN_PROFILES

    return ProfileSelection(
        name="operation", allow_list=list(BUILTIN_PROFILES["operation"].tags)
    )


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Clears all APIBIND_* environment variables and changes the working
    directory to tmp_path, so no ``apibind.json`` from the real project is
    picked up.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    for var in ["APIBIND_PROFILE", "APIBIND_SPEC"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
