"""Inspect commands -- preview what a run would generate.

Provides the ``apibind inspect`` sub-command group with read-only commands
for viewing the operations, schemas and enums of an API description. Nothing
is written; results are printed as tables (or JSON with ``--json``).
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from apibind.exceptions import ApibindError
from apibind.output import debug, error, get_output


inspect_app = typer.Typer(no_args_is_help=True)


def _load_document(spec: Optional[str]) -> dict[str, Any]:
    """Load and validate the API description named by *spec* or the config.

    Raises:
        typer.Exit: With the error's exit code when the description cannot
            be loaded.
    """
    from apibind.config import load_project_config, resolve_spec_source
    from apibind.parser import load_spec, validate_document

    try:
        source = resolve_spec_source(spec, load_project_config())
        debug(f"Loading API description from {source}")
        document = load_spec(source)
        validate_document(document)
    except ApibindError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    return document


def _schema_kind(node: object) -> str:
    return type(node).__name__.removesuffix("Node").lower()


@inspect_app.command("operations")
def inspect_operations(
    project: Optional[str] = typer.Option(
        None, "--project", "-p", help="Only show operations kept by this profile."
    ),
    tags: Optional[str] = typer.Option(
        None, "--tags", "-t", help="Comma-separated tag allow-list (overrides the profile)."
    ),
    spec: Optional[str] = typer.Option(
        None, "--spec", "-s", help="API description path, URL, or '-' for stdin."
    ),
) -> None:
    """List operations with the module and function name they generate.

    Without ``--project`` or ``--tags`` every operation is listed, grouped
    by its first tag.

    Example::

        apibind inspect operations --spec swagger.json
        apibind inspect operations --project app
    """
    from apibind.config import load_project_config, parse_tags, resolve_selection
    from apibind.exceptions import EmptyProfile
    from apibind.generator.classifier import TagGroup, group_operations
    from apibind.generator.naming import NameRegistry, claim_function_name
    from apibind.parser import extract_spec

    document = _load_document(spec)
    parsed = extract_spec(document)

    try:
        if project is not None or tags is not None:
            selection = resolve_selection(
                cli_project=project,
                cli_tags=parse_tags(tags),
                project=load_project_config(),
                require_output=False,
            )
            groups = group_operations(parsed.operations, selection)
        else:
            by_tag: dict[str, TagGroup] = {}
            for operation in parsed.operations:
                tag = operation.primary_tag
                by_tag.setdefault(tag, TagGroup(tag)).operations.append(operation)
            groups = list(by_tag.values())
    except EmptyProfile as exc:
        error(str(exc))
        raise typer.Exit(code=0) from None
    except ApibindError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows: list[list[str]] = []
    for group in groups:
        registry = NameRegistry()
        for operation in group.operations:
            ident = claim_function_name(operation.path, operation.method, operation, registry)
            rows.append(
                [
                    operation.method.value.upper(),
                    operation.path,
                    f"{group.module_name}.ts",
                    ident.function_name,
                    "query" if operation.method.value == "get" else "mutation",
                ]
            )

    get_output().print_table(
        ["Method", "Path", "Module", "Function", "Hook"],
        rows,
        title=f"{parsed.info.title} ({len(rows)} operations)",
    )


@inspect_app.command("schemas")
def inspect_schemas(
    spec: Optional[str] = typer.Option(
        None, "--spec", "-s", help="API description path, URL, or '-' for stdin."
    ),
) -> None:
    """List component schemas and how each is declared in ``types.ts``."""
    from apibind.schema import SchemaRegistry
    from apibind.schema.nodes import ComposedNode, ObjectNode

    document = _load_document(spec)
    try:
        registry = SchemaRegistry.from_document(document)
    except ApibindError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows = []
    for name, node in registry.items():
        declared = "class" if isinstance(node, (ObjectNode, ComposedNode)) else "type alias"
        rows.append([name, _schema_kind(node), declared])

    get_output().print_table(["Name", "Kind", "Declared as"], rows, title="Schemas")


@inspect_app.command("enums")
def inspect_enums(
    spec: Optional[str] = typer.Option(
        None, "--spec", "-s", help="API description path, URL, or '-' for stdin."
    ),
) -> None:
    """List the named enums derived from inline property enums."""
    from apibind.generator.context import GenerationContext

    document = _load_document(spec)
    try:
        context = GenerationContext.from_document(document)
    except ApibindError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows = [[enum.name, ", ".join(enum.values)] for enum in context.enums]
    get_output().print_table(["Name", "Values"], rows, title="Enums")
