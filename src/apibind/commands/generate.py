"""Generate command -- write TypeScript bindings for one profile.

Implements ``apibind generate``. The command resolves the active profile
(see :func:`~apibind.config.resolve_selection`), loads the API description,
and runs :func:`~apibind.generator.generate`. With ``--dry-run`` the
artifacts are printed to stdout instead of being written.
"""

from __future__ import annotations

from typing import Optional

import typer

from apibind.exceptions import ApibindError
from apibind.output import debug, error, get_output, info, success, warning


def generate_command(
    project: Optional[str] = typer.Option(
        None, "--project", "-p", help="Profile to generate (e.g. app, operation)."
    ),
    output_dirs: Optional[str] = typer.Option(
        None,
        "--output-dirs",
        "-o",
        help="Output directories as key:path[,key:path] (e.g. app:src/lib/apis).",
    ),
    tags: Optional[str] = typer.Option(
        None, "--tags", "-t", help="Comma-separated tag allow-list (overrides the profile)."
    ),
    spec: Optional[str] = typer.Option(
        None, "--spec", "-s", help="API description path, URL, or '-' for stdin."
    ),
    runtime_module: Optional[str] = typer.Option(
        None,
        "--runtime-module",
        help="Module the generated code imports apiRequest/HTTPResponse from.",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print the artifacts instead of writing them."
    ),
) -> None:
    """Generate typed request functions and hooks for one profile.

    Writes ``types.ts``, one module per tag and ``index.ts`` into the
    profile's output directory.

    Raises:
        typer.Exit: With the error's exit code when configuration, loading
            or schema resolution fails.

    Example::

        apibind generate --output-dirs app:apps/web/src/lib/apis
        apibind generate --project operation --spec http://localhost:8000/openapi.json
        apibind generate --project app --dry-run
    """
    from apibind.config import (
        load_project_config,
        parse_output_dirs,
        parse_tags,
        resolve_selection,
        resolve_spec_source,
    )
    from apibind.generator import DirectorySink, MemorySink, generate
    from apibind.parser import load_spec, validate_document

    try:
        project_config = load_project_config()
        selection = resolve_selection(
            cli_project=project,
            cli_output_dirs=parse_output_dirs(output_dirs),
            cli_tags=parse_tags(tags),
            cli_runtime_module=runtime_module,
            project=project_config,
            require_output=not dry_run,
        )
        source = resolve_spec_source(spec, project_config)

        debug(f"Loading API description from {source}")
        document = load_spec(source)
        version = validate_document(document)
        debug(f"OpenAPI version: {version}")

        info(f"Generating bindings for profile '{selection.name}'")
        if dry_run:
            sink = MemorySink()
            report = generate(document, selection, sink)
            output = get_output()
            for name, text in sink.artifacts.items():
                output.print_artifact(name, text)
        else:
            report = generate(document, selection, DirectorySink(selection.output_dir))
    except ApibindError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if report.empty:
        warning(
            f"Profile '{report.profile}' matched no operations; only types.ts was generated"
        )
        return

    target = "stdout" if dry_run else selection.output_dir
    success(
        f"Generated {report.function_count} function(s) in {len(report.groups)} "
        f"module(s) to {target}"
    )
    if report.skipped_operations:
        debug(f"Skipped {report.skipped_operations} operation(s) outside the profile")
