"""Profiles command -- list built-in and project-defined profiles."""

from __future__ import annotations

import typer

from apibind.exceptions import ApibindError
from apibind.output import error, get_output


def profiles_command() -> None:
    """List the profiles a run can select, with their tags and output directory.

    Built-in profiles are overlaid with the ``profiles`` section of
    ``apibind.json``; output directories from its ``output_dirs`` take
    precedence over a profile's own ``output_dir``.

    Example::

        apibind profiles
        apibind --json profiles
    """
    from apibind.config import BUILTIN_PROFILES, available_profiles, load_project_config

    try:
        project = load_project_config()
    except ApibindError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    default = project.default_profile if project is not None else None
    rows = []
    for name, profile in available_profiles(project).items():
        output_dir = profile.output_dir
        if project is not None and name in project.output_dirs:
            output_dir = project.output_dirs[name]
        source = "built-in" if name in BUILTIN_PROFILES else "project"
        if project is not None and name in project.profiles and name in BUILTIN_PROFILES:
            source = "project (overrides built-in)"
        rows.append(
            [
                name + (" *" if name == default else ""),
                ", ".join(profile.tags) or "-",
                output_dir or "-",
                source,
            ]
        )

    get_output().print_table(["Profile", "Tags", "Output dir", "Source"], rows, title="Profiles")
