"""Configuration: built-in profiles, project file, environment, CLI flags.

A run needs four settings, bundled as a
:class:`~apibind.models.ProfileSelection`: the profile name, its tag
allow-list, the output directory, and the runtime module the generated code
imports from.

Precedence (high to low):

1. CLI flags (``--project``, ``--output-dirs``, ``--tags``, ``--spec``,
   ``--runtime-module``)
2. Environment variables (``APIBIND_PROFILE``, ``APIBIND_SPEC``)
3. Project config (``./apibind.json``)
4. Built-in profiles (``app`` and ``operation``)

The project file is validated with :class:`~apibind.models.ProjectConfig`;
unknown keys are rejected so that typos surface immediately.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from apibind.exceptions import ConfigError, InvalidUsageError, MissingOutputTarget
from apibind.models import (
    DEFAULT_RUNTIME_MODULE,
    ProfileConfig,
    ProfileSelection,
    ProjectConfig,
)

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILENAME = "apibind.json"
DEFAULT_SPEC_SOURCE = "swagger.json"

ENV_PROFILE = "APIBIND_PROFILE"
ENV_SPEC = "APIBIND_SPEC"

BUILTIN_PROFILES: dict[str, ProfileConfig] = {
    "app": ProfileConfig(
        tags=[
            "Auth",
            "Products",
            "Orders",
            "Chat",
            "Communities",
            "Users",
            "Share",
            "Onboarding",
            "Uploads",
        ]
    ),
    "operation": ProfileConfig(
        tags=[
            "Auth",
            "AdminUsers",
            "AdminProducts",
            "AdminOrders",
            "AdminDashboard",
            "Uploads",
        ]
    ),
}


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[ProjectConfig]:
    """Load ``apibind.json`` from *directory* (default: the working directory).

    Returns:
        The validated :class:`~apibind.models.ProjectConfig`, or ``None`` if
        the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = (directory or Path.cwd()) / PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ProjectConfig.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc


def available_profiles(project: Optional[ProjectConfig] = None) -> dict[str, ProfileConfig]:
    """Built-in profiles overlaid with the project file's ``profiles``."""
    profiles = dict(BUILTIN_PROFILES)
    if project is not None:
        profiles.update(project.profiles)
    return profiles


# --- CLI value parsing ---


def parse_output_dirs(value: Optional[str]) -> dict[str, str]:
    """Parse ``key:path[,key:path...]`` into an ordered dict.

    Each pair is split on its first ``:`` only, so Windows drive letters in
    the path survive.

    Raises:
        ConfigError: If a pair has no ``:`` or an empty key or path.
    """
    result: dict[str, str] = {}
    if not value:
        return result
    for pair in value.split(","):
        pair = pair.strip()
        if not pair:
            continue
        key, sep, path = pair.partition(":")
        if not sep or not key.strip() or not path.strip():
            raise ConfigError(
                f"Invalid --output-dirs entry '{pair}'. Expected key:path (e.g. app:src/lib/apis)"
            )
        result[key.strip()] = path.strip()
    return result


def parse_tags(value: Optional[str]) -> Optional[list[str]]:
    """Parse a comma-separated tag list; ``None`` when not given."""
    if value is None:
        return None
    return [tag.strip() for tag in value.split(",") if tag.strip()]


# --- Precedence resolution ---


def resolve_spec_source(
    cli_spec: Optional[str] = None,
    project: Optional[ProjectConfig] = None,
) -> str:
    """Where to load the API description from.

    ``--spec`` > ``APIBIND_SPEC`` > ``spec`` in ``apibind.json`` >
    ``swagger.json`` in the working directory.
    """
    if cli_spec:
        return cli_spec
    env_spec = os.environ.get(ENV_SPEC)
    if env_spec:
        return env_spec
    if project is not None and project.spec:
        return project.spec
    return DEFAULT_SPEC_SOURCE


def resolve_selection(
    cli_project: Optional[str] = None,
    cli_output_dirs: Optional[dict[str, str]] = None,
    cli_tags: Optional[list[str]] = None,
    cli_runtime_module: Optional[str] = None,
    project: Optional[ProjectConfig] = None,
    require_output: bool = True,
) -> ProfileSelection:
    """Resolve the profile, allow-list, output directory and runtime module.

    Profile name: ``--project`` > last key of ``--output-dirs`` >
    ``APIBIND_PROFILE`` > ``default_profile`` in ``apibind.json``.

    A profile name that is neither built in nor declared in the project file
    gets an empty allow-list; its run then only includes operations whose
    second tag names the profile.

    Output directory: ``--output-dirs[profile]`` > the only ``--output-dirs``
    entry > ``output_dirs[profile]`` in ``apibind.json`` > the profile's own
    ``output_dir``.

    Raises:
        InvalidUsageError: If no profile name can be determined.
        MissingOutputTarget: If *require_output* is set and no output
            directory can be determined.
    """
    cli_output_dirs = cli_output_dirs or {}

    name: Optional[str] = None
    if project is not None and project.default_profile:
        name = project.default_profile
    env_profile = os.environ.get(ENV_PROFILE)
    if env_profile:
        name = env_profile
    if cli_output_dirs:
        name = list(cli_output_dirs)[-1]
    if cli_project:
        name = cli_project

    if not name:
        raise InvalidUsageError(
            "Project type not specified. Use --output-dirs=key:path or "
            "--project=type (" + ", ".join(available_profiles(project)) + ")"
        )

    profiles = available_profiles(project)
    profile = profiles.get(name)
    if profile is None:
        logger.debug("Profile %s is not defined; using an empty tag allow-list", name)
        profile = ProfileConfig()

    output_dir: Optional[str] = None
    if name in cli_output_dirs:
        output_dir = cli_output_dirs[name]
    elif len(cli_output_dirs) == 1:
        output_dir = next(iter(cli_output_dirs.values()))
    elif project is not None and name in project.output_dirs:
        output_dir = project.output_dirs[name]
    elif profile.output_dir:
        output_dir = profile.output_dir

    if output_dir is None and require_output:
        raise MissingOutputTarget(name)

    runtime_module = cli_runtime_module or (
        project.runtime_module if project is not None and project.runtime_module else None
    )

    return ProfileSelection(
        name=name,
        allow_list=list(cli_tags) if cli_tags is not None else list(profile.tags),
        output_dir=output_dir,
        runtime_module=runtime_module or DEFAULT_RUNTIME_MODULE,
    )
