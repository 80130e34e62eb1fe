"""Run the generation pipeline for one profile and write its artifacts.

:func:`generate` is the single entry point used by the CLI:

1. Build the schema registry, the frozen enum registry and the resolver.
2. Render ``types.ts`` completely, then write it.
3. Filter and group operations for the profile.
4. Render each group module and write it immediately.
5. Write ``index.ts``.

Artifacts are written as soon as they are rendered. A fatal schema error in
group N leaves ``types.ts`` and groups ``1..N-1`` on disk; there is no
all-or-nothing transaction.

A profile that matches no operations is not an error: the run ends after
``types.ts`` with a warning, and no group modules or index are written.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Protocol

from apibind.exceptions import EmptyProfile, SpecParseError
from apibind.generator.classifier import group_operations
from apibind.generator.context import GenerationContext
from apibind.generator.emitters import (
    create_environment,
    render_group_module,
    render_index,
    render_type_module,
)
from apibind.models import ProfileSelection
from apibind.parser.extractor import extract_spec

logger = logging.getLogger(__name__)

TYPES_ARTIFACT = "types.ts"
INDEX_ARTIFACT = "index.ts"


class Sink(Protocol):
    """Destination for finished artifacts."""

    def write(self, name: str, text: str) -> None: ...


class MemorySink:
    """Collect artifacts in a dict, in write order."""

    def __init__(self) -> None:
        self.artifacts: dict[str, str] = {}

    def write(self, name: str, text: str) -> None:
        self.artifacts[name] = text

    def __getitem__(self, name: str) -> str:
        return self.artifacts[name]

    def __contains__(self, name: object) -> bool:
        return name in self.artifacts


class DirectorySink:
    """Write artifacts into a directory, creating it if needed."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def write(self, name: str, text: str) -> None:
        """Write *name* under the directory.

        Raises:
            SpecParseError: If *name* (derived from a document tag) would
                land outside the directory.
        """
        path = self.directory / name
        if not path.resolve().is_relative_to(self.directory.resolve()):
            raise SpecParseError(
                f"Artifact '{name}' would be written outside {self.directory}"
            )
        _atomic_write(path, text)
        logger.info("Wrote %s", path)


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
            newline="\n",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


@dataclass
class GenerationReport:
    """What a run wrote."""

    profile: str
    artifacts: list[str] = field(default_factory=list)
    groups: list[str] = field(default_factory=list)
    functions: dict[str, list[str]] = field(default_factory=dict)
    operation_count: int = 0
    skipped_operations: int = 0
    empty: bool = False

    @property
    def function_count(self) -> int:
        return sum(len(names) for names in self.functions.values())


def generate(
    document: dict[str, Any],
    selection: ProfileSelection,
    sink: Sink,
) -> GenerationReport:
    """Generate every artifact for *selection* from *document*.

    Args:
        document: The loaded API description.
        selection: The resolved profile for this run.
        sink: Where finished artifacts go.

    Returns:
        A :class:`GenerationReport` listing what was written.

    Raises:
        SchemaError: On a dangling ``$ref``, a reference cycle or an
            unsupported schema kind. Artifacts written before the error
            stay written.
    """
    report = GenerationReport(profile=selection.name)
    env = create_environment()

    context = GenerationContext.from_document(document)
    parsed = extract_spec(document)
    report.operation_count = len(parsed.operations)

    types_text = render_type_module(context, env)
    _emit(sink, report, TYPES_ARTIFACT, types_text)

    logger.info(
        "Generating bindings (project: %s, tag filter: %s)",
        selection.name,
        ", ".join(selection.allow_list),
    )
    try:
        groups = group_operations(parsed.operations, selection)
    except EmptyProfile as exc:
        logger.info("%s", exc)
        report.empty = True
        report.skipped_operations = report.operation_count
        return report

    report.skipped_operations = report.operation_count - sum(
        len(group.operations) for group in groups
    )
    for group in groups:
        module = render_group_module(group, context, selection.runtime_module, env)
        _emit(sink, report, module.artifact_name, module.text)
        if group.module_name in report.functions:
            logger.warning(
                "Tag '%s' maps to module '%s', which an earlier tag already wrote; "
                "the earlier module is overwritten",
                group.tag,
                group.module_name,
            )
        else:
            report.groups.append(group.module_name)
        report.functions[group.module_name] = module.function_names

    _emit(sink, report, INDEX_ARTIFACT, render_index(report.groups, env))
    return report


def _emit(sink: Sink, report: GenerationReport, name: str, text: str) -> None:
    sink.write(name, text)
    if name not in report.artifacts:
        report.artifacts.append(name)
