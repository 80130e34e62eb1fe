"""Binding generator -- turn the parsed model into TypeScript modules.

This sub-package is the second half of the apibind pipeline: it takes the
loaded document, builds the schema model for the run, and renders the shared
type module, one module per tag group, and the index.

Typical usage::

    from apibind.generator import DirectorySink, generate
    from apibind.config import resolve_selection

    selection = resolve_selection(cli_project="app", cli_output_dirs={"app": "src/lib/apis"})
    report = generate(document, selection, DirectorySink(selection.output_dir))

Sub-modules:

* :mod:`~apibind.generator.naming` -- Function, hook and type names, with
  per-phase collision registries.
* :mod:`~apibind.generator.classifier` -- Operation shapes, response
  unwrapping, tag filtering and cache keys.
* :mod:`~apibind.generator.context` -- Per-run schema/enum/resolver bundle.
* :mod:`~apibind.generator.emitters` -- Jinja2 rendering of ``types.ts``,
  group modules and ``index.ts``.
* :mod:`~apibind.generator.assembler` -- The pipeline and the artifact
  sinks.
"""

from apibind.generator.assembler import (
    DirectorySink,
    GenerationReport,
    MemorySink,
    generate,
)

__all__ = ["DirectorySink", "GenerationReport", "MemorySink", "generate"]
