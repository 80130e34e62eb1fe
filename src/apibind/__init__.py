"""apibind -- Generate typed TypeScript client bindings from OpenAPI documents.

This package reads an OpenAPI 3.x description and writes, for one *profile*
at a time, a shared ``types.ts`` module, one module per API tag with request
functions and ``@tanstack/react-query`` hooks, and an ``index.ts`` that
re-exports them.

Typical workflow::

    apibind generate --output-dirs app:src/lib/apis   # generate for profile 'app'
    apibind profiles                                  # list configured profiles
    apibind inspect operations --project app          # preview what would be generated

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for configuration and parsed operations.
    config: Built-in profiles, project file, and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    schema: Schema nodes, registry, enums and type resolution.
    generator: Naming, classification, emission and assembly.
"""

__version__ = "0.1.0"
