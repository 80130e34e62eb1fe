"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apibind.exceptions.ApibindError` subclass.
Build scripts can inspect the exit code to tell a broken schema document
apart from a bad invocation without parsing stderr.

Example::

    $ apibind generate --project app
    $ echo $?
    8   # EXIT_SCHEMA_ERROR -- a $ref points at a missing schema
"""

EXIT_SUCCESS = 0
"""Generation completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required options."""

EXIT_SPEC_PARSE_ERROR = 7
"""The API description could not be loaded or parsed."""

EXIT_SCHEMA_ERROR = 8
"""A schema could not be resolved into the type model (dangling ``$ref``, cycle, unknown kind)."""
