"""Exception hierarchy for apibind.

All exceptions inherit from :class:`ApibindError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apibind.exit_codes`.
The top-level error handler in :func:`apibind.app.main` catches
``ApibindError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ApibindError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- SpecParseError             (exit 7)
    +-- SchemaError                (exit 8)
    |   +-- UnresolvedReference
    |   |   +-- ReferenceCycleError
    |   +-- UnsupportedSchemaKind
    +-- NoSuccessResponse          (recovered locally)
    +-- EmptyProfile               (recovered locally)
    +-- ConfigError                (exit 1)
        +-- MissingOutputTarget

Schema errors abort the run. ``NoSuccessResponse`` and ``EmptyProfile`` are
raised by the classifier and caught one level up, where they degrade to an
opaque response type and an empty run respectively.
"""

from apibind.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SCHEMA_ERROR,
    EXIT_SPEC_PARSE_ERROR,
)


class ApibindError(Exception):
    """Base exception for all apibind errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`apibind.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ApibindError):
    """Raised for invalid CLI arguments or a missing profile selector."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(ApibindError):
    """Raised when the API description cannot be loaded or is structurally unusable."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class SchemaError(ApibindError):
    """Base class for fatal schema-resolution failures."""

    exit_code = EXIT_SCHEMA_ERROR


class UnresolvedReference(SchemaError):
    """Raised when a ``$ref`` names a schema missing from ``components.schemas``.

    Args:
        ref: The offending ``$ref`` string.
        message: Optional override for the default message.
    """

    def __init__(self, ref: str, message: str | None = None):
        super().__init__(message or f"Cannot resolve $ref '{ref}': no such schema")
        self.ref = ref


class ReferenceCycleError(UnresolvedReference):
    """Raised when following an alias chain returns to a schema still being resolved."""

    def __init__(self, chain: list[str]):
        super().__init__(
            chain[-1],
            "Reference cycle detected: " + " -> ".join(chain),
        )
        self.chain = chain


class UnsupportedSchemaKind(SchemaError):
    """Raised when a schema declares a ``type`` with no type mapping."""

    def __init__(self, kind: str, where: str | None = None):
        location = f" in {where}" if where else ""
        super().__init__(f"Unsupported schema kind '{kind}'{location}")
        self.kind = kind


class NoSuccessResponse(ApibindError):
    """Raised when an operation declares no 2xx response with a JSON schema."""


class EmptyProfile(ApibindError):
    """Raised when the active profile's allow-list matches zero operations."""

    def __init__(self, profile: str, tags: list[str]):
        super().__init__(
            f"No matching operations found (project: {profile}, tags: {', '.join(tags)})"
        )
        self.profile = profile
        self.tags = tags


class ConfigError(ApibindError):
    """Raised for configuration problems (invalid project file, bad ``--output-dirs``)."""

    exit_code = EXIT_GENERIC_FAILURE


class MissingOutputTarget(ConfigError):
    """Raised when no output directory can be determined for the active profile."""

    def __init__(self, profile: str):
        super().__init__(
            f"Output directory not specified for profile '{profile}'. "
            "Use --output-dirs=key:path or set output_dir in apibind.json"
        )
        self.profile = profile
