"""Follow ``$ref`` pointers to reusable operation components.

Parameters, request bodies and responses may be declared once under
``components`` and referenced from operations. The extractor replaces such a
reference with its target before reading it. Schemas are *not* inlined here:
schema references stay references and are handled by
:class:`~apibind.schema.registry.SchemaRegistry`.

Only internal references (``#/...``) are supported.
"""

from __future__ import annotations

from typing import Any

from apibind.exceptions import SpecParseError


def resolve_pointer(ref: str, root: dict[str, Any]) -> Any:
    """Resolve a single ``$ref`` string against the root document.

    Handles RFC 6901 JSON Pointer escaping (``~0`` for ``~``, ``~1`` for
    ``/``).

    Raises:
        SpecParseError: If the reference is external or any segment of the
            pointer does not exist in the document.
    """
    if not isinstance(ref, str) or not ref.startswith("#/"):
        raise SpecParseError(
            f"External $ref not supported: {ref}. "
            "Only internal references (#/...) are handled."
        )

    current: Any = root
    for segment in ref[2:].split("/"):
        segment = segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': key '{segment}' not found at path"
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecParseError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )

    return current


def deref(obj: Any, root: dict[str, Any]) -> Any:
    """Follow ``$ref`` chains at the top of *obj* until a concrete object.

    Nested values are left untouched.

    Raises:
        SpecParseError: If a reference cannot be resolved or the chain loops.
    """
    seen: list[str] = []
    while isinstance(obj, dict) and "$ref" in obj:
        ref = obj["$ref"]
        if ref in seen:
            raise SpecParseError(
                "Circular component reference: " + " -> ".join(seen + [ref])
            )
        seen.append(ref)
        obj = resolve_pointer(ref, root)
    return obj
