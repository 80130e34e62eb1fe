"""Function, hook and type names for generated bindings.

Names are derived from the operation alone (``operationId`` if present,
otherwise the path and method) and then disambiguated against a
:class:`NameRegistry`. A group module is emitted in three phases (types,
functions, hooks) and each phase gets a fresh registry, so every phase
re-derives its names from scratch. Within a phase names are unique; across
phases they agree only because the derivation is deterministic and the
operations are visited in the same order.

Derivation for an operation without ``operationId``:

1. Split the path on ``/`` and drop empty segments, the literal ``api``
   segment and ``{param}`` segments.
2. With more than one segment, strip a trailing ``s`` from the first one.
3. Join with ``-`` and camelCase. With more than one segment and a non-GET
   method, strip a trailing ``s`` again.
4. If the result is already claimed in the phase registry, append the
   method suffix (GET ``Detail``, POST ``Create``, PUT ``Update``, DELETE
   ``Delete``; PATCH has none). ``Detail`` singularizes first.

:meth:`NameRegistry.claim` then applies the numeric fallback (``name``,
``name1``, ``name2``, ...).

Example::

    registry = NameRegistry()
    derive_function_name("/api/todos", "get", operation, registry)       # 'todos'
    registry.claim("todos")
    derive_function_name("/api/todos/{id}", "get", operation, registry)  # 'todoDetail'
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from apibind.casing import camel_case, upper_first
from apibind.models import APIOperation, HTTPMethod

_METHOD_SUFFIXES = {
    HTTPMethod.GET: "Detail",
    HTTPMethod.POST: "Create",
    HTTPMethod.PUT: "Update",
    HTTPMethod.DELETE: "Delete",
    HTTPMethod.PATCH: "",
}


class NameRegistry:
    """Names already used in one emission phase of one group module."""

    def __init__(self) -> None:
        self._names: set[str] = set()
        self._order: list[str] = []

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def claim(self, name: str) -> str:
        """Record *name*, or the first free ``name<N>`` if it is taken."""
        candidate = name
        counter = 1
        while candidate in self._names:
            candidate = f"{name}{counter}"
            counter += 1
        self._names.add(candidate)
        self._order.append(candidate)
        return candidate

    def clear(self) -> None:
        self._names.clear()
        self._order.clear()


@dataclass(frozen=True)
class GeneratedIdentifier:
    """Every identifier generated for one operation in one phase."""

    function_name: str
    hook_name: str
    path_params_type_name: str
    query_params_type_name: str
    dto_type_name: str
    response_type_name: str
    response_item_type_name: str


def identifiers_for(function_name: str) -> GeneratedIdentifier:
    """Build the type and hook names that hang off a function name.

    The suffixes are purely mechanical: two function names that differ only
    in the case of their first letter produce the same type names.
    """
    base = upper_first(function_name)
    # Response names drop the first '-' of an operationId such as 'get-todo'.
    response_base = upper_first(function_name[:1] + function_name[1:].replace("-", "", 1))
    return GeneratedIdentifier(
        function_name=function_name,
        hook_name=f"use{base}",
        path_params_type_name=f"{base}PathParams",
        query_params_type_name=f"{base}QueryParams",
        dto_type_name=f"{base}DTO",
        response_type_name=f"{response_base}Response",
        response_item_type_name=f"{response_base}ResponseItem",
    )


def resource_segments(path: str) -> list[str]:
    """Literal path segments, without ``api`` and ``{param}`` placeholders."""
    return [
        segment
        for segment in path.split("/")
        if segment and segment != "api" and not segment.startswith("{")
    ]


def derive_function_name(
    path: str,
    method: HTTPMethod | str,
    operation: Optional[APIOperation],
    registry: NameRegistry,
) -> str:
    """Derive the base function name for an operation.

    The returned name has not been claimed yet; pass it to
    :meth:`NameRegistry.claim` to apply the numeric fallback and record it.

    Args:
        path: The operation's URL path template.
        method: HTTP method (enum member or lower/upper-case string).
        operation: The operation; only ``operation_id`` is consulted.
        registry: The current phase's registry.

    Returns:
        The derived name.
    """
    if operation is not None and operation.operation_id:
        return operation.operation_id

    method = HTTPMethod(str(getattr(method, "value", method)).lower())
    parts = resource_segments(path)
    if not parts:
        return method.value

    single = len(parts) == 1
    if not single and parts[0].endswith("s"):
        parts[0] = parts[0][:-1]

    resource = camel_case("-".join(parts))
    if resource.endswith("s") and not single and method is not HTTPMethod.GET:
        resource = resource[:-1]

    if resource not in registry:
        return resource

    suffix = _METHOD_SUFFIXES[method]
    if suffix == "Detail" and resource.endswith("s"):
        resource = resource[:-1]
    return camel_case(f"{resource}{suffix}")


def claim_function_name(
    path: str,
    method: HTTPMethod | str,
    operation: Optional[APIOperation],
    registry: NameRegistry,
) -> GeneratedIdentifier:
    """Derive, disambiguate and record a function name in one step."""
    name = registry.claim(derive_function_name(path, method, operation, registry))
    return identifiers_for(name)
