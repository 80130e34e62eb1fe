"""Typed schema nodes -- the tagged union every schema is parsed into.

Raw schema dicts are duck-typed (a dict may carry ``$ref``, ``type``,
``enum``, ``properties`` or ``allOf`` in any combination). The parser in
:mod:`apibind.schema.registry` decides once which variant a dict is, and
every later stage dispatches on the node class instead of probing keys.

Variants:

* :class:`PrimitiveNode` -- ``string``, ``integer``, ``number``, ``boolean``
  with an optional ``format``.
* :class:`RefNode` -- a reference to a named schema, by name.
* :class:`ArrayNode` -- a sequence of ``items``.
* :class:`EnumNode` -- an ordered list of literal values.
* :class:`ObjectNode` -- ``properties`` plus the ``required`` set.
* :class:`ComposedNode` -- ``allOf`` parts (inline objects or supertypes).
* :class:`OpaqueNode` -- anything that declares no usable shape.

All nodes are frozen; a node never changes after it is parsed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

PRIMITIVE_KINDS = frozenset({"string", "integer", "number", "boolean"})


@dataclass(frozen=True)
class PrimitiveNode:
    kind: str
    format: Optional[str] = None


@dataclass(frozen=True)
class RefNode:
    """Reference to ``components.schemas[target]``."""

    target: str


@dataclass(frozen=True)
class ArrayNode:
    items: SchemaNode


@dataclass(frozen=True)
class EnumNode:
    values: tuple[str, ...]


@dataclass(frozen=True)
class ObjectNode:
    """An object with named properties.

    ``properties`` is a tuple of ``(name, node)`` pairs so that declaration
    order survives and the node stays hashable.
    """

    properties: tuple[tuple[str, SchemaNode], ...] = ()
    required: frozenset[str] = field(default_factory=frozenset)

    def get_property(self, name: str) -> Optional[SchemaNode]:
        for prop_name, node in self.properties:
            if prop_name == name:
                return node
        return None

    def is_required(self, name: str) -> bool:
        return name in self.required


@dataclass(frozen=True)
class ComposedNode:
    """An ``allOf`` schema. Reference parts act as supertypes."""

    parts: tuple[SchemaNode, ...]

    @property
    def supertypes(self) -> list[str]:
        return [part.target for part in self.parts if isinstance(part, RefNode)]

    @property
    def own_fields(self) -> Optional[ObjectNode]:
        """The final inline object part, which contributes the field list."""
        objects = [part for part in self.parts if isinstance(part, ObjectNode)]
        return objects[-1] if objects else None


@dataclass(frozen=True)
class OpaqueNode:
    """A schema with no usable shape; always rendered as ``any``."""


SchemaNode = Union[
    PrimitiveNode, RefNode, ArrayNode, EnumNode, ObjectNode, ComposedNode, OpaqueNode
]
