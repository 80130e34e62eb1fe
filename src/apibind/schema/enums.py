"""Canonical enum names, deduplicated by value sequence.

Enums in an API description are usually declared inline on a property, so
the same status list shows up under ``Order.status`` and
``OrderSummary.status``. :class:`EnumRegistry` collapses them: the identity
of an enum is its *ordered* value tuple, and the first property that declares
a given tuple names it (``OrderStatus``). Later properties with the same tuple
reuse that name; a different tuple, even one that overlaps, is a different
enum.

The registry is built once from the schema registry before any emission and
then frozen. Emitters only look names up, so the result does not depend on
which module is rendered first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from apibind.casing import upper_camel
from apibind.schema.nodes import ComposedNode, EnumNode, ObjectNode
from apibind.schema.registry import SchemaRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnumDescriptor:
    """A named enum and its ordered values."""

    name: str
    values: tuple[str, ...]


class EnumRegistry:
    """Value-sequence keyed registry of enum descriptors.

    Args:
        reserved: Names already taken by named schemas. A derived enum name
            that clashes with one of them gets a numeric suffix.
    """

    def __init__(self, reserved: Sequence[str] = ()) -> None:
        self._by_key: dict[tuple[str, ...], EnumDescriptor] = {}
        self._taken: set[str] = set(reserved)
        self._frozen = False

    @classmethod
    def build(cls, schemas: SchemaRegistry) -> EnumRegistry:
        """Scan every named schema's properties and freeze the result.

        Properties of the inline object parts of ``allOf`` schemas are
        scanned as well, under the composed schema's name.
        """
        registry = cls(reserved=list(schemas))
        for schema_name, node in schemas.items():
            for obj in _objects_of(node):
                for prop_name, prop in obj.properties:
                    if isinstance(prop, EnumNode):
                        registry.register(schema_name, prop_name, prop.values)
        registry.freeze()
        return registry

    def register(
        self, schema_name: str, property_name: str, values: Sequence[str]
    ) -> EnumDescriptor:
        """Register an enum declared on ``schema_name.property_name``.

        Returns the existing descriptor when the value sequence is already
        known.

        Raises:
            RuntimeError: If the registry has been frozen.
        """
        if self._frozen:
            raise RuntimeError("EnumRegistry is frozen; enums must be registered before emission")

        key = tuple(values)
        existing = self._by_key.get(key)
        if existing is not None:
            logger.debug(
                "Enum %s.%s reuses %s", schema_name, property_name, existing.name
            )
            return existing

        name = self._claim(upper_camel(schema_name) + upper_camel(property_name))
        descriptor = EnumDescriptor(name=name, values=key)
        self._by_key[key] = descriptor
        return descriptor

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, values: Sequence[str]) -> Optional[EnumDescriptor]:
        """Return the descriptor for this exact value sequence, if any."""
        return self._by_key.get(tuple(values))

    def __iter__(self) -> Iterator[EnumDescriptor]:
        return iter(self._by_key.values())

    def __len__(self) -> int:
        return len(self._by_key)

    def _claim(self, name: str) -> str:
        candidate = name
        counter = 1
        while candidate in self._taken:
            candidate = f"{name}{counter}"
            counter += 1
        self._taken.add(candidate)
        return candidate


def _objects_of(node: object) -> list[ObjectNode]:
    if isinstance(node, ObjectNode):
        return [node]
    if isinstance(node, ComposedNode):
        return [part for part in node.parts if isinstance(part, ObjectNode)]
    return []
