"""Arena of named schemas, indexed by name.

:class:`SchemaRegistry` parses every entry of ``components.schemas`` into a
:mod:`~apibind.schema.nodes` node once, up front. References stay references:
a :class:`~apibind.schema.nodes.RefNode` only records the target *name*, and
anything that needs the target looks it up here. Because nothing holds a
direct pointer to another node, mutually recursive schemas (``Category``
containing ``Category[]``) parse without recursion problems.

Every ``$ref`` is checked against the dictionary while parsing. A name that
is not present raises :class:`~apibind.exceptions.UnresolvedReference`; there
is no silent fallback to ``any``.

Two kinds of reference chains *are* followed: pure aliases (``A: {$ref: B}``)
and ``allOf`` supertypes. Both are checked for cycles at construction time,
and :meth:`SchemaRegistry.follow` guards its own walk the same way.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from apibind.exceptions import (
    ReferenceCycleError,
    SpecParseError,
    UnresolvedReference,
    UnsupportedSchemaKind,
)
from apibind.schema.nodes import (
    PRIMITIVE_KINDS,
    ArrayNode,
    ComposedNode,
    EnumNode,
    ObjectNode,
    OpaqueNode,
    PrimitiveNode,
    RefNode,
    SchemaNode,
)

logger = logging.getLogger(__name__)

_UNPARSED_KEYWORDS = ("oneOf", "anyOf", "not", "additionalProperties")


class SchemaRegistry:
    """Named schema nodes for one generation run.

    Args:
        raw_schemas: The ``components.schemas`` mapping of the document.

    Raises:
        UnresolvedReference: If any schema references a missing name.
        ReferenceCycleError: If aliases or ``allOf`` supertypes form a cycle.
        UnsupportedSchemaKind: If any schema declares an unknown ``type``.

    Example::

        registry = SchemaRegistry.from_document(document)
        todo = registry.get("Todo")
        node = registry.parse({"type": "array", "items": {"$ref": "#/components/schemas/Todo"}})
    """

    def __init__(self, raw_schemas: dict[str, Any]) -> None:
        self._raw = raw_schemas
        self._nodes: dict[str, SchemaNode] = {}
        for name, raw in raw_schemas.items():
            self._nodes[name] = self.parse(raw, where=f"components.schemas.{name}")
        self._check_cycles()
        logger.debug("Schema registry built with %d named schemas", len(self._nodes))

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> SchemaRegistry:
        """Build a registry from a full API description."""
        components = document.get("components") or {}
        if not isinstance(components, dict):
            raise SpecParseError("'components' must be an object")
        schemas = components.get("schemas") or {}
        if not isinstance(schemas, dict):
            raise SpecParseError("'components.schemas' must be an object")
        return cls(schemas)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def items(self) -> list[tuple[str, SchemaNode]]:
        """Named schemas in document order."""
        return list(self._nodes.items())

    def get(self, name: str) -> SchemaNode:
        """Return the node for *name*.

        Raises:
            UnresolvedReference: If *name* is not a known schema.
        """
        try:
            return self._nodes[name]
        except KeyError:
            raise UnresolvedReference(name) from None

    def follow(self, node: SchemaNode) -> SchemaNode:
        """Follow reference aliases until a non-reference node is reached.

        Raises:
            ReferenceCycleError: If the chain revisits a name.
        """
        chain: list[str] = []
        while isinstance(node, RefNode):
            if node.target in chain:
                raise ReferenceCycleError(chain + [node.target])
            chain.append(node.target)
            node = self.get(node.target)
        return node

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def ref_name(self, ref: Any) -> str:
        """Reduce a ``$ref`` string to a schema name and check it exists.

        Only local references (``#/...``) are accepted. The name is the last
        pointer segment, with RFC 6901 escapes (``~1``, ``~0``) decoded.
        """
        if not isinstance(ref, str) or not ref.startswith("#"):
            raise UnresolvedReference(
                str(ref),
                f"External $ref not supported: {ref}. "
                "Only internal references (#/...) are handled.",
            )
        name = ref.rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~")
        if name not in self._raw:
            raise UnresolvedReference(ref)
        return name

    def parse(self, raw: Any, where: str = "schema") -> SchemaNode:
        """Parse a raw schema dict into a node.

        The checks run in a fixed order: ``$ref``, ``allOf``, ``array``,
        ``enum``, object, primitive. Schemas that match none of them
        (no ``type``, or only ``oneOf``/``anyOf``) become
        :class:`~apibind.schema.nodes.OpaqueNode`.
        """
        if not isinstance(raw, dict):
            return OpaqueNode()

        if "$ref" in raw:
            return RefNode(self.ref_name(raw["$ref"]))

        self._check_unparsed_refs(raw)

        if "allOf" in raw:
            parts = raw.get("allOf") or []
            return ComposedNode(
                tuple(
                    self.parse(part, where=f"{where}.allOf[{index}]")
                    for index, part in enumerate(parts)
                )
            )

        schema_type = _schema_type(raw)

        if schema_type == "array":
            return ArrayNode(self.parse(raw.get("items"), where=f"{where}.items"))

        if "enum" in raw:
            return EnumNode(tuple(str(value) for value in raw.get("enum") or []))

        if schema_type == "object" or "properties" in raw:
            properties = raw.get("properties") or {}
            return ObjectNode(
                properties=tuple(
                    (name, self.parse(prop, where=f"{where}.{name}"))
                    for name, prop in properties.items()
                ),
                required=frozenset(raw.get("required") or []),
            )

        if schema_type in PRIMITIVE_KINDS:
            return PrimitiveNode(schema_type, raw.get("format"))

        if schema_type is None:
            if raw.get("format"):
                return PrimitiveNode("string", raw["format"])
            return OpaqueNode()

        if schema_type == "null":
            return OpaqueNode()

        raise UnsupportedSchemaKind(schema_type, where)

    def _check_unparsed_refs(self, raw: dict[str, Any]) -> None:
        """Check references under keywords that are not parsed into nodes.

        ``oneOf``, ``anyOf``, ``not`` and ``additionalProperties`` all render
        as ``any``, but a dangling ``$ref`` inside them is still an error.
        """
        pending = [raw.get(key) for key in _UNPARSED_KEYWORDS]
        while pending:
            value = pending.pop()
            if isinstance(value, dict):
                if "$ref" in value:
                    self.ref_name(value["$ref"])
                pending.extend(value.values())
            elif isinstance(value, list):
                pending.extend(value)

    # ------------------------------------------------------------------
    # Cycle detection
    # ------------------------------------------------------------------

    def _dependencies(self, name: str) -> list[str]:
        """Names that must be resolved before *name* can be declared."""
        node = self._nodes[name]
        if isinstance(node, RefNode):
            return [node.target]
        if isinstance(node, ComposedNode):
            return node.supertypes
        return []

    def _check_cycles(self) -> None:
        """Reject alias and ``allOf`` inheritance cycles.

        Depth-first walk with an explicit in-progress stack. Reaching a name
        that is still on the stack means it would have to be resolved before
        itself.
        """
        done: set[str] = set()

        for start in self._nodes:
            if start in done:
                continue
            stack: list[tuple[str, Iterator[str]]] = [
                (start, iter(self._dependencies(start)))
            ]
            in_progress = [start]
            while stack:
                name, deps = stack[-1]
                dep = next(deps, None)
                if dep is None:
                    stack.pop()
                    in_progress.pop()
                    done.add(name)
                    continue
                if dep in done:
                    continue
                if dep in in_progress:
                    cycle = in_progress[in_progress.index(dep):] + [dep]
                    raise ReferenceCycleError(cycle)
                in_progress.append(dep)
                stack.append((dep, iter(self._dependencies(dep))))


def _schema_type(schema: dict[str, Any]) -> str | None:
    """Extract the ``type`` of a schema.

    OpenAPI 3.1 allows ``type`` to be a list (e.g. ``["string", "null"]``);
    the first non-null entry is used.
    """
    type_value = schema.get("type")
    if isinstance(type_value, list):
        non_null = [t for t in type_value if t != "null"]
        return str(non_null[0]) if non_null else "null"
    if type_value is None:
        return None
    return str(type_value)
