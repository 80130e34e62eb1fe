"""Schema node -> TypeScript type expression and class-validator decorator."""

from __future__ import annotations

from dataclasses import dataclass

from apibind.casing import string_literal
from apibind.exceptions import UnsupportedSchemaKind
from apibind.schema.enums import EnumRegistry
from apibind.schema.nodes import (
    ArrayNode,
    ComposedNode,
    EnumNode,
    ObjectNode,
    OpaqueNode,
    PrimitiveNode,
    RefNode,
    SchemaNode,
)

TYPES_NAMESPACE = "Types"

_PRIMITIVE_TYPES = {
    "string": "string",
    "integer": "number",
    "number": "number",
    "boolean": "boolean",
}

_PRIMITIVE_VALIDATORS = {
    "string": "@IsString()",
    "integer": "@IsNumber()",
    "number": "@IsNumber()",
    "boolean": "@IsBoolean()",
}

# Formats that override the primitive mapping.
_FORMAT_TYPES = {
    "date-time": "string",
    "binary": "File",
}


@dataclass(frozen=True)
class ResolvedType:
    """A rendered type expression plus the decorator used on DTO fields."""

    expr: str
    validator: str


class TypeResolver:
    """Resolve schema nodes against the enum registry of one run.

    ``qualified`` selects how named types are spelled: ``Types.Todo`` inside a
    tag group module, which imports the shared module as ``Types``, and plain
    ``Todo`` inside the shared type module itself.
    """

    def __init__(self, enums: EnumRegistry) -> None:
        self.enums = enums

    def resolve(self, node: SchemaNode, qualified: bool = True) -> ResolvedType:
        return ResolvedType(self.type_of(node, qualified), self.validator_of(node, qualified))

    def type_of(self, node: SchemaNode, qualified: bool = True) -> str:
        if isinstance(node, RefNode):
            return self.qualify(node.target, qualified)
        if isinstance(node, ArrayNode):
            return f"{self.type_of(node.items, qualified)}[]"
        if isinstance(node, EnumNode):
            descriptor = self.enums.lookup(node.values)
            if descriptor is not None:
                return self.qualify(descriptor.name, qualified)
            return " | ".join(string_literal(value) for value in node.values)
        if isinstance(node, PrimitiveNode):
            if node.format in _FORMAT_TYPES:
                return _FORMAT_TYPES[node.format]
            return _PRIMITIVE_TYPES[node.kind]
        if isinstance(node, (ObjectNode, ComposedNode, OpaqueNode)):
            return "any"
        raise UnsupportedSchemaKind(type(node).__name__)

    def validator_of(self, node: SchemaNode, qualified: bool = True) -> str:
        if isinstance(node, RefNode):
            return "@ValidateNested()"
        if isinstance(node, ArrayNode):
            return "@IsArray()"
        if isinstance(node, EnumNode):
            descriptor = self.enums.lookup(node.values)
            if descriptor is not None:
                return f"@IsEnum({self.qualify(descriptor.name, qualified)})"
            return "@IsEnum([{}])".format(", ".join(string_literal(value) for value in node.values))
        if isinstance(node, PrimitiveNode):
            return _PRIMITIVE_VALIDATORS[node.kind]
        if isinstance(node, (ObjectNode, ComposedNode)):
            return "@IsObject()"
        if isinstance(node, OpaqueNode):
            return "@IsString()"
        raise UnsupportedSchemaKind(type(node).__name__)

    @staticmethod
    def qualify(name: str, qualified: bool = True) -> str:
        return f"{TYPES_NAMESPACE}.{name}" if qualified else name
