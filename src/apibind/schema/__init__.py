"""Schema model -- parse ``components.schemas`` and resolve nodes to types.

This sub-package owns the schema-derived model for one generation run:

* :mod:`~apibind.schema.nodes` -- The frozen tagged union every raw schema
  dict is parsed into.
* :mod:`~apibind.schema.registry` -- The arena of named schemas, with
  ``$ref`` validation and alias/inheritance cycle detection.
* :mod:`~apibind.schema.enums` -- Canonical enum names, deduplicated by
  ordered value sequence.
* :mod:`~apibind.schema.resolver` -- Node to TypeScript type expression and
  ``class-validator`` decorator.

Typical usage::

    from apibind.schema import EnumRegistry, SchemaRegistry, TypeResolver

    schemas = SchemaRegistry.from_document(document)
    enums = EnumRegistry.build(schemas)
    resolver = TypeResolver(enums)
    resolver.type_of(schemas.parse({"type": "array", "items": {"type": "string"}}))
    # 'string[]'
"""

from apibind.schema.enums import EnumDescriptor, EnumRegistry
from apibind.schema.registry import SchemaRegistry
from apibind.schema.resolver import ResolvedType, TypeResolver

__all__ = [
    "EnumDescriptor",
    "EnumRegistry",
    "ResolvedType",
    "SchemaRegistry",
    "TypeResolver",
]
