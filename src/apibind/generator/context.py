"""Per-run state shared by the emitters."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from apibind.schema.enums import EnumRegistry
from apibind.schema.registry import SchemaRegistry
from apibind.schema.resolver import TypeResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationContext:
    """Schema registry, frozen enum registry and resolver for one run.

    Nothing in the generator keeps module-level state; a second run builds a
    second context.
    """

    schemas: SchemaRegistry
    enums: EnumRegistry
    resolver: TypeResolver

    @classmethod
    def from_schemas(cls, raw_schemas: dict[str, Any]) -> GenerationContext:
        schemas = SchemaRegistry(raw_schemas)
        return cls._build(schemas)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> GenerationContext:
        return cls._build(SchemaRegistry.from_document(document))

    @classmethod
    def _build(cls, schemas: SchemaRegistry) -> GenerationContext:
        enums = EnumRegistry.build(schemas)
        logger.debug("Registered %d enum(s) from %d schema(s)", len(enums), len(schemas))
        return cls(schemas=schemas, enums=enums, resolver=TypeResolver(enums))
