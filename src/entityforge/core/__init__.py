"""Core types, configuration and merge primitives for entityforge."""

from entityforge.core.config import CompilerConfig
from entityforge.core.merge import MergeMode, deep_merge, merge_all, unset_paths
from entityforge.core.types import (
    CompiledCollection,
    CompiledEntitySchema,
    CompiledField,
    CompiledIndex,
    CompiledRelation,
    CompiledSchema,
    ComputedExpression,
    EntityDefinition,
    FieldDeclaration,
    FieldTypeMetadata,
    IndexType,
    LinkDeclaration,
    LinkType,
    LinkTypeMetadata,
    SchemaFieldType,
    StaticValue,
    parse_default,
)

__all__ = [
    "CompilerConfig",
    "MergeMode",
    "deep_merge",
    "merge_all",
    "unset_paths",
    "CompiledCollection",
    "CompiledEntitySchema",
    "CompiledField",
    "CompiledIndex",
    "CompiledRelation",
    "CompiledSchema",
    "ComputedExpression",
    "EntityDefinition",
    "FieldDeclaration",
    "FieldTypeMetadata",
    "IndexType",
    "LinkDeclaration",
    "LinkType",
    "LinkTypeMetadata",
    "SchemaFieldType",
    "StaticValue",
    "parse_default",
]
