"""entityforge - compile declarative entity metadata into a storage schema.

Entity definitions (fields, links, collection options) go in; a normalized,
fully-resolved storage schema comes out: field types and column attributes,
relations, junction entities for many-to-many links, indexes with stable
names, and full-text search columns.

Example:
    from entityforge import compile_schema

    schema = compile_schema(
        {
            "Account": {
                "fields": {"name": {"type": "varchar", "required": True}},
                "links": {
                    "contacts": {"type": "manyMany", "entity": "Contact", "foreign": "accounts"}
                },
            },
            "Contact": {
                "fields": {"name": {"type": "varchar"}},
                "links": {
                    "accounts": {"type": "manyMany", "entity": "Account", "foreign": "contacts"}
                },
            },
        }
    )

    schema["AccountContact"].skip_rebuild  # True
    schema.to_dict()  # nested mapping for the persistence layer
"""

from entityforge.compiler import (
    EntityCompiler,
    FieldProcessor,
    ProcessorRegistry,
    ProcessorResult,
    SchemaCompiler,
    compile_schema,
    generate_index_name,
)
from entityforge.core import (
    CompiledEntitySchema,
    CompiledField,
    CompiledIndex,
    CompiledRelation,
    CompiledSchema,
    CompilerConfig,
    EntityDefinition,
    FieldDeclaration,
    LinkDeclaration,
    LinkType,
    SchemaFieldType,
    deep_merge,
)
from entityforge.exceptions import (
    CapabilityProbeError,
    ConfigurationError,
    EntityForgeError,
    InvalidLinkError,
    MalformedEntityDefinitionError,
    UnknownLinkTypeError,
)
from entityforge.sources import (
    CollectingDiagnostics,
    DefinitionSource,
    LoggingDiagnostics,
    MetadataSnapshot,
    SnapshotCache,
)
from entityforge.storage import SqlAlchemyCapabilityProbe, StaticCapabilityProbe

__version__ = "0.1.0"

__all__ = [
    # Compilation
    "SchemaCompiler",
    "EntityCompiler",
    "compile_schema",
    "generate_index_name",
    "CompilerConfig",
    "deep_merge",
    # Extension points
    "FieldProcessor",
    "ProcessorRegistry",
    "ProcessorResult",
    "DefinitionSource",
    "MetadataSnapshot",
    "SnapshotCache",
    "LoggingDiagnostics",
    "CollectingDiagnostics",
    "StaticCapabilityProbe",
    "SqlAlchemyCapabilityProbe",
    # Types
    "EntityDefinition",
    "FieldDeclaration",
    "LinkDeclaration",
    "LinkType",
    "SchemaFieldType",
    "CompiledSchema",
    "CompiledEntitySchema",
    "CompiledField",
    "CompiledRelation",
    "CompiledIndex",
    # Exceptions
    "EntityForgeError",
    "ConfigurationError",
    "InvalidLinkError",
    "UnknownLinkTypeError",
    "MalformedEntityDefinitionError",
    "CapabilityProbeError",
]
