"""Metadata-to-schema compilation."""

from entityforge.compiler.entity import EntityCompiler
from entityforge.compiler.fields import FieldTypeResolver, normalize_field
from entityforge.compiler.fulltext import FullTextAggregator
from entityforge.compiler.indexes import IndexSynthesizer, generate_index_name
from entityforge.compiler.processors import FieldProcessor, ProcessorRegistry, ProcessorResult
from entityforge.compiler.relations import RelationshipResolver
from entityforge.compiler.schema import SchemaCompiler, compile_schema

__all__ = [
    "SchemaCompiler",
    "compile_schema",
    "EntityCompiler",
    "FieldTypeResolver",
    "normalize_field",
    "RelationshipResolver",
    "IndexSynthesizer",
    "generate_index_name",
    "FullTextAggregator",
    "FieldProcessor",
    "ProcessorRegistry",
    "ProcessorResult",
]
