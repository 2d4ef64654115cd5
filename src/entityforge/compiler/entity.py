"""Per-entity compilation.

An entity is compiled in fixed stages, each producing a fragment that is
deep-merged into the entity's schema:

1. seed the mandatory ``id`` / ``name`` / ``deleted`` fields
2. compile declared fields, plus the fields implied by links and by
   composite field types
3. run custom field post-processors (removals first, then merges)
4. compile links into relations
5. aggregate full-text search columns
6. synthesize indexes
7. compile collection defaults
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from entityforge.compiler.fields import FieldTypeResolver
from entityforge.compiler.fulltext import FullTextAggregator
from entityforge.compiler.indexes import IndexSynthesizer
from entityforge.compiler.processors import ProcessorRegistry
from entityforge.compiler.relations import RelationshipResolver
from entityforge.core.config import CompilerConfig
from entityforge.core.merge import deep_merge, unset_paths
from entityforge.core.types import EntityDefinition, SchemaFieldType

if TYPE_CHECKING:
    from entityforge.sources.definitions import DefinitionSource
    from entityforge.storage.capabilities import CapabilityProbe

logger = logging.getLogger(__name__)

# Seed fields a declaration replaces instead of merging into.
UNMERGED_SEED_FIELDS = ("name",)

STREAM_FIELDS: dict[str, dict[str, Any]] = {
    "isFollowed": {"type": SchemaFieldType.VARCHAR.value, "notStorable": True, "notExportable": True},
    "followersIds": {"type": SchemaFieldType.JSON_ARRAY.value, "notStorable": True, "notExportable": True},
    "followersNames": {"type": SchemaFieldType.JSON_OBJECT.value, "notStorable": True, "notExportable": True},
}


class EntityCompiler:
    """Compiles one entity definition into its storage schema."""

    def __init__(
        self,
        source: DefinitionSource,
        probe: CapabilityProbe,
        registry: ProcessorRegistry | None = None,
        config: CompilerConfig | None = None,
    ) -> None:
        """Initialize the entity compiler.

        Args:
            source: Field-type and link-type metadata
            probe: Storage capability probe (full-text support)
            registry: Custom field post-processors
            config: Compiler constants
        """
        self._config = config or CompilerConfig()
        self._registry = registry or ProcessorRegistry()
        self.fields = FieldTypeResolver(source, self._config)
        self.relations = RelationshipResolver(source, self._config)
        self.fulltext = FullTextAggregator(source, probe, self._config)
        self.indexes = IndexSynthesizer(self._config)

    def compile(self, entity_type: str, definition: EntityDefinition) -> dict[str, Any]:
        """Compile one entity.

        Args:
            entity_type: Entity name
            definition: Validated entity definition

        Returns:
            ``{entity_type: compiled entity schema}``

        Raises:
            ConfigurationError: If a link declaration violates its contract
        """
        declared = definition.model_dump(by_alias=True, exclude_unset=True)
        entity: dict[str, Any] = {"fields": {}, "relations": {}}
        for option in self._config.permitted_entity_options:
            if declared.get(option) is not None:
                entity[option] = declared[option]
        schema: dict[str, Any] = {entity_type: entity}

        links = self._collect_links(definition)
        declarations = self._collect_declarations(entity_type, definition, links)
        schema[entity_type]["fields"] = self._compile_fields(definition, declarations)

        schema = self._correct_fields(entity_type, definition, schema)

        for link_name, params in links.items():
            schema = deep_merge(
                schema, self.relations.resolve(entity_type, link_name, params, schema[entity_type])
            )

        full_text = self.fulltext.aggregate(entity_type, definition)
        if full_text:
            schema = deep_merge(schema, {entity_type: full_text})

        schema = deep_merge(schema, {entity_type: self.indexes.synthesize(schema[entity_type])})

        collection = self._compile_collection(definition, schema[entity_type]["fields"])
        if collection is not None:
            schema[entity_type]["collection"] = collection

        return schema

    # === Stages ===

    def _collect_links(self, definition: EntityDefinition) -> dict[str, dict[str, Any]]:
        """Declared links plus links contributed by field types (declared win)."""
        declared = {name: link.to_params() for name, link in definition.links.items()}

        contributed: dict[str, dict[str, Any]] = {}
        for field_name, declaration in definition.fields.items():
            params = declaration.to_params()
            if not params.get("type"):
                continue
            link = self.fields.link_declaration(params, self.fields.type_metadata(params))
            if link:
                contributed[field_name] = link

        return deep_merge(contributed, declared)

    def _collect_declarations(
        self,
        entity_type: str,
        definition: EntityDefinition,
        links: dict[str, dict[str, Any]],
    ) -> dict[str, dict[str, Any]]:
        """Declared fields over link-implied and composite sub-field declarations."""
        implied: dict[str, dict[str, Any]] = {}

        for link_name, params in links.items():
            implied = deep_merge(implied, self.relations.implied_fields(entity_type, link_name, params))

        declared = {name: field.to_params() for name, field in definition.fields.items()}
        for field_name, params in declared.items():
            if not params.get("type"):
                continue
            type_meta = self.fields.type_metadata(params)
            implied = deep_merge(implied, self.fields.sub_field_declarations(field_name, type_meta))

        return deep_merge(implied, declared)

    def _seed_fields(self, definition: EntityDefinition) -> dict[str, dict[str, Any]]:
        name_declaration = definition.fields.get("name")
        name_type = (name_declaration.type if name_declaration else None) or SchemaFieldType.VARCHAR.value
        return {
            "id": {"type": SchemaFieldType.ID.value, "dbType": "varchar"},
            "name": {"type": name_type, "notStorable": True},
            "deleted": {"type": SchemaFieldType.BOOL.value, "default": False},
        }

    def _compile_fields(
        self, definition: EntityDefinition, declarations: dict[str, dict[str, Any]]
    ) -> dict[str, dict[str, Any]]:
        fields = self._seed_fields(definition)

        for field_name, params in declarations.items():
            if not params.get("type"):
                continue
            compiled = self.fields.resolve(field_name, params)
            if compiled is None:
                continue
            if field_name in fields and field_name not in UNMERGED_SEED_FIELDS:
                fields[field_name] = deep_merge(fields[field_name], compiled)
            else:
                fields[field_name] = compiled

        return fields

    def _correct_fields(
        self, entity_type: str, definition: EntityDefinition, schema: dict[str, Any]
    ) -> dict[str, Any]:
        """Custom processors, default attributes and stream fields."""
        for field_name, params in list(schema[entity_type]["fields"].items()):
            field_type = params.get("type")
            if not field_type:
                continue

            processor = self._registry.lookup(field_type)
            if processor is not None:
                result = processor.process(field_name, entity_type, schema)
                if result.unset:
                    schema = unset_paths(schema, result.unset)
                schema = deep_merge(schema, result.fragment)

            declaration = definition.fields.get(field_name)
            default_attributes = declaration.default_attributes if declaration else None
            if default_attributes and field_name in default_attributes:
                schema = deep_merge(
                    schema,
                    {entity_type: {"fields": {field_name: {"default": default_attributes[field_name]}}}},
                )

        if definition.stream and "isFollowed" not in definition.fields:
            schema = deep_merge(schema, {entity_type: {"fields": STREAM_FIELDS}})

        return schema

    def _compile_collection(
        self, definition: EntityDefinition, fields: dict[str, Any]
    ) -> dict[str, Any] | None:
        collection = definition.collection
        if collection is None or not (collection.model_fields_set or collection.model_extra):
            return None

        compiled: dict[str, Any] = {}
        if collection.order_by_column is not None:
            compiled["orderBy"] = collection.order_by_column
        elif collection.order_by is not None and collection.order_by in fields:
            compiled["orderBy"] = collection.order_by

        compiled["order"] = (collection.order or "ASC").upper()
        return compiled
