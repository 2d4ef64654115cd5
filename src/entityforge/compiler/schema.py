"""Schema compiler: drives entity compilation and the global passes."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from entityforge.compiler.entity import EntityCompiler
from entityforge.compiler.fields import normalize_fields
from entityforge.compiler.processors import ProcessorRegistry
from entityforge.core.config import CompilerConfig
from entityforge.core.merge import deep_merge
from entityforge.core.naming import ucfirst
from entityforge.core.types import (
    CompiledEntitySchema,
    CompiledSchema,
    EntityDefinition,
    LinkType,
    SchemaFieldType,
)
from entityforge.exceptions import (
    CapabilityProbeError,
    ConfigurationError,
    MalformedEntityDefinitionError,
)
from entityforge.sources.definitions import DefinitionSource, MetadataSnapshot, SnapshotCache
from entityforge.sources.diagnostics import DiagnosticsSink, LoggingDiagnostics
from entityforge.storage.capabilities import CapabilityProbe, StaticCapabilityProbe

logger = logging.getLogger(__name__)


class SchemaCompiler:
    """Compiles every entity definition of a source into one storage schema.

    Compilation is a pure function of the source snapshot (and the capability
    probe's answers): each call returns a fresh :class:`CompiledSchema`.
    """

    def __init__(
        self,
        source: DefinitionSource,
        probe: CapabilityProbe | None = None,
        registry: ProcessorRegistry | None = None,
        diagnostics: DiagnosticsSink | None = None,
        config: CompilerConfig | None = None,
    ) -> None:
        """Initialize the schema compiler.

        Args:
            source: Entity, field-type and link-type metadata
            probe: Storage capability probe; defaults to "no full-text support"
            registry: Custom field post-processors; defaults to built-ins only
            diagnostics: Receives per-entity failures; defaults to logging
            config: Compiler constants
        """
        self._source = source
        self._probe = probe or StaticCapabilityProbe(supported=False)
        self._registry = registry or ProcessorRegistry()
        self._diagnostics = diagnostics or LoggingDiagnostics()
        self._config = config or CompilerConfig()

    def compile(self, reload: bool = False) -> CompiledSchema:
        """Compile the whole schema.

        Args:
            reload: Reload the snapshot first (only for a SnapshotCache source)

        Returns:
            Compiled schema keyed by entity name

        Raises:
            ConfigurationError: If a definition violates a compiler contract
        """
        source = self._snapshot(reload)
        entity_compiler = EntityCompiler(source, self._probe, self._registry, self._config)

        schema: dict[str, Any] = {}
        for entity_type, raw in source.get_entity_definitions().items():
            try:
                definition = self._load_definition(entity_type, raw)
                compiled = entity_compiler.compile(entity_type, definition)
                self._validate_entity(entity_type, compiled.get(entity_type) or {})
            except (MalformedEntityDefinitionError, CapabilityProbeError) as e:
                self._diagnostics.critical(e.message)
                continue

            if definition.skip_rebuild:
                schema = deep_merge(schema, {entity_type: {"skipRebuild": True}})

            schema = deep_merge(schema, compiled)

        schema = self.after_process(schema)

        junction_count = 0
        for entity_schema in list(schema.values()):
            junctions = self.junction_entities(entity_schema)
            junction_count += len(junctions)
            schema = deep_merge(schema, junctions)

        logger.info(f"Compiled {len(schema)} entities ({junction_count} junction definitions)")
        return self._validate(schema)

    def _snapshot(self, reload: bool) -> DefinitionSource:
        if isinstance(self._source, SnapshotCache):
            return self._source.reload() if reload else self._source.snapshot
        return self._source

    def _load_definition(self, entity_type: str, raw: Any) -> EntityDefinition:
        if isinstance(raw, EntityDefinition):
            return raw
        if not raw:
            raise MalformedEntityDefinitionError(entity_type, "metadata is empty or missing")
        try:
            return EntityDefinition.model_validate(raw)
        except ValidationError as e:
            raise MalformedEntityDefinitionError(entity_type, str(e)) from e

    def _validate_entity(self, entity_type: str, entity_schema: dict[str, Any]) -> None:
        """Check one compiled entity against the output model.

        Raises:
            MalformedEntityDefinitionError: If the entity compiles to an invalid shape
        """
        normalized = {
            **entity_schema,
            "fields": normalize_fields(entity_type, entity_schema.get("fields") or {}, self._config),
        }
        try:
            CompiledEntitySchema.model_validate(normalized)
        except ValidationError as e:
            raise MalformedEntityDefinitionError(entity_type, str(e)) from e

    def after_process(self, schema: dict[str, Any]) -> dict[str, Any]:
        """Global pass: prune incomplete fields and apply type coercions."""
        return {
            entity_type: {
                **entity_schema,
                "fields": normalize_fields(entity_type, entity_schema.get("fields") or {}, self._config),
            }
            for entity_type, entity_schema in schema.items()
        }

    def junction_entities(self, entity_schema: dict[str, Any]) -> dict[str, Any]:
        """Standalone entities for the mid-tables of many-to-many relations."""
        result: dict[str, Any] = {}

        for relation in (entity_schema.get("relations") or {}).values():
            if relation.get("type") != LinkType.MANY_MANY:
                continue

            junction_type = ucfirst(relation["relationName"])
            fields: dict[str, dict[str, Any]] = {
                "id": {
                    "type": SchemaFieldType.ID.value,
                    "autoincrement": True,
                    "dbType": self._config.junction_id_db_type,
                },
                "deleted": {"type": SchemaFieldType.BOOL.value, "default": False},
            }
            for key in relation.get("midKeys") or []:
                fields[key] = {"type": SchemaFieldType.FOREIGN_ID.value}
            for column, column_defs in (relation.get("additionalColumns") or {}).items():
                fields[column] = {"type": (column_defs or {}).get("type", SchemaFieldType.VARCHAR.value)}

            result[junction_type] = {
                "skipRebuild": True,
                "fields": normalize_fields(junction_type, fields, self._config),
            }

        return result

    def _validate(self, schema: dict[str, Any]) -> CompiledSchema:
        try:
            return CompiledSchema.model_validate(schema)
        except ValidationError as e:
            raise ConfigurationError(
                f"Compiled schema does not match the storage schema model: {e}",
                {"errors": e.errors(include_url=False)},
            ) from e


def compile_schema(
    entity_defs: Mapping[str, Any],
    field_types: Mapping[str, Mapping[str, Any]] | None = None,
    link_types: Mapping[str, Mapping[str, Any]] | None = None,
    probe: CapabilityProbe | None = None,
    registry: ProcessorRegistry | None = None,
    diagnostics: DiagnosticsSink | None = None,
    config: CompilerConfig | None = None,
) -> CompiledSchema:
    """Compile plain nested dicts in one call.

    Example:
        schema = compile_schema(
            {"Account": {"fields": {"name": {"type": "varchar"}}}},
        )
        schema["Account"].fields["name"].len  # 255
    """
    snapshot = MetadataSnapshot.from_mappings(entity_defs, field_types, link_types)
    return SchemaCompiler(snapshot, probe, registry, diagnostics, config).compile()
