"""Full-text search column aggregation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from entityforge.core.config import CompilerConfig
from entityforge.core.naming import compose, to_underscore
from entityforge.core.types import EntityDefinition, IndexType

if TYPE_CHECKING:
    from entityforge.sources.definitions import DefinitionSource
    from entityforge.storage.capabilities import CapabilityProbe

logger = logging.getLogger(__name__)

DEFAULT_TEXT_FILTER_FIELDS = ["name"]


class FullTextAggregator:
    """Collects the columns of an entity's full-text search index."""

    def __init__(
        self,
        source: DefinitionSource,
        probe: CapabilityProbe,
        config: CompilerConfig | None = None,
    ) -> None:
        self._source = source
        self._probe = probe
        self._config = config or CompilerConfig()

    def column_list(self, definition: EntityDefinition) -> list[str]:
        """Physical columns of the searchable fields, in declaration order."""
        collection = definition.collection
        field_list = collection.text_filter_fields if collection else None
        if field_list is None:
            field_list = DEFAULT_TEXT_FILTER_FIELDS

        columns: list[str] = []
        for field_name in field_list:
            declaration = definition.fields.get(field_name)
            if declaration is None or not declaration.type:
                continue
            if declaration.not_storable:
                continue

            type_meta = self._source.get_field_type_metadata(declaration.type)
            if not type_meta.full_text_search:
                continue

            parts = type_meta.full_text_search_column_list
            if parts:
                naming = type_meta.naming or self._config.default_naming
                columns.extend(compose(field_name, part, naming) for part in parts)
            else:
                columns.append(field_name)

        return columns

    def aggregate(self, entity_type: str, definition: EntityDefinition) -> dict[str, Any]:
        """Build the full-text fragment of one entity.

        Returns:
            ``{"fullTextSearchColumnList": [...], "indexes": {...}}``, or an
            empty dict when full-text search does not apply
        """
        collection = definition.collection
        if collection is None or not collection.full_text_search:
            return {}
        if not self._probe.supports_full_text(to_underscore(entity_type)):
            logger.debug(f"{entity_type}: storage does not support full-text search")
            return {}

        columns = self.column_list(definition)
        if not columns:
            return {}

        return {
            "fullTextSearchColumnList": columns,
            "indexes": {
                self._config.full_text_index_name: {
                    "columns": list(columns),
                    "flags": [IndexType.FULLTEXT.value],
                }
            },
        }
