"""Index synthesis and deterministic index naming."""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from entityforge.core.config import CompilerConfig
from entityforge.core.naming import to_underscore
from entityforge.core.types import IndexType

logger = logging.getLogger(__name__)

INDEX_PREFIXES = {
    IndexType.UNIQUE: "UNIQ",
    IndexType.INDEX: "IDX",
    IndexType.FULLTEXT: "IDX",
}

HASH_LENGTH = 8


def index_type_of(index_defs: dict[str, Any]) -> IndexType:
    """Kind of an index definition, from its ``type`` or its ``flags``."""
    flags = index_defs.get("flags") or []
    if index_defs.get("type") == IndexType.UNIQUE or IndexType.UNIQUE in flags:
        return IndexType.UNIQUE
    if IndexType.FULLTEXT in flags:
        return IndexType.FULLTEXT
    return IndexType.INDEX


def generate_index_name(name: str, index_type: IndexType = IndexType.INDEX, max_length: int = 60) -> str:
    """Storage key for a logical index name.

    The key depends only on the logical name and the index type, so it is
    the same on every compilation. Keys over ``max_length`` are cut and
    suffixed with a short hash of the full key so that two long names sharing
    a prefix still get different keys.

    Examples:
        >>> generate_index_name("assignedUserId")
        'IDX_ASSIGNED_USER_ID'
        >>> generate_index_name("email", IndexType.UNIQUE)
        'UNIQ_EMAIL'
    """
    key = f"{INDEX_PREFIXES[index_type]}_{to_underscore(name).upper()}"
    if len(key) <= max_length:
        return key
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:HASH_LENGTH]
    return f"{key[: max_length - HASH_LENGTH - 1]}_{digest}"


def _field_index_type(params: dict[str, Any]) -> IndexType | None:
    # TEXT columns cannot carry a plain unique key.
    if params.get("dbType") != "text" and params.get("unique"):
        return IndexType.UNIQUE
    if params.get("index"):
        return IndexType.INDEX
    return None


def field_index_list(fields: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
    """Indexes implied by ``unique`` / ``index`` field flags.

    A ``True`` flag makes a single-column index named after the field; a
    string flag names a composite index shared by every field carrying it.
    """
    indexes: dict[str, dict[str, Any]] = {}

    for field_name, params in fields.items():
        if params.get("notStorable"):
            continue
        index_type = _field_index_type(params)
        if index_type is None:
            continue

        flag = params[index_type.value]
        if flag is True:
            indexes[field_name] = {"type": index_type.value, "columns": [field_name]}
        elif isinstance(flag, str):
            entry = indexes.setdefault(flag, {"type": index_type.value, "columns": []})
            entry["columns"].append(field_name)

    return indexes


class IndexSynthesizer:
    """Derives field indexes and assigns storage keys."""

    def __init__(self, config: CompilerConfig | None = None) -> None:
        self._config = config or CompilerConfig()

    def key_for(self, index_name: str, index_defs: dict[str, Any]) -> str:
        return generate_index_name(
            index_name, index_type_of(index_defs), self._config.index_name_max_length
        )

    def synthesize(self, entity_schema: dict[str, Any]) -> dict[str, Any]:
        """Build the index fragment of one compiled entity.

        Indexes already on the entity (explicit ones, the full-text index)
        take precedence over field-derived indexes of the same name.

        Args:
            entity_schema: Compiled entity (fields, relations, indexes so far)

        Returns:
            Fragment with ``indexes`` and relation ``indexes``, ready to merge
        """
        indexes: dict[str, dict[str, Any]] = {
            name: dict(defs) for name, defs in (entity_schema.get("indexes") or {}).items()
        }

        for name, defs in field_index_list(entity_schema.get("fields") or {}).items():
            if name not in indexes:
                indexes[name] = defs

        for name, defs in indexes.items():
            if not defs.get("key"):
                defs["key"] = self.key_for(name, defs)

        fragment: dict[str, Any] = {}
        if indexes:
            fragment["indexes"] = indexes

        relations: dict[str, Any] = {}
        for relation_name, relation in (entity_schema.get("relations") or {}).items():
            relation_indexes = relation.get("indexes")
            if not relation_indexes:
                continue
            relations[relation_name] = {
                "indexes": {
                    name: {**defs, "key": self.key_for(name, defs)}
                    for name, defs in relation_indexes.items()
                }
            }
        if relations:
            fragment["relations"] = relations

        return fragment
