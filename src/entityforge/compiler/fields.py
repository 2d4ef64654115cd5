"""Field-type resolution and global field normalization."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from entityforge.core.config import CompilerConfig
from entityforge.core.merge import deep_merge
from entityforge.core.naming import compose
from entityforge.core.types import (
    ComputedExpression,
    FieldTypeMetadata,
    SchemaFieldType,
    parse_default,
)

if TYPE_CHECKING:
    from entityforge.sources.definitions import DefinitionSource

logger = logging.getLogger(__name__)

# Declared attribute name -> compiled attribute name
FIELD_ACCORDANCES: dict[str, str] = {
    "type": "type",
    "dbType": "dbType",
    "maxLength": "len",
    "len": "len",
    "notNull": "notNull",
    "exportDisabled": "notExportable",
    "autoincrement": "autoincrement",
    "entity": "entity",
    "notStorable": "notStorable",
    "link": "relation",
    "field": "foreign",
    "unique": "unique",
    "index": "index",
    "default": "default",
    "select": "select",
    "orderBy": "orderBy",
    "where": "where",
    "storeArrayValues": "storeArrayValues",
    "binary": "binary",
}

# Deprecated types the persistence layer still reads as-is.
PASSTHROUGH_TYPES = frozenset({"email", "phone"})

# String defaults read as false for bool fields; any other string is true.
FALSE_STRINGS = frozenset({"", "0", "false"})


class FieldTypeResolver:
    """Turns field declarations into compiled field attributes.

    Combines what a field declares with what its field type contributes:
    default parameters (``fieldDefs``), composite sub-fields, link templates
    and default lengths.
    """

    def __init__(self, source: DefinitionSource, config: CompilerConfig | None = None) -> None:
        """Initialize the resolver.

        Args:
            source: Provides field-type metadata
            config: Compiler constants
        """
        self._source = source
        self._config = config or CompilerConfig()

    def type_metadata(self, params: dict[str, Any]) -> FieldTypeMetadata:
        """Metadata of the declared type, empty when the field has no type."""
        field_type = params.get("type")
        if not field_type:
            return FieldTypeMetadata()
        return self._source.get_field_type_metadata(field_type)

    def resolve(
        self,
        field_name: str,
        params: dict[str, Any],
        type_meta: FieldTypeMetadata | None = None,
    ) -> dict[str, Any] | None:
        """Resolve one declaration into compiled attributes.

        Args:
            field_name: Field name, used for logging only
            params: Declared parameters (camelCase keys)
            type_meta: Metadata of the declared type, looked up when omitted

        Returns:
            Compiled attributes, or None if the field is excluded by skipOrmDefs
        """
        if type_meta is None:
            type_meta = self.type_metadata(params)

        if type_meta.field_defs:
            params = deep_merge(type_meta.field_defs, params)

        if params.get("type") == "base" and "dbType" in params:
            params = {**params, "notStorable": False}

        if type_meta.skip_orm_defs or params.get("skipOrmDefs"):
            logger.debug(f"Field {field_name} skipped: skipOrmDefs")
            return None

        # Required at application level does not mean NOT NULL in storage.
        if "notNull" in params and not params["notNull"] and params.get("required"):
            params = {key: value for key, value in params.items() if key != "notNull"}

        defs = self._init_values(params)

        if params.get("db") is False:
            defs["notStorable"] = True

        field_type = defs.get("type")
        if field_type and "len" not in defs and field_type in self._config.default_length:
            defs["len"] = self._config.default_length[field_type]

        return defs

    def _init_values(self, params: dict[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}

        for declared, compiled in FIELD_ACCORDANCES.items():
            if declared not in params:
                continue
            if declared == "default":
                parsed = parse_default(params[declared], self._config.computed_default_prefix)
                if isinstance(parsed, ComputedExpression):
                    continue
                values[compiled] = parsed.value
            else:
                values[compiled] = params[declared]

        if params.get("type"):
            values["fieldType"] = params["type"]

        return values

    def sub_field_declarations(
        self, field_name: str, type_meta: FieldTypeMetadata
    ) -> dict[str, dict[str, Any]]:
        """Declarations of the physical parts of a composite field.

        A ``personName`` field ``name`` with parts ``first`` and ``last`` and
        prefix naming yields ``firstName`` and ``lastName``.
        """
        if not type_meta.fields:
            return {}
        naming = type_meta.naming or self._config.default_naming
        return {
            compose(field_name, part, naming): dict(declaration)
            for part, declaration in type_meta.fields.items()
        }

    def link_declaration(self, params: dict[str, Any], type_meta: FieldTypeMetadata) -> dict[str, Any] | None:
        """Link contributed by a field whose type carries ``linkDefs``.

        Declared ``entity`` on the field overrides the template's target.
        """
        if not type_meta.link_defs:
            return None
        link = dict(type_meta.link_defs)
        if params.get("entity"):
            link["entity"] = params["entity"]
        return link


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


def normalize_field(params: dict[str, Any], config: CompilerConfig) -> dict[str, Any] | None:
    """Apply the type-specific coercions every compiled field goes through.

    Args:
        params: Compiled field attributes
        config: Compiler constants

    Returns:
        Normalized attributes, or None if the field must be dropped
    """
    field_type = params.get("type")
    if field_type is None:
        # Incomplete declarations are pruned unless explicitly virtual.
        return dict(params) if params.get("notStorable") else None

    result = dict(params)

    if field_type in (SchemaFieldType.ID, SchemaFieldType.FOREIGN_ID):
        if result.get("dbType") not in config.integer_db_types:
            result["dbType"] = config.id_db_type
            result.setdefault("len", config.id_length)
        if field_type == SchemaFieldType.FOREIGN_ID:
            result["notNull"] = False

    elif field_type == SchemaFieldType.FOREIGN_TYPE:
        result["dbType"] = SchemaFieldType.VARCHAR.value
        if not result.get("len"):
            result["len"] = config.default_length.get(SchemaFieldType.VARCHAR.value, 255)

    elif field_type == SchemaFieldType.BOOL:
        default = result.get("default")
        result["default"] = _to_bool(default) if default is not None else config.bool_default

    elif field_type in PASSTHROUGH_TYPES:
        pass

    elif field_type not in SchemaFieldType.values():
        result["type"] = config.default_field_type

    return result


def normalize_fields(
    entity_type: str, fields: dict[str, dict[str, Any]], config: CompilerConfig
) -> dict[str, dict[str, Any]]:
    """Normalize every field of an entity, dropping incomplete ones."""
    result: dict[str, dict[str, Any]] = {}
    for field_name, params in fields.items():
        normalized = normalize_field(params, config)
        if normalized is None:
            logger.debug(f"{entity_type}.{field_name} dropped: no type and not marked notStorable")
            continue
        result[field_name] = normalized
    return result
