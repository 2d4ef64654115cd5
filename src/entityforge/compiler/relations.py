"""Relationship resolution: links -> relations (+ implied fields)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from entityforge.core.config import CompilerConfig
from entityforge.core.merge import deep_merge
from entityforge.core.naming import lcfirst
from entityforge.core.types import LinkType, SchemaFieldType
from entityforge.exceptions import InvalidLinkError, UnknownLinkTypeError

if TYPE_CHECKING:
    from entityforge.sources.definitions import DefinitionSource

logger = logging.getLogger(__name__)

# Link parameters copied onto the relation when declared
PASSTHROUGH_LINK_PARAMS = ("orderBy", "order", "noJoin")

RelationBuilder = Callable[[str, str, dict[str, Any]], dict[str, Any]]
FieldBuilder = Callable[[str, dict[str, Any]], dict[str, dict[str, Any]]]


def _collection_fields(link_name: str) -> dict[str, dict[str, Any]]:
    return {
        f"{link_name}Ids": {"type": SchemaFieldType.JSON_ARRAY.value, "notStorable": True},
        f"{link_name}Names": {"type": SchemaFieldType.JSON_OBJECT.value, "notStorable": True},
    }


class RelationshipResolver:
    """Expands link declarations into relation metadata.

    Each link kind contributes two things: field declarations it implies on
    the owning entity (folded in before field compilation) and the relation
    itself (merged into the compiled schema afterwards).
    """

    def __init__(self, source: DefinitionSource, config: CompilerConfig | None = None) -> None:
        """Initialize the resolver.

        Args:
            source: Provides link-type metadata
            config: Compiler constants
        """
        self._source = source
        self._config = config or CompilerConfig()
        self._relation_builders: dict[LinkType, RelationBuilder] = {
            LinkType.BELONGS_TO: self._belongs_to,
            LinkType.HAS_MANY: self._has_many,
            LinkType.HAS_ONE: self._has_many,
            LinkType.MANY_MANY: self._many_many,
            LinkType.HAS_CHILDREN: self._has_children,
            LinkType.BELONGS_TO_PARENT: self._belongs_to_parent,
        }
        self._field_builders: dict[LinkType, FieldBuilder] = {
            LinkType.BELONGS_TO: self._belongs_to_fields,
            LinkType.HAS_MANY: lambda link_name, params: _collection_fields(link_name),
            LinkType.HAS_ONE: self._has_one_fields,
            LinkType.MANY_MANY: lambda link_name, params: _collection_fields(link_name),
            LinkType.HAS_CHILDREN: lambda link_name, params: _collection_fields(link_name),
            LinkType.BELONGS_TO_PARENT: self._belongs_to_parent_fields,
        }

    # === Public API ===

    def link_type(self, entity_type: str, link_name: str, params: dict[str, Any]) -> LinkType | None:
        """Validate a link and return its kind, or None if it is skipped.

        Raises:
            InvalidLinkError: If the link has no type or no required target
            UnknownLinkTypeError: If the link type is not a known kind
        """
        if params.get("skipOrmDefs") is True:
            return None

        declared = params.get("type")
        if not declared:
            raise InvalidLinkError(entity_type, link_name, "type")
        try:
            kind = LinkType(declared)
        except ValueError as e:
            raise UnknownLinkTypeError(entity_type, link_name, declared, LinkType.values()) from e

        if self._source.get_link_type_metadata(kind.value).skip_orm_defs:
            return None

        if kind is not LinkType.BELONGS_TO_PARENT and not params.get("entity"):
            raise InvalidLinkError(entity_type, link_name, "entity")

        return kind

    def implied_fields(
        self, entity_type: str, link_name: str, params: dict[str, Any]
    ) -> dict[str, dict[str, Any]]:
        """Field declarations a link adds to its owning entity."""
        kind = self.link_type(entity_type, link_name, params)
        if kind is None:
            return {}
        return self._field_builders[kind](link_name, params)

    def resolve(
        self,
        entity_type: str,
        link_name: str,
        params: dict[str, Any],
        compiled: dict[str, Any],
    ) -> dict[str, Any]:
        """Resolve a link into a schema fragment.

        Args:
            entity_type: Owning entity
            link_name: Link name
            params: Declared link parameters (camelCase keys)
            compiled: Schema compiled so far for ``entity_type``

        Returns:
            ``{entity_type: {"relations": {...}, "fields": {...}}}``, or an
            empty dict when the link is skipped
        """
        kind = self.link_type(entity_type, link_name, params)
        if kind is None:
            logger.debug(f"Link {entity_type}.{link_name} skipped: skipOrmDefs")
            return {}

        relation = self._relation_builders[kind](entity_type, link_name, params)
        for key in PASSTHROUGH_LINK_PARAMS:
            if key in params:
                relation[key] = params[key]

        template = self._source.get_link_type_metadata(kind.value).relation_defs
        if template:
            relation = deep_merge(template, relation)

        entity_fragment: dict[str, Any] = {"relations": {link_name: relation}}
        fields = self._attribute_fields(params, compiled.get("fields", {}))
        if fields:
            entity_fragment["fields"] = fields

        return {entity_type: entity_fragment}

    # === Implied fields ===

    def _belongs_to_fields(self, link_name: str, params: dict[str, Any]) -> dict[str, dict[str, Any]]:
        return {
            f"{link_name}Id": {"type": SchemaFieldType.FOREIGN_ID.value, "index": True},
            f"{link_name}Name": {
                "type": SchemaFieldType.FOREIGN.value,
                "link": link_name,
                "field": "name",
                "notStorable": True,
            },
        }

    def _has_one_fields(self, link_name: str, params: dict[str, Any]) -> dict[str, dict[str, Any]]:
        return {
            f"{link_name}Id": {
                "type": SchemaFieldType.FOREIGN.value,
                "link": link_name,
                "field": "id",
                "notStorable": True,
            },
            f"{link_name}Name": {
                "type": SchemaFieldType.FOREIGN.value,
                "link": link_name,
                "field": "name",
                "notStorable": True,
            },
        }

    def _belongs_to_parent_fields(
        self, link_name: str, params: dict[str, Any]
    ) -> dict[str, dict[str, Any]]:
        # Both key columns share one composite index named after the link.
        return {
            f"{link_name}Id": {"type": SchemaFieldType.FOREIGN_ID.value, "index": link_name},
            f"{link_name}Type": {
                "type": SchemaFieldType.FOREIGN_TYPE.value,
                "notNull": False,
                "index": link_name,
                "len": self._config.foreign_type_length,
            },
            f"{link_name}Name": {"type": SchemaFieldType.VARCHAR.value, "notStorable": True},
        }

    def _attribute_fields(
        self, params: dict[str, Any], compiled_fields: dict[str, Any]
    ) -> dict[str, dict[str, Any]]:
        """Virtual fields exposing junction columns listed in columnAttributeMap."""
        columns = params.get("additionalColumns") or {}
        fields: dict[str, dict[str, Any]] = {}
        for column, attribute in (params.get("columnAttributeMap") or {}).items():
            if attribute in compiled_fields:
                continue
            fields[attribute] = {
                "type": columns.get(column, {}).get("type", SchemaFieldType.VARCHAR.value),
                "notStorable": True,
            }
        return fields

    # === Relations ===

    def _belongs_to(self, entity_type: str, link_name: str, params: dict[str, Any]) -> dict[str, Any]:
        relation = {
            "type": LinkType.BELONGS_TO.value,
            "entity": params["entity"],
            "key": f"{link_name}Id",
            "foreignKey": "id",
        }
        if params.get("foreign"):
            relation["foreign"] = params["foreign"]
        return relation

    def _has_many(self, entity_type: str, link_name: str, params: dict[str, Any]) -> dict[str, Any]:
        foreign = params.get("foreign")
        relation = {
            "type": params["type"],
            "entity": params["entity"],
            "foreignKey": f"{foreign or lcfirst(entity_type)}Id",
        }
        if foreign:
            relation["foreign"] = foreign
        return relation

    def _has_children(self, entity_type: str, link_name: str, params: dict[str, Any]) -> dict[str, Any]:
        foreign = params.get("foreign") or "parent"
        return {
            "type": LinkType.HAS_CHILDREN.value,
            "entity": params["entity"],
            "foreignKey": f"{foreign}Id",
            "foreignType": f"{foreign}Type",
            "foreign": foreign,
        }

    def _belongs_to_parent(
        self, entity_type: str, link_name: str, params: dict[str, Any]
    ) -> dict[str, Any]:
        relation = {
            "type": LinkType.BELONGS_TO_PARENT.value,
            "key": f"{link_name}Id",
            "foreignType": f"{link_name}Type",
        }
        if params.get("foreign"):
            relation["foreign"] = params["foreign"]
        return relation

    def _many_many(self, entity_type: str, link_name: str, params: dict[str, Any]) -> dict[str, Any]:
        target = params["entity"]
        relation: dict[str, Any] = {
            "type": LinkType.MANY_MANY.value,
            "entity": target,
            "relationName": params.get("relationName") or self.relation_name(entity_type, target),
            "key": "id",
            "foreignKey": "id",
            "midKeys": params.get("midKeys") or self.mid_keys(entity_type, link_name, params),
        }
        for key in ("foreign", "conditions", "additionalColumns", "indexes"):
            if params.get(key):
                relation[key] = params[key]
        return relation

    @staticmethod
    def relation_name(entity_type: str, target: str) -> str:
        """Junction relation name shared by both sides (Account+Contact -> accountContact)."""
        first, second = sorted((entity_type, target))
        return lcfirst(first) + second

    @staticmethod
    def mid_keys(entity_type: str, link_name: str, params: dict[str, Any]) -> list[str]:
        """Junction key columns, own side first."""
        target = params["entity"]
        if target != entity_type:
            return [f"{lcfirst(entity_type)}Id", f"{lcfirst(target)}Id"]

        # Self-referential: both links agree on left/right by name order.
        foreign = params.get("foreign") or link_name
        if link_name <= foreign:
            return ["leftId", "rightId"]
        return ["rightId", "leftId"]
