"""Core types for entityforge.

Input models describe entity definitions as they are declared; output models
describe the compiled storage schema. Both use camelCase aliases so that the
dumped output is the same nested mapping a persistence layer reads.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, RootModel
from pydantic.alias_generators import to_camel

# Input and output models accept unknown keys: field and link declarations
# are open-ended and custom processors may add attributes of their own.
_MODEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class SchemaFieldType(StrEnum):
    """Field types the persistence layer understands."""

    ID = "id"
    VARCHAR = "varchar"
    INT = "int"
    FLOAT = "float"
    TEXT = "text"
    BOOL = "bool"
    FOREIGN_ID = "foreignId"
    FOREIGN = "foreign"
    FOREIGN_TYPE = "foreignType"
    DATE = "date"
    DATETIME = "datetime"
    JSON_ARRAY = "jsonArray"
    JSON_OBJECT = "jsonObject"
    PASSWORD = "password"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid schema type values."""
        return [t.value for t in cls]


class LinkType(StrEnum):
    """Relation kinds a link can declare."""

    BELONGS_TO = "belongsTo"  # e.g., Contact -> Account (holds accountId)
    HAS_MANY = "hasMany"  # e.g., Account -> Contacts (inverse of belongsTo)
    HAS_ONE = "hasOne"  # e.g., User -> Profile
    MANY_MANY = "manyMany"  # e.g., Account <-> Contact (junction entity)
    HAS_CHILDREN = "hasChildren"  # e.g., Account -> Notes (inverse of belongsToParent)
    BELONGS_TO_PARENT = "belongsToParent"  # e.g., Note -> any parent (parentId + parentType)

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid link type values."""
        return [t.value for t in cls]


class IndexType(StrEnum):
    """Storage index kinds."""

    INDEX = "index"
    UNIQUE = "unique"
    FULLTEXT = "fulltext"


class Naming(StrEnum):
    """How a composite field names its physical parts."""

    PREFIX = "prefix"  # firstName, lastName
    POSTFIX = "postfix"  # addressCity, addressStreet


# === Tagged field defaults ===


@dataclass(frozen=True)
class StaticValue:
    """A default known at compile time; becomes the schema default."""

    value: Any


@dataclass(frozen=True)
class ComputedExpression:
    """A default evaluated at runtime; never reaches the static schema."""

    expression: str


def parse_default(value: Any, computed_prefix: str = "javascript:") -> StaticValue | ComputedExpression:
    """Classify a declared default value.

    Strings starting with ``computed_prefix`` (case-insensitive) are runtime
    expressions; everything else, lists and dicts included, is static.
    """
    if isinstance(value, str) and value.lower().startswith(computed_prefix.lower()):
        return ComputedExpression(value[len(computed_prefix) :])
    return StaticValue(value)


# === Input models ===


class FieldDeclaration(BaseModel):
    """Raw parameters of one entity field, as declared."""

    model_config = _MODEL_CONFIG

    type: str | None = Field(default=None, description="Declared field type")
    db_type: str | None = None
    len: int | None = None
    max_length: int | None = None
    not_null: bool | None = None
    required: bool | None = None
    unique: bool | str | None = None
    index: bool | str | None = None
    default: Any = None
    not_storable: bool | None = None
    db: bool | None = Field(default=None, description="False opts the field out of persistence")
    export_disabled: bool | None = None
    autoincrement: bool | None = None
    link: str | None = Field(default=None, description="Relation name for foreign fields")
    field: str | None = Field(default=None, description="Foreign field name")
    entity: str | None = None
    skip_orm_defs: bool | None = None
    default_attributes: dict[str, Any] | None = None

    def to_params(self) -> dict[str, Any]:
        """Return the declared parameters only, keyed by their camelCase names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class LinkDeclaration(BaseModel):
    """Raw parameters of one entity link."""

    model_config = _MODEL_CONFIG

    type: str | None = None
    entity: str | None = None
    foreign: str | None = None
    relation_name: str | None = None
    mid_keys: list[str] | None = None
    additional_columns: dict[str, dict[str, Any]] | None = None
    column_attribute_map: dict[str, str] | None = None
    conditions: dict[str, Any] | None = None
    indexes: dict[str, dict[str, Any]] | None = None
    order_by: str | None = None
    order: str | None = None
    no_join: bool | None = None
    skip_orm_defs: bool | None = None

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


class CollectionOptions(BaseModel):
    """Collection-level options: default ordering and full-text search."""

    model_config = _MODEL_CONFIG

    order_by: str | None = None
    order_by_column: str | None = None
    order: str | None = None
    full_text_search: bool = False
    text_filter_fields: list[str] | None = None


class EntityDefinition(BaseModel):
    """Declarative description of one entity."""

    model_config = _MODEL_CONFIG

    fields: dict[str, FieldDeclaration] = Field(default_factory=dict)
    links: dict[str, LinkDeclaration] = Field(default_factory=dict)
    collection: CollectionOptions | None = None
    indexes: dict[str, dict[str, Any]] | None = None
    additional_tables: dict[str, Any] | None = None
    skip_rebuild: bool = False
    stream: bool = Field(default=False, description="Entity has a follow stream")


class FieldTypeMetadata(BaseModel):
    """Metadata attached to a declared field type."""

    model_config = _MODEL_CONFIG

    field_defs: dict[str, Any] | None = Field(
        default=None, description="Parameters merged beneath every declaration of this type"
    )
    fields: dict[str, dict[str, Any]] | None = Field(
        default=None, description="Sub-field declarations of a composite type"
    )
    link_defs: dict[str, Any] | None = Field(
        default=None, description="Link template contributed by fields of this type"
    )
    skip_orm_defs: bool = False
    full_text_search: bool = False
    full_text_search_column_list: list[str] | None = None
    naming: Naming | None = None


class LinkTypeMetadata(BaseModel):
    """Metadata attached to a relation kind."""

    model_config = _MODEL_CONFIG

    relation_defs: dict[str, Any] | None = Field(
        default=None, description="Template merged beneath every relation of this kind"
    )
    skip_orm_defs: bool = False


# === Output models ===


class CompiledField(BaseModel):
    """A fully-resolved field."""

    model_config = _MODEL_CONFIG

    type: str | None = None
    db_type: str | None = None
    len: int | None = None
    not_null: bool | None = None
    not_exportable: bool | None = None
    autoincrement: bool | None = None
    entity: str | None = None
    not_storable: bool | None = None
    relation: str | None = None
    foreign: str | list[str] | None = None
    unique: bool | str | None = None
    index: bool | str | None = None
    default: Any = None
    select: Any = None
    order_by: Any = None
    where: Any = None
    store_array_values: bool | None = None
    binary: bool | None = None
    field_type: str | None = None


class CompiledIndex(BaseModel):
    """A storage index."""

    model_config = _MODEL_CONFIG

    key: str | None = None
    type: str | None = None
    columns: list[str] = Field(default_factory=list)
    flags: list[str] | None = None


class CompiledRelation(BaseModel):
    """A resolved relation between two entities."""

    model_config = _MODEL_CONFIG

    type: str
    entity: str | None = None
    key: str | None = None
    foreign_key: str | None = None
    foreign: str | None = None
    foreign_type: str | None = None
    relation_name: str | None = None
    mid_keys: list[str] | None = None
    conditions: dict[str, Any] | None = None
    additional_columns: dict[str, dict[str, Any]] | None = None
    indexes: dict[str, CompiledIndex] | None = None


class CompiledCollection(BaseModel):
    """Default ordering of an entity collection."""

    model_config = _MODEL_CONFIG

    order_by: str | None = None
    order: str = "ASC"


class CompiledEntitySchema(BaseModel):
    """Everything the persistence layer needs about one entity."""

    model_config = _MODEL_CONFIG

    fields: dict[str, CompiledField] = Field(default_factory=dict)
    relations: dict[str, CompiledRelation] = Field(default_factory=dict)
    indexes: dict[str, CompiledIndex] | None = None
    full_text_search_column_list: list[str] | None = None
    collection: CompiledCollection | None = None
    additional_tables: dict[str, Any] | None = None
    skip_rebuild: bool | None = None


class CompiledSchema(RootModel[dict[str, CompiledEntitySchema]]):
    """Compiled schema of every entity, keyed by entity name."""

    def __getitem__(self, entity_type: str) -> CompiledEntitySchema:
        return self.root[entity_type]

    def __contains__(self, entity_type: object) -> bool:
        return entity_type in self.root

    def entity_types(self) -> list[str]:
        return list(self.root)

    def to_dict(self) -> dict[str, Any]:
        """Nested mapping with only the attributes that were set."""
        return self.model_dump(by_alias=True, exclude_unset=True)

    def dumps(self) -> str:
        """Deterministic JSON rendering of :meth:`to_dict`."""
        return json.dumps(self.to_dict(), default=str)
