"""Compiler configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CompilerConfig(BaseModel):
    """Constants the compiler applies while resolving fields and indexes."""

    # Field resolution
    default_field_type: str = "varchar"  # unknown types fall back to this
    default_naming: str = "postfix"
    default_length: dict[str, int] = Field(default_factory=lambda: {"varchar": 255, "int": 11})
    bool_default: bool = False
    computed_default_prefix: str = "javascript:"

    # Identifier columns
    id_db_type: str = "varchar"
    id_length: int = 24
    integer_db_types: tuple[str, ...] = ("int", "bigint")
    foreign_type_length: int = 100  # discriminator column of belongsToParent links

    # Entity options copied verbatim into the compiled schema
    permitted_entity_options: tuple[str, ...] = ("indexes", "additionalTables")

    # Indexes
    index_name_max_length: int = 60
    full_text_index_name: str = "system_fullTextSearch"

    # Junction entities
    junction_id_db_type: str = "bigint"
