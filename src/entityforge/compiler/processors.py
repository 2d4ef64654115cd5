"""Custom per-field-type post-processors.

A processor gets the schema compiled so far and returns a fragment to merge
into it, plus paths to remove first. Processors are looked up by field type
in a :class:`ProcessorRegistry`; registered processors shadow built-ins.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from entityforge.core.naming import to_underscore, ucfirst
from entityforge.core.types import SchemaFieldType

logger = logging.getLogger(__name__)


@dataclass
class ProcessorResult:
    """What a processor contributes to the schema."""

    fragment: dict[str, Any] = field(default_factory=dict)
    unset: list[str] = field(default_factory=list)  # dotted paths, removed before merging


@runtime_checkable
class FieldProcessor(Protocol):
    """Post-processes fields of one field type."""

    def process(self, field_name: str, entity_type: str, schema: dict[str, Any]) -> ProcessorResult:
        """Contribute to the schema of ``entity_type``.

        Args:
            field_name: Field being processed
            entity_type: Owning entity
            schema: Schema compiled so far, keyed by entity name

        Returns:
            Fragment and paths to unset
        """
        ...


class PersonNameProcessor:
    """Virtual full-name field over ``first<Field>`` / ``last<Field>`` columns."""

    def process(self, field_name: str, entity_type: str, schema: dict[str, Any]) -> ProcessorResult:
        first = to_underscore("first" + ucfirst(field_name))
        last = to_underscore("last" + ucfirst(field_name))
        full = f"CONCAT({first}, ' ', {last})"
        return ProcessorResult(
            fragment={
                entity_type: {
                    "fields": {
                        field_name: {
                            "type": SchemaFieldType.VARCHAR.value,
                            "notStorable": True,
                            "select": f"TRIM({full})",
                            "where": {
                                "LIKE": f"({first} LIKE {{value}} OR {last} LIKE {{value}} "
                                f"OR {full} LIKE {{value}})",
                                "=": f"({first} = {{value}} OR {last} = {{value}} OR {full} = {{value}})",
                            },
                            "orderBy": f"{first} {{direction}}, {last} {{direction}}",
                        }
                    }
                }
            }
        )


class CurrencyProcessor:
    """Adds the read-only amount converted to the default currency."""

    def process(self, field_name: str, entity_type: str, schema: dict[str, Any]) -> ProcessorResult:
        return ProcessorResult(
            fragment={
                entity_type: {
                    "fields": {
                        f"{field_name}Converted": {
                            "type": SchemaFieldType.FLOAT.value,
                            "notStorable": True,
                        }
                    }
                }
            }
        )


class LinkMultipleProcessor:
    """Replaces a multi-link field by its id and name lists."""

    def process(self, field_name: str, entity_type: str, schema: dict[str, Any]) -> ProcessorResult:
        return ProcessorResult(
            fragment={
                entity_type: {
                    "fields": {
                        f"{field_name}Ids": {
                            "type": SchemaFieldType.JSON_ARRAY.value,
                            "notStorable": True,
                        },
                        f"{field_name}Names": {
                            "type": SchemaFieldType.JSON_OBJECT.value,
                            "notStorable": True,
                        },
                    }
                }
            },
            unset=[f"{entity_type}.fields.{field_name}"],
        )


BUILTIN_PROCESSORS: dict[str, FieldProcessor] = {
    "personName": PersonNameProcessor(),
    "currency": CurrencyProcessor(),
    "linkMultiple": LinkMultipleProcessor(),
}


class ProcessorRegistry:
    """Field type -> processor, custom entries first."""

    def __init__(
        self,
        processors: Mapping[str, FieldProcessor] | None = None,
        include_builtins: bool = True,
    ) -> None:
        """Initialize the registry.

        Args:
            processors: Custom processors keyed by field type
            include_builtins: Whether built-in processors are available
        """
        self._builtins: dict[str, FieldProcessor] = dict(BUILTIN_PROCESSORS) if include_builtins else {}
        self._custom: dict[str, FieldProcessor] = dict(processors or {})

    def register(self, field_type: str, processor: FieldProcessor) -> None:
        """Register a custom processor; it shadows any built-in for the type."""
        if field_type in self._builtins:
            logger.debug(f"Custom processor for '{field_type}' shadows the built-in one")
        self._custom[field_type] = processor

    def lookup(self, field_type: str) -> FieldProcessor | None:
        return self._custom.get(field_type) or self._builtins.get(field_type)

    def field_types(self) -> list[str]:
        return sorted(set(self._builtins) | set(self._custom))
