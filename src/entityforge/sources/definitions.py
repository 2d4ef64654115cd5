"""Definition sources: where entity, field-type and link-type metadata come from.

The compiler reads metadata through :class:`DefinitionSource`. A
:class:`MetadataSnapshot` is an immutable, in-memory implementation; a
:class:`SnapshotCache` lazily loads one from a caller-supplied loader and
replaces it wholesale on :meth:`SnapshotCache.reload`.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

from entityforge.core.types import FieldTypeMetadata, LinkTypeMetadata

logger = logging.getLogger(__name__)


@runtime_checkable
class DefinitionSource(Protocol):
    """Provides the raw metadata a compilation run consumes."""

    def get_entity_definitions(self) -> Mapping[str, Any]:
        """Raw entity definitions keyed by entity name."""
        ...

    def get_field_type_metadata(self, field_type: str) -> FieldTypeMetadata:
        """Metadata of a field type; empty metadata for unknown types."""
        ...

    def get_link_type_metadata(self, link_type: str) -> LinkTypeMetadata:
        """Metadata of a relation kind; empty metadata for unknown kinds."""
        ...


@dataclass(frozen=True)
class MetadataSnapshot:
    """Immutable view over one consistent set of definitions."""

    entity_defs: Mapping[str, Any] = field(default_factory=dict)
    field_types: Mapping[str, FieldTypeMetadata] = field(default_factory=dict)
    link_types: Mapping[str, LinkTypeMetadata] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Detach from the caller's dicts so later edits cannot leak in.
        object.__setattr__(self, "entity_defs", MappingProxyType(copy.deepcopy(dict(self.entity_defs))))
        object.__setattr__(self, "field_types", MappingProxyType(dict(self.field_types)))
        object.__setattr__(self, "link_types", MappingProxyType(dict(self.link_types)))

    @classmethod
    def from_mappings(
        cls,
        entity_defs: Mapping[str, Any],
        field_types: Mapping[str, Mapping[str, Any]] | None = None,
        link_types: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> MetadataSnapshot:
        """Build a snapshot from plain nested dicts.

        Args:
            entity_defs: Entity name -> entity definition (dict or None)
            field_types: Field type -> field-type metadata dict
            link_types: Link type -> link-type metadata dict

        Returns:
            A new snapshot
        """
        return cls(
            entity_defs=entity_defs,
            field_types={
                name: FieldTypeMetadata.model_validate(meta)
                for name, meta in (field_types or {}).items()
            },
            link_types={
                name: LinkTypeMetadata.model_validate(meta)
                for name, meta in (link_types or {}).items()
            },
        )

    def get_entity_definitions(self) -> Mapping[str, Any]:
        return self.entity_defs

    def get_field_type_metadata(self, field_type: str) -> FieldTypeMetadata:
        return self.field_types.get(field_type) or FieldTypeMetadata()

    def get_link_type_metadata(self, link_type: str) -> LinkTypeMetadata:
        return self.link_types.get(link_type) or LinkTypeMetadata()


class SnapshotCache:
    """Lazily loaded snapshot that is only ever replaced, never mutated."""

    def __init__(self, loader: Callable[[], MetadataSnapshot]) -> None:
        """Initialize the cache.

        Args:
            loader: Returns a fresh snapshot each time it is called
        """
        self._loader = loader
        self._snapshot: MetadataSnapshot | None = None

    @property
    def snapshot(self) -> MetadataSnapshot:
        """Current snapshot, loaded on first access."""
        if self._snapshot is None:
            self._snapshot = self._loader()
        return self._snapshot

    def reload(self) -> MetadataSnapshot:
        """Load a new snapshot and make it current."""
        logger.debug("Reloading entity definition snapshot")
        self._snapshot = self._loader()
        return self._snapshot

    def get_entity_definitions(self) -> Mapping[str, Any]:
        return self.snapshot.get_entity_definitions()

    def get_field_type_metadata(self, field_type: str) -> FieldTypeMetadata:
        return self.snapshot.get_field_type_metadata(field_type)

    def get_link_type_metadata(self, link_type: str) -> LinkTypeMetadata:
        return self.snapshot.get_link_type_metadata(link_type)
