"""Shared test fixtures for entityforge."""

from typing import Any

import pytest

from entityforge import CollectingDiagnostics, MetadataSnapshot, SchemaCompiler, StaticCapabilityProbe


@pytest.fixture
def field_types() -> dict[str, dict[str, Any]]:
    """Field-type metadata shaped like a typical CRM field registry."""
    return {
        "varchar": {"fullTextSearch": True},
        "text": {"fullTextSearch": True},
        "email": {"fullTextSearch": True},
        "int": {},
        "bool": {},
        "personName": {
            "fieldDefs": {"notStorable": True},
            "fields": {"first": {"type": "varchar"}, "last": {"type": "varchar"}},
            "naming": "prefix",
            "fullTextSearch": True,
            "fullTextSearchColumnList": ["first", "last"],
        },
        "address": {
            "fieldDefs": {"notStorable": True},
            "fields": {"street": {"type": "text"}, "city": {"type": "varchar"}},
            "fullTextSearch": True,
            "fullTextSearchColumnList": ["street", "city"],
        },
        "link": {
            "fieldDefs": {"skipOrmDefs": True},
            "linkDefs": {"type": "belongsTo"},
        },
        "linkMultiple": {},
    }


@pytest.fixture
def crm_definitions() -> dict[str, dict[str, Any]]:
    """Account / Contact / Note definitions covering every link kind."""
    return {
        "Account": {
            "fields": {
                "name": {"type": "varchar", "required": True, "notNull": False},
                "email": {"type": "email"},
                "website": {"type": "url"},
                "isActive": {"type": "bool", "default": 1},
                "industry": {"type": "varchar", "index": True},
                "code": {"type": "varchar", "unique": True, "maxLength": 20},
                "billingAddress": {"type": "address"},
            },
            "links": {
                "contacts": {
                    "type": "manyMany",
                    "entity": "Contact",
                    "foreign": "accounts",
                    "additionalColumns": {"role": {"type": "varchar", "len": 50}},
                    "columnAttributeMap": {"role": "contactRole"},
                },
                "notes": {"type": "hasChildren", "entity": "Note", "foreign": "parent"},
            },
            "collection": {
                "orderBy": "name",
                "order": "desc",
                "fullTextSearch": True,
                "textFilterFields": ["name", "email"],
            },
        },
        "Contact": {
            "fields": {
                "name": {"type": "personName"},
                "account": {"type": "link", "entity": "Account"},
            },
            "links": {
                "accounts": {"type": "manyMany", "entity": "Account", "foreign": "contacts"},
            },
        },
        "Note": {
            "fields": {"post": {"type": "text"}},
            "links": {"parent": {"type": "belongsToParent", "foreign": "notes"}},
        },
    }


@pytest.fixture
def diagnostics() -> CollectingDiagnostics:
    return CollectingDiagnostics()


@pytest.fixture
def make_compiler(field_types, diagnostics):
    """Factory building a SchemaCompiler over plain dict definitions."""

    def _make(
        entity_defs: dict[str, Any],
        full_text: bool = False,
        link_types: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> SchemaCompiler:
        snapshot = MetadataSnapshot.from_mappings(entity_defs, field_types, link_types)
        return SchemaCompiler(
            snapshot,
            probe=StaticCapabilityProbe(supported=full_text),
            diagnostics=diagnostics,
            **kwargs,
        )

    return _make


@pytest.fixture
def compiled_crm(make_compiler, crm_definitions):
    """The CRM definitions compiled with full-text support."""
    return make_compiler(crm_definitions, full_text=True).compile()
