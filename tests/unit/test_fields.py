"""Tests for field-type resolution and normalization."""

import pytest

from entityforge.compiler.fields import FieldTypeResolver, normalize_field, normalize_fields
from entityforge.core.config import CompilerConfig
from entityforge.sources.definitions import MetadataSnapshot


@pytest.fixture
def resolver(field_types) -> FieldTypeResolver:
    return FieldTypeResolver(MetadataSnapshot.from_mappings({}, field_types))


@pytest.fixture
def config() -> CompilerConfig:
    return CompilerConfig()


class TestResolve:
    """Tests for FieldTypeResolver.resolve."""

    def test_accordance_renames(self, resolver):
        """Declared attribute names map to compiled ones."""
        defs = resolver.resolve(
            "code",
            {
                "type": "varchar",
                "maxLength": 20,
                "exportDisabled": True,
                "link": "account",
                "field": "name",
                "unique": True,
            },
        )
        assert defs == {
            "type": "varchar",
            "len": 20,
            "notExportable": True,
            "relation": "account",
            "foreign": "name",
            "unique": True,
            "fieldType": "varchar",
        }

    def test_unmapped_attributes_dropped(self, resolver):
        """Only attributes in the accordance table reach the schema."""
        defs = resolver.resolve("status", {"type": "enum", "options": ["a"], "required": True})
        assert defs == {"type": "enum", "fieldType": "enum"}

    def test_default_length_applied(self, resolver):
        assert resolver.resolve("name", {"type": "varchar"})["len"] == 255
        assert resolver.resolve("count", {"type": "int"})["len"] == 11

    def test_explicit_length_kept(self, resolver):
        assert resolver.resolve("name", {"type": "varchar", "len": 100})["len"] == 100

    def test_type_field_defs_beneath_declared(self, resolver):
        """fieldDefs of the type fill in; declared values win."""
        assert resolver.resolve("name", {"type": "personName"})["notStorable"] is True
        defs = resolver.resolve("name", {"type": "personName", "notStorable": False})
        assert defs["notStorable"] is False

    def test_base_with_db_type_is_storable(self, resolver):
        defs = resolver.resolve("raw", {"type": "base", "dbType": "varchar", "notStorable": True})
        assert defs["notStorable"] is False
        assert defs["dbType"] == "varchar"

    def test_skip_orm_defs_on_field(self, resolver):
        assert resolver.resolve("x", {"type": "varchar", "skipOrmDefs": True}) is None

    def test_skip_orm_defs_on_type(self, resolver):
        assert resolver.resolve("account", {"type": "link"}) is None

    def test_required_drops_not_null_false(self, resolver):
        defs = resolver.resolve("name", {"type": "varchar", "notNull": False, "required": True})
        assert "notNull" not in defs

    def test_not_null_false_without_required_kept(self, resolver):
        defs = resolver.resolve("name", {"type": "varchar", "notNull": False})
        assert defs["notNull"] is False

    def test_db_false_marks_not_storable(self, resolver):
        assert resolver.resolve("total", {"type": "float", "db": False})["notStorable"] is True

    def test_computed_default_excluded(self, resolver):
        defs = resolver.resolve("status", {"type": "varchar", "default": "javascript: return 'x';"})
        assert "default" not in defs

    def test_static_default_kept(self, resolver):
        assert resolver.resolve("status", {"type": "varchar", "default": "New"})["default"] == "New"
        assert resolver.resolve("tags", {"type": "jsonArray", "default": []})["default"] == []


class TestTypeContributions:
    """Tests for composite sub-fields and link templates."""

    def test_prefix_sub_fields(self, resolver):
        meta = resolver.type_metadata({"type": "personName"})
        assert resolver.sub_field_declarations("name", meta) == {
            "firstName": {"type": "varchar"},
            "lastName": {"type": "varchar"},
        }

    def test_postfix_sub_fields(self, resolver):
        meta = resolver.type_metadata({"type": "address"})
        assert list(resolver.sub_field_declarations("billingAddress", meta)) == [
            "billingAddressStreet",
            "billingAddressCity",
        ]

    def test_link_template_takes_field_entity(self, resolver):
        meta = resolver.type_metadata({"type": "link"})
        link = resolver.link_declaration({"type": "link", "entity": "Account"}, meta)
        assert link == {"type": "belongsTo", "entity": "Account"}

    def test_no_link_template(self, resolver):
        meta = resolver.type_metadata({"type": "varchar"})
        assert resolver.link_declaration({"type": "varchar"}, meta) is None


class TestNormalizeField:
    """Tests for the global type coercions."""

    def test_id_forced_to_identifier_params(self, config):
        assert normalize_field({"type": "id", "dbType": "uuid"}, config) == {
            "type": "id",
            "dbType": "varchar",
            "len": 24,
        }

    def test_integer_id_untouched(self, config):
        params = {"type": "id", "dbType": "int", "autoincrement": True}
        assert normalize_field(params, config) == params

    def test_foreign_id_nullable(self, config):
        assert normalize_field({"type": "foreignId", "notNull": True}, config) == {
            "type": "foreignId",
            "notNull": False,
            "dbType": "varchar",
            "len": 24,
        }

    def test_foreign_type_bounded_text(self, config):
        assert normalize_field({"type": "foreignType"}, config) == {
            "type": "foreignType",
            "dbType": "varchar",
            "len": 255,
        }
        assert normalize_field({"type": "foreignType", "len": 100}, config)["len"] == 100

    @pytest.mark.parametrize(("declared", "expected"), [(None, False), (1, True), (0, False), ("", False)])
    def test_bool_default(self, config, declared, expected):
        params = {"type": "bool"} if declared is None else {"type": "bool", "default": declared}
        assert normalize_field(params, config)["default"] is expected

    def test_passthrough_types(self, config):
        assert normalize_field({"type": "email"}, config) == {"type": "email"}

    def test_unknown_type_falls_back(self, config):
        assert normalize_field({"type": "url", "fieldType": "url"}, config) == {
            "type": "varchar",
            "fieldType": "url",
        }

    def test_typeless_storable_dropped(self, config):
        assert normalize_field({"len": 10}, config) is None

    def test_typeless_not_storable_kept(self, config):
        assert normalize_field({"notStorable": True}, config) == {"notStorable": True}

    def test_normalize_fields_prunes(self, config):
        fields = {"id": {"type": "id"}, "ghost": {"len": 5}, "virtual": {"notStorable": True}}
        assert list(normalize_fields("Account", fields, config)) == ["id", "virtual"]
