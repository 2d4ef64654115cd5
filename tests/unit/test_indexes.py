"""Tests for index synthesis and naming."""

import pytest

from entityforge.compiler.indexes import (
    IndexSynthesizer,
    field_index_list,
    generate_index_name,
    index_type_of,
)
from entityforge.core.types import IndexType


class TestGenerateIndexName:
    """Tests for generate_index_name."""

    @pytest.mark.parametrize(
        ("name", "index_type", "expected"),
        [
            ("assignedUserId", IndexType.INDEX, "IDX_ASSIGNED_USER_ID"),
            ("email", IndexType.UNIQUE, "UNIQ_EMAIL"),
            ("system_fullTextSearch", IndexType.FULLTEXT, "IDX_SYSTEM_FULL_TEXT_SEARCH"),
        ],
    )
    def test_short_names(self, name, index_type, expected):
        assert generate_index_name(name, index_type) == expected

    def test_stable(self):
        """Same input, same key."""
        name = "createdAtAssignedUserIdDeletedStatusAndSomeOtherColumnsThatMakeItLong"
        assert generate_index_name(name) == generate_index_name(name)

    def test_long_names_bounded(self):
        name = "createdAtAssignedUserIdDeletedStatusAndSomeOtherColumnsThatMakeItLong"
        key = generate_index_name(name)
        assert len(key) == 60
        assert key.startswith("IDX_CREATED_AT_ASSIGNED_USER_ID")

    def test_long_names_sharing_prefix_differ(self):
        """Truncation alone would collide; the hash suffix keeps keys apart."""
        prefix = "veryLongIndexNameThatKeepsGoingAndGoingUntilItPassesTheLimit"
        first = generate_index_name(prefix + "One")
        second = generate_index_name(prefix + "Two")
        assert first != second
        assert len(first) == len(second) == 60

    def test_custom_max_length(self):
        assert len(generate_index_name("someRatherLongIndexName", max_length=16)) == 16


class TestIndexTypeOf:
    """Tests for index_type_of."""

    def test_unique_by_type(self):
        assert index_type_of({"type": "unique", "columns": ["a"]}) is IndexType.UNIQUE

    def test_unique_by_flag(self):
        assert index_type_of({"flags": ["unique"]}) is IndexType.UNIQUE

    def test_fulltext(self):
        assert index_type_of({"flags": ["fulltext"]}) is IndexType.FULLTEXT

    def test_plain(self):
        assert index_type_of({"columns": ["a"]}) is IndexType.INDEX


class TestFieldIndexList:
    """Tests for field-derived indexes."""

    def test_single_column_flags(self):
        fields = {
            "code": {"type": "varchar", "unique": True},
            "industry": {"type": "varchar", "index": True},
            "name": {"type": "varchar"},
        }
        assert field_index_list(fields) == {
            "code": {"type": "unique", "columns": ["code"]},
            "industry": {"type": "index", "columns": ["industry"]},
        }

    def test_composite_by_shared_name(self):
        fields = {
            "parentId": {"type": "foreignId", "index": "parent"},
            "parentType": {"type": "foreignType", "index": "parent"},
        }
        assert field_index_list(fields) == {
            "parent": {"type": "index", "columns": ["parentId", "parentType"]}
        }

    def test_not_storable_skipped(self):
        assert field_index_list({"x": {"type": "varchar", "index": True, "notStorable": True}}) == {}

    def test_text_cannot_be_unique(self):
        """A unique TEXT column falls back to its index flag, if any."""
        fields = {"body": {"type": "text", "dbType": "text", "unique": True, "index": True}}
        assert field_index_list(fields) == {"body": {"type": "index", "columns": ["body"]}}


class TestIndexSynthesizer:
    """Tests for IndexSynthesizer.synthesize."""

    def test_explicit_indexes_win(self):
        entity = {
            "fields": {"industry": {"type": "varchar", "index": True}},
            "indexes": {"industry": {"columns": ["industry", "name"], "key": "custom_key"}},
        }
        fragment = IndexSynthesizer().synthesize(entity)
        assert fragment["indexes"] == {"industry": {"columns": ["industry", "name"], "key": "custom_key"}}

    def test_keys_assigned(self):
        entity = {
            "fields": {"code": {"type": "varchar", "unique": True}},
            "indexes": {"nameIndustry": {"columns": ["name", "industry"]}},
        }
        indexes = IndexSynthesizer().synthesize(entity)["indexes"]
        assert list(indexes) == ["nameIndustry", "code"]
        assert indexes["nameIndustry"]["key"] == "IDX_NAME_INDUSTRY"
        assert indexes["code"]["key"] == "UNIQ_CODE"

    def test_relation_indexes_keyed(self):
        entity = {
            "fields": {},
            "relations": {
                "contacts": {
                    "type": "manyMany",
                    "indexes": {"accountId": {"columns": ["accountId"]}},
                }
            },
        }
        fragment = IndexSynthesizer().synthesize(entity)
        assert fragment == {
            "relations": {
                "contacts": {"indexes": {"accountId": {"columns": ["accountId"], "key": "IDX_ACCOUNT_ID"}}}
            }
        }

    def test_nothing_to_do(self):
        assert IndexSynthesizer().synthesize({"fields": {"name": {"type": "varchar"}}}) == {}

    def test_input_not_mutated(self):
        entity = {"fields": {}, "indexes": {"a": {"columns": ["a"]}}}
        IndexSynthesizer().synthesize(entity)
        assert entity["indexes"]["a"] == {"columns": ["a"]}
