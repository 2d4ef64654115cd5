"""Integration tests for a full compile / edit / recompile workflow."""

import json

import pytest

from entityforge import MetadataSnapshot, SchemaCompiler, SnapshotCache, SqlAlchemyCapabilityProbe


class TestFullWorkflow:
    """End-to-end tests with file-backed metadata and a live database probe."""

    @pytest.fixture
    def metadata_dir(self, tmp_path, field_types, crm_definitions):
        (tmp_path / "entityDefs.json").write_text(json.dumps(crm_definitions))
        (tmp_path / "fields.json").write_text(json.dumps(field_types))
        return tmp_path

    @pytest.fixture
    def cache(self, metadata_dir):
        def load():
            return MetadataSnapshot.from_mappings(
                json.loads((metadata_dir / "entityDefs.json").read_text()),
                json.loads((metadata_dir / "fields.json").read_text()),
            )

        return SnapshotCache(load)

    def test_compile_edit_recompile(self, metadata_dir, cache, diagnostics):
        """Compile, change metadata on disk, then recompile with a reload."""
        compiler = SchemaCompiler(
            cache,
            probe=SqlAlchemyCapabilityProbe("sqlite://"),
            diagnostics=diagnostics,
        )

        # 1. Initial build: SQLite has no FULLTEXT support
        schema = compiler.compile()
        assert schema.entity_types() == ["Account", "Contact", "Note", "AccountContact"]
        assert schema["Account"].full_text_search_column_list is None
        assert "system_fullTextSearch" not in schema["Account"].indexes

        # 2. Edit the metadata on disk
        definitions = json.loads((metadata_dir / "entityDefs.json").read_text())
        definitions["Contact"]["fields"]["title"] = {"type": "varchar", "index": True}
        definitions["Opportunity"] = {
            "fields": {"amount": {"type": "int"}},
            "links": {"account": {"type": "belongsTo", "entity": "Account"}},
        }
        (metadata_dir / "entityDefs.json").write_text(json.dumps(definitions))

        # 3. Without reload the old snapshot is still used
        assert "Opportunity" not in compiler.compile()

        # 4. Reload picks up the edit; existing index keys are unchanged
        updated = compiler.compile(reload=True)
        assert updated["Contact"].indexes["title"].key == "IDX_TITLE"
        assert updated["Contact"].indexes["accountId"].key == schema["Contact"].indexes["accountId"].key
        assert updated["Opportunity"].fields["accountId"].db_type == "varchar"
        assert updated["Opportunity"].fields["amount"].len == 11
        assert diagnostics.messages == []
