"""Tests for field post-processors and their registry."""

from entityforge import ProcessorRegistry, ProcessorResult
from entityforge.compiler.processors import (
    CurrencyProcessor,
    LinkMultipleProcessor,
    PersonNameProcessor,
)


class _Noop:
    def process(self, field_name, entity_type, schema):
        return ProcessorResult()


class TestProcessorRegistry:
    """Tests for ProcessorRegistry."""

    def test_builtins(self):
        registry = ProcessorRegistry()
        assert registry.field_types() == ["currency", "linkMultiple", "personName"]
        assert isinstance(registry.lookup("personName"), PersonNameProcessor)
        assert registry.lookup("varchar") is None

    def test_without_builtins(self):
        assert ProcessorRegistry(include_builtins=False).lookup("personName") is None

    def test_register_shadows_builtin(self):
        registry = ProcessorRegistry()
        custom = _Noop()
        registry.register("personName", custom)
        assert registry.lookup("personName") is custom
        assert registry.field_types() == ["currency", "linkMultiple", "personName"]

    def test_register_new_type(self):
        registry = ProcessorRegistry({"tag": _Noop()})
        assert "tag" in registry.field_types()


class TestBuiltinProcessors:
    """Tests for the built-in processors."""

    def test_person_name(self):
        result = PersonNameProcessor().process("name", "Contact", {})
        field = result.fragment["Contact"]["fields"]["name"]
        assert field["notStorable"] is True
        assert field["select"] == "TRIM(CONCAT(first_name, ' ', last_name))"
        assert field["orderBy"] == "first_name {direction}, last_name {direction}"
        assert result.unset == []

    def test_currency(self):
        result = CurrencyProcessor().process("amount", "Opportunity", {})
        assert result.fragment == {
            "Opportunity": {"fields": {"amountConverted": {"type": "float", "notStorable": True}}}
        }

    def test_link_multiple(self):
        result = LinkMultipleProcessor().process("teams", "Lead", {})
        assert result.unset == ["Lead.fields.teams"]
        assert set(result.fragment["Lead"]["fields"]) == {"teamsIds", "teamsNames"}
