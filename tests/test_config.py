"""Tests for generator configuration and lookup tables."""

import json

import pytest

from sdkgen.config import GeneratorConfig
from sdkgen.errors import ParseError
from sdkgen.tables import TABLES_VERSION, LookupTables, load_tables


class TestGeneratorConfig:
    def test_defaults(self):
        config = GeneratorConfig()
        assert config.namespace == "Sdk"
        assert config.fallback_resource_name == "Resource"
        assert config.ignored_params("query") == ()
        assert config.ignored_params("path") == ()

    def test_from_mapping(self):
        config = GeneratorConfig.from_mapping(
            {"namespace": "Shop", "ignored_query_params": ["page", "limit"]}
        )
        assert config.namespace == "Shop"
        assert config.ignored_params("query") == ("page", "limit")

    def test_unknown_key(self):
        with pytest.raises(ParseError, match="nmespace"):
            GeneratorConfig.from_mapping({"nmespace": "Shop"})

    def test_ignored_must_be_list(self):
        with pytest.raises(ParseError):
            GeneratorConfig.from_mapping({"ignored_body_params": "token"})

    def test_empty_string_rejected(self):
        with pytest.raises(ParseError):
            GeneratorConfig.from_mapping({"namespace": ""})

    def test_inline_tables(self):
        config = GeneratorConfig.from_mapping({"tables": {"path_collections": {"widgets": "Gizmos"}}})
        assert config.tables.path_collections["widgets"] == "Gizmos"
        assert config.tables.path_collections["domain"] == "Domains"

    def test_tables_path_relative_to_config(self, tmp_path):
        (tmp_path / "tables.yaml").write_text("enum_parameter_names:\n  color: Color\n")
        config = GeneratorConfig.from_mapping({"tables": "tables.yaml"}, base_dir=tmp_path)
        assert config.tables.enum_parameter_names["color"] == "Color"


class TestLookupTables:
    """Overrides merge over the defaults unless replaced."""

    def test_defaults(self):
        tables = LookupTables()
        assert tables.version == TABLES_VERSION
        assert tables.path_collections["user"] == "Users"
        assert list(tables.response_property_dtos)[:2] == ["domain", "domains"]

    def test_merge(self):
        tables = LookupTables.from_mapping({"verb_prefixes": ["list_"]})
        assert tables.verb_prefixes[-1] == "list_"
        assert "get_" in tables.verb_prefixes

    def test_replace(self):
        tables = LookupTables.from_mapping(
            {"path_collections": {"replace": True, "entries": {"a": "Alpha"}}}
        )
        assert tables.path_collections == {"a": "Alpha"}

    def test_response_dto_forms(self):
        tables = LookupTables.from_mapping(
            {
                "response_property_dtos": {
                    "widget": "Widget",
                    "widgets": {"dto": "Widget", "array": True},
                }
            }
        )
        assert tables.response_property_dtos["widget"] == ("Widget", False)
        assert tables.response_property_dtos["widgets"] == ("Widget", True)

    def test_bad_response_dto(self):
        with pytest.raises(ParseError):
            LookupTables.from_mapping({"response_property_dtos": {"widget": 3}})

    def test_unknown_table(self):
        with pytest.raises(ParseError, match="colours"):
            LookupTables.from_mapping({"colours": {}})

    def test_version_mismatch(self):
        with pytest.raises(ParseError, match="version"):
            LookupTables.from_mapping({"version": TABLES_VERSION + 1})

    def test_defaults_not_shared(self):
        first = LookupTables()
        first.path_collections["x"] = "X"
        assert "x" not in LookupTables().path_collections


class TestLoadTables:
    def test_yaml(self, tmp_path):
        path = tmp_path / "tables.yml"
        path.write_text("version: 1\nshared_enum_concepts: [Colour]\n")
        assert "Colour" in load_tables(path).shared_enum_concepts

    def test_json(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text(json.dumps({"path_collections": {"gizmo": "Gizmos"}}))
        assert load_tables(path).path_collections["gizmo"] == "Gizmos"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "tables.yaml"
        path.write_text("")
        assert load_tables(path) == LookupTables()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "tables.yaml"
        path.write_text("- a\n")
        with pytest.raises(ParseError):
            load_tables(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ParseError):
            load_tables(tmp_path / "nope.yaml")
