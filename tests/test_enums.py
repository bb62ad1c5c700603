"""Tests for enum collection and naming."""

import dataclasses

import pytest

from sdkgen.config import GeneratorConfig
from sdkgen.enums import (
    RANK_CONTEXT,
    RANK_SHARED_CONCEPT,
    RANK_WELL_KNOWN,
    EnumCollector,
    case_name,
    enum_members,
    enum_signature,
)
from sdkgen.models import ParameterPath
from sdkgen.normalizer import normalize
from sdkgen.tables import LookupTables


def _operation(param_name: str, values: list, tag: str | None = None) -> dict:
    operation = {
        "parameters": [
            {"name": param_name, "in": "query", "schema": {"type": "string", "enum": values}},
        ]
    }
    if tag:
        operation["tags"] = [tag]
    return operation


def _doc(paths: dict, schemas: dict | None = None) -> dict:
    return {
        "openapi": "3.0.0",
        "info": {},
        "paths": paths,
        "components": {"schemas": schemas or {}},
    }


def _collect(doc: dict):
    specification = normalize(doc, GeneratorConfig())
    return specification, EnumCollector(LookupTables()).collect(specification)


class TestCaseName:
    """Member names are total, idempotent and valid identifiers."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("active", "ACTIVE"),
            ("in-progress", "IN_PROGRESS"),
            ("Two Words", "TWO_WORDS"),
            ("2fa", "_2FA"),
            ("__private__", "PRIVATE"),
            (404, "_404"),
            (True, "TRUE"),
        ],
    )
    def test_case_name(self, value, expected):
        assert case_name(value) == expected

    def test_empty_value(self):
        name = case_name("!!!")
        assert name.startswith("VALUE_")
        assert name == case_name("!!!")

    @pytest.mark.parametrize("value", ["active", "in-progress", "2fa", "", "é", 3.5])
    def test_idempotent(self, value):
        once = case_name(value)
        assert case_name(once) == once
        assert once.isidentifier()
        assert not once.startswith("__")

    def test_members_deduplicated(self):
        assert enum_members(["a-b", "a_b", "A B"]) == [
            ("A_B", "a-b"),
            ("A_B_2", "a_b"),
            ("A_B_3", "A B"),
        ]


class TestSignature:
    def test_order_independent(self):
        assert enum_signature(["b", "a"]) == enum_signature(["a", "b"])

    def test_duplicates_collapse(self):
        assert enum_signature(["a", "a", "b"]) == enum_signature(["a", "b"])

    def test_types_distinguished(self):
        assert enum_signature([1]) != enum_signature(["1"])


class TestCandidateNames:
    def test_well_known(self):
        collector = EnumCollector(LookupTables())
        assert (RANK_WELL_KNOWN, "Status") in collector.candidate_names("status", "Users")

    def test_shared_concept(self):
        collector = EnumCollector(LookupTables())
        assert (RANK_SHARED_CONCEPT, "RedirectMode") in collector.candidate_names(
            "redirect-mode", "Domains"
        )

    def test_context(self):
        collector = EnumCollector(LookupTables())
        assert collector.candidate_names("color", "Widgets") == {(RANK_CONTEXT, "WidgetsColor")}


class TestEnumCollector:
    """Canonical naming across parameters and component schemas."""

    def test_same_values_share_one_enum(self):
        spec, registry = _collect(
            _doc(
                {
                    "/a": {"get": _operation("status", ["active", "inactive"], "Alpha")},
                    "/b": {"get": _operation("status", ["inactive", "active"], "Beta")},
                }
            )
        )
        assert list(registry.definitions) == ["Status"]
        assert registry.definitions["Status"].values == ("active", "inactive")
        assert registry.name_for(ParameterPath("GET /a", "query", ("status",))) == "Status"
        assert registry.name_for(ParameterPath("GET /b", "query", ("status",))) == "Status"

    def test_best_rank_wins_regardless_of_order(self):
        paths = {
            "/a": {"get": _operation("color", ["red", "green"], "Alpha")},
            "/b": {"get": _operation("state", ["green", "red"], "Beta")},
        }
        spec, registry = _collect(_doc(paths))
        reversed_spec = dataclasses.replace(spec, endpoints=tuple(reversed(spec.endpoints)))
        reversed_registry = EnumCollector(LookupTables()).collect(reversed_spec)

        assert registry.by_signature == reversed_registry.by_signature
        assert list(registry.definitions) == ["State"]

    def test_clashing_names_resolved(self):
        paths = {
            "/a": {"get": _operation("status", ["a", "b"], "Alpha")},
            "/b": {"get": _operation("status", ["c", "d"], "Beta")},
        }
        spec, registry = _collect(_doc(paths))
        assert registry.name_for_values(["a", "b"]) == "Status"
        assert registry.name_for_values(["c", "d"]) == "BetaStatus"

        reversed_spec = dataclasses.replace(spec, endpoints=tuple(reversed(spec.endpoints)))
        assert EnumCollector(LookupTables()).collect(reversed_spec).by_signature == registry.by_signature

    def test_context_from_endpoint_name(self):
        paths = {"/a": {"get": {"operationId": "get_widget_list", **_operation("color", ["x", "y"])}}}
        _, registry = _collect(_doc(paths))
        assert list(registry.definitions) == ["WidgetListColor"]

    def test_component_schema_enums(self):
        schemas = {
            "Widget": {
                "type": "object",
                "properties": {"finish": {"type": "string", "enum": ["matte", "gloss"]}},
            }
        }
        _, registry = _collect(_doc({}, schemas))
        path = ParameterPath("#/components/schemas/Widget", "properties", ("finish",))
        assert registry.name_for(path) == "WidgetFinish"

    def test_nested_body_enums(self):
        operation = {
            "tags": ["jobs"],
            "requestBody": {
                "content": {
                    "application/json": {
                        "schema": {
                            "type": "object",
                            "properties": {
                                "options": {
                                    "type": "object",
                                    "properties": {"speed": {"enum": ["slow", "fast"]}},
                                }
                            },
                        }
                    }
                }
            },
        }
        _, registry = _collect(_doc({"/jobs": {"post": operation}}))
        path = ParameterPath("POST /jobs", "body", ("options", "speed"))
        assert registry.name_for(path) == "JobsSpeed"

    def test_header_enums(self):
        operation = {
            "tags": ["Api"],
            "parameters": [
                {"name": "X-Mode", "in": "header", "schema": {"enum": ["a", "b"]}},
            ]
        }
        _, registry = _collect(_doc({"/x": {"get": operation}}))
        assert registry.name_for(ParameterPath("GET /x", "header", ("X-Mode",))) == "ApiXMode"

    def test_unknown_path(self):
        _, registry = _collect(_doc({}))
        with pytest.raises(LookupError):
            registry.name_for(ParameterPath("GET /nope", "query", ("x",)))

    def test_description_collected(self):
        schemas = {
            "Widget": {
                "type": "object",
                "properties": {
                    "finish": {"enum": ["matte", "gloss"], "description": "Surface finish"},
                },
            }
        }
        _, registry = _collect(_doc({}, schemas))
        assert registry.definitions["WidgetFinish"].description == "Surface finish"

    def test_sample_document(self, sample_result):
        registry = sample_result.enums
        assert sorted(registry.definitions) == ["CreateOrderPriority", "Role", "Status"]
        order_status = ParameterPath("#/components/schemas/Order", "properties", ("status",))
        assert registry.name_for(order_status) == "Status"
