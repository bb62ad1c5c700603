"""Tests for response classification."""

from sdkgen.loader import REF_KEY
from sdkgen.models import ResponseKind
from sdkgen.responses import classify_response, sanitize_class_name, success_schema
from sdkgen.tables import LookupTables

_TABLE = LookupTables().response_property_dtos


def _ref(name: str, **extra) -> dict:
    return {"type": "object", "properties": {"id": {"type": "integer"}}, REF_KEY: f"#/components/schemas/{name}", **extra}


class TestClassifyResponse:
    """Each schema shape maps to exactly one kind."""

    def test_direct_reference(self):
        result = classify_response(_ref("Domain"), _TABLE)
        assert result.kind is ResponseKind.DTO
        assert result.dto_class == "Domain"
        assert result.source_property is None

    def test_unresolved_reference(self):
        result = classify_response({"$ref": "#/components/schemas/Gone"}, _TABLE)
        assert result.kind is ResponseKind.DTO
        assert result.dto_class == "Gone"

    def test_array_of_references(self):
        schema = {"type": "array", "items": _ref("User")}
        result = classify_response(schema, _TABLE)
        assert result.kind is ResponseKind.ARRAY
        assert result.dto_class == "User"

    def test_envelope_property(self):
        schema = {"type": "object", "properties": {"domain": {"type": "object"}, "meta": {}}}
        result = classify_response(schema, _TABLE)
        assert result.kind is ResponseKind.DTO
        assert result.dto_class == "Domain"
        assert result.source_property == "domain"

    def test_envelope_table_order_wins(self):
        """'domain' precedes 'users' in the table, regardless of property order."""
        schema = {
            "type": "object",
            "properties": {"users": {"type": "array"}, "domain": {"type": "object"}},
        }
        result = classify_response(schema, _TABLE)
        assert result.dto_class == "Domain"
        assert result.kind is ResponseKind.DTO

    def test_envelope_array_property(self):
        schema = {"type": "object", "properties": {"orders": {"type": "array", "items": {}}}}
        result = classify_response(schema, _TABLE)
        assert result.kind is ResponseKind.ARRAY
        assert result.dto_class == "Order"
        assert result.schema == {"type": "array", "items": {}}

    def test_inline_without_known_property(self):
        schema = {"type": "object", "properties": {"count": {"type": "integer"}}}
        result = classify_response(schema, _TABLE)
        assert result.kind is ResponseKind.INLINE
        assert result.schema is schema

    def test_array_items_with_plural_property(self):
        items = {"type": "object", "properties": {"domains": {"type": "array"}}}
        result = classify_response({"type": "array", "items": items}, _TABLE)
        assert result.kind is ResponseKind.ARRAY
        assert result.dto_class == "Domain"

    def test_array_of_primitives(self):
        result = classify_response({"type": "array", "items": {"type": "string"}}, _TABLE)
        assert result.kind is ResponseKind.NONE

    def test_bare_object(self):
        assert classify_response({"type": "object"}, _TABLE).kind is ResponseKind.INLINE

    def test_primitive(self):
        assert classify_response({"type": "string"}, _TABLE).kind is ResponseKind.NONE

    def test_missing_schema(self):
        assert classify_response(None, _TABLE).kind is ResponseKind.NONE
        assert classify_response({}, _TABLE).kind is ResponseKind.NONE

    def test_composed_schema_never_raises(self):
        schema = {"oneOf": [{"type": "string"}, {"type": "integer"}]}
        assert classify_response(schema, _TABLE).kind is ResponseKind.NONE

    def test_malformed_properties_falls_back(self):
        result = classify_response({"type": "object", "properties": ["a"]}, _TABLE)
        assert result.kind is ResponseKind.INLINE

    def test_custom_table(self):
        schema = {"type": "object", "properties": {"widget": {}}}
        result = classify_response(schema, {"widget": ("Widget", False)})
        assert result.dto_class == "Widget"


class TestSuccessSchema:
    def test_picks_200_json(self):
        operation = {
            "responses": {
                "201": {"content": {"application/json": {"schema": {"type": "string"}}}},
                "200": {"content": {"application/json": {"schema": {"type": "integer"}}}},
            }
        }
        assert success_schema(operation) == {"type": "integer"}

    def test_no_json_content(self):
        operation = {"responses": {"200": {"content": {"text/plain": {"schema": {}}}}}}
        assert success_schema(operation) is None

    def test_no_responses(self):
        assert success_schema({}) is None


class TestSanitizeClassName:
    def test_strips_punctuation(self):
        assert sanitize_class_name("Order.Item-v2") == "OrderItemv2"

    def test_digit_prefix(self):
        assert sanitize_class_name("2fa") == "Dto2fa"
