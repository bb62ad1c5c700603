"""Classify success responses into DTO / array-of-DTO / inline / none.

A direct reference to a component schema is authoritative. Inline
envelopes are matched best-effort against a table of well-known property
names; the table order decides which property wins.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from .errors import UnsupportedSchemaError
from .loader import schema_ref_name
from .models import ResponseClassification, ResponseKind

logger = logging.getLogger(__name__)

NONE = ResponseClassification(ResponseKind.NONE)


def sanitize_class_name(name: str, prefix: str = "Dto") -> str:
    """Strip a schema name down to a valid class identifier."""
    cleaned = re.sub(r"[^a-zA-Z0-9_]", "", name)
    if not cleaned or cleaned[0].isdigit():
        cleaned = prefix + cleaned
    return cleaned


def success_schema(operation: dict[str, Any]) -> dict[str, Any] | None:
    """The JSON schema of the 200 response, if any."""
    responses = operation.get("responses") or {}
    success = responses.get("200", responses.get(200))
    if not isinstance(success, dict):
        return None
    media = (success.get("content") or {}).get("application/json")
    if not isinstance(media, dict):
        return None
    schema = media.get("schema")
    return schema if isinstance(schema, dict) and schema else None


def classify_response(
    schema: dict[str, Any] | None,
    property_dtos: Mapping[str, tuple[str, bool]],
) -> ResponseClassification:
    """Decide how a response schema maps to SDK types. Never raises."""
    if not schema:
        return NONE
    try:
        return _classify(schema, property_dtos)
    except UnsupportedSchemaError as exc:
        fallback = _fallback(schema)
        logger.debug("Response classified as %s: %s", fallback.kind.value, exc)
        return fallback


def _fallback(schema: dict[str, Any]) -> ResponseClassification:
    if isinstance(schema.get("properties"), dict) or schema.get("type") == "object":
        return ResponseClassification(ResponseKind.INLINE, schema=schema)
    return NONE


def _classify(
    schema: dict[str, Any],
    property_dtos: Mapping[str, tuple[str, bool]],
) -> ResponseClassification:
    ref_name = schema_ref_name(schema)
    if ref_name:
        return ResponseClassification(ResponseKind.DTO, dto_class=sanitize_class_name(ref_name))

    properties = schema.get("properties")
    if properties is not None:
        if not isinstance(properties, dict):
            raise UnsupportedSchemaError("'properties' is not a mapping")
        for prop, (dto_class, is_array) in property_dtos.items():
            if prop in properties:
                return ResponseClassification(
                    ResponseKind.ARRAY if is_array else ResponseKind.DTO,
                    dto_class=dto_class,
                    schema=properties[prop] if isinstance(properties[prop], dict) else None,
                    source_property=prop,
                )
        return ResponseClassification(ResponseKind.INLINE, schema=schema)

    if schema.get("type") == "array":
        items = schema.get("items")
        if not isinstance(items, dict):
            return NONE
        item_ref = schema_ref_name(items)
        if item_ref:
            return ResponseClassification(ResponseKind.ARRAY, dto_class=sanitize_class_name(item_ref))
        item_properties = items.get("properties")
        if isinstance(item_properties, dict):
            for prop, (dto_class, is_array) in property_dtos.items():
                if is_array and prop in item_properties:
                    return ResponseClassification(
                        ResponseKind.ARRAY, dto_class=dto_class, schema=items
                    )
        return NONE

    if any(key in schema for key in ("allOf", "oneOf", "anyOf")):
        raise UnsupportedSchemaError("composed response schema")

    if schema.get("type") == "object":
        return ResponseClassification(ResponseKind.INLINE, schema=schema)
    return NONE
