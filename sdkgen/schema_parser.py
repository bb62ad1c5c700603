"""Map OpenAPI schemas onto IR parameters.

Handles:
- Primitive kind -> SemanticType mapping (the single type table)
- Path, query and header parameters, with path-level precedence
- Request bodies (JSON, then form-urlencoded, then multipart)
- Flattening of referenced object properties into `<parent>_<child>`
- allOf composition and readOnly field exclusion
- Enum value extraction and OpenAPI 3.1 ``["T", "null"]`` type lists
"""

from __future__ import annotations

import logging
import re
from typing import Any

from .errors import ParseError, UnsupportedSchemaError
from .loader import is_unresolved_ref, schema_ref_name
from .models import Parameter, SemanticType

logger = logging.getLogger(__name__)

BODY_CONTENT_TYPES: tuple[str, ...] = (
    "application/json",
    "application/x-www-form-urlencoded",
    "multipart/form-data",
)

_TYPE_MAP: dict[str, SemanticType] = {
    "integer": SemanticType.INTEGER,
    "number": SemanticType.NUMBER,
    "string": SemanticType.STRING,
    "boolean": SemanticType.BOOLEAN,
    "object": SemanticType.MAPPING,
    "array": SemanticType.SEQUENCE,
}


def map_schema_type(kind: Any) -> SemanticType:
    """Map a schema ``type`` value to a SemanticType. Never fails."""
    if isinstance(kind, list):
        kinds = [k for k in kind if k != "null"]
        kind = kinds[0] if len(kinds) == 1 else None
    if isinstance(kind, str):
        return _TYPE_MAP.get(kind, SemanticType.DYNAMIC)
    return SemanticType.DYNAMIC


def schema_type(schema: Any) -> SemanticType:
    """Resolve a (reference-inlined) schema to a SemanticType."""
    if not isinstance(schema, dict) or not schema or is_unresolved_ref(schema):
        return SemanticType.DYNAMIC
    try:
        return _schema_type(schema)
    except UnsupportedSchemaError as exc:
        logger.debug("Falling back to dynamic type: %s", exc)
        return SemanticType.DYNAMIC


def _schema_type(schema: dict[str, Any]) -> SemanticType:
    if "type" in schema:
        return map_schema_type(schema["type"])

    if "allOf" in schema:
        members = [schema_type(sub) for sub in schema["allOf"]]
        if SemanticType.MAPPING in members or not members:
            return SemanticType.MAPPING
        return _single_type(members, "allOf")

    for key in ("oneOf", "anyOf"):
        if key in schema:
            members = [schema_type(sub) for sub in schema[key] if not _is_null_schema(sub)]
            return _single_type(members, key)

    if "properties" in schema:
        return SemanticType.MAPPING
    if "items" in schema:
        return SemanticType.SEQUENCE
    return SemanticType.DYNAMIC


def _single_type(members: list[SemanticType], keyword: str) -> SemanticType:
    distinct = set(members) - {SemanticType.DYNAMIC}
    if len(distinct) == 1:
        return distinct.pop()
    raise UnsupportedSchemaError(f"{keyword} mixes types {sorted(t.value for t in distinct)}")


def _is_null_schema(schema: Any) -> bool:
    return isinstance(schema, dict) and schema.get("type") == "null"


def is_nullable(schema: Any) -> bool:
    """True when the schema itself admits null."""
    if not isinstance(schema, dict):
        return False
    kind = schema.get("type")
    if isinstance(kind, list) and "null" in kind:
        return True
    if any(_is_null_schema(sub) for key in ("oneOf", "anyOf") for sub in schema.get(key, [])):
        return True
    return schema.get("nullable") is True


def get_enum_values(schema: Any) -> tuple[Any, ...] | None:
    """Extract the literal values of an enum schema, without null."""
    if not isinstance(schema, dict):
        return None
    values = schema.get("enum")
    if isinstance(values, list):
        values = [v for v in values if v is not None]
        return tuple(values) or None
    for sub in schema.get("allOf", []):
        found = get_enum_values(sub)
        if found:
            return found
    return None


def _strip_html(text: str) -> str:
    """Strip HTML tags and collapse whitespace."""
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def clean_description(text: Any) -> str | None:
    if not isinstance(text, str):
        return None
    return _strip_html(text) or None


def parse_parameter(raw: dict[str, Any]) -> Parameter:
    """Build a Parameter from an OpenAPI parameter object."""
    schema = raw.get("schema") or {}
    return Parameter(
        type=schema_type(schema),
        nullable=not raw.get("required", False) or is_nullable(schema),
        name=raw["name"],
        description=clean_description(raw.get("description")),
        enum_values=get_enum_values(schema),
    )


def parse_parameters(
    path_level: list[Any],
    operation_level: list[Any],
    location: str,
) -> dict[str, list[Parameter]]:
    """Split declared parameters into path/query/header lists.

    Path-level declarations win over operation-level ones with the same
    name and location. ``location`` labels errors (e.g. ``"GET /users"``).
    """
    slots: dict[str, list[Parameter]] = {"path": [], "query": [], "header": []}
    for raw in [*path_level, *operation_level]:
        if not isinstance(raw, dict) or "name" not in raw or "in" not in raw:
            raise ParseError(f"{location}: parameter must be an object with 'name' and 'in'")
        slot = raw["in"]
        if slot not in slots:
            logger.debug("%s: skipping %s parameter %r", location, slot, raw["name"])
            continue
        if any(p.name == raw["name"] for p in slots[slot]):
            logger.debug("%s: duplicate %s parameter %r ignored", location, slot, raw["name"])
            continue
        slots[slot].append(parse_parameter(raw))
    return slots


def parse_request_body(request_body: Any, location: str) -> tuple[str | None, list[Parameter]]:
    """Pick the body content type by priority and parse its schema."""
    if not isinstance(request_body, dict):
        return None, []
    content = request_body.get("content") or {}
    for content_type in BODY_CONTENT_TYPES:
        if content_type in content:
            media = content[content_type] or {}
            schema = media.get("schema")
            if not schema:
                return content_type, []
            return content_type, parse_schema_to_parameters(schema, location)
    if content:
        logger.debug("%s: no supported body content type in %s", location, sorted(content))
    return None, []


def merge_all_of(schema: dict[str, Any]) -> dict[str, Any]:
    """Collapse allOf members into one object schema."""
    if "allOf" not in schema:
        return schema
    merged_props: dict[str, Any] = dict(schema.get("properties", {}))
    merged_required: list[str] = list(schema.get("required", []))
    for sub in schema["allOf"]:
        if not isinstance(sub, dict):
            continue
        sub = merge_all_of(sub)
        merged_props.update(sub.get("properties", {}))
        merged_required.extend(sub.get("required", []))
    return {"type": "object", "properties": merged_props, "required": merged_required}


def parse_schema_to_parameters(schema: dict[str, Any], location: str = "") -> list[Parameter]:
    """Turn a request body schema into body parameters.

    Properties that reference an object component schema are expanded one
    level deep into nullable ``<property>_<child>`` parameters and the
    compound property itself is dropped.
    """
    if is_unresolved_ref(schema):
        logger.warning("%s: body schema %s is unresolved; no body parameters", location, schema["$ref"])
        return []

    if schema_type(schema) == SemanticType.SEQUENCE and "properties" not in schema:
        return [
            Parameter(
                type=SemanticType.SEQUENCE,
                nullable=False,
                name="body",
                description="Request body (array)",
            )
        ]

    schema = merge_all_of(schema)
    required_fields = set(schema.get("required", []))
    params: list[Parameter] = []

    def add(param: Parameter) -> None:
        if any(p.name == param.name for p in params):
            logger.debug("%s: duplicate body parameter %r ignored", location, param.name)
            return
        params.append(param)

    for prop_name, prop_schema in (schema.get("properties") or {}).items():
        if not isinstance(prop_schema, dict) or prop_schema.get("readOnly", False):
            continue

        if schema_ref_name(prop_schema) and not is_unresolved_ref(prop_schema):
            referenced = merge_all_of(prop_schema)
            sub_properties = referenced.get("properties")
            if sub_properties:
                for sub_name, sub_schema in sub_properties.items():
                    add(_flattened_parameter(prop_name, sub_name, sub_schema))
                continue

        add(_property_parameter(prop_name, prop_schema, prop_name in required_fields))

    return params


def _flattened_parameter(parent: str, name: str, schema: Any) -> Parameter:
    """One expanded child of a referenced object; always nullable.

    Expansion is single-level: a child that is itself an object stays one
    opaque mapping parameter without nested properties.
    """
    return Parameter(
        type=schema_type(schema),
        nullable=True,
        name=f"{parent}_{name}",
        description=clean_description(schema.get("description")) if isinstance(schema, dict) else None,
        enum_values=get_enum_values(schema),
        parent_property=parent,
    )


def _property_parameter(name: str, schema: dict[str, Any], required: bool) -> Parameter:
    """Parameter for a plain property; inline objects keep their children."""
    param_type = schema_type(schema)
    nested: tuple[Parameter, ...] = ()
    if param_type == SemanticType.MAPPING and not schema_ref_name(schema):
        inline = merge_all_of(schema)
        child_required = set(inline.get("required", []))
        nested = tuple(
            _property_parameter(child, child_schema, child in child_required)
            for child, child_schema in (inline.get("properties") or {}).items()
            if isinstance(child_schema, dict) and not child_schema.get("readOnly", False)
        )
    return Parameter(
        type=param_type,
        nullable=not required or is_nullable(schema),
        name=name,
        description=clean_description(schema.get("description")),
        enum_values=get_enum_values(schema),
        properties=nested,
    )
