"""Render IR units into SDK source text and write the result.

Each emitter is a pure function of IR nodes plus the side tables built by
the enum and naming passes; none of them mutates the IR.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import jinja2

from .config import GeneratorConfig
from .enums import EnumDefinition, EnumRegistry, enum_members
from .models import ApiSpecification, Endpoint, ParameterPath, ResponseKind
from .naming import ResolvedName, safe_variable_name
from .responses import sanitize_class_name
from .schema_parser import get_enum_values, is_nullable, merge_all_of, schema_type

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

_BODY_FORMATS: dict[str, str] = {
    "application/json": "json",
    "application/x-www-form-urlencoded": "form",
    "multipart/form-data": "multipart",
}

_BUILDERS: tuple[tuple[str, str], ...] = (
    ("body", "default_body"),
    ("query", "default_query"),
    ("header", "default_headers"),
)


def _docstring(text: str) -> str:
    return str(text).replace("\\", "\\\\").replace('"', '\\"')


@lru_cache(maxsize=None)
def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["pyrepr"] = repr
    env.filters["docstring"] = _docstring
    return env


def render(template: str, **context: Any) -> str:
    return _environment().get_template(template).render(**context)


def _arguments(
    endpoint: Endpoint, resolved: ResolvedName, enums: EnumRegistry
) -> list[dict[str, Any]]:
    """Constructor/forwarding arguments in path, body, query, header order."""
    arguments = []
    for slot in ("path", "body", "query", "header"):
        for param in endpoint.parameters(slot):
            if (slot, param.name) not in resolved.arguments:
                continue
            enum = None
            if param.has_enum:
                enum = enums.name_for(ParameterPath(endpoint.key, slot, (param.name,)))
            annotation = enum or param.type.annotation
            if param.nullable:
                annotation += " | None"
            arguments.append(
                {
                    "name": resolved.argument(slot, param.name),
                    "annotation": annotation,
                    "optional": param.nullable,
                    "slot": slot,
                    "key": param.name,
                    "enum": enum,
                }
            )
    return arguments


def _escape_literal(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("{", "{{")
        .replace("}", "}}")
    )


def path_template(endpoint: Endpoint, resolved: ResolvedName) -> str:
    """Body of the f-string that rebuilds the endpoint path."""
    segments = []
    for segment in endpoint.path_segments:
        out = []
        # Split keeps placeholder names at odd indexes
        for i, piece in enumerate(_split_placeholders(segment)):
            if i % 2:
                out.append("{self." + resolved.argument("path", piece) + "}")
            else:
                out.append(_escape_literal(piece))
        segments.append("".join(out))
    return "/" + "/".join(segments)


def _split_placeholders(segment: str) -> list[str]:
    pieces: list[str] = []
    rest = segment
    while True:
        start = rest.find("{")
        end = rest.find("}", start + 1)
        if start < 0 or end < 0:
            pieces.append(rest)
            return pieces
        pieces.extend([rest[:start], rest[start + 1:end]])
        rest = rest[end + 1:]


def _value_expr(argument: dict[str, Any]) -> str:
    attr = f"self.{argument['name']}"
    if not argument["enum"]:
        return attr
    if argument["optional"]:
        return f"{attr}.value if {attr} is not None else None"
    return f"{attr}.value"


def request_unit_path(resolved: ResolvedName, config: GeneratorConfig) -> str:
    return (
        f"{config.request_namespace_suffix}/{resolved.resource_class}/"
        f"{resolved.request_class}.py"
    )


def emit_request(
    endpoint: Endpoint,
    resolved: ResolvedName,
    enums: EnumRegistry,
    config: GeneratorConfig,
) -> tuple[str, str]:
    """Render one request class."""
    arguments = _arguments(endpoint, resolved, enums)

    builders = []
    for slot, method in _BUILDERS:
        entries = [(a["key"], _value_expr(a)) for a in arguments if a["slot"] == slot]
        if entries:
            builders.append({"method": method, "entries": entries})

    response = endpoint.response
    dto = None
    if response is not None and response.kind in (ResponseKind.DTO, ResponseKind.ARRAY):
        dto = response.dto_class

    body_format = None
    if endpoint.method.has_body:
        body_format = _BODY_FORMATS.get(endpoint.content_type or "", "json")

    text = render(
        "request.py.j2",
        namespace=config.namespace,
        enum_suffix=config.enum_namespace_suffix,
        dto_suffix=config.dto_namespace_suffix,
        endpoint_name=endpoint.name,
        description=endpoint.description,
        class_name=resolved.request_class,
        method=endpoint.method.value,
        body_format=body_format,
        arguments=arguments,
        path_template=path_template(endpoint, resolved),
        builders=builders,
        enums=sorted({a["enum"] for a in arguments if a["enum"]}),
        dto=dto,
        dto_local=f"{dto}Dto" if dto == resolved.request_class else dto,
        response=(
            None
            if response is None
            else {"kind": response.kind.value, "source_property": response.source_property}
        ),
    )
    return request_unit_path(resolved, config), text


def emit_resource(
    resource_class: str,
    members: list[tuple[Endpoint, ResolvedName]],
    enums: EnumRegistry,
    config: GeneratorConfig,
) -> tuple[str, str]:
    """Render the resource facade that forwards to every request in a group."""
    methods = []
    used_enums: set[str] = set()
    for endpoint, resolved in members:
        arguments = _arguments(endpoint, resolved, enums)
        used_enums.update(a["enum"] for a in arguments if a["enum"])
        methods.append(
            {
                "name": resolved.method_name,
                "request_class": resolved.request_class,
                "alias": (
                    f"{resolved.request_class}Alias"
                    if resolved.request_class == resource_class
                    else None
                ),
                "renamed_from": resolved.renamed_from,
                "endpoint_name": endpoint.name,
                "arguments": arguments,
            }
        )

    text = render(
        "resource.py.j2",
        namespace=config.namespace,
        enum_suffix=config.enum_namespace_suffix,
        request_suffix=config.request_namespace_suffix,
        class_name=resource_class,
        methods=methods,
        enums=sorted(used_enums),
    )
    return f"{config.resource_namespace_suffix}/{resource_class}.py", text


def emit_enum(definition: EnumDefinition, config: GeneratorConfig) -> tuple[str, str]:
    """Render one enum class."""
    text = render(
        "enum.py.j2",
        name=definition.name,
        description=definition.description,
        members=enum_members(definition.values),
    )
    return f"{config.enum_namespace_suffix}/{definition.name}.py", text


def _enum_alias(enum: str | None, dto_name: str) -> str | None:
    """Import alias for an enum that shares its name with the DTO class."""
    return f"{enum}Enum" if enum and enum == dto_name else None


def _dto_fields(
    name: str, schema: dict[str, Any], enums: EnumRegistry
) -> list[dict[str, Any]]:
    schema = merge_all_of(schema)
    required = set(schema.get("required") or ())
    # Names the class body itself relies on
    used = {"raw", "field", "dataclass", "from_dict"}
    required_fields: list[dict[str, Any]] = []
    optional_fields: list[dict[str, Any]] = []

    for key, prop in (schema.get("properties") or {}).items():
        if not isinstance(prop, dict):
            continue
        attr = safe_variable_name(key)
        while attr in used:
            attr += "_"
        used.add(attr)

        values = get_enum_values(prop)
        enum = None
        if values and all(isinstance(v, str) for v in values):
            enum = enums.name_for_values(values)
        local = _enum_alias(enum, name) or enum
        optional = key not in required or is_nullable(prop)
        annotation = local or schema_type(prop).annotation
        if optional:
            annotation += " | None"
        if enum:
            expr = f"{local}(data[{key!r}]) if data.get({key!r}) is not None else None"
        else:
            expr = f"data.get({key!r})"

        target = optional_fields if optional else required_fields
        target.append(
            {"name": attr, "annotation": annotation, "optional": optional, "expr": expr, "enum": enum}
        )
    return required_fields + optional_fields


def emit_dto(
    name: str,
    schema: dict[str, Any],
    enums: EnumRegistry,
    config: GeneratorConfig,
) -> tuple[str, str]:
    """Render a dataclass DTO for an object schema."""
    fields = _dto_fields(name, schema, enums)
    description = schema.get("description")
    text = render(
        "dto.py.j2",
        namespace=config.namespace,
        enum_suffix=config.enum_namespace_suffix,
        name=name,
        description=description if isinstance(description, str) else None,
        fields=fields,
        enums=[
            {"name": enum, "alias": _enum_alias(enum, name)}
            for enum in sorted({f["enum"] for f in fields if f["enum"]})
        ],
    )
    return f"{config.dto_namespace_suffix}/{name}.py", text


def _is_object_schema(schema: dict[str, Any]) -> bool:
    if "enum" in schema:
        return False
    return schema.get("type") == "object" or "properties" in schema or "allOf" in schema


def collect_dtos(specification: ApiSpecification) -> dict[str, dict[str, Any]]:
    """Component object schemas plus DTOs implied by response heuristics."""
    dtos: dict[str, dict[str, Any]] = {}
    for schema_name, schema in specification.components.schemas.items():
        if not _is_object_schema(schema):
            continue
        dto_name = sanitize_class_name(schema_name)
        if dto_name in dtos:
            logger.warning(
                "Schema %r maps to DTO class %r, already used by another schema; skipped",
                schema_name,
                dto_name,
            )
            continue
        dtos[dto_name] = schema

    for endpoint in specification.endpoints:
        response = endpoint.response
        if response is None or response.kind not in (ResponseKind.DTO, ResponseKind.ARRAY):
            continue
        if response.dto_class in dtos:
            continue
        source = response.schema or {}
        if source.get("type") == "array":
            source = source.get("items") or {}
        logger.debug("%s: DTO %s has no component schema", endpoint.key, response.dto_class)
        dtos[response.dto_class] = source if isinstance(source, dict) else {}
    return dict(sorted(dtos.items()))


def generate_units(
    specification: ApiSpecification,
    enums: EnumRegistry,
    names: dict[str, ResolvedName],
    config: GeneratorConfig,
) -> dict[str, str]:
    """Render every unit, keyed by relative unit path."""
    units: dict[str, str] = {}
    groups: dict[str, list[tuple[Endpoint, ResolvedName]]] = {}

    for endpoint in specification.endpoints:
        resolved = names[endpoint.key]
        path, text = emit_request(endpoint, resolved, enums, config)
        units[path] = text
        groups.setdefault(resolved.resource_class, []).append((endpoint, resolved))

    for resource_class, members in groups.items():
        path, text = emit_resource(resource_class, members, enums, config)
        units[path] = text

    for definition in enums.definitions.values():
        path, text = emit_enum(definition, config)
        units[path] = text

    for name, schema in collect_dtos(specification).items():
        path, text = emit_dto(name, schema, enums, config)
        units[path] = text

    return dict(sorted(units.items()))


def write_units(units: dict[str, str], output_dir: Path) -> list[Path]:
    """Write rendered units below output_dir."""
    written: list[Path] = []
    for relative, text in units.items():
        output_path = output_dir / relative
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
        written.append(output_path)
    return written

