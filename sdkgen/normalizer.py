"""Build the IR (`ApiSpecification`) from a reference-inlined spec tree.

Assigns each operation to a collection, parses its parameters and body,
and classifies its success response.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from .config import GeneratorConfig
from .errors import ParseError
from .loader import get_paths
from .models import (
    ApiKeyLocation,
    ApiSpecification,
    BaseUrl,
    Components,
    Endpoint,
    HttpMethod,
    Parameter,
    ResponseKind,
    SecurityRequirement,
    SecurityScheme,
    SecuritySchemeType,
    SemanticType,
    ServerVariable,
)
from .naming import build_operation_name
from .responses import classify_response, success_schema
from .schema_parser import clean_description, parse_parameters, parse_request_body

logger = logging.getLogger(__name__)

# Operation keys of a path item, in emission order
_OPERATION_METHODS: tuple[str, ...] = (
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "head",
    "options",
    "trace",
)

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def determine_collection(
    path: str,
    tag: str | None,
    path_collections: Mapping[str, str],
    fallback: str,
) -> str:
    """Map a path (and the operation's primary tag) to its collection."""
    segments = path.strip("/").split("/")
    first_segment = segments[0] if segments else ""

    if not first_segment:
        return tag or fallback

    if first_segment in path_collections:
        return path_collections[first_segment]

    return tag or first_segment[:1].upper() + first_segment[1:]


def _enum_or_none(enum_cls: Any, value: Any) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return None


def parse_base_url(servers: Any) -> BaseUrl:
    if not isinstance(servers, list) or not servers or not isinstance(servers[0], dict):
        return BaseUrl()
    server = servers[0]
    variables = server.get("variables") or {}
    return BaseUrl(
        url=str(server.get("url", "")),
        parameters=tuple(
            ServerVariable(
                name=name,
                default=None if var.get("default") is None else str(var["default"]),
                description=var.get("description"),
            )
            for name, var in variables.items()
            if isinstance(var, dict)
        ),
    )


def parse_security_requirements(security: Any) -> tuple[SecurityRequirement, ...]:
    if not isinstance(security, list):
        return ()
    requirements: list[SecurityRequirement] = []
    for option in security:
        if not isinstance(option, dict):
            logger.debug("Ignoring malformed security requirement %r", option)
            continue
        for name, scopes in option.items():
            requirements.append(SecurityRequirement(name, tuple(scopes or ())))
    return tuple(requirements)


def parse_components(components: Any) -> Components:
    if not isinstance(components, dict):
        return Components()

    schemes: list[SecurityScheme] = []
    for key, scheme in sorted((components.get("securitySchemes") or {}).items()):
        if not isinstance(scheme, dict):
            continue
        schemes.append(
            SecurityScheme(
                key=key,
                type=_enum_or_none(SecuritySchemeType, scheme.get("type")),
                name=scheme.get("name"),
                location=_enum_or_none(ApiKeyLocation, scheme.get("in", "")),
                scheme=scheme.get("scheme"),
                bearer_format=scheme.get("bearerFormat"),
                description=scheme.get("description"),
                flows=scheme.get("flows"),
                open_id_connect_url=scheme.get("openIdConnectUrl"),
            )
        )

    schemas = {
        name: schema
        for name, schema in sorted((components.get("schemas") or {}).items())
        if isinstance(schema, dict)
    }
    return Components(schemas=schemas, security_schemes=tuple(schemes))


def _as_list(value: Any, label: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(f"{label}: 'parameters' must be a list")
    return value


def parse_endpoint(
    method: str,
    path: str,
    operation: dict[str, Any],
    path_parameters: list[Any],
    config: GeneratorConfig,
) -> Endpoint:
    """Normalize one operation into an Endpoint."""
    label = f"{method.upper()} {path}"
    http_method = HttpMethod.parse(method)
    if http_method is None:
        raise ParseError(f"{label}: unsupported HTTP method")

    tags = tuple(str(t) for t in operation.get("tags") or () if t)
    name = str(operation.get("operationId") or operation.get("summary") or "").strip()
    if not name:
        name = build_operation_name(method, path)

    slots = parse_parameters(path_parameters, _as_list(operation.get("parameters"), label), label)

    declared = {p.name for p in slots["path"]}
    for placeholder in _PLACEHOLDER.findall(path):
        if placeholder not in declared:
            logger.warning("%s: undeclared path parameter %r added as string", label, placeholder)
            slots["path"].append(Parameter(type=SemanticType.STRING, nullable=False, name=placeholder))
            declared.add(placeholder)

    content_type, body_parameters = parse_request_body(operation.get("requestBody"), label)

    response = classify_response(success_schema(operation), config.tables.response_property_dtos)

    stripped = path.strip("/")
    return Endpoint(
        name=name,
        method=http_method,
        path=path,
        path_segments=tuple(stripped.split("/")) if stripped else (),
        collection=determine_collection(
            path,
            tags[0] if tags else None,
            config.tables.path_collections,
            config.fallback_resource_name,
        ),
        tags=tags,
        description=clean_description(operation.get("description")),
        content_type=content_type,
        response=None if response.kind is ResponseKind.NONE else response,
        path_parameters=tuple(slots["path"]),
        query_parameters=tuple(slots["query"]),
        body_parameters=tuple(body_parameters),
        header_parameters=tuple(slots["header"]),
    )


def parse_endpoints(spec: dict[str, Any], config: GeneratorConfig) -> tuple[Endpoint, ...]:
    endpoints: list[Endpoint] = []
    for path, path_item in sorted(get_paths(spec).items()):
        if not isinstance(path_item, dict):
            raise ParseError(f"Path item {path!r} must be a mapping")
        path_parameters = _as_list(path_item.get("parameters"), path)

        for method in _OPERATION_METHODS:
            if method not in path_item:
                continue
            operation = path_item[method]
            if not isinstance(operation, dict):
                raise ParseError(f"{method.upper()} {path}: operation must be a mapping")
            endpoints.append(parse_endpoint(method, path, operation, path_parameters, config))
    return tuple(endpoints)


def normalize(spec: dict[str, Any], config: GeneratorConfig) -> ApiSpecification:
    """Build the full ApiSpecification from an inlined spec tree."""
    info = spec.get("info") or {}
    specification = ApiSpecification(
        name=info.get("title"),
        description=info.get("description"),
        base_url=parse_base_url(spec.get("servers")),
        security_requirements=parse_security_requirements(spec.get("security")),
        components=parse_components(spec.get("components")),
        endpoints=parse_endpoints(spec, config),
    )
    logger.info(
        "Normalized %d endpoints and %d component schemas",
        len(specification.endpoints),
        len(specification.components.schemas),
    )
    return specification
