"""Intermediate representation of a normalized OpenAPI document.

Every IR node is a frozen dataclass. Passes that run after normalization
(enum collection, name resolution) produce side tables keyed by
`ParameterPath` / endpoint key instead of mutating these nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

PARAMETER_SLOTS: tuple[str, ...] = ("path", "query", "body", "header")


class SemanticType(Enum):
    """Target type a schema primitive maps to, valued by its annotation."""

    INTEGER = "int"
    NUMBER = "float | int"
    STRING = "str"
    BOOLEAN = "bool"
    MAPPING = "dict"
    SEQUENCE = "list"
    DYNAMIC = "Any"

    @property
    def annotation(self) -> str:
        return self.value

    @property
    def is_container(self) -> bool:
        return self in (SemanticType.MAPPING, SemanticType.SEQUENCE)


class HttpMethod(Enum):
    CONNECT = "CONNECT"
    DELETE = "DELETE"
    GET = "GET"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    PATCH = "PATCH"
    POST = "POST"
    PUT = "PUT"
    TRACE = "TRACE"

    @classmethod
    def parse(cls, value: str) -> HttpMethod | None:
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None

    @property
    def has_body(self) -> bool:
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)


class SecuritySchemeType(Enum):
    API_KEY = "apiKey"
    HTTP = "http"
    MUTUAL_TLS = "mutualTLS"
    OAUTH2 = "oauth2"
    OPEN_ID_CONNECT = "openIdConnect"


class ApiKeyLocation(Enum):
    COOKIE = "cookie"
    HEADER = "header"
    QUERY = "query"


class ResponseKind(Enum):
    NONE = "none"
    DTO = "dto"
    ARRAY = "array"
    INLINE = "inline"


@dataclass(frozen=True)
class ResponseClassification:
    """How a success response maps onto the SDK's data types.

    ``source_property`` is set when the DTO was implied by a well-known
    envelope property; the decoder then unwraps that property first.
    """

    kind: ResponseKind
    dto_class: str | None = None
    schema: dict[str, Any] | None = None
    source_property: str | None = None


@dataclass(frozen=True)
class Parameter:
    type: SemanticType
    nullable: bool
    name: str
    description: str | None = None
    enum_values: tuple[Any, ...] | None = None
    properties: tuple[Parameter, ...] = ()
    parent_property: str | None = None

    @property
    def has_enum(self) -> bool:
        return bool(self.enum_values)


@dataclass(frozen=True)
class ParameterPath:
    """Stable address of a parameter: owner, slot and nested name chain.

    ``owner`` is an endpoint key (``"GET /users/{id}"``) or a component
    schema pointer (``"#/components/schemas/User"``).
    """

    owner: str
    slot: str
    names: tuple[str, ...]

    def child(self, name: str) -> ParameterPath:
        return ParameterPath(self.owner, self.slot, self.names + (name,))


@dataclass(frozen=True)
class ServerVariable:
    name: str
    default: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class BaseUrl:
    url: str = ""
    parameters: tuple[ServerVariable, ...] = ()


@dataclass(frozen=True)
class SecurityRequirement:
    name: str
    scopes: tuple[str, ...] = ()


@dataclass(frozen=True)
class SecurityScheme:
    key: str
    type: SecuritySchemeType | None
    name: str | None = None
    location: ApiKeyLocation | None = None
    scheme: str | None = None
    bearer_format: str | None = None
    description: str | None = None
    flows: dict[str, Any] | None = None
    open_id_connect_url: str | None = None


@dataclass(frozen=True)
class Components:
    schemas: dict[str, dict[str, Any]] = field(default_factory=dict)
    security_schemes: tuple[SecurityScheme, ...] = ()


@dataclass(frozen=True)
class Endpoint:
    name: str
    method: HttpMethod
    path: str
    path_segments: tuple[str, ...]
    collection: str
    tags: tuple[str, ...] = ()
    description: str | None = None
    content_type: str | None = None
    response: ResponseClassification | None = None
    path_parameters: tuple[Parameter, ...] = ()
    query_parameters: tuple[Parameter, ...] = ()
    body_parameters: tuple[Parameter, ...] = ()
    header_parameters: tuple[Parameter, ...] = ()

    @property
    def key(self) -> str:
        """Unique id of the endpoint within one specification."""
        return f"{self.method.value} {self.path}"

    @property
    def primary_tag(self) -> str | None:
        return self.tags[0] if self.tags else None

    def parameters(self, slot: str) -> tuple[Parameter, ...]:
        return {
            "path": self.path_parameters,
            "query": self.query_parameters,
            "body": self.body_parameters,
            "header": self.header_parameters,
        }[slot]

    def iter_parameters(self) -> Iterator[tuple[ParameterPath, Parameter]]:
        """Yield every parameter, nested ones included, with its path."""
        for slot in PARAMETER_SLOTS:
            for param in self.parameters(slot):
                yield from _walk(ParameterPath(self.key, slot, (param.name,)), param)


def _walk(path: ParameterPath, param: Parameter) -> Iterator[tuple[ParameterPath, Parameter]]:
    yield path, param
    for prop in param.properties:
        yield from _walk(path.child(prop.name), prop)


@dataclass(frozen=True)
class ApiSpecification:
    name: str | None
    description: str | None
    base_url: BaseUrl = field(default_factory=BaseUrl)
    security_requirements: tuple[SecurityRequirement, ...] = ()
    components: Components = field(default_factory=Components)
    endpoints: tuple[Endpoint, ...] = ()
