"""Identifier helpers and collision-safe name resolution.

Endpoint names fall back to a method + path derivation when an operation
has neither operationId nor summary:

  GET    /users           -> list_users
  GET    /users/{id}      -> get_user
  POST   /users           -> create_user
  PUT    /users/{id}      -> update_user
  DELETE /users/{id}      -> delete_user
  GET    /users/{id}/keys -> get_users_keys
"""

from __future__ import annotations

import keyword
import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from .config import GeneratorConfig
from .errors import NamingCollisionWarning
from .models import Endpoint

logger = logging.getLogger(__name__)

_METHOD_VERBS: dict[str, str] = {
    "get": "list",
    "post": "create",
    "put": "update",
    "delete": "delete",
    "patch": "update",
}

_IRREGULAR_PLURALS: dict[str, str] = {
    "person": "people",
    "child": "children",
    "index": "indices",
}

_SINGULARS: dict[str, str] = {v: k for k, v in _IRREGULAR_PLURALS.items()}

# Attributes of the generated resource base class
_RESERVED_METHOD_NAMES = {"connector"}

_RESERVED_ARGUMENT_NAMES = {"self", "cls"}

# Attributes and methods of the generated request base class
_REQUEST_ATTRIBUTES = {
    "method",
    "body_format",
    "resolve_endpoint",
    "default_body",
    "default_query",
    "default_headers",
    "create_dto_from_response",
}


def _pluralize(word: str) -> str:
    """Return the plural form of a resource name."""
    if word in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[word]
    if word in _SINGULARS or (word.endswith("s") and not word.endswith("ss")):
        return word
    if word.endswith("y") and word[-2:-1] not in ("a", "e", "i", "o", "u"):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "ch", "sh")):
        return word + "es"
    return word + "s"


def _singularize(word: str) -> str:
    """Return the singular form of a resource name."""
    if word in _SINGULARS:
        return _SINGULARS[word]
    if word in _IRREGULAR_PLURALS:
        return word
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith(("ses", "xes", "ches", "shes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def studly(value: str) -> str:
    """``get_user-list`` / ``get user`` / ``getUser`` -> ``GetUserList``."""
    words = re.split(r"[^a-zA-Z0-9]+", value)
    return "".join(word[:1].upper() + word[1:] for word in words if word)


def pascal_case(name: str) -> str:
    """snake_case or camelCase parameter name -> PascalCase."""
    return studly(name)


def camel(value: str) -> str:
    name = studly(value)
    return name[:1].lower() + name[1:]


def sanitize_identifier(value: str, prefix: str) -> str:
    """Keep alphanumerics and underscores; guard empty or digit-led names."""
    cleaned = re.sub(r"[^a-zA-Z0-9_]", "", value)
    if not cleaned or cleaned[0].isdigit():
        cleaned = prefix + cleaned
    return cleaned


def safe_variable_name(name: str) -> str:
    """Snake-case Python identifier for a parameter name."""
    ident = camel_to_snake(name)
    ident = re.sub(r"[^a-z0-9_]+", "_", ident).strip("_")
    ident = re.sub(r"_+", "_", ident)
    if not ident:
        ident = "value"
    if ident[0].isdigit():
        ident = "_" + ident
    if keyword.iskeyword(ident) or ident in _RESERVED_ARGUMENT_NAMES:
        ident += "_"
    return ident


def class_name(value: str, prefix: str = "Class") -> str:
    return sanitize_identifier(studly(value), prefix)


def resource_class_name(collection: str) -> str:
    return class_name(collection, "Resource")


def method_name(endpoint_name: str) -> str:
    """camelCase method identifier for an endpoint name."""
    name = sanitize_identifier(camel(endpoint_name), "call")
    name = name[:1].lower() + name[1:]
    if keyword.iskeyword(name) or name in _RESERVED_METHOD_NAMES:
        name += "_"
    return name


def request_class_name(identifier: str) -> str:
    name = class_name(identifier, "Request")
    if not name.endswith("Request"):
        name += "Request"
    return name


def _sanitize_segment(segment: str) -> str:
    """Sanitize a path segment for use in a Python identifier."""
    name = camel_to_snake(segment)
    name = re.sub(r"[.\-]", "_", name)
    name = re.sub(r"[^a-z0-9_]", "", name)
    name = re.sub(r"_+", "_", name)
    return name.strip("_")


def _extract_path_parts(path: str) -> list[str]:
    """Extract meaningful path segments, stripping /api/ and /vN/ prefixes and {params}."""
    path = re.sub(r"^/?(api/)?(v\d+/)?", "", path)
    return [p for p in path.split("/") if p and not p.startswith("{")]


def build_operation_name(method: str, path: str) -> str:
    """Derive an endpoint name like 'list_users' or 'get_user' from method + path."""
    method_lower = method.lower()
    parts = [p for p in (_sanitize_segment(s) for s in _extract_path_parts(path)) if p]
    has_id = any(p.startswith("{") for p in path.split("/") if p)

    if method_lower == "get":
        verb = "get" if has_id else "list"
    else:
        verb = _METHOD_VERBS.get(method_lower, method_lower)

    if not parts:
        return f"{verb}_root"

    # Single-segment paths: standard CRUD
    if len(parts) == 1:
        resource = parts[0]
        if verb == "list":
            resource = _pluralize(resource)
        elif has_id or verb == "create":
            resource = _singularize(resource)
        return f"{verb}_{resource}"

    # Multi-segment paths: join with underscores
    return f"{verb}_{'_'.join(parts)}"


@dataclass(frozen=True)
class ResolvedName:
    """Final identifiers for one endpoint."""

    resource_class: str
    method_name: str
    request_class: str
    arguments: dict[tuple[str, str], str]
    renamed_from: str | None = None

    def argument(self, slot: str, parameter: str) -> str:
        return self.arguments[(slot, parameter)]


class NameResolver:
    """Assigns collision-free identifiers to endpoints, per collection.

    The first endpoint to claim a method name keeps it; later ones get
    ``<name>Duplicate<N>`` with N counting collisions within the group.
    Request class names must be unique per group as well, so
    ``getUser`` and ``getUserRequest`` (both ``GetUserRequest``) collide.
    Every rename is kept in `collisions`.
    """

    def __init__(self, config: GeneratorConfig) -> None:
        self.config = config
        self.collisions: list[NamingCollisionWarning] = []

    def resolve(self, endpoints: Iterable[Endpoint]) -> dict[str, ResolvedName]:
        taken: dict[str, set[str]] = defaultdict(set)
        # Request classes share one module directory per group
        classes: dict[str, set[str]] = defaultdict(set)
        counters: dict[str, int] = defaultdict(int)
        resolved: dict[str, ResolvedName] = {}

        for endpoint in endpoints:
            group = resource_class_name(endpoint.collection or self.config.fallback_resource_name)
            base = method_name(endpoint.name)
            name = base
            while name in taken[group] or request_class_name(name) in classes[group]:
                counters[group] += 1
                name = f"{base}Duplicate{counters[group]}"
            if name != base:
                warning = NamingCollisionWarning(group, base, name)
                self.collisions.append(warning)
                logger.debug("%s (%s)", warning, endpoint.key)
            taken[group].add(name)
            classes[group].add(request_class_name(name))

            resolved[endpoint.key] = ResolvedName(
                resource_class=group,
                method_name=name,
                request_class=request_class_name(name),
                arguments=self._argument_names(endpoint),
                renamed_from=base if name != base else None,
            )
        return resolved

    def _argument_names(self, endpoint: Endpoint) -> dict[tuple[str, str], str]:
        """Distinct Python argument names across all parameter slots."""
        names: dict[tuple[str, str], str] = {}
        used: set[str] = set()
        for slot in ("path", "body", "query", "header"):
            ignored = self.config.ignored_params(slot)
            for param in endpoint.parameters(slot):
                if param.name in ignored:
                    continue
                ident = safe_variable_name(param.name)
                if ident in _REQUEST_ATTRIBUTES:
                    ident += "_"
                if ident in used:
                    ident = f"{ident}_{slot}"
                candidate, n = ident, 2
                while candidate in used:
                    candidate = f"{ident}{n}"
                    n += 1
                used.add(candidate)
                names[(slot, param.name)] = candidate
        return names
