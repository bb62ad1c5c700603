"""Collect literal enumerations across the IR and give them canonical names.

Enumerations are keyed by their *signature*: the sorted, JSON-serialized
set of values. Every occurrence of a signature proposes names ranked by
rule (well-known parameter name, shared concept, context + parameter
name); the signature takes its best-ranked name, so the mapping depends
on the set of parameters only, never on traversal order.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Iterable

from .loader import SCHEMA_REF_PREFIX
from .models import ApiSpecification, Endpoint, ParameterPath
from .naming import pascal_case, sanitize_identifier, studly
from .schema_parser import clean_description, get_enum_values
from .tables import LookupTables

logger = logging.getLogger(__name__)

RANK_WELL_KNOWN = 1
RANK_SHARED_CONCEPT = 2
RANK_CONTEXT = 3


def _serialize(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def enum_signature(values: Iterable[Any]) -> str:
    """Order-independent key for a set of enum values."""
    return "[" + ",".join(sorted({_serialize(v) for v in values})) + "]"


def case_name(value: Any) -> str:
    """Enum member name for a literal value.

    Total and idempotent: the result is non-empty, uses only ``A-Z``,
    digits and underscores and never starts with a digit.
    """
    text = value if isinstance(value, str) else _serialize(value)
    name = re.sub(r"[^A-Z0-9]+", "_", text.upper()).strip("_")
    if not name:
        return "VALUE_" + hashlib.md5(text.encode("utf-8")).hexdigest().upper()
    if name[0].isdigit():
        name = "_" + name
    return name


def enum_members(values: Iterable[Any]) -> list[tuple[str, str]]:
    """(member name, string value) pairs with member names made unique."""
    members: list[tuple[str, str]] = []
    used: set[str] = set()
    for value in values:
        base = case_name(value)
        name, n = base, 2
        while name in used:
            name = f"{base}_{n}"
            n += 1
        used.add(name)
        members.append((name, value if isinstance(value, str) else _serialize(value)))
    return members


@dataclass(frozen=True)
class EnumDefinition:
    name: str
    signature: str
    values: tuple[Any, ...]
    description: str | None = None


@dataclass(frozen=True)
class EnumRegistry:
    """Side table of canonical enum names.

    ``assignments`` maps every enum-carrying parameter path to its enum
    name; emitters look names up here instead of on the IR nodes.
    """

    definitions: dict[str, EnumDefinition]
    assignments: dict[ParameterPath, str]
    by_signature: dict[str, str]

    def name_for(self, path: ParameterPath) -> str:
        try:
            return self.assignments[path]
        except KeyError:
            raise LookupError(f"No enum collected for parameter {path}") from None

    def name_for_values(self, values: Iterable[Any]) -> str | None:
        return self.by_signature.get(enum_signature(values))


class EnumCollector:
    """Scans component schemas and every endpoint parameter for enums."""

    def __init__(self, tables: LookupTables) -> None:
        self.tables = tables
        self._candidates: dict[str, set[tuple[int, str]]] = defaultdict(set)
        self._descriptions: dict[str, set[str]] = defaultdict(set)
        self._occurrences: list[tuple[ParameterPath, str]] = []

    def collect(self, specification: ApiSpecification) -> EnumRegistry:
        self._candidates.clear()
        self._descriptions.clear()
        self._occurrences.clear()

        for schema_name, schema in specification.components.schemas.items():
            self._collect_schema(schema_name, schema)

        for endpoint in specification.endpoints:
            context = self.endpoint_context(endpoint)
            for path, param in endpoint.iter_parameters():
                if param.has_enum:
                    self._record(path, param.enum_values, param.name, context, param.description)

        by_signature = self._assign_names()
        definitions = {
            name: EnumDefinition(
                name=name,
                signature=signature,
                values=tuple(json.loads(signature)),
                description=min(self._descriptions[signature], default=None),
            )
            for signature, name in sorted(by_signature.items(), key=lambda item: item[1])
        }
        assignments = {path: by_signature[sig] for path, sig in self._occurrences}
        logger.info("Collected %d enums from %d parameters", len(definitions), len(assignments))
        return EnumRegistry(definitions, assignments, by_signature)

    def _collect_schema(self, schema_name: str, schema: dict[str, Any]) -> None:
        properties: dict[str, Any] = dict(schema.get("properties") or {})
        for member in schema.get("allOf") or ():
            if isinstance(member, dict):
                properties.update(member.get("properties") or {})

        owner = SCHEMA_REF_PREFIX + schema_name
        for prop_name, prop in properties.items():
            values = get_enum_values(prop)
            if values:
                self._record(
                    ParameterPath(owner, "properties", (prop_name,)),
                    values,
                    prop_name,
                    studly(schema_name),
                    clean_description(prop.get("description")),
                )

    def endpoint_context(self, endpoint: Endpoint) -> str:
        """Primary tag, else the endpoint name without its verb prefix."""
        if endpoint.primary_tag:
            return studly(endpoint.primary_tag)
        name = endpoint.name
        for prefix in self.tables.verb_prefixes:
            if name.lower().startswith(prefix):
                name = name[len(prefix):]
                break
        return studly(name)

    def candidate_names(self, parameter_name: str, context: str) -> set[tuple[int, str]]:
        """Every name the naming rules propose, with the rule's rank."""
        candidates: set[tuple[int, str]] = set()
        normalized = pascal_case(parameter_name)

        well_known = self.tables.enum_parameter_names.get(parameter_name)
        if well_known:
            candidates.add((RANK_WELL_KNOWN, sanitize_identifier(well_known, "Enum")))
        if normalized in self.tables.shared_enum_concepts:
            candidates.add((RANK_SHARED_CONCEPT, sanitize_identifier(normalized, "Enum")))
        candidates.add((RANK_CONTEXT, sanitize_identifier(context + normalized, "Enum")))
        return candidates

    def _record(
        self,
        path: ParameterPath,
        values: tuple[Any, ...],
        parameter_name: str,
        context: str,
        description: str | None,
    ) -> None:
        signature = enum_signature(values)
        self._candidates[signature] |= self.candidate_names(parameter_name, context)
        if description:
            self._descriptions[signature].add(description)
        self._occurrences.append((path, signature))

    def _assign_names(self) -> dict[str, str]:
        """Give each signature its best free candidate name."""
        taken: set[str] = set()
        by_signature: dict[str, str] = {}
        order = sorted(self._candidates, key=lambda sig: (min(self._candidates[sig]), sig))

        for signature in order:
            ranked = sorted(self._candidates[signature])
            preferred = ranked[0][1]
            chosen = next((name for _, name in ranked if name not in taken), None)
            if chosen is None:
                n = 2
                while f"{preferred}{n}" in taken:
                    n += 1
                chosen = f"{preferred}{n}"
            if chosen != preferred:
                logger.warning(
                    "Enum name %r already used by other values; %s named %r",
                    preferred,
                    signature,
                    chosen,
                )
            taken.add(chosen)
            by_signature[signature] = chosen
        return by_signature
