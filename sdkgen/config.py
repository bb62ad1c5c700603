"""Generator configuration record."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

from .errors import ParseError
from .tables import LookupTables, load_tables


@dataclass(frozen=True)
class GeneratorConfig:
    """Immutable settings consumed by the normalizer and emitters."""

    namespace: str = "Sdk"
    request_namespace_suffix: str = "Requests"
    resource_namespace_suffix: str = "Resource"
    dto_namespace_suffix: str = "Dto"
    enum_namespace_suffix: str = "Enums"
    fallback_resource_name: str = "Resource"
    ignored_body_params: tuple[str, ...] = ()
    ignored_query_params: tuple[str, ...] = ()
    ignored_header_params: tuple[str, ...] = ()
    tables: LookupTables = field(default_factory=LookupTables)

    def ignored_params(self, slot: str) -> tuple[str, ...]:
        """Return the ignore-list for a parameter slot (path has none)."""
        return {
            "body": self.ignored_body_params,
            "query": self.ignored_query_params,
            "header": self.ignored_header_params,
        }.get(slot, ())

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base_dir: Path | None = None) -> GeneratorConfig:
        """Build a config from a plain mapping such as a parsed YAML file.

        ``tables`` may be an inline override mapping or a path (relative to
        ``base_dir``) to a lookup table file.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ParseError(f"Unknown config key(s): {', '.join(sorted(unknown))}")

        values: dict[str, Any] = {}
        for key, value in data.items():
            if key.startswith("ignored_"):
                if isinstance(value, str) or not isinstance(value, (list, tuple)):
                    raise ParseError(f"Config key {key!r} must be a list of names")
                values[key] = tuple(str(v) for v in value)
            elif key == "tables":
                if isinstance(value, Mapping):
                    values[key] = LookupTables.from_mapping(value)
                else:
                    path = Path(str(value))
                    if base_dir is not None and not path.is_absolute():
                        path = base_dir / path
                    values[key] = load_tables(path)
            else:
                if not isinstance(value, str) or not value:
                    raise ParseError(f"Config key {key!r} must be a non-empty string")
                values[key] = value
        return cls(**values)
