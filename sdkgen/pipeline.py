"""Run the generation passes in order: load, normalize, collect, resolve, emit.

Every call builds a fresh IR and fresh side tables; nothing is shared
between runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .codegen import generate_units
from .config import GeneratorConfig
from .enums import EnumCollector, EnumRegistry
from .errors import NamingCollisionWarning
from .loader import load_document, load_spec
from .models import ApiSpecification
from .naming import NameResolver, ResolvedName
from .normalizer import normalize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    specification: ApiSpecification
    enums: EnumRegistry
    names: dict[str, ResolvedName]
    units: dict[str, str]
    collisions: tuple[NamingCollisionWarning, ...]


def generate(spec: dict[str, Any], config: GeneratorConfig | None = None) -> GenerationResult:
    """Generate all units from an already loaded (reference-inlined) spec."""
    config = config or GeneratorConfig()
    specification = normalize(spec, config)
    enums = EnumCollector(config.tables).collect(specification)
    resolver = NameResolver(config)
    names = resolver.resolve(specification.endpoints)
    units = generate_units(specification, enums, names, config)
    logger.info("Rendered %d units", len(units))
    return GenerationResult(
        specification=specification,
        enums=enums,
        names=names,
        units=units,
        collisions=tuple(resolver.collisions),
    )


def generate_from_text(
    text: str, fmt: str = "yaml", config: GeneratorConfig | None = None
) -> GenerationResult:
    return generate(load_document(text, fmt), config)


def generate_from_file(path: Path, config: GeneratorConfig | None = None) -> GenerationResult:
    return generate(load_spec(path), config)
