"""Generate typed SDK source units from OpenAPI documents."""

from __future__ import annotations

from .config import GeneratorConfig
from .errors import (
    NamingCollisionWarning,
    ParseError,
    ReferenceResolutionError,
    SdkGenError,
    UnsupportedSchemaError,
)
from .pipeline import GenerationResult, generate, generate_from_file, generate_from_text

__all__ = [
    "GenerationResult",
    "GeneratorConfig",
    "NamingCollisionWarning",
    "ParseError",
    "ReferenceResolutionError",
    "SdkGenError",
    "UnsupportedSchemaError",
    "generate",
    "generate_from_file",
    "generate_from_text",
]
