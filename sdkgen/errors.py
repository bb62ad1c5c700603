"""Error taxonomy for the generator.

Structural problems abort a run; shape ambiguities are degraded by the
caller and only ever surface as log lines.
"""

from __future__ import annotations


class SdkGenError(Exception):
    """Base class for all generator failures."""


class ParseError(SdkGenError):
    """The document is not valid JSON/YAML or lacks required structure."""


class ReferenceResolutionError(SdkGenError):
    """A `$ref` could not be resolved in a context that requires it."""

    def __init__(self, ref: str, location: str = "") -> None:
        self.ref = ref
        self.location = location
        where = f" at {location}" if location else ""
        super().__init__(f"Cannot resolve reference {ref!r}{where}")


class UnsupportedSchemaError(SdkGenError):
    """A schema shape the mapper or classifier cannot categorise."""


class NamingCollisionWarning(UserWarning):
    """Two endpoints in one collection wanted the same identifier."""

    def __init__(self, collection: str, original: str, alternate: str) -> None:
        self.collection = collection
        self.original = original
        self.alternate = alternate
        super().__init__(
            f"{collection}: duplicate method name {original!r} renamed to {alternate!r}"
        )
