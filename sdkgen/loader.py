"""Load an OpenAPI document and inline its internal references.

Reads JSON or YAML (picked by the caller, usually from the file
extension), checks the minimal top-level structure and replaces every
``#/components/...`` reference with the referenced node. Inlined nodes keep
the pointer they came from under `REF_KEY`, so later stages can still tell
that a schema was a direct reference to a named component.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .errors import ParseError, ReferenceResolutionError

logger = logging.getLogger(__name__)

REF_KEY = "x-sdkgen-ref"
SCHEMA_REF_PREFIX = "#/components/schemas/"


def load_spec(path: Path) -> dict[str, Any]:
    """Load the OpenAPI spec from disk and inline its references."""
    fmt = "json" if path.suffix.lower() == ".json" else "yaml"
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ParseError(f"Cannot read {path}: {exc}") from exc
    return load_document(text, fmt)


def load_document(text: str, fmt: str = "yaml") -> dict[str, Any]:
    """Parse raw document text and return the reference-inlined tree."""
    return inline_refs(parse_document(text, fmt))


def parse_document(text: str, fmt: str = "yaml") -> dict[str, Any]:
    """Parse JSON/YAML text and check the top-level structure."""
    try:
        if fmt == "json":
            doc = json.loads(text)
        elif fmt == "yaml":
            doc = yaml.safe_load(text)
        else:
            raise ParseError(f"Unknown document format {fmt!r}")
    except (ValueError, yaml.YAMLError) as exc:
        raise ParseError(f"Invalid {fmt.upper()} document: {exc}") from exc

    if not isinstance(doc, dict):
        raise ParseError("OpenAPI document must be a mapping at the top level")
    if "openapi" not in doc:
        raise ParseError("OpenAPI document is missing the 'openapi' version field")
    if not isinstance(doc.get("info"), dict):
        raise ParseError("OpenAPI document is missing the 'info' object")
    if not isinstance(doc.get("paths", {}), dict):
        raise ParseError("'paths' must be a mapping")
    if not isinstance(doc.get("components", {}), dict):
        raise ParseError("'components' must be a mapping")
    return doc


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the spec."""
    return spec.get("paths") or {}


def resolve_ref(spec: dict[str, Any], ref: str) -> Any:
    """Resolve a local $ref pointer in the spec."""
    if not ref.startswith("#/"):
        raise ReferenceResolutionError(ref, "external references are not supported")
    node: Any = spec
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        try:
            node = node[part]
        except (KeyError, TypeError):
            raise ReferenceResolutionError(ref) from None
    return node


def schema_ref_name(schema: Any) -> str | None:
    """Name of the component schema this node directly references, if any."""
    if not isinstance(schema, dict):
        return None
    ref = schema.get(REF_KEY) or schema.get("$ref")
    if isinstance(ref, str) and ref.startswith(SCHEMA_REF_PREFIX):
        return ref[len(SCHEMA_REF_PREFIX):]
    return None


def is_unresolved_ref(schema: Any) -> bool:
    """True for a `$ref` node left in place (missing or cyclic target)."""
    return isinstance(schema, dict) and isinstance(schema.get("$ref"), str)


def inline_refs(spec: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of the spec with every internal `$ref` inlined."""
    return _Inliner(spec).visit(spec, "#")


class _Inliner:
    """Walks the tree, replacing `$ref` nodes with their targets.

    References into component schemas that cannot be resolved, or that
    would recurse into themselves, stay as opaque `$ref` nodes. Any other
    unresolvable reference is fatal.
    """

    def __init__(self, spec: dict[str, Any]) -> None:
        self.spec = spec
        self._cache: dict[str, Any] = {}
        self._stack: list[str] = []

    def visit(self, node: Any, location: str) -> Any:
        if isinstance(node, dict):
            if isinstance(node.get("$ref"), str):
                return self._resolve(node, location)
            return {key: self.visit(value, f"{location}/{key}") for key, value in node.items()}
        if isinstance(node, list):
            return [self.visit(value, f"{location}/{i}") for i, value in enumerate(node)]
        return node

    def _resolve(self, node: dict[str, Any], location: str) -> Any:
        ref = node["$ref"]
        siblings = {k: self.visit(v, f"{location}/{k}") for k, v in node.items() if k != "$ref"}

        if ref in self._stack:
            logger.debug("Cyclic reference %s at %s left unresolved", ref, location)
            return {"$ref": ref, **siblings}

        if ref not in self._cache:
            try:
                target = resolve_ref(self.spec, ref)
            except ReferenceResolutionError:
                if ref.startswith(SCHEMA_REF_PREFIX):
                    logger.warning(
                        "Unresolved schema reference %s at %s; treating as opaque", ref, location
                    )
                    return {"$ref": ref, **siblings}
                raise ReferenceResolutionError(ref, location) from None

            self._stack.append(ref)
            try:
                resolved = self.visit(target, ref)
            finally:
                self._stack.pop()
            if isinstance(resolved, dict):
                resolved = {**resolved, REF_KEY: ref}
            self._cache[ref] = resolved

        resolved = self._cache[ref]
        if siblings and isinstance(resolved, dict):
            return {**resolved, **siblings}
        return resolved
