"""Bidirectional mapping between backend files and dot-path identifiers.

    convex/domains/contacts.ts + createContact  <->  api.domains.contacts.createContact

Everything except resolve_module() is pure string/path arithmetic: no disk
access and no exceptions for ordinary bad input (callers get ``None``).

Dotted file names (``v1.routes.ts``) are rejected by encode(). The dot is
the identifier separator, so such a file has no unambiguous identifier.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath

from convexnav.config.constants import (
    GENERATED_DIRNAME,
    IDENTIFIER_SEPARATOR,
    INTERNAL_NAMESPACE_TOKEN,
    PUBLIC_NAMESPACE_ALIASES,
    PUBLIC_NAMESPACE_TOKEN,
    SOURCE_EXTENSIONS,
)

_SEGMENT = re.compile(r"^\w+$")


class Namespace(str, Enum):
    """Identifier namespace, valued by its literal token."""

    PUBLIC = PUBLIC_NAMESPACE_TOKEN
    INTERNAL = INTERNAL_NAMESPACE_TOKEN


_NAMESPACE_TOKENS: dict[str, Namespace] = {
    PUBLIC_NAMESPACE_TOKEN: Namespace.PUBLIC,
    INTERNAL_NAMESPACE_TOKEN: Namespace.INTERNAL,
    **{alias: Namespace.PUBLIC for alias in PUBLIC_NAMESPACE_ALIASES},
}


@dataclass(frozen=True, slots=True)
class DecodedIdentifier:
    """An identifier split into its namespace, module path and function name."""

    namespace: Namespace
    module_path: str  # platform separators, no extension
    function_name: str

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(PurePath(self.module_path).parts)

    def render(self) -> str:
        return render(self.namespace, self.segments, self.function_name)


def _normalize(path: str | os.PathLike[str]) -> PurePath:
    return PurePath(os.path.normpath(os.path.abspath(path)))


def strip_source_extension(name: str) -> str:
    """Drop one recognised source extension (``contacts.ts`` -> ``contacts``)."""
    for ext in SOURCE_EXTENSIONS:
        if name.endswith(ext) and len(name) > len(ext):
            return name[: -len(ext)]
    return name


def module_segments(
    file_path: str | os.PathLike[str],
    definitions_root: str | os.PathLike[str],
) -> tuple[str, ...] | None:
    """Path components from the definitions root to the file, extension stripped.

    Returns None if the file is not under the root or any component is not
    a plain word token.
    """
    path = _normalize(file_path)
    root = _normalize(definitions_root)
    if path == root or not path.is_relative_to(root):
        return None

    parts = list(path.relative_to(root).parts)
    parts[-1] = strip_source_extension(parts[-1])
    if not all(_SEGMENT.match(part) for part in parts):
        return None
    return tuple(parts)


def render(namespace: Namespace, segments: tuple[str, ...], function_name: str) -> str:
    return IDENTIFIER_SEPARATOR.join((namespace.value, *segments, function_name))


def encode(
    file_path: str | os.PathLike[str],
    function_name: str,
    definitions_root: str | os.PathLike[str],
    namespace: Namespace = Namespace.PUBLIC,
) -> str | None:
    """Build the identifier for ``function_name`` exported from ``file_path``.

    Returns None when the file lies outside ``definitions_root``, when a path
    component contains a dot (or any other non-word character) once the
    extension is stripped, or when the function name is not a word token.
    """
    if not _SEGMENT.match(function_name):
        return None
    segments = module_segments(file_path, definitions_root)
    if segments is None:
        return None
    return render(namespace, segments, function_name)


def decode(identifier: str) -> DecodedIdentifier | None:
    """Split an identifier into module path and function name.

    A leading namespace token is optional; without one the public namespace
    is assumed. At least a module segment and a function name must remain.
    """
    parts = identifier.split(IDENTIFIER_SEPARATOR)
    namespace = _NAMESPACE_TOKENS.get(parts[0])
    if namespace is None:
        namespace = Namespace.PUBLIC
    else:
        parts = parts[1:]

    if len(parts) < 2 or not all(_SEGMENT.match(part) for part in parts):
        return None

    return DecodedIdentifier(
        namespace=namespace,
        module_path=os.sep.join(parts[:-1]),
        function_name=parts[-1],
    )


def canonical(identifier: str) -> str:
    """Re-render with the canonical namespace token; undecodable input is returned as is."""
    decoded = decode(identifier)
    if decoded is None:
        return identifier
    return decoded.render()


def resolve_module(decoded: DecodedIdentifier, definitions_root: str | os.PathLike[str]) -> Path | None:
    """Find the source file for a decoded module path, trying each extension in order."""
    base = Path(definitions_root) / decoded.module_path
    for ext in SOURCE_EXTENSIONS:
        candidate = base.with_name(base.name + ext)
        if candidate.is_file():
            return candidate
    return None


def is_backend_file(file_path: str | os.PathLike[str], definitions_root: str | os.PathLike[str]) -> bool:
    """True for files inside the definitions root but outside its generated output."""
    path = _normalize(file_path)
    root = _normalize(definitions_root)
    if path == root or not path.is_relative_to(root):
        return False
    return GENERATED_DIRNAME not in path.relative_to(root).parts
