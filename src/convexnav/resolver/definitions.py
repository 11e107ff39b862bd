"""Convex function definition scanner.

Recognises exported wrapper calls such as::

    export const createContact = mutation({ ... })
    export const listContacts = authedQuery<Args>({ ... })

Detection is a regex scan, not a TypeScript parse. Multi-line declarations,
aliased imports (``import { query as q }``) and re-exports are not seen.
The DefinitionMatcher protocol is the seam for a parser-based replacement;
path encoding and usage search do not depend on how exports are found.

Files are small, so nothing is indexed: every call rescans the text.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

import structlog

from convexnav.config.constants import ARGS_PREVIEW_MAX_CHARS, DEFAULT_CONVEX_WRAPPERS
from convexnav.config.models import NavigatorConfig
from convexnav.resolver.cancellation import CancellationToken, is_cancelled
from convexnav.resolver.paths import encode, is_backend_file
from convexnav.resolver.project import ProjectLocator
from convexnav.resolver.text import LineIndex, word_at

logger = structlog.get_logger()


class FunctionKind(str, Enum):
    """Kind of Convex function, derived from its wrapper name."""

    QUERY = "query"
    MUTATION = "mutation"
    ACTION = "action"
    INTERNAL_QUERY = "internal-query"
    INTERNAL_MUTATION = "internal-mutation"
    INTERNAL_ACTION = "internal-action"
    UNKNOWN = "unknown"

    @property
    def is_internal(self) -> bool:
        return self.value.startswith("internal-")

    @property
    def base(self) -> str | None:
        """``query``/``mutation``/``action`` regardless of visibility."""
        if self is FunctionKind.UNKNOWN:
            return None
        return self.value.removeprefix("internal-")


# Internal forms first: "internalmutation" contains "mutation".
_KIND_PRIORITY: tuple[tuple[str, FunctionKind], ...] = (
    ("internalquery", FunctionKind.INTERNAL_QUERY),
    ("internalmutation", FunctionKind.INTERNAL_MUTATION),
    ("internalaction", FunctionKind.INTERNAL_ACTION),
    ("query", FunctionKind.QUERY),
    ("mutation", FunctionKind.MUTATION),
    ("action", FunctionKind.ACTION),
)


def classify_kind(wrapper: str) -> FunctionKind:
    """Derive the function kind from a wrapper name by substring match.

    >>> classify_kind("authedZodMutation")
    <FunctionKind.MUTATION: 'mutation'>
    """
    lowered = wrapper.lower()
    for needle, kind in _KIND_PRIORITY:
        if needle in lowered:
            return kind
    return FunctionKind.UNKNOWN


def all_wrappers(custom_wrappers: Iterable[str] = ()) -> list[str]:
    """Default wrappers followed by custom ones, without duplicates."""
    return list(dict.fromkeys((*DEFAULT_CONVEX_WRAPPERS, *custom_wrappers)))


@dataclass(frozen=True, slots=True)
class DefinitionRecord:
    """An exported Convex function found in a backend file.

    ``line``/``column`` locate the ``export`` keyword (0-indexed);
    ``name_column`` locates the function name on the same line.
    """

    name: str
    kind: FunctionKind
    file_path: Path
    line: int
    column: int
    identifier: str
    wrapper_name: str
    name_column: int


@dataclass(frozen=True, slots=True)
class ExportMatch:
    """Raw matcher output: an export binding and where it sits in the text."""

    name: str
    wrapper: str
    offset: int
    name_offset: int


class DefinitionMatcher(Protocol):
    """Finds exported wrapper bindings in source text."""

    def find_exports(self, text: str) -> Iterator[ExportMatch]:
        """Yield export matches in text order."""
        ...


class RegexDefinitionMatcher:
    """``export const <name> = <wrapper>[<Generic>](`` matcher."""

    def __init__(self, wrappers: Iterable[str]) -> None:
        # Longest first so a wrapper is never shadowed by its own prefix.
        names = sorted(set(wrappers), key=len, reverse=True)
        alternatives = "|".join(re.escape(name) for name in names)
        self._pattern = re.compile(
            rf"export\s+const\s+(\w+)\s*=\s*({alternatives})(?:<[^>]+>)?\s*\("
        )

    @property
    def pattern(self) -> re.Pattern[str]:
        return self._pattern

    def find_exports(self, text: str) -> Iterator[ExportMatch]:
        for match in self._pattern.finditer(text):
            yield ExportMatch(
                name=match.group(1),
                wrapper=match.group(2),
                offset=match.start(),
                name_offset=match.start(1),
            )


@dataclass(frozen=True, slots=True)
class FunctionSummary:
    """What a hover shows for a resolved function."""

    name: str
    wrapper: str
    kind: FunctionKind
    file_path: Path
    line_number: int  # 1-indexed
    args_preview: str | None = None


_ARGS_VALIDATOR = re.compile(r"args\s*:\s*v\.(\w+)\(")
_ARGS_OBJECT = re.compile(r"args\s*:\s*(?:z\.object\()?(\{[^}]+\}|\w+)", re.DOTALL)
_NEXT_EXPORT = re.compile(r"^export\s", re.MULTILINE)


def _args_preview(body: str) -> str | None:
    if match := _ARGS_VALIDATOR.search(body):
        return f"v.{match.group(1)}(...)"
    if match := _ARGS_OBJECT.search(body):
        preview = match.group(1).strip()
        if len(preview) > ARGS_PREVIEW_MAX_CHARS:
            preview = preview[:ARGS_PREVIEW_MAX_CHARS] + "..."
        return preview
    return None


def _body_owner(records: list[DefinitionRecord], line: int, line_count: int) -> DefinitionRecord | None:
    """Definition whose textual body spans ``line``.

    Each body runs from its export line to the line before the next export;
    the last one runs to end of file. Assumes no nesting and file order.
    """
    for index, record in enumerate(records):
        end = records[index + 1].line - 1 if index + 1 < len(records) else line_count - 1
        if record.line <= line <= end:
            return record
    return None


class DefinitionScanner:
    """Enumerates Convex definitions and finds the one under a cursor."""

    def __init__(
        self,
        locator: ProjectLocator,
        config: NavigatorConfig | None = None,
        *,
        matcher: DefinitionMatcher | None = None,
    ) -> None:
        self._locator = locator
        self._config = config or NavigatorConfig()
        self._wrappers = all_wrappers(self._config.custom_wrappers)
        self._matcher = matcher or RegexDefinitionMatcher(self._wrappers)

    @property
    def wrappers(self) -> list[str]:
        return list(self._wrappers)

    def scan_text(self, text: str, file_path: Path, definitions_root: Path) -> list[DefinitionRecord]:
        """Definitions in ``text``, skipping exports whose identifier cannot be encoded."""
        index = LineIndex(text)
        records: list[DefinitionRecord] = []
        for export in self._matcher.find_exports(text):
            identifier = encode(file_path, export.name, definitions_root)
            if identifier is None:
                continue
            line, column = index.position_at(export.offset)
            _, name_column = index.position_at(export.name_offset)
            records.append(
                DefinitionRecord(
                    name=export.name,
                    kind=classify_kind(export.wrapper),
                    file_path=file_path,
                    line=line,
                    column=column,
                    identifier=identifier,
                    wrapper_name=export.wrapper,
                    name_column=name_column,
                )
            )
        return records

    async def _read(self, file_path: Path) -> str | None:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, file_path.read_text, "utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("definition_scan_failed", file=str(file_path), error=str(e))
            return None

    async def scan_file(self, file_path: Path) -> list[DefinitionRecord]:
        """All definitions in a backend file; empty for excluded or unreadable files."""
        project = await self._locator.locate()
        if project is None:
            return []
        file_path = Path(file_path)
        if not is_backend_file(file_path, project.definitions_root):
            return []

        text = await self._read(file_path)
        if text is None:
            return []
        return self.scan_text(text, file_path, project.definitions_root)

    async def find_at(
        self,
        text: str,
        file_path: Path,
        line: int,
        column: int,
        *,
        token: CancellationToken | None = None,
    ) -> DefinitionRecord | None:
        """The definition a cursor at (line, column) is "on".

        ``text`` is the current document content, which may be unsaved.
        Tried in order: the export line itself, the word under the cursor
        naming a definition, then the body the cursor sits in.
        """
        project = await self._locator.locate()
        if project is None or is_cancelled(token):
            return None
        file_path = Path(file_path)
        if not is_backend_file(file_path, project.definitions_root):
            return None

        records = self.scan_text(text, file_path, project.definitions_root)
        if not records:
            return None

        for record in records:
            if record.line == line:
                return record

        index = LineIndex(text)
        if 0 <= line < index.line_count:
            word = word_at(index.line_text(line), column)
            if word is not None:
                for record in records:
                    if record.name == word:
                        return record

        return _body_owner(records, line, index.line_count)

    async def find_definition(self, file_path: Path, function_name: str) -> DefinitionRecord | None:
        """The definition named ``function_name`` in a backend file."""
        for record in await self.scan_file(file_path):
            if record.name == function_name:
                return record
        return None

    async def describe(self, file_path: Path, function_name: str) -> FunctionSummary | None:
        """Wrapper, kind, declaration line and args preview of one export.

        Any wrapper is accepted here (the function is already known by
        name), so summaries also cover wrappers not in the configured set.
        """
        file_path = Path(file_path)
        text = await self._read(file_path)
        if text is None:
            return None

        pattern = re.compile(
            rf"export\s+const\s+{re.escape(function_name)}\s*=\s*(\w+)(?:<[^>]+>)?\s*\(\s*\{{",
            re.DOTALL,
        )
        match = pattern.search(text)
        if match is None:
            return None

        wrapper = match.group(1)
        line, _ = LineIndex(text).position_at(match.start())
        next_export = _NEXT_EXPORT.search(text, match.end())
        body = text[match.end() : next_export.start() if next_export else len(text)]
        return FunctionSummary(
            name=function_name,
            wrapper=wrapper,
            kind=classify_kind(wrapper),
            file_path=file_path,
            line_number=line + 1,
            args_preview=_args_preview(body),
        )
