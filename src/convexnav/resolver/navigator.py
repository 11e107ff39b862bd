"""Editor-facing flows built from the resolver components.

- find_references: definition under the cursor -> every client usage
- hover: identifier under the cursor in client code -> function summary
- goto_definition: identifier -> the definition record in its backend file
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path

import structlog

from convexnav.config.models import ConvexNavConfig
from convexnav.resolver.cancellation import CancellationToken, is_cancelled
from convexnav.resolver.definitions import DefinitionRecord, DefinitionScanner, FunctionKind
from convexnav.resolver.paths import decode, resolve_module
from convexnav.resolver.project import ProjectLocator
from convexnav.resolver.text import LineIndex, identifier_at
from convexnav.resolver.usages import SearchResult, UsageLocator

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class Location:
    """A single-line range in a file, 0-indexed."""

    file_path: Path
    line: int
    column: int
    end_column: int


@dataclass(frozen=True, slots=True)
class HoverInfo:
    """Summary of the function an identifier refers to."""

    identifier: str
    function_name: str
    file_path: Path
    relative_path: str
    line_number: int  # 1-indexed
    kind: FunctionKind | None = None
    wrapper: str | None = None
    args_preview: str | None = None
    start: int = 0
    end: int = 0

    @property
    def kind_label(self) -> str | None:
        """``query``/``mutation``/``action``, else the wrapper name."""
        if self.kind is not None and self.kind.base is not None:
            return self.kind.base
        return self.wrapper


class Navigator:
    """Wires locator, scanner and usage search together for one workspace.

    Usage::

        navigator = Navigator.from_config(workspace_root, load_config(workspace_root))
        locations = await navigator.find_references(path, line, column)
    """

    def __init__(
        self,
        locator: ProjectLocator,
        scanner: DefinitionScanner,
        usages: UsageLocator,
        *,
        api_roots: list[str] | None = None,
    ) -> None:
        self.locator = locator
        self.scanner = scanner
        self.usages = usages
        self._api_roots = api_roots if api_roots is not None else ["api", "internal"]

    @classmethod
    def from_config(cls, workspace_root: Path, config: ConvexNavConfig) -> Navigator:
        locator = ProjectLocator(workspace_root, config.navigator, ttl_sec=config.cache.ttl_sec)
        return cls(
            locator,
            DefinitionScanner(locator, config.navigator),
            UsageLocator(locator, config.navigator, search_config=config.search),
            api_roots=list(config.navigator.api_import_patterns),
        )

    async def definition_at(
        self,
        file_path: Path,
        line: int,
        column: int,
        *,
        token: CancellationToken | None = None,
    ) -> DefinitionRecord | None:
        """Read ``file_path`` from disk and find the definition at the cursor."""
        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, Path(file_path).read_text, "utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("definition_read_failed", file=str(file_path), error=str(e))
            return None
        return await self.scanner.find_at(text, Path(file_path), line, column, token=token)

    async def search_definition(
        self,
        definition: DefinitionRecord,
        *,
        token: CancellationToken | None = None,
    ) -> SearchResult:
        return await self.usages.search(definition.identifier, definition.name, token=token)

    async def find_references(
        self,
        file_path: Path,
        line: int,
        column: int,
        *,
        include_declaration: bool = True,
        token: CancellationToken | None = None,
    ) -> list[Location] | None:
        """Usages of the definition under the cursor, declaration first if requested.

        None when the cursor is not on a definition or the lookup was cancelled.
        """
        definition = await self.definition_at(file_path, line, column, token=token)
        if definition is None or is_cancelled(token):
            return None

        result = await self.search_definition(definition, token=token)
        if result.cancelled or is_cancelled(token):
            return None

        width = len(definition.identifier)
        locations = [
            Location(usage.file_path, usage.line, usage.column, usage.column + width)
            for usage in result.usages
        ]
        if include_declaration:
            locations.insert(
                0,
                Location(
                    definition.file_path,
                    definition.line,
                    definition.name_column,
                    definition.name_column + len(definition.name),
                ),
            )
        return locations

    async def resolve(self, identifier: str) -> tuple[Path, str] | None:
        """Backend file and function name an identifier points at."""
        project = await self.locator.locate()
        if project is None:
            return None
        decoded = decode(identifier)
        if decoded is None:
            return None
        file_path = resolve_module(decoded, project.definitions_root)
        if file_path is None:
            return None
        return file_path, decoded.function_name

    async def goto_definition(self, identifier: str) -> DefinitionRecord | None:
        resolved = await self.resolve(identifier)
        if resolved is None:
            return None
        file_path, function_name = resolved
        return await self.scanner.find_definition(file_path, function_name)

    async def hover_text(self, line_text: str, column: int) -> HoverInfo | None:
        """Hover summary for the identifier at ``column`` on a client code line."""
        span = identifier_at(line_text, column, self._api_roots)
        if span is None:
            return None

        resolved = await self.resolve(span.text)
        if resolved is None:
            return None
        file_path, function_name = resolved

        project = await self.locator.locate()
        relative_path = (
            os.path.relpath(file_path, project.workspace_root) if project is not None else str(file_path)
        )

        summary = await self.scanner.describe(file_path, function_name)
        if summary is None:
            return HoverInfo(
                identifier=span.text,
                function_name=function_name,
                file_path=file_path,
                relative_path=relative_path,
                line_number=1,
                start=span.start,
                end=span.end,
            )
        return HoverInfo(
            identifier=span.text,
            function_name=function_name,
            file_path=file_path,
            relative_path=relative_path,
            line_number=summary.line_number,
            kind=summary.kind,
            wrapper=summary.wrapper,
            args_preview=summary.args_preview,
            start=span.start,
            end=span.end,
        )

    async def hover(self, file_path: Path, line: int, column: int) -> HoverInfo | None:
        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, Path(file_path).read_text, "utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("hover_read_failed", file=str(file_path), error=str(e))
            return None
        index = LineIndex(text)
        if not 0 <= line < index.line_count:
            return None
        return await self.hover_text(index.line_text(line), column)
