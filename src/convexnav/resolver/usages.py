"""Find client-side usages of a Convex function identifier.

Scopes are searched one after another, never concurrently: results come
back in scope order, then in the order the line matcher found them. No
de-duplication is done, so overlapping frontend paths report a line once
per scope that contains it.
"""

from __future__ import annotations

import re
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from convexnav.config.constants import ACCESS_PATTERN_REGEX, SOURCE_EXTENSIONS
from convexnav.config.models import NavigatorConfig, SearchConfig
from convexnav.resolver.cancellation import CancellationToken, is_cancelled
from convexnav.resolver.matchers import LineMatcher, MatcherUnavailable, default_line_matcher
from convexnav.resolver.paths import canonical
from convexnav.resolver.project import ProjectInfo, ProjectLocator

logger = structlog.get_logger()

_ACCESS_PATTERN = re.compile(ACCESS_PATTERN_REGEX)


@dataclass(frozen=True, slots=True)
class UsageRecord:
    """One textual occurrence of an identifier in client code."""

    identifier: str
    file_path: Path
    line: int
    column: int
    line_text: str
    access_pattern: str | None = None


@dataclass
class SearchResult:
    """Outcome of one usage search."""

    identifier: str
    function_name: str
    usages: list[UsageRecord] = field(default_factory=list)
    elapsed_ms: int = 0
    cancelled: bool = False


def classify_access(line_text: str) -> str | None:
    """The calling convention used on a line, e.g. ``useMutation`` or ``ctx.runQuery``."""
    match = _ACCESS_PATTERN.search(line_text)
    return match.group(1) if match else None


def search_pattern(identifier: str) -> str:
    """Regex matching the identifier literally (dots are not wildcards)."""
    return re.escape(identifier)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class UsageLocator:
    """Searches the configured scopes for references to an identifier."""

    def __init__(
        self,
        locator: ProjectLocator,
        config: NavigatorConfig | None = None,
        *,
        search_config: SearchConfig | None = None,
        matcher: LineMatcher | None = None,
        include_extensions: Sequence[str] = SOURCE_EXTENSIONS,
    ) -> None:
        self._locator = locator
        self._config = config or NavigatorConfig()
        search_config = search_config or SearchConfig()
        self._matcher = matcher or default_line_matcher(
            search_config.ripgrep_path, search_config.fallback_max_files
        )
        self._include_extensions = tuple(include_extensions)

    @property
    def matcher(self) -> LineMatcher:
        return self._matcher

    def search_scopes(self, project: ProjectInfo) -> list[Path]:
        """Configured frontend paths (relative ones under the workspace), else the workspace."""
        if self._config.frontend_paths:
            return [project.workspace_root / p for p in self._config.frontend_paths]
        return [project.workspace_root]

    async def search(
        self,
        identifier: str,
        function_name: str,
        *,
        token: CancellationToken | None = None,
    ) -> SearchResult:
        """Find every occurrence of ``identifier`` across the search scopes.

        A cancelled search comes back with ``cancelled=True`` and no usages.
        """
        start = time.perf_counter()
        identifier = canonical(identifier)
        result = SearchResult(identifier=identifier, function_name=function_name)

        project = await self._locator.locate()
        if project is None:
            result.elapsed_ms = _elapsed_ms(start)
            return result

        pattern = search_pattern(identifier)
        log = logger.bind(identifier=identifier)

        for scope in self.search_scopes(project):
            if is_cancelled(token):
                break
            if not scope.is_dir():
                log.warning("usage_scope_missing", scope=str(scope))
                continue
            try:
                matches = await self._matcher.find(
                    pattern,
                    scope,
                    exclude_globs=self._config.exclude_patterns,
                    include_extensions=self._include_extensions,
                )
            except (OSError, MatcherUnavailable, re.error) as e:
                log.warning("usage_scope_failed", scope=str(scope), error=str(e))
                continue

            for match in matches:
                result.usages.append(
                    UsageRecord(
                        identifier=identifier,
                        file_path=match.file_path,
                        line=match.line,
                        column=match.column,
                        line_text=match.line_text,
                        access_pattern=classify_access(match.line_text),
                    )
                )

        if is_cancelled(token):
            result.usages = []
            result.cancelled = True

        result.elapsed_ms = _elapsed_ms(start)
        log.debug("usage_search_done", usages=len(result.usages), elapsed_ms=result.elapsed_ms)
        return result
