"""Line matchers: find every line in a directory tree matching a regex.

Two implementations of the LineMatcher protocol:

- RipgrepMatcher spawns ``rg --json`` once per scope directory.
- ScanningMatcher walks the tree and regex-scans files in process, capped
  at a fixed number of files.

FallbackLineMatcher picks between them at runtime: it uses ripgrep until a
spawn fails with MatcherUnavailable, then answers from the scanner for the
rest of its lifetime.

Both sides visit files in path order (``rg --sort path``), skip hidden
entries and report one LineMatch per hit, so a line holding the pattern
twice yields two matches either way.
The scanner does not read .gitignore files.
"""

from __future__ import annotations

import asyncio
import fnmatch
import json
import os
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import structlog

from convexnav.config.constants import FALLBACK_MAX_FILES, RIPGREP_NO_MATCH_EXIT
from convexnav.resolver.text import LineIndex

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class LineMatch:
    """One regex match: 0-indexed line and column, stripped line text."""

    file_path: Path
    line: int
    column: int
    line_text: str


class MatcherUnavailable(Exception):
    """The line matcher's executable could not be started."""

    def __init__(self, executable: str, reason: str) -> None:
        super().__init__(f"{executable}: {reason}")
        self.executable = executable
        self.reason = reason


class LineMatcher(Protocol):
    """Finds lines matching ``pattern`` under ``scope_dir``."""

    async def find(
        self,
        pattern: str,
        scope_dir: Path,
        *,
        exclude_globs: Sequence[str],
        include_extensions: Sequence[str],
    ) -> list[LineMatch]:
        """Return matches in file path order, then line order.

        Raises:
            MatcherUnavailable: If the backing tool cannot be run at all.
        """
        ...


def matches_glob(rel_path: str, pattern: str) -> bool:
    """Check if a POSIX relative path matches a glob pattern, with ** support."""
    if fnmatch.fnmatch(rel_path, pattern):
        return True
    # "**/x" also matches "x" at the top level
    if pattern.startswith("**/"):
        return fnmatch.fnmatch(rel_path, pattern[3:])
    return False


def _excluded(rel_path: str, exclude_globs: Sequence[str]) -> bool:
    return any(matches_glob(rel_path, pattern) for pattern in exclude_globs)


# =============================================================================
# ripgrep
# =============================================================================


def _char_column(line_text: str, byte_offset: int) -> int:
    """ripgrep reports byte offsets; convert to a character column."""
    return len(line_text.encode("utf-8")[:byte_offset].decode("utf-8", errors="ignore"))


def parse_ripgrep_json(stdout: str) -> list[LineMatch]:
    """Turn ``rg --json`` output into LineMatch records.

    Only ``match`` events are used; unparseable lines are skipped.
    """
    results: list[LineMatch] = []
    for raw in stdout.splitlines():
        if not raw.strip():
            continue
        try:
            event: dict[str, Any] = json.loads(raw)
        except json.JSONDecodeError:
            continue
        if event.get("type") != "match":
            continue

        data = event.get("data", {})
        path_text = data.get("path", {}).get("text")
        line_text = data.get("lines", {}).get("text")
        line_number = data.get("line_number")
        if path_text is None or line_text is None or line_number is None:
            continue

        # One event per line; each hit on the line is its own submatch
        for sub in data.get("submatches") or [{}]:
            results.append(
                LineMatch(
                    file_path=Path(path_text),
                    line=line_number - 1,
                    column=_char_column(line_text, sub.get("start", 0)),
                    line_text=line_text.strip(),
                )
            )
    return results


class RipgrepMatcher:
    """Line matcher backed by a ripgrep child process."""

    def __init__(self, executable: str = "rg") -> None:
        self._executable = executable

    @property
    def executable(self) -> str:
        return self._executable

    def build_command(
        self,
        pattern: str,
        scope_dir: Path,
        exclude_globs: Sequence[str],
        include_extensions: Sequence[str],
    ) -> list[str]:
        # --glob instead of --type: tsx/jsx are not ripgrep built-in types
        cmd = [
            self._executable,
            "--json",
            "--line-number",
            "--column",
            "--no-heading",
            "--sort",
            "path",
            "-e",
            pattern,
        ]
        for ext in include_extensions:
            cmd.extend(["--glob", f"*{ext}"])
        for exclude in exclude_globs:
            cmd.extend(["--glob", f"!{exclude}"])
        cmd.append(str(scope_dir))
        return cmd

    async def find(
        self,
        pattern: str,
        scope_dir: Path,
        *,
        exclude_globs: Sequence[str],
        include_extensions: Sequence[str],
    ) -> list[LineMatch]:
        cmd = self.build_command(pattern, scope_dir, exclude_globs, include_extensions)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise MatcherUnavailable(self._executable, str(e)) from e

        stdout_bytes, stderr_bytes = await proc.communicate()

        if proc.returncode not in (0, RIPGREP_NO_MATCH_EXIT):
            logger.warning(
                "ripgrep_failed",
                scope=str(scope_dir),
                returncode=proc.returncode,
                stderr=stderr_bytes.decode(errors="replace").strip(),
            )
            return []

        return parse_ripgrep_json(stdout_bytes.decode(errors="replace"))


# =============================================================================
# In-process scan
# =============================================================================


def iter_source_files(
    scope_dir: Path,
    *,
    exclude_globs: Sequence[str],
    include_extensions: Sequence[str],
) -> Iterator[Path]:
    """Files under scope_dir in path order, hidden and excluded entries skipped."""

    def walk(directory: Path) -> Iterator[Path]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.warning("fallback_list_failed", directory=str(directory), error=str(e))
            return

        for entry in entries:
            if entry.name.startswith("."):
                continue
            path = Path(entry.path)
            rel = path.relative_to(scope_dir).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if not _excluded(f"{rel}/", exclude_globs):
                    yield from walk(path)
            elif entry.is_file() and path.suffix in include_extensions:
                if not _excluded(rel, exclude_globs):
                    yield path

    yield from walk(scope_dir)


class ScanningMatcher:
    """Line matcher that reads files itself. Used when ripgrep is missing."""

    def __init__(self, max_files: int = FALLBACK_MAX_FILES) -> None:
        self._max_files = max_files

    @property
    def max_files(self) -> int:
        return self._max_files

    def scan(
        self,
        pattern: str,
        scope_dir: Path,
        exclude_globs: Sequence[str],
        include_extensions: Sequence[str],
    ) -> list[LineMatch]:
        regex = re.compile(pattern)
        results: list[LineMatch] = []
        files = iter_source_files(
            scope_dir,
            exclude_globs=exclude_globs,
            include_extensions=include_extensions,
        )
        for count, file_path in enumerate(files):
            if count >= self._max_files:
                logger.info("fallback_file_cap_reached", scope=str(scope_dir), max_files=self._max_files)
                break
            try:
                content = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("fallback_read_failed", file=str(file_path), error=str(e))
                continue

            index = LineIndex(content)
            for match in regex.finditer(content):
                line, column = index.position_at(match.start())
                results.append(
                    LineMatch(
                        file_path=file_path,
                        line=line,
                        column=column,
                        line_text=index.line_text(line).strip(),
                    )
                )
        return results

    async def find(
        self,
        pattern: str,
        scope_dir: Path,
        *,
        exclude_globs: Sequence[str],
        include_extensions: Sequence[str],
    ) -> list[LineMatch]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self.scan, pattern, scope_dir, exclude_globs, include_extensions
        )


class FallbackLineMatcher:
    """Prefers ``primary``; switches to ``fallback`` once primary is unavailable."""

    def __init__(self, primary: LineMatcher, fallback: LineMatcher) -> None:
        self._primary = primary
        self._fallback = fallback
        self._primary_available = True

    @property
    def using_fallback(self) -> bool:
        return not self._primary_available

    async def find(
        self,
        pattern: str,
        scope_dir: Path,
        *,
        exclude_globs: Sequence[str],
        include_extensions: Sequence[str],
    ) -> list[LineMatch]:
        if self._primary_available:
            try:
                return await self._primary.find(
                    pattern,
                    scope_dir,
                    exclude_globs=exclude_globs,
                    include_extensions=include_extensions,
                )
            except MatcherUnavailable as e:
                logger.info("line_matcher_fallback", executable=e.executable, reason=e.reason)
                self._primary_available = False

        return await self._fallback.find(
            pattern,
            scope_dir,
            exclude_globs=exclude_globs,
            include_extensions=include_extensions,
        )


def default_line_matcher(ripgrep_path: str = "rg", max_files: int = FALLBACK_MAX_FILES) -> FallbackLineMatcher:
    return FallbackLineMatcher(RipgrepMatcher(ripgrep_path), ScanningMatcher(max_files))
