"""Tests for resolver/matchers.py.

Covers:
- parse_ripgrep_json()
- RipgrepMatcher command line and process handling
- ScanningMatcher / iter_source_files()
- FallbackLineMatcher switching
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from convexnav.config.constants import SOURCE_EXTENSIONS
from convexnav.config.models import NavigatorConfig
from convexnav.resolver.matchers import (
    FallbackLineMatcher,
    LineMatch,
    MatcherUnavailable,
    RipgrepMatcher,
    ScanningMatcher,
    iter_source_files,
    matches_glob,
    parse_ripgrep_json,
)

EXCLUDES = NavigatorConfig().exclude_patterns
CREATE_CONTACT = re.escape("api.domains.contacts.createContact")


def _rg_match(path: str, line_number: int, text: str, *starts: int) -> str:
    return json.dumps(
        {
            "type": "match",
            "data": {
                "path": {"text": path},
                "lines": {"text": text},
                "line_number": line_number,
                "submatches": [{"match": {"text": "x"}, "start": s, "end": s + 1} for s in starts],
            },
        }
    )


def _process(returncode: int, stdout: bytes = b"", stderr: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    return proc


class RecordingMatcher:
    """LineMatcher test double that records calls and can fail on demand."""

    def __init__(self, *, unavailable: bool = False, result: list[LineMatch] | None = None) -> None:
        self.calls = 0
        self.unavailable = unavailable
        self.result = result or []

    async def find(
        self,
        pattern: str,
        scope_dir: Path,
        *,
        exclude_globs: Sequence[str],
        include_extensions: Sequence[str],
    ) -> list[LineMatch]:
        self.calls += 1
        if self.unavailable:
            raise MatcherUnavailable("rg", "not found")
        return self.result


class TestMatchesGlob:
    """Tests for matches_glob()."""

    def test_double_star_prefix_matches_top_level(self) -> None:
        assert matches_glob("node_modules/", "**/node_modules/**")
        assert matches_glob("node_modules/pkg/index.ts", "**/node_modules/**")

    def test_nested(self) -> None:
        assert matches_glob("apps/web/node_modules/", "**/node_modules/**")
        assert matches_glob("convex/_generated/api.ts", "**/_generated/**")

    def test_no_match(self) -> None:
        assert not matches_glob("src/components/Form.tsx", "**/dist/**")


class TestParseRipgrepJson:
    """Tests for parse_ripgrep_json()."""

    def test_match_events_only(self) -> None:
        stdout = "\n".join(
            [
                json.dumps({"type": "begin", "data": {"path": {"text": "/w/a.tsx"}}}),
                _rg_match("/w/a.tsx", 5, "  useQuery(api.a.b);\n", 11),
                json.dumps({"type": "end", "data": {}}),
                json.dumps({"type": "summary", "data": {}}),
            ]
        )

        matches = parse_ripgrep_json(stdout)

        assert matches == [
            LineMatch(file_path=Path("/w/a.tsx"), line=4, column=11, line_text="useQuery(api.a.b);")
        ]

    def test_byte_offsets_become_character_columns(self) -> None:
        text = "const é = useQuery(api.a.b);\n"
        byte_start = text.encode("utf-8").index(b"api")

        matches = parse_ripgrep_json(_rg_match("/w/a.ts", 1, text, byte_start))

        assert matches[0].column == text.index("api")

    def test_every_submatch_on_a_line_is_reported(self) -> None:
        matches = parse_ripgrep_json(_rg_match("/w/a.ts", 1, "f(api.a.b, api.a.b);\n", 2, 11))

        assert [(m.line, m.column) for m in matches] == [(0, 2), (0, 11)]

    def test_same_matches_as_scanner(self, tmp_path: Path) -> None:
        # Given a line where the identifier is also a prefix of another one
        text = "useQuery(api.x.get); useQuery(api.x.getAll);\n"
        path = tmp_path / "a.ts"
        path.write_text(text)
        pattern = re.escape("api.x.get")
        starts = [m.start() for m in re.finditer(pattern, text)]

        # When ripgrep reports the line as one event with a submatch per hit
        from_rg = parse_ripgrep_json(_rg_match(str(path), 1, text, *starts))
        from_scan = ScanningMatcher().scan(pattern, tmp_path, [], [".ts"])

        # Then both sides agree
        assert len(from_rg) == 2
        assert from_rg == from_scan

    def test_skips_unparseable_lines(self) -> None:
        stdout = "not json\n\n" + _rg_match("/w/a.ts", 2, "api.a.b\n", 0)

        matches = parse_ripgrep_json(stdout)

        assert len(matches) == 1
        assert matches[0].line == 1

    def test_skips_incomplete_events(self) -> None:
        stdout = json.dumps({"type": "match", "data": {"path": {"text": "/w/a.ts"}}})

        assert parse_ripgrep_json(stdout) == []


class TestRipgrepMatcher:
    """Tests for RipgrepMatcher."""

    def test_build_command(self) -> None:
        matcher = RipgrepMatcher("/usr/bin/rg")

        cmd = matcher.build_command("api\\.a\\.b", Path("/w/src"), ["**/dist/**"], [".ts", ".tsx"])

        assert cmd == [
            "/usr/bin/rg",
            "--json",
            "--line-number",
            "--column",
            "--no-heading",
            "--sort",
            "path",
            "-e",
            "api\\.a\\.b",
            "--glob",
            "*.ts",
            "--glob",
            "*.tsx",
            "--glob",
            "!**/dist/**",
            "/w/src",
        ]

    @pytest.mark.asyncio
    async def test_missing_executable_is_unavailable(self, tmp_path: Path) -> None:
        matcher = RipgrepMatcher(str(tmp_path / "no-such-rg"))

        with pytest.raises(MatcherUnavailable) as exc_info:
            await matcher.find("x", tmp_path, exclude_globs=[], include_extensions=[".ts"])

        assert exc_info.value.executable == str(tmp_path / "no-such-rg")

    @pytest.mark.asyncio
    async def test_parses_stdout(self, tmp_path: Path) -> None:
        stdout = _rg_match(str(tmp_path / "a.ts"), 3, "api.a.b\n", 0).encode()

        with patch(
            "convexnav.resolver.matchers.asyncio.create_subprocess_exec",
            AsyncMock(return_value=_process(0, stdout)),
        ) as spawn:
            matches = await RipgrepMatcher().find("x", tmp_path, exclude_globs=[], include_extensions=[".ts"])

        assert spawn.call_args.args[0] == "rg"
        assert [(m.file_path, m.line) for m in matches] == [(tmp_path / "a.ts", 2)]

    @pytest.mark.asyncio
    async def test_no_match_exit_code(self, tmp_path: Path) -> None:
        with patch(
            "convexnav.resolver.matchers.asyncio.create_subprocess_exec",
            AsyncMock(return_value=_process(1)),
        ):
            matches = await RipgrepMatcher().find("x", tmp_path, exclude_globs=[], include_extensions=[".ts"])

        assert matches == []

    @pytest.mark.asyncio
    async def test_error_exit_code_returns_empty(self, tmp_path: Path) -> None:
        stdout = _rg_match(str(tmp_path / "a.ts"), 3, "api.a.b\n", 0).encode()

        with patch(
            "convexnav.resolver.matchers.asyncio.create_subprocess_exec",
            AsyncMock(return_value=_process(2, stdout, b"regex parse error")),
        ):
            matches = await RipgrepMatcher().find("x", tmp_path, exclude_globs=[], include_extensions=[".ts"])

        assert matches == []


class TestScanningMatcher:
    """Tests for the in-process ScanningMatcher."""

    @pytest.mark.asyncio
    async def test_workspace_scan(self, convex_workspace: Path) -> None:
        matcher = ScanningMatcher()

        matches = await matcher.find(
            CREATE_CONTACT,
            convex_workspace,
            exclude_globs=EXCLUDES,
            include_extensions=SOURCE_EXTENSIONS,
        )

        components = convex_workspace / "src" / "components"
        assert [(m.file_path, m.line, m.column) for m in matches] == [
            (components / "ContactForm.tsx", 4, len("  const createContact = useMutation(")),
            (components / "ContactList.tsx", 5, len("  // ")),
        ]
        assert matches[0].line_text == "const createContact = useMutation(api.domains.contacts.createContact);"

    def test_file_cap(self, convex_workspace: Path) -> None:
        matcher = ScanningMatcher(max_files=1)

        matches = matcher.scan(
            CREATE_CONTACT,
            convex_workspace / "src" / "components",
            EXCLUDES,
            SOURCE_EXTENSIONS,
        )

        assert [m.file_path.name for m in matches] == ["ContactForm.tsx"]

    def test_multiple_matches_on_one_line(self, tmp_path: Path) -> None:
        (tmp_path / "a.ts").write_text("f(api.a.b, api.a.b);\n")

        matches = ScanningMatcher().scan(re.escape("api.a.b"), tmp_path, [], [".ts"])

        assert [m.column for m in matches] == [2, 11]


class TestIterSourceFiles:
    """Tests for iter_source_files()."""

    def test_order_and_filters(self, tmp_path: Path) -> None:
        for rel in [
            "b.ts",
            "a/z.tsx",
            "a/README.md",
            ".hidden/x.ts",
            "dist/bundle.js",
            "c.jsx",
        ]:
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("")

        files = list(
            iter_source_files(tmp_path, exclude_globs=["**/dist/**"], include_extensions=SOURCE_EXTENSIONS)
        )

        assert [f.relative_to(tmp_path).as_posix() for f in files] == ["a/z.tsx", "b.ts", "c.jsx"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        files = list(iter_source_files(tmp_path / "nope", exclude_globs=[], include_extensions=[".ts"]))

        assert files == []


class TestFallbackLineMatcher:
    """Tests for FallbackLineMatcher."""

    @pytest.mark.asyncio
    async def test_uses_primary_when_available(self, tmp_path: Path) -> None:
        primary = RecordingMatcher(result=[LineMatch(tmp_path / "a.ts", 0, 0, "x")])
        fallback = RecordingMatcher()
        matcher = FallbackLineMatcher(primary, fallback)

        matches = await matcher.find("x", tmp_path, exclude_globs=[], include_extensions=[".ts"])

        assert len(matches) == 1
        assert fallback.calls == 0
        assert not matcher.using_fallback

    @pytest.mark.asyncio
    async def test_switches_permanently(self, tmp_path: Path) -> None:
        # Given a primary that cannot be spawned
        primary = RecordingMatcher(unavailable=True)
        fallback = RecordingMatcher(result=[LineMatch(tmp_path / "a.ts", 0, 0, "x")])
        matcher = FallbackLineMatcher(primary, fallback)

        # When searching twice
        first = await matcher.find("x", tmp_path, exclude_globs=[], include_extensions=[".ts"])
        second = await matcher.find("x", tmp_path, exclude_globs=[], include_extensions=[".ts"])

        # Then the primary is tried once and the fallback answers both
        assert first == second
        assert len(first) == 1
        assert primary.calls == 1
        assert fallback.calls == 2
        assert matcher.using_fallback

    @pytest.mark.asyncio
    async def test_missing_ripgrep_uses_scan(self, convex_workspace: Path, tmp_path: Path) -> None:
        matcher = FallbackLineMatcher(RipgrepMatcher(str(tmp_path / "no-such-rg")), ScanningMatcher())

        matches = await matcher.find(
            CREATE_CONTACT,
            convex_workspace / "src",
            exclude_globs=EXCLUDES,
            include_extensions=SOURCE_EXTENSIONS,
        )

        assert [m.file_path.name for m in matches] == ["ContactForm.tsx", "ContactList.tsx"]
        assert matcher.using_fallback
