"""Offset/position helpers shared by the scanners."""

from __future__ import annotations

import bisect
import re
from collections.abc import Iterable
from dataclasses import dataclass

_WORD = re.compile(r"\w+")


class LineIndex:
    """Maps character offsets in a text to 0-indexed (line, column) pairs."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._starts = [0]
        self._starts.extend(m.end() for m in re.finditer(r"\n", text))

    @property
    def line_count(self) -> int:
        return len(self._starts)

    def position_at(self, offset: int) -> tuple[int, int]:
        line = bisect.bisect_right(self._starts, offset) - 1
        return line, offset - self._starts[line]

    def line_text(self, line: int) -> str:
        start = self._starts[line]
        end = self._starts[line + 1] - 1 if line + 1 < len(self._starts) else len(self._text)
        return self._text[start:end].rstrip("\r")


def word_at(line_text: str, column: int) -> str | None:
    """The ``\\w+`` word touching ``column`` (a cursor right after a word counts)."""
    for match in _WORD.finditer(line_text):
        if match.start() <= column <= match.end():
            return match.group()
        if match.start() > column:
            break
    return None


@dataclass(frozen=True, slots=True)
class IdentifierSpan:
    """A dot-path identifier found on a line of client code."""

    text: str
    start: int
    end: int


def identifier_pattern(roots: Iterable[str]) -> re.Pattern[str]:
    """Regex for ``<root>.a.b.c`` references, e.g. ``api.domains.contacts.createContact``."""
    alternatives = "|".join(re.escape(root) for root in roots)
    return re.compile(rf"\b(?:{alternatives})(?:\.\w+)+\b")


def identifier_at(line_text: str, column: int, roots: Iterable[str]) -> IdentifierSpan | None:
    """Find the identifier reference under ``column`` on a client code line."""
    roots = list(roots)
    if not roots:
        return None
    for match in identifier_pattern(roots).finditer(line_text):
        if match.start() <= column <= match.end():
            return IdentifierSpan(text=match.group(), start=match.start(), end=match.end())
    return None
