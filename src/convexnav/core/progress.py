"""Human-facing CLI output on stderr.

stdout is reserved for results (locations, JSON), so status lines and
spinners share one Rich console bound to stderr. While a spinner runs,
console log handlers are muted; file handlers keep logging.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console

_console = Console(stderr=True)

_PREFIXES = {
    "success": "[green]✓[/green] ",
    "info": "  ",
}

_spinner_state = threading.local()


def is_console_suppressed() -> bool:
    return getattr(_spinner_state, "active", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    _spinner_state.active = True
    try:
        yield
    finally:
        _spinner_state.active = False


def _is_tty() -> bool:
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info") -> None:
    """Print ``message`` to stderr, prefixed by a marker for ``style``."""
    _console.print(_PREFIXES.get(style, "") + message, highlight=False)


def pluralize(count: int, singular: str) -> str:
    """``pluralize(1, "usage")`` -> "1 usage", ``pluralize(3, "usage")`` -> "3 usages"."""
    return f"{count} {singular if count == 1 else singular + 's'}"


@contextmanager
def spinner(message: str) -> Iterator[None]:
    """Show a spinner while the block runs; a single line when stderr is not a TTY."""
    if not _is_tty():
        _console.print(f"{message}...", highlight=False)
        yield
        return
    with suppress_console_logs(), _console.status(f"[cyan]{message}[/cyan]", spinner="dots"):
        yield
