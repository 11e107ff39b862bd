"""Cooperative cancellation for resolver operations."""

from __future__ import annotations


class CancellationToken:
    """Flag checked by long-running lookups at safe points.

    A cancelled operation still drains any child process it started; it just
    stops assembling results, and the caller must treat its output as void.
    """

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


def is_cancelled(token: CancellationToken | None) -> bool:
    return token is not None and token.is_cancelled
