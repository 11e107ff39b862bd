"""Convex project detection with a time-boxed cache.

Resolution order (first success wins):
1. Configured ``convex_path`` override, if it exists on disk
2. First ``convex.config.ts`` found in the workspace -> its directory
3. First ``convex/_generated/api.*`` found -> its grandparent directory

Detection walks the workspace, so results are cached in a ProjectInfoCache
for ``ttl_sec`` seconds. Callers must invalidate() after anything that could
move the project: a configuration change, or a file created or deleted
under the definitions root (see should_invalidate()).
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

import structlog

from convexnav.config.constants import (
    CONVEX_CONFIG_FILENAME,
    DEFAULT_CONVEX_DIRNAME,
    GENERATED_DIRNAME,
    GENERATED_INDEX_STEM,
    LOCATOR_MAX_MATCHES,
    LOCATOR_PRUNED_DIRS,
    SOURCE_EXTENSIONS,
)
from convexnav.config.models import NavigatorConfig

logger = structlog.get_logger()

Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class ProjectInfo:
    """Where the Convex backend lives inside a workspace."""

    definitions_root: Path
    workspace_root: Path
    config_file_path: Path | None = None
    generated_index_path: Path | None = None


class ProjectInfoCache:
    """Single-slot cache for ProjectInfo, overwritten wholesale.

    The clock is injectable so expiry can be driven deterministically.
    """

    def __init__(self, ttl_sec: float = 30.0, clock: Clock = time.monotonic) -> None:
        self._ttl_sec = ttl_sec
        self._clock = clock
        self._value: ProjectInfo | None = None
        self._timestamp = 0.0

    @property
    def ttl_sec(self) -> float:
        return self._ttl_sec

    def get(self) -> ProjectInfo | None:
        """Return the cached value if it is still fresh."""
        if self._value is None:
            return None
        if self._clock() - self._timestamp >= self._ttl_sec:
            return None
        return self._value

    def put(self, value: ProjectInfo | None) -> None:
        self._value = value
        self._timestamp = self._clock()

    def invalidate(self) -> None:
        self._value = None
        self._timestamp = 0.0


def _existing(path: Path) -> Path | None:
    return path if path.is_file() else None


def _generated_index(definitions_root: Path) -> Path | None:
    generated = definitions_root / GENERATED_DIRNAME
    for ext in SOURCE_EXTENSIONS:
        if candidate := _existing(generated / f"{GENERATED_INDEX_STEM}{ext}"):
            return candidate
    return None


def _walk_files(root: Path) -> Iterator[Path]:
    """Yield files under root in sorted order, skipping dependency directories."""
    try:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in LOCATOR_PRUNED_DIRS)
            for filename in sorted(filenames):
                yield Path(dirpath) / filename
    except OSError as e:
        logger.warning("project_walk_failed", root=str(root), error=str(e))


def _find_files(root: Path, predicate: Callable[[Path], bool], limit: int) -> list[Path]:
    found: list[Path] = []
    for path in _walk_files(root):
        if predicate(path):
            found.append(path)
            if len(found) >= limit:
                break
    return found


def _is_config_marker(path: Path) -> bool:
    return path.name == CONVEX_CONFIG_FILENAME


def _is_generated_index(path: Path) -> bool:
    return (
        path.stem == GENERATED_INDEX_STEM
        and path.suffix in SOURCE_EXTENSIONS
        and path.parent.name == GENERATED_DIRNAME
        and path.parent.parent.name == DEFAULT_CONVEX_DIRNAME
    )


class ProjectLocator:
    """Finds the definitions root of a workspace, caching the answer.

    Usage::

        locator = ProjectLocator(workspace_root, config.navigator, ttl_sec=config.cache.ttl_sec)
        info = await locator.locate()
        if info is None:
            ...  # not a Convex workspace
    """

    def __init__(
        self,
        workspace_root: Path,
        config: NavigatorConfig | None = None,
        *,
        ttl_sec: float = 30.0,
        cache: ProjectInfoCache | None = None,
    ) -> None:
        self._workspace_root = Path(os.path.abspath(workspace_root))
        self._config = config or NavigatorConfig()
        self._cache = cache or ProjectInfoCache(ttl_sec)
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    @property
    def workspace_root(self) -> Path:
        return self._workspace_root

    @property
    def cache(self) -> ProjectInfoCache:
        return self._cache

    async def locate(self) -> ProjectInfo | None:
        """Return the cached ProjectInfo, detecting it again once stale.

        Concurrent callers share a single detection pass.
        """
        if (cached := self._cache.get()) is not None:
            return cached

        async with self._detect_lock():
            if (cached := self._cache.get()) is not None:
                return cached

            loop = asyncio.get_running_loop()
            info = await loop.run_in_executor(None, self.detect)
            if info is not None:
                self._cache.put(info)
                logger.debug(
                    "project_detected",
                    definitions_root=str(info.definitions_root),
                    workspace_root=str(info.workspace_root),
                )
            else:
                logger.info("project_not_found", workspace_root=str(self._workspace_root))
            return info

    def _detect_lock(self) -> asyncio.Lock:
        # A Lock binds to the first loop that waits on it
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    def invalidate(self) -> None:
        """Drop the cached ProjectInfo so the next locate() re-detects."""
        self._cache.invalidate()
        logger.debug("project_cache_cleared")

    def detect(self) -> ProjectInfo | None:
        """Run detection without consulting the cache."""
        workspace_root = self._workspace_root

        if self._config.convex_path:
            convex_dir = Path(os.path.normpath(workspace_root / self._config.convex_path))
            if convex_dir.is_dir():
                return ProjectInfo(
                    definitions_root=convex_dir,
                    workspace_root=workspace_root,
                    config_file_path=_existing(convex_dir / CONVEX_CONFIG_FILENAME),
                    generated_index_path=_generated_index(convex_dir),
                )
            logger.warning("convex_path_missing", convex_path=self._config.convex_path)

        config_files = _find_files(workspace_root, _is_config_marker, LOCATOR_MAX_MATCHES)
        if config_files:
            config_path = config_files[0]
            convex_dir = config_path.parent
            return ProjectInfo(
                definitions_root=convex_dir,
                workspace_root=workspace_root,
                config_file_path=config_path,
                generated_index_path=_generated_index(convex_dir),
            )

        index_files = _find_files(workspace_root, _is_generated_index, LOCATOR_MAX_MATCHES)
        if index_files:
            index_path = index_files[0]
            return ProjectInfo(
                definitions_root=index_path.parent.parent,
                workspace_root=workspace_root,
                generated_index_path=index_path,
            )

        return None


def should_invalidate(changed_path: Path, info: ProjectInfo) -> bool:
    """Whether a created or deleted path can change what locate() returns."""
    if changed_path.name == CONVEX_CONFIG_FILENAME or _is_generated_index(changed_path):
        return True
    if changed_path.suffix not in SOURCE_EXTENSIONS:
        return False
    return changed_path.is_relative_to(info.definitions_root)
