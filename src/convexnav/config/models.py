"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CONVEXNAV__SECTION__KEY)
3. Workspace YAML (.convexnav/config.yaml)
4. Global YAML (~/.config/convexnav/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CONVEXNAV__<SECTION>__<KEY>=<VALUE>

Examples:
    CONVEXNAV__NAVIGATOR__CONVEX_PATH=packages/backend/convex
    CONVEXNAV__CACHE__TTL_SEC=5
    CONVEXNAV__SEARCH__RIPGREP_PATH=/opt/bin/rg
    CONVEXNAV__LOGGING__LEVEL=DEBUG
"""

import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from convexnav.config.constants import FALLBACK_MAX_FILES

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_WRAPPER_NAME = re.compile(r"^[A-Za-z_$][\w$]*$")


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CONVEXNAV__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Resolver failures are logged at WARNING.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class NavigatorConfig(BaseModel):
    """Project and search settings.

    Env vars:
        CONVEXNAV__NAVIGATOR__CONVEX_PATH: Definitions root override
        CONVEXNAV__NAVIGATOR__FRONTEND_PATHS: JSON list of search directories
        CONVEXNAV__NAVIGATOR__CUSTOM_WRAPPERS: JSON list of wrapper names
        CONVEXNAV__NAVIGATOR__EXCLUDE_PATTERNS: JSON list of globs
    """

    convex_path: str = Field(
        default="",
        description="Convex directory relative to the workspace root (or absolute). "
        "Empty means auto-detect from convex.config.ts or _generated/api.ts.",
    )
    frontend_paths: list[str] = Field(
        default_factory=list,
        description="Directories searched for usages, in order. Empty searches the whole workspace.",
    )
    custom_wrappers: list[str] = Field(
        default_factory=list,
        description="Extra wrapper names treated as Convex functions (e.g. authedMutation).",
    )
    api_import_patterns: list[str] = Field(
        default_factory=lambda: ["api", "internal"],
        description="Root object names recognised in client code for hover lookups.",
    )
    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            "**/node_modules/**",
            "**/_generated/**",
            "**/dist/**",
            "**/out/**",
            "**/.git/**",
        ],
        description="Globs excluded from usage searches.",
    )

    @field_validator("custom_wrappers", "api_import_patterns")
    @classmethod
    def validate_names(cls, v: list[str]) -> list[str]:
        for name in v:
            if not _WRAPPER_NAME.match(name):
                raise ValueError(f"Not an identifier: {name!r}")
        return v


class CacheConfig(BaseModel):
    """Project info cache configuration.

    Env vars:
        CONVEXNAV__CACHE__TTL_SEC: Seconds a detected project stays cached
    """

    ttl_sec: float = Field(
        default=30.0,
        description="Project info cache lifetime. "
        "TRADEOFF: Lower values notice moved directories sooner but re-scan more often.",
    )

    @field_validator("ttl_sec")
    @classmethod
    def validate_ttl(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"TTL must be positive, got {v}")
        return v


class SearchConfig(BaseModel):
    """Usage search configuration.

    Env vars:
        CONVEXNAV__SEARCH__RIPGREP_PATH: ripgrep executable
        CONVEXNAV__SEARCH__FALLBACK_MAX_FILES: File cap for the in-process scan
    """

    ripgrep_path: str = Field(
        default="rg",
        description="ripgrep executable. When it cannot be spawned the in-process scan is used.",
    )
    fallback_max_files: int = Field(
        default=FALLBACK_MAX_FILES,
        description="Max files read per scope by the in-process scan. "
        "RISK: Large values make searches without ripgrep slow.",
    )

    @field_validator("fallback_max_files")
    @classmethod
    def validate_max_files(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"fallback_max_files must be >= 1, got {v}")
        return v


class ConvexNavConfig(BaseModel):
    """Root configuration for Convex Navigator."""

    navigator: NavigatorConfig = Field(default_factory=NavigatorConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
