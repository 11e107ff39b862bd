"""Minimal user-facing configuration.

This module defines only the config fields that users should care about.
Everything else uses opinionated defaults.

User config is stored in .convexnav/config.yaml at the workspace root.
"""

import json
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from convexnav.core.errors import ConfigError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_LOG_LEVEL: LogLevel = "WARNING"

CONFIG_DIRNAME = ".convexnav"
CONFIG_FILENAME = "config.yaml"


class UserConfig(BaseModel):
    """User-facing configuration options."""

    convex_path: str = Field(
        default="",
        description="Convex directory relative to the workspace root. Empty = auto-detect.",
    )
    frontend_paths: list[str] = Field(
        default_factory=list,
        description="Directories searched for usages. Empty = whole workspace.",
    )
    custom_wrappers: list[str] = Field(
        default_factory=list,
        description="Extra wrapper names, e.g. authedQuery, authedMutation.",
    )
    exclude_patterns: list[str] | None = Field(
        default=None,
        description="Globs excluded from usage searches. None keeps the defaults.",
    )
    log_level: LogLevel = Field(
        default="WARNING",
        description="Log level. DEBUG is very verbose.",
    )


def user_config_path(workspace_root: Path) -> Path:
    return workspace_root / CONFIG_DIRNAME / CONFIG_FILENAME


def _yaml_list(key: str, values: list[str]) -> list[str]:
    if not values:
        return [f"# {key}: []"]
    # Quoted: a leading "*" would be read as a YAML alias
    return [f"{key}:", *(f"  - {json.dumps(value)}" for value in values)]


def write_user_config(path: Path, config: UserConfig | None = None) -> None:
    """Write user config file with helpful comments.

    Non-default values are written active; defaults are written as comments.

    Args:
        path: Path to write config.yaml
        config: Config values (uses defaults if None)
    """
    cfg = config or UserConfig()

    lines = [
        "# Convex Navigator Configuration",
        "",
    ]

    lines.append("# Convex directory relative to the workspace root. Leave empty to auto-detect")
    lines.append("# from convex.config.ts or convex/_generated/api.ts.")
    if cfg.convex_path:
        lines.append(f"convex_path: {json.dumps(cfg.convex_path)}")
    else:
        lines.append('# convex_path: ""')
    lines.append("")

    lines.append("# Directories searched for usages, in order. Empty searches the whole workspace.")
    lines.extend(_yaml_list("frontend_paths", cfg.frontend_paths))
    lines.append("")

    lines.append("# Wrappers recognised in addition to query/mutation/action and their internal forms.")
    lines.extend(_yaml_list("custom_wrappers", cfg.custom_wrappers))
    lines.append("")

    if cfg.exclude_patterns is not None:
        lines.append("# Globs excluded from usage searches.")
        lines.extend(_yaml_list("exclude_patterns", cfg.exclude_patterns))
        lines.append("")

    lines.append("# Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL")
    if cfg.log_level != DEFAULT_LOG_LEVEL:
        lines.append(f"log_level: {cfg.log_level}")
    else:
        lines.append(f"# log_level: {cfg.log_level}")
    lines.append("")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines))


def load_user_config(path: Path) -> UserConfig:
    """Load user config from YAML file.

    Raises:
        ConfigError: On invalid YAML or invalid values.
    """
    if not path.exists():
        return UserConfig()
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    try:
        return UserConfig(**data)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
