"""CLI utilities."""

import dataclasses
import json
from enum import Enum
from pathlib import Path
from typing import Any

import click

from convexnav.config.loader import load_config
from convexnav.config.models import ConvexNavConfig
from convexnav.core.errors import ConfigError
from convexnav.core.logging import configure_logging
from convexnav.resolver.navigator import Navigator


def load_workspace_config(ctx: click.Context) -> ConvexNavConfig:
    """Load config for the workspace selected on the command group.

    Reconfigures logging from the loaded config unless --verbose was given.

    Raises:
        click.ClickException: If the configuration is invalid
    """
    workspace: Path = ctx.obj["workspace"]
    try:
        config = load_config(workspace)
    except ConfigError as e:
        raise click.ClickException(e.message) from e

    if not ctx.obj.get("verbose"):
        configure_logging(config=config.logging)
    return config


def get_navigator(ctx: click.Context) -> Navigator:
    config = load_workspace_config(ctx)
    return Navigator.from_config(ctx.obj["workspace"], config)


def parse_location(target: str) -> tuple[Path, int, int] | None:
    """Parse ``FILE:LINE[:COL]`` (1-indexed) into a 0-indexed location.

    Returns None when ``target`` does not have that shape.
    """
    parts = target.rsplit(":", 2)
    if len(parts) == 3 and parts[1].isdigit() and parts[2].isdigit():
        file_part, line, column = parts[0], int(parts[1]), int(parts[2])
    elif len(parts) >= 2 and parts[-1].isdigit():
        file_part, line, column = ":".join(parts[:-1]), int(parts[-1]), 1
    else:
        return None
    if line < 1 or column < 1:
        return None
    return Path(file_part), line - 1, column - 1


def to_jsonable(value: Any) -> Any:
    """Convert dataclasses, paths and enums into JSON-serializable values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    return value


def echo_json(value: Any) -> None:
    click.echo(json.dumps(to_jsonable(value), indent=2))
