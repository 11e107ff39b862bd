"""convexnav init command - write a starter .convexnav/config.yaml."""

from pathlib import Path

import click

from convexnav.config.user_config import UserConfig, user_config_path, write_user_config
from convexnav.core.progress import status


@click.command()
@click.option("--convex-path", default="", help="Convex directory relative to the workspace root")
@click.option("--frontend-path", "frontend_paths", multiple=True, help="Directory to search for usages")
@click.option("--wrapper", "custom_wrappers", multiple=True, help="Custom wrapper name (repeatable)")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init_command(
    ctx: click.Context,
    convex_path: str,
    frontend_paths: tuple[str, ...],
    custom_wrappers: tuple[str, ...],
    force: bool,
) -> None:
    """Create .convexnav/config.yaml in the workspace."""
    workspace: Path = ctx.obj["workspace"]
    config_path = user_config_path(workspace)

    if config_path.exists() and not force:
        status(f"Already initialized: {config_path}", style="info")
        status("Use --force to overwrite", style="info")
        return

    try:
        config = UserConfig(
            convex_path=convex_path,
            frontend_paths=list(frontend_paths),
            custom_wrappers=list(custom_wrappers),
        )
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    write_user_config(config_path, config)
    status(f"Wrote {config_path}", style="success")
