"""convexnav hover command - describe the function an api.* reference points at."""

import asyncio
import os
from pathlib import Path

import click

from convexnav.cli.utils import echo_json, get_navigator
from convexnav.core.progress import status


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=click.IntRange(min=1))
@click.argument("column", type=click.IntRange(min=1))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def hover_command(ctx: click.Context, file: Path, line: int, column: int, as_json: bool) -> None:
    """Describe the Convex function referenced at FILE:LINE:COLUMN (1-indexed)."""
    navigator = get_navigator(ctx)
    info = asyncio.run(navigator.hover(Path(os.path.abspath(file)), line - 1, column - 1))

    if info is None:
        if as_json:
            echo_json({"found": False})
        else:
            status(f"No Convex function reference at {file}:{line}:{column}", style="info")
        return

    if as_json:
        echo_json({"found": True, "hover": info})
        return

    heading = info.function_name
    if info.kind_label:
        heading += f" ({info.kind_label})"
    click.echo(heading)
    if info.wrapper:
        click.echo(f"  Wrapper: {info.wrapper}")
    if info.args_preview:
        click.echo(f"  Args:    {info.args_preview}")
    click.echo(f"  {info.relative_path}:{info.line_number}")
