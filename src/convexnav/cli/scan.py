"""convexnav scan command - list Convex functions defined in a file."""

import asyncio
import os
from pathlib import Path

import click
from rich.table import Table

from convexnav.cli.utils import echo_json, get_navigator
from convexnav.core.progress import get_console, status


@click.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def scan_command(ctx: click.Context, file: Path, as_json: bool) -> None:
    """List the Convex functions exported by FILE."""
    navigator = get_navigator(ctx)
    records = asyncio.run(navigator.scanner.scan_file(Path(os.path.abspath(file))))

    if as_json:
        echo_json(records)
        return

    if not records:
        status(f"No Convex functions found in {file}", style="info")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Line", justify="right")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Wrapper")
    table.add_column("Identifier", style="cyan")
    for record in records:
        table.add_row(
            str(record.line + 1),
            record.name,
            record.kind.value,
            record.wrapper_name,
            record.identifier,
        )
    get_console().print(table)
