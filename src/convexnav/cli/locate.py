"""convexnav locate command - show the detected Convex project."""

import asyncio

import click

from convexnav.cli.utils import echo_json, get_navigator, to_jsonable
from convexnav.core.progress import status


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def locate_command(ctx: click.Context, as_json: bool) -> None:
    """Show where the Convex backend of the workspace lives."""
    navigator = get_navigator(ctx)
    info = asyncio.run(navigator.locator.locate())

    if info is None:
        if as_json:
            echo_json({"found": False, "workspace_root": navigator.locator.workspace_root})
        else:
            status(f"No Convex project detected in {navigator.locator.workspace_root}", style="info")
        return

    if as_json:
        echo_json({"found": True, **to_jsonable(info)})
        return

    click.echo(f"Convex directory: {info.definitions_root}")
    click.echo(f"Workspace:        {info.workspace_root}")
    click.echo(f"Config file:      {info.config_file_path or '-'}")
    click.echo(f"Generated API:    {info.generated_index_path or '-'}")
