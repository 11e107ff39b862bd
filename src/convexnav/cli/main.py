"""Convex Navigator CLI - convexnav command."""

import os
from pathlib import Path

import click

from convexnav.cli.codec import decode_command, encode_command, resolve_command
from convexnav.cli.hover import hover_command
from convexnav.cli.init import init_command
from convexnav.cli.locate import locate_command
from convexnav.cli.scan import scan_command
from convexnav.cli.usages import usages_command
from convexnav.core.logging import configure_logging, set_request_id


@click.group()
@click.version_option(version="0.1.0", prog_name="convexnav")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "-w",
    "--workspace",
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace root (default: current directory)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, workspace: Path) -> None:
    """Convex Navigator - jump between Convex functions and their api.* usages."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["workspace"] = Path(os.path.abspath(workspace))
    configure_logging(level="DEBUG" if verbose else "WARNING")
    set_request_id()


cli.add_command(init_command, name="init")
cli.add_command(locate_command, name="locate")
cli.add_command(scan_command, name="scan")
cli.add_command(encode_command, name="encode")
cli.add_command(decode_command, name="decode")
cli.add_command(resolve_command, name="resolve")
cli.add_command(usages_command, name="usages")
cli.add_command(hover_command, name="hover")


if __name__ == "__main__":
    cli()
