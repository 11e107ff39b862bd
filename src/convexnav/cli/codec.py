"""convexnav encode/decode/resolve commands - identifier <-> file conversions."""

import asyncio
import os
from pathlib import Path

import click

from convexnav.cli.utils import echo_json, get_navigator
from convexnav.core.errors import ResolverError
from convexnav.core.progress import status
from convexnav.resolver.navigator import Navigator
from convexnav.resolver.paths import Namespace, decode, encode


@click.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.argument("name")
@click.option("--internal", is_flag=True, help="Use the internal namespace")
@click.pass_context
def encode_command(ctx: click.Context, file: Path, name: str, internal: bool) -> None:
    """Print the identifier of function NAME exported from FILE."""
    navigator = get_navigator(ctx)
    info = asyncio.run(navigator.locator.locate())
    if info is None:
        status(ResolverError.project_not_found(str(navigator.locator.workspace_root)).message)
        return

    namespace = Namespace.INTERNAL if internal else Namespace.PUBLIC
    identifier = encode(Path(os.path.abspath(file)), name, info.definitions_root, namespace)
    if identifier is None:
        status(f"{file} has no identifier under {info.definitions_root}", style="info")
        return
    click.echo(identifier)


@click.command()
@click.argument("identifier")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def decode_command(identifier: str, as_json: bool) -> None:
    """Split IDENTIFIER into namespace, module path and function name."""
    decoded = decode(identifier)
    if decoded is None:
        if as_json:
            echo_json({"valid": False, "identifier": identifier})
        else:
            status(ResolverError.invalid_identifier(identifier).message)
        return

    if as_json:
        echo_json({"valid": True, "identifier": identifier, "decoded": decoded})
        return
    click.echo(f"Namespace: {decoded.namespace.value}")
    click.echo(f"Module:    {decoded.module_path}")
    click.echo(f"Function:  {decoded.function_name}")


async def _not_found_message(navigator: Navigator, identifier: str) -> str:
    decoded = decode(identifier)
    if decoded is None:
        return ResolverError.invalid_identifier(identifier).message
    if await navigator.locator.locate() is None:
        return ResolverError.project_not_found(str(navigator.locator.workspace_root)).message
    if await navigator.resolve(identifier) is None:
        return ResolverError.module_not_found(identifier, decoded.module_path).message
    return f"No definition found for {identifier}"


@click.command()
@click.argument("identifier")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def resolve_command(ctx: click.Context, identifier: str, as_json: bool) -> None:
    """Print the file and line where IDENTIFIER is defined."""
    navigator = get_navigator(ctx)
    record = asyncio.run(navigator.goto_definition(identifier))

    if record is None:
        message = asyncio.run(_not_found_message(navigator, identifier))
        if as_json:
            echo_json({"found": False, "identifier": identifier, "message": message})
        else:
            status(message, style="info")
        return

    if as_json:
        echo_json({"found": True, "definition": record})
        return
    click.echo(f"{record.file_path}:{record.line + 1}:{record.name_column + 1}")
