"""convexnav usages command - find client code that calls a Convex function."""

import asyncio
import os
from pathlib import Path

import click

from convexnav.cli.utils import echo_json, get_navigator, parse_location
from convexnav.core.errors import ResolverError
from convexnav.core.progress import pluralize, spinner, status
from convexnav.resolver.definitions import DefinitionRecord
from convexnav.resolver.navigator import Navigator
from convexnav.resolver.paths import decode
from convexnav.resolver.usages import SearchResult


async def _search_target(
    navigator: Navigator, target: str
) -> tuple[DefinitionRecord | None, SearchResult | None, str | None]:
    """Resolve TARGET to a search; the third item is a message when nothing was searched."""
    location = parse_location(target)
    if location is not None:
        relative, line, column = location
        # Relative to --workspace, not the shell's cwd
        file_path = Path(os.path.abspath(navigator.locator.workspace_root / relative))
        if file_path.is_file():
            definition = await navigator.definition_at(file_path, line, column)
            if definition is None:
                return None, None, ResolverError.definition_not_found(str(file_path), line).message
            return definition, await navigator.search_definition(definition), None

    decoded = decode(target)
    if decoded is None:
        return None, None, ResolverError.invalid_identifier(target).message
    return None, await navigator.usages.search(target, decoded.function_name), None


@click.command()
@click.argument("target")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def usages_command(ctx: click.Context, target: str, as_json: bool) -> None:
    """Find usages of a Convex function.

    TARGET is an identifier (api.domains.contacts.createContact) or a
    FILE:LINE[:COL] position inside a Convex function (1-indexed).
    """
    navigator = get_navigator(ctx)

    with spinner(f"Finding usages of {target}"):
        definition, result, message = asyncio.run(_search_target(navigator, target))

    if result is None:
        if as_json:
            echo_json({"found": False, "target": target, "message": message})
        else:
            status(message or f"Nothing to search for {target}", style="info")
        return

    if as_json:
        echo_json({"found": True, "definition": definition, "result": result})
        return

    if not result.usages:
        status(f"No usages found for {result.function_name}", style="info")
        return

    for usage in result.usages:
        hook = f" [{usage.access_pattern}]" if usage.access_pattern else ""
        click.echo(f"{usage.file_path}:{usage.line + 1}:{usage.column + 1}{hook}  {usage.line_text}")
    status(
        f"Found {pluralize(len(result.usages), 'usage')} of {result.function_name} ({result.elapsed_ms}ms)",
        style="success",
    )
