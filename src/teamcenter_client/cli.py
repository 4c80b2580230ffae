"""Teamcenter client CLI.

Every invocation logs in, runs one operation and logs out again.

Usage:
    teamcenter-client --mock -u admin -p admin login      # Check credentials
    teamcenter-client search "ABC"                        # Free-text search
    teamcenter-client search "ABC" --type Part --limit 5
    teamcenter-client recent                              # Last created items
    teamcenter-client owned                               # Items owned by me

    teamcenter-client item get <uid>                      # Load one item
    teamcenter-client item types                          # List item types
    teamcenter-client item create Item "Bracket" -P key=value
    teamcenter-client item update <uid> -P object_desc="New text"

    teamcenter-client favorites
    teamcenter-client session-info
    teamcenter-client whoami                              # Logged user properties

Credentials come from --user/--password or TEAMCENTER_USER/TEAMCENTER_PASSWORD.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import click
from pydantic import BaseModel, ValidationError

from .config import ClientConfig, load_config
from .service import TeamcenterService, create_teamcenter_service
from .types import CommandResult, DomainObject

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"

Action = Callable[[TeamcenterService], Awaitable[CommandResult[Any]]]


@dataclass
class CliContext:
    config: ClientConfig
    user: str | None
    password: str | None


def truncate(text: str | None, max_len: int = 40) -> str:
    """Truncate text for display."""
    if not text:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def to_jsonable(value: Any) -> Any:
    """Convert pydantic models (and lists of them) into plain JSON data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [to_jsonable(v) for v in value]
    return value


def parse_properties(values: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated ``key=value`` options."""
    properties: dict[str, str] = {}
    for entry in values:
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected key=value, got: {entry}", param_hint="--prop")
        properties[key.strip()] = value
    return properties


format_option = click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)

prop_option = click.option(
    "--prop",
    "-P",
    "props",
    multiple=True,
    help="Property as key=value (repeatable)",
)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a YAML config file",
)
@click.option("--endpoint", help="Teamcenter JSON REST endpoint")
@click.option("--mock", "mock_mode", is_flag=True, default=None, help="Use the built-in mock server")
@click.option("--user", "-u", envvar="TEAMCENTER_USER", help="Teamcenter user name")
@click.option("--password", "-p", envvar="TEAMCENTER_PASSWORD", help="Teamcenter password")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    endpoint: str | None,
    mock_mode: bool | None,
    user: str | None,
    password: str | None,
    verbose: bool,
) -> None:
    """Teamcenter client - query and edit PLM items from the command line."""
    # Logs go to stderr; results go to stdout
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(config_path, endpoint=endpoint, mock_mode=mock_mode or None)
    except (ValueError, ValidationError) as e:
        raise click.UsageError(f"Invalid configuration: {e}") from e

    ctx.obj = CliContext(config=config, user=user, password=password)


def _execute(obj: CliContext, action: Action | None) -> Any:
    """Log in, run ``action``, log out; exit 1 on any error result."""

    async def run() -> CommandResult[Any]:
        async with create_teamcenter_service(obj.config) as tc:
            login = await tc.login(obj.user or "", obj.password or "")
            if not login.ok or action is None:
                if login.ok:
                    await tc.logout()
                return login
            try:
                return await action(tc)
            finally:
                await tc.logout()

    result = asyncio.run(run())
    if result.error is not None:
        click.echo(f"Error [{result.error.code}]: {result.error.message}", err=True)
        sys.exit(1)
    return result.data


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(to_jsonable(data), indent=2, ensure_ascii=False, default=str))


def _echo_objects(objects: list[DomainObject], output_format: str) -> None:
    if output_format == FORMAT_JSON:
        _echo_json(objects)
        return

    if not objects:
        click.echo("No items found.")
        return

    click.echo(f"{'ID':<20} {'Name':<30} {'Type':<12} {'Rev':<4} {'Status':<10} {'Modified':<12}")
    click.echo("-" * 93)
    for obj in objects:
        click.echo(
            f"{truncate(obj.id, 20):<20} {truncate(obj.name, 30):<30} {truncate(obj.type, 12):<12} "
            f"{obj.revision[:4]:<4} {obj.status[:10]:<10} {obj.modified_date[:12]:<12}"
        )
    click.echo(f"\nTotal: {len(objects)} item(s)")


# =============================================================================
# Session Commands
# =============================================================================


@main.command("login")
@format_option
@click.pass_obj
def login_cmd(obj: CliContext, output_format: str) -> None:
    """Check that the credentials are accepted."""
    session = _execute(obj, None)

    if output_format == FORMAT_JSON:
        _echo_json(session)
        return

    click.echo(f"Logged in as {session.user_name or session.user_id}")
    if session.soa_version:
        click.echo(f"  Server version: {session.soa_version}")
    if session.group_name or session.role_name:
        click.echo(f"  Group/Role:     {session.group_name or '-'} / {session.role_name or '-'}")


@main.command("session-info")
@click.pass_obj
def session_info_cmd(obj: CliContext) -> None:
    """Show the server's view of the current session."""
    _echo_json(_execute(obj, lambda tc: tc.get_session_info()))


@main.command("favorites")
@click.pass_obj
def favorites_cmd(obj: CliContext) -> None:
    """List the user's favorites."""
    _echo_json(_execute(obj, lambda tc: tc.get_favorites()))


@main.command("whoami")
@click.option("--attr", "-a", "attributes", multiple=True, help="User attribute to fetch (repeatable)")
@click.pass_obj
def whoami_cmd(obj: CliContext, attributes: tuple[str, ...]) -> None:
    """Show properties of the logged-in user."""
    _echo_json(_execute(obj, lambda tc: tc.get_logged_user_properties(list(attributes) or None)))


# =============================================================================
# Search Commands
# =============================================================================


@main.command("search")
@click.argument("query")
@click.option("--type", "-t", "item_type", help="Filter by item type")
@click.option("--limit", "-n", type=int, help="Maximum results (1-100)")
@format_option
@click.pass_obj
def search_cmd(
    obj: CliContext,
    query: str,
    item_type: str | None,
    limit: int | None,
    output_format: str,
) -> None:
    """Search items by name.

    Examples:

        teamcenter-client search "ABC*"

        teamcenter-client search Bracket --type Part --format json
    """
    objects = _execute(obj, lambda tc: tc.search_items(query, item_type, limit))
    _echo_objects(objects, output_format)


@main.command("recent")
@click.option("--limit", "-n", type=int, help="Maximum results (1-100)")
@format_option
@click.pass_obj
def recent_cmd(obj: CliContext, limit: int | None, output_format: str) -> None:
    """List the most recently created items."""
    _echo_objects(_execute(obj, lambda tc: tc.get_last_created_items(limit)), output_format)


@main.command("owned")
@format_option
@click.pass_obj
def owned_cmd(obj: CliContext, output_format: str) -> None:
    """List items owned by the logged-in user."""
    _echo_objects(_execute(obj, lambda tc: tc.get_user_owned_items()), output_format)


# =============================================================================
# Item Commands
# =============================================================================


@main.group()
def item() -> None:
    """Load, create and update items."""


@item.command("get")
@click.argument("item_id")
@click.pass_obj
def item_get(obj: CliContext, item_id: str) -> None:
    """Load an item by uid."""
    _echo_json(_execute(obj, lambda tc: tc.get_item_by_id(item_id)))


@item.command("types")
@click.pass_obj
def item_types(obj: CliContext) -> None:
    """List item types."""
    _echo_json(_execute(obj, lambda tc: tc.get_item_types()))


@item.command("create")
@click.argument("item_type")
@click.argument("name")
@click.option("--description", "-d", default="", help="Item description")
@prop_option
@click.pass_obj
def item_create(obj: CliContext, item_type: str, name: str, description: str, props: tuple[str, ...]) -> None:
    """Create an item of ITEM_TYPE named NAME."""
    properties = parse_properties(props)
    _echo_json(_execute(obj, lambda tc: tc.create_item(item_type, name, description, properties)))


@item.command("update")
@click.argument("item_id")
@prop_option
@click.pass_obj
def item_update(obj: CliContext, item_id: str, props: tuple[str, ...]) -> None:
    """Set properties on an item."""
    properties = parse_properties(props)
    _echo_json(_execute(obj, lambda tc: tc.update_item(item_id, properties)))


if __name__ == "__main__":
    main()
