from __future__ import annotations

import click
import rich_click

from ..context import CLIContext
from ..options import parse_pairs
from ..runner import CommandOutput, run_command


@click.group(name="table", cls=rich_click.RichGroup)
def table_group() -> None:
    """Table commands."""


@table_group.command(name="read", cls=rich_click.RichCommand)
@click.argument("name")
@click.option(
    "--param",
    "params",
    multiple=True,
    callback=parse_pairs,
    help="Query option key=value, e.g. '$top=10'.",
)
@click.pass_obj
def table_read(ctx: CLIContext, name: str, params: dict[str, str]) -> None:
    """Query rows of a table."""

    def fn(ctx: CLIContext) -> CommandOutput:
        rows = ctx.get_client().table(name).read(params or None)
        return CommandOutput(data=rows)

    run_command(ctx, command="table read", fn=fn)


@table_group.command(name="get", cls=rich_click.RichCommand)
@click.argument("name")
@click.argument("item_id")
@click.pass_obj
def table_get(ctx: CLIContext, name: str, item_id: str) -> None:
    """Fetch a single row by id."""

    def fn(ctx: CLIContext) -> CommandOutput:
        return CommandOutput(data=ctx.get_client().table(name).lookup(item_id))

    run_command(ctx, command="table get", fn=fn)
