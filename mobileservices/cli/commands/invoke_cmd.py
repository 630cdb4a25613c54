from __future__ import annotations

import click
import rich_click

from ..context import CLIContext
from ..options import parse_json_body, parse_pairs
from ..runner import CommandOutput, run_command


@click.command(name="invoke", cls=rich_click.RichCommand)
@click.argument("api_name")
@click.option("-X", "--method", default="POST", show_default=True, help="HTTP method.")
@click.option("--body", default=None, help="JSON request body.")
@click.option(
    "--param", "params", multiple=True, callback=parse_pairs, help="Query parameter key=value."
)
@click.option(
    "--header", "headers", multiple=True, callback=parse_pairs, help="Request header key=value."
)
@click.pass_obj
def invoke_cmd(
    ctx: CLIContext,
    api_name: str,
    method: str,
    body: str | None,
    params: dict[str, str],
    headers: dict[str, str],
) -> None:
    """Invoke a custom API and print its JSON result."""

    def fn(ctx: CLIContext) -> CommandOutput:
        payload = parse_json_body(body)
        client = ctx.get_client()
        data = client.invoke_api(
            api_name,
            payload,
            method=method,
            parameters=params or None,
            headers=headers or None,
        )
        return CommandOutput(data=data)

    run_command(ctx, command="invoke", fn=fn)
