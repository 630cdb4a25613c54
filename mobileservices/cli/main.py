from __future__ import annotations

from pathlib import Path

import click
import rich_click

import mobileservices

from .context import CLIContext
from .logging import configure_logging, restore_logging


@click.group(
    name="mobileservices",
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    cls=rich_click.RichGroup,
)
@click.option(
    "--output",
    type=click.Choice(["json", "pretty"]),
    default="json",
    show_default=True,
)
@click.option("-v", "verbose", count=True, help="Increase verbosity (-v, -vv).")
@click.option("--app-url", type=str, default=None, help="Mobile service URL.")
@click.option("--auth-token", type=str, default=None, help="User authentication token.")
@click.option("--installation-id", type=str, default=None, help="Override the installation id.")
@click.option("--timeout", type=float, default=30.0, show_default=True, help="Request timeout.")
@click.option("--log-requests", is_flag=True, help="Log requests and responses (-v to show).")
@click.option("--dotenv/--no-dotenv", default=False, help="Opt-in .env loading.")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=".env",
)
@click.version_option(version=mobileservices.__version__, prog_name="mobileservices")
@click.pass_context
def cli(
    click_ctx: click.Context,
    *,
    output: str,
    verbose: int,
    app_url: str | None,
    auth_token: str | None,
    installation_id: str | None,
    timeout: float,
    log_requests: bool,
    dotenv: bool,
    env_file: str,
) -> None:
    if click_ctx.invoked_subcommand is None:
        # No args: show help; no network calls.
        click.echo(click_ctx.get_help())
        raise click.exceptions.Exit(0)

    click_ctx.obj = CLIContext(
        output=output,  # type: ignore[arg-type]
        verbosity=verbose,
        app_url=app_url,
        auth_token=auth_token,
        installation_id=installation_id,
        timeout=timeout,
        log_requests=log_requests,
        dotenv=dotenv,
        env_file=Path(env_file),
    )
    click_ctx.call_on_close(click_ctx.obj.close)

    previous_logging = configure_logging(verbosity=verbose)
    click_ctx.call_on_close(lambda: restore_logging(previous_logging))


# Register commands
from .commands.invoke_cmd import invoke_cmd as _invoke_cmd  # noqa: E402
from .commands.table_cmds import table_group as _table_group  # noqa: E402
from .commands.version_cmd import version_cmd as _version_cmd  # noqa: E402

cli.add_command(_version_cmd)
cli.add_command(_invoke_cmd)
cli.add_command(_table_group)
