from __future__ import annotations

import platform

import click
import rich_click

import mobileservices
from mobileservices.http.headers import SdkInfo

from ..context import CLIContext
from ..runner import CommandOutput, run_command


@click.command(name="version", cls=rich_click.RichCommand)
@click.pass_obj
def version_cmd(ctx: CLIContext) -> None:
    def fn(_: CLIContext) -> CommandOutput:
        info = SdkInfo()
        data = {
            "version": mobileservices.__version__,
            "apiVersion": info.api_version,
            "userAgent": info.user_agent,
            "pythonVersion": platform.python_version(),
            "platform": platform.platform(),
        }
        return CommandOutput(data=data)

    run_command(ctx, command="version", fn=fn)
