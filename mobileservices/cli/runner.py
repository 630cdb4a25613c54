from __future__ import annotations

import json
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import click
from rich.console import Console

from .context import (
    CLIContext,
    build_result,
    error_info_for_exception,
    exit_code_for_exception,
)
from .results import CommandResult


@dataclass(frozen=True, slots=True)
class CommandOutput:
    data: Any | None = None
    exit_code: int = 0


def emit_result(ctx: CLIContext, result: CommandResult) -> None:
    payload = result.model_dump(by_alias=True, mode="json")
    if ctx.output == "pretty":
        Console(file=sys.stdout, force_terminal=False).print_json(data=payload)
        return
    sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")


CommandFn = Callable[[CLIContext], CommandOutput]


def run_command(ctx: CLIContext, *, command: str, fn: CommandFn) -> None:
    started = time.time()
    try:
        out = fn(ctx)
        result = build_result(ok=True, command=command, started_at=started, data=out.data)
        emit_result(ctx, result)
        raise click.exceptions.Exit(out.exit_code)
    except click.exceptions.Exit:
        raise
    except Exception as exc:
        result = build_result(
            ok=False,
            command=command,
            started_at=started,
            data=None,
            error=error_info_for_exception(exc),
        )
        emit_result(ctx, result)
        raise click.exceptions.Exit(exit_code_for_exception(exc)) from exc
