from __future__ import annotations

import json
from typing import Any

import click

from .errors import CLIError


def parse_pairs(
    _ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> dict[str, str]:
    """Click callback turning repeated `key=value` options into a dict."""
    pairs: dict[str, str] = {}
    for raw in values:
        key, sep, value = raw.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected key=value, got {raw!r}", param=param)
        pairs[key.strip()] = value
    return pairs


def parse_json_body(body: str | None) -> Any | None:
    if body is None:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise CLIError.usage(f"--body is not valid JSON: {e.msg}") from e
