from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "mobileservices"
REDACTED = "[REDACTED]"

_VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}


class RedactionFilter(logging.Filter):
    """Replaces known secrets in formatted log messages."""

    def __init__(self) -> None:
        super().__init__()
        self.secrets: set[str] = set()

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        for secret in self.secrets:
            message = message.replace(secret, REDACTED)
        record.msg = message
        record.args = None
        return True


_redaction = RedactionFilter()


def set_redaction_secret(secret: str | None) -> None:
    if secret:
        _redaction.secrets.add(secret)


@dataclass(frozen=True, slots=True)
class LoggingState:
    level: int
    propagate: bool
    handlers: tuple[logging.Handler, ...]


def configure_logging(*, verbosity: int) -> LoggingState:
    """Route SDK logs to stderr; `-v` enables INFO, `-vv` DEBUG."""
    logger = logging.getLogger(LOGGER_NAME)
    previous = LoggingState(
        level=logger.level, propagate=logger.propagate, handlers=tuple(logger.handlers)
    )

    handler = RichHandler(
        console=Console(file=sys.stderr, force_terminal=False),
        show_time=False,
        show_path=False,
    )
    handler.addFilter(_redaction)
    logger.handlers = [handler]
    logger.setLevel(_VERBOSITY_LEVELS.get(verbosity, logging.DEBUG))
    logger.propagate = False
    return previous


def restore_logging(state: LoggingState) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers = list(state.handlers)
    logger.setLevel(state.level)
    logger.propagate = state.propagate
