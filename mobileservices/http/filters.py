"""
Built-in service filters.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping

from ..exceptions import MobileServiceHttpError, MobileServiceTransportError
from .headers import X_ZUMO_AUTH_HEADER
from .pipeline import (
    AsyncNextServiceFilter,
    NextServiceFilter,
    ServiceFilterRequest,
    ServiceFilterResponse,
)

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
SENSITIVE_HEADERS = frozenset({X_ZUMO_AUTH_HEADER.lower(), "authorization"})


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        name: (REDACTED if name.lower() in SENSITIVE_HEADERS else value)
        for name, value in headers.items()
    }


class _RequestLogger:
    def _log_request(self, req: ServiceFilterRequest) -> float:
        logger.info("-> %s %s headers=%s", req.method, req.url, redact_headers(req.headers))
        return time.monotonic()

    def _log_response(self, req: ServiceFilterRequest, status: int, started: float) -> None:
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info("<- %d %s %s (%.1fms)", status, req.method, req.url, elapsed_ms)

    def _log_failure(self, req: ServiceFilterRequest, error: Exception, started: float) -> None:
        elapsed_ms = (time.monotonic() - started) * 1000
        cause = error.__cause__ or error
        logger.info("<- failed %s %s: %r (%.1fms)", req.method, req.url, cause, elapsed_ms)


class LoggingFilter(_RequestLogger):
    """Logs each request and its outcome at INFO, with credentials redacted."""

    def __call__(self, req: ServiceFilterRequest, next: NextServiceFilter) -> ServiceFilterResponse:
        started = self._log_request(req)
        try:
            response = next(req)
        except MobileServiceHttpError as e:
            self._log_response(req, e.status_code, started)
            raise
        except MobileServiceTransportError as e:
            self._log_failure(req, e, started)
            raise
        self._log_response(req, response.status_code, started)
        return response


class AsyncLoggingFilter(_RequestLogger):
    async def __call__(
        self, req: ServiceFilterRequest, next: AsyncNextServiceFilter
    ) -> ServiceFilterResponse:
        started = self._log_request(req)
        try:
            response = await next(req)
        except MobileServiceHttpError as e:
            self._log_response(req, e.status_code, started)
            raise
        except MobileServiceTransportError as e:
            self._log_failure(req, e, started)
            raise
        self._log_response(req, response.status_code, started)
        return response
