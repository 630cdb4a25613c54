from __future__ import annotations

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv

from mobileservices import MobileServiceClient, MobileServiceUser
from mobileservices.exceptions import (
    MobileServiceError,
    MobileServiceHttpError,
    MobileServiceTransportError,
)

from .errors import CLIError
from .logging import set_redaction_secret
from .results import CommandMeta, CommandResult, ErrorInfo

OutputFormat = Literal["json", "pretty"]

APP_URL_ENV = "MOBILE_SERVICE_APP_URL"
AUTH_TOKEN_ENV = "MOBILE_SERVICE_AUTH_TOKEN"
INSTALLATION_ID_ENV = "MOBILE_SERVICE_INSTALLATION_ID"

CLI_USER_ID = "cli"


@dataclass
class CLIContext:
    output: OutputFormat
    verbosity: int
    app_url: str | None
    auth_token: str | None
    installation_id: str | None
    timeout: float
    log_requests: bool
    dotenv: bool
    env_file: Path

    _client: MobileServiceClient | None = None

    def load_dotenv_if_requested(self) -> None:
        if not self.dotenv:
            return
        load_dotenv(dotenv_path=self.env_file, override=False)

    def _resolve(self, value: str | None, env: str) -> str | None:
        if value:
            return value
        return os.getenv(env, "").strip() or None

    def get_client(self) -> MobileServiceClient:
        if self._client is not None:
            return self._client

        self.load_dotenv_if_requested()
        app_url = self._resolve(self.app_url, APP_URL_ENV)
        if app_url is None:
            raise CLIError.usage(f"Missing app URL: pass --app-url or set {APP_URL_ENV}.")

        client = MobileServiceClient(
            app_url,
            timeout=self.timeout,
            log_requests=self.log_requests,
            installation_id=self._resolve(self.installation_id, INSTALLATION_ID_ENV),
        )
        token = self._resolve(self.auth_token, AUTH_TOKEN_ENV)
        if token:
            set_redaction_secret(token)
            client.current_user = MobileServiceUser(CLI_USER_ID, token)
        self._client = client
        return client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


def exit_code_for_exception(exc: Exception) -> int:
    if isinstance(exc, CLIError):
        return exc.exit_code
    return 1


def error_info_for_exception(exc: Exception) -> ErrorInfo:
    if isinstance(exc, CLIError):
        return ErrorInfo(type=exc.error_type, message=exc.message, details=exc.details)
    if isinstance(exc, MobileServiceHttpError):
        return ErrorInfo(
            type="http_error",
            message=exc.message,
            details={"statusCode": exc.status_code},
        )
    if isinstance(exc, MobileServiceTransportError):
        cause = exc.__cause__
        return ErrorInfo(
            type="transport_error",
            message=exc.message,
            details={"cause": str(cause)} if cause is not None else None,
        )
    if isinstance(exc, MobileServiceError):
        return ErrorInfo(type=exc.__class__.__name__, message=exc.message)
    return ErrorInfo(type=exc.__class__.__name__, message=str(exc))


def build_result(
    *,
    ok: bool,
    command: str,
    started_at: float,
    data: Any | None,
    error: ErrorInfo | None = None,
) -> CommandResult:
    duration_ms = int(max(0.0, (time.time() - started_at) * 1000))
    return CommandResult(
        ok=ok,
        command=command,
        data=data,
        meta=CommandMeta(duration_ms=duration_ms),
        error=error,
    )
