"""
Main mobile service client.

Owns the client context (current user, installation id), the HTTP client and the
connection, and exposes custom API invocation and table access.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

from .authentication import MobileServiceUser
from .exceptions import EntityParseError, MobileServiceInvalidArgumentError
from .http.connection import AsyncConnection, Connection
from .http.filters import AsyncLoggingFilter, LoggingFilter
from .http.headers import JSON_CONTENT_TYPE, SdkInfo
from .http.pipeline import (
    AsyncServiceFilter,
    ServiceFilter,
    ServiceFilterRequest,
    ServiceFilterResponse,
)
from .installation import InstallationIdStore
from .table import AsyncMobileServiceTable, MobileServiceTable


@dataclass(frozen=True, slots=True)
class ClientConfig:
    app_url: str
    timeout: float = 30.0
    sdk_info: SdkInfo = field(default_factory=SdkInfo)
    log_requests: bool = False
    installation_id: str | None = None
    installation_id_path: Path | None = None
    transport: httpx.BaseTransport | None = None
    async_transport: httpx.AsyncBaseTransport | None = None


def build_request(
    app_url: str,
    method: str,
    path: Sequence[str],
    *,
    body: Any | None = None,
    parameters: Mapping[str, str] | None = None,
    headers: Mapping[str, str] | None = None,
) -> ServiceFilterRequest:
    """Build a JSON request for `<app_url>/<path...>`; path segments are URL-quoted."""
    url = app_url.rstrip("/") + "/" + "/".join(quote(str(segment), safe="") for segment in path)
    request = ServiceFilterRequest(
        method=method.upper(),
        url=url,
        headers=dict(headers or {}),
        params=list(parameters.items()) if parameters else None,
    )
    if body is not None:
        request.content = json.dumps(body)
        if not request.contains_header("Content-Type"):
            request.add_header("Content-Type", JSON_CONTENT_TYPE)
    return request


def _require_name(value: str, what: str) -> str:
    if not value or not value.strip():
        raise MobileServiceInvalidArgumentError(f"{what} cannot be empty")
    return value


def _api_result(response: ServiceFilterResponse) -> Any:
    try:
        return response.json()
    except json.JSONDecodeError as e:
        raise EntityParseError(
            f"API result is not valid JSON: {e.msg}", response=response
        ) from e


class _ClientContextMixin:
    _config: ClientConfig
    _installation: InstallationIdStore

    current_user: MobileServiceUser | None

    @property
    def app_url(self) -> str:
        return self._config.app_url

    @property
    def installation_id(self) -> str:
        if self._config.installation_id is not None:
            return self._config.installation_id
        return self._installation.get()

    def logout(self) -> None:
        self.current_user = None


class MobileServiceClient(_ClientContextMixin):
    """
    Synchronous mobile service client.

    Example:
        ```python
        from mobileservices import MobileServiceClient, MobileServiceUser

        with MobileServiceClient("https://myapp.azure-mobile.net") as client:
            client.current_user = MobileServiceUser("Facebook:123", "token")
            todos = client.table("TodoItem", TodoItem).read()
            result = client.invoke_api("complete_all", {"done": True})
        ```
    """

    def __init__(
        self,
        app_url: str,
        *,
        timeout: float = 30.0,
        sdk_info: SdkInfo | None = None,
        log_requests: bool = False,
        installation_id: str | None = None,
        installation_id_path: Path | None = None,
        filters: Sequence[ServiceFilter] = (),
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            app_url: Base URL of the mobile service
            timeout: Request timeout in seconds
            sdk_info: Protocol metadata override (versions, user-agent components)
            log_requests: Log all requests and responses (credentials redacted)
            installation_id: Fixed installation id; otherwise one is persisted on disk
            installation_id_path: Where the generated installation id is stored
            filters: Service filters, outermost first
            transport: httpx transport override (mainly for tests)
        """
        self._config = ClientConfig(
            app_url=app_url,
            timeout=timeout,
            sdk_info=sdk_info or SdkInfo(),
            log_requests=log_requests,
            installation_id=installation_id,
            installation_id_path=installation_id_path,
            transport=transport,
        )
        self._installation = InstallationIdStore(installation_id_path)
        self._http = httpx.Client(timeout=timeout, transport=transport)
        self.current_user: MobileServiceUser | None = None

        chain: list[ServiceFilter] = [LoggingFilter()] if log_requests else []
        chain.extend(filters)
        self._connection = Connection(
            self, self._http, filters=chain, sdk_info=self._config.sdk_info
        )

    def __enter__(self) -> MobileServiceClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client. Clients derived with `with_filter` share it."""
        self._http.close()

    @property
    def connection(self) -> Connection:
        return self._connection

    def with_filter(self, service_filter: ServiceFilter) -> MobileServiceClient:
        """Return a client whose filter chain ends with `service_filter`."""
        client = copy.copy(self)
        client._connection = Connection(
            client,
            self._http,
            filters=(*self._connection.filters, service_filter),
            sdk_info=self._config.sdk_info,
        )
        return client

    def request(
        self,
        method: str,
        path: Sequence[str],
        *,
        body: Any | None = None,
        parameters: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ServiceFilterResponse:
        req = build_request(
            self.app_url, method, path, body=body, parameters=parameters, headers=headers
        )
        return self._connection.start(req)

    def invoke_api(
        self,
        api_name: str,
        body: Any | None = None,
        *,
        method: str = "POST",
        parameters: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Invoke the custom API `api_name` and return its decoded JSON result."""
        _require_name(api_name, "API name")
        response = self.request(
            method, ["api", api_name], body=body, parameters=parameters, headers=headers
        )
        return _api_result(response)

    def table(self, name: str, entity_type: Any = dict) -> MobileServiceTable[Any]:
        return MobileServiceTable(self, _require_name(name, "Table name"), entity_type)


class AsyncMobileServiceClient(_ClientContextMixin):
    """
    Asynchronous mobile service client.

    Same interface as MobileServiceClient but with async/await support.
    """

    def __init__(
        self,
        app_url: str,
        *,
        timeout: float = 30.0,
        sdk_info: SdkInfo | None = None,
        log_requests: bool = False,
        installation_id: str | None = None,
        installation_id_path: Path | None = None,
        filters: Sequence[AsyncServiceFilter] = (),
        async_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = ClientConfig(
            app_url=app_url,
            timeout=timeout,
            sdk_info=sdk_info or SdkInfo(),
            log_requests=log_requests,
            installation_id=installation_id,
            installation_id_path=installation_id_path,
            async_transport=async_transport,
        )
        self._installation = InstallationIdStore(installation_id_path)
        self._http = httpx.AsyncClient(timeout=timeout, transport=async_transport)
        self.current_user: MobileServiceUser | None = None

        chain: list[AsyncServiceFilter] = [AsyncLoggingFilter()] if log_requests else []
        chain.extend(filters)
        self._connection = AsyncConnection(
            self, self._http, filters=chain, sdk_info=self._config.sdk_info
        )

    async def __aenter__(self) -> AsyncMobileServiceClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()

    @property
    def connection(self) -> AsyncConnection:
        return self._connection

    def with_filter(self, service_filter: AsyncServiceFilter) -> AsyncMobileServiceClient:
        client = copy.copy(self)
        client._connection = AsyncConnection(
            client,
            self._http,
            filters=(*self._connection.filters, service_filter),
            sdk_info=self._config.sdk_info,
        )
        return client

    async def request(
        self,
        method: str,
        path: Sequence[str],
        *,
        body: Any | None = None,
        parameters: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ServiceFilterResponse:
        req = build_request(
            self.app_url, method, path, body=body, parameters=parameters, headers=headers
        )
        return await self._connection.start(req)

    async def invoke_api(
        self,
        api_name: str,
        body: Any | None = None,
        *,
        method: str = "POST",
        parameters: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        _require_name(api_name, "API name")
        response = await self.request(
            method, ["api", api_name], body=body, parameters=parameters, headers=headers
        )
        return _api_result(response)

    def table(self, name: str, entity_type: Any = dict) -> AsyncMobileServiceTable[Any]:
        return AsyncMobileServiceTable(self, _require_name(name, "Table name"), entity_type)
