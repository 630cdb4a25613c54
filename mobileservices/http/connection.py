"""
Request execution against a mobile service.

A connection composes protocol headers onto a request, runs it through the
registered service filters and finally through the terminal step that performs
the HTTP call and classifies the status code.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

import httpx

from ..authentication import ClientContext
from ..exceptions import (
    MobileServiceError,
    MobileServiceHttpError,
    MobileServiceInvalidArgumentError,
    MobileServiceTransportError,
    get_service_response,
)
from .headers import HeaderComposer, SdkInfo
from .pipeline import (
    AsyncNextServiceFilter,
    AsyncServiceFilter,
    NextServiceFilter,
    ServiceFilter,
    ServiceFilterRequest,
    ServiceFilterResponse,
    compose,
    compose_async,
)

logger = logging.getLogger(__name__)

ServiceFilterResponseCallback = Callable[
    [ServiceFilterResponse | None, BaseException | None], None
]


def classify_response(response: ServiceFilterResponse) -> ServiceFilterResponse:
    """
    Return `response` unchanged for 2xx statuses, otherwise raise `MobileServiceHttpError`.

    The error message is the response body when it has any non-whitespace content,
    and `{'code': <status>}` otherwise.
    """
    status = response.status_code
    if 200 <= status < 300:
        return response

    content = response.content
    if content is not None and content.strip():
        message = content
    else:
        message = f"{{'code': {status}}}"
    logger.debug("Request failed with status %d", status)
    raise MobileServiceHttpError(message, response=response)


def _to_service_response(response: httpx.Response) -> ServiceFilterResponse:
    return ServiceFilterResponse(
        status_code=response.status_code,
        headers=dict(response.headers),
        content=response.text,
    )


def _build_request(
    client: httpx.Client | httpx.AsyncClient, request: ServiceFilterRequest
) -> httpx.Request:
    return client.build_request(
        request.method,
        request.url,
        headers=list(request.headers.items()),
        content=request.content,
        params=list(request.params) if request.params else None,
    )


class _BaseConnection:
    def __init__(self, context: ClientContext, *, sdk_info: SdkInfo | None = None):
        self._context = context
        self._headers = HeaderComposer(sdk_info)

    @property
    def sdk_info(self) -> SdkInfo:
        return self._headers.sdk_info

    def _prepare(self, request: ServiceFilterRequest | None) -> ServiceFilterRequest:
        if request is None:
            raise MobileServiceInvalidArgumentError("Request can not be null")
        self._headers.compose(request, self._context)
        logger.debug("Dispatching %s %s", request.method, request.url)
        return request


class Connection(_BaseConnection):
    """Synchronous connection; `start` blocks until the chain completes."""

    def __init__(
        self,
        context: ClientContext,
        http: httpx.Client,
        *,
        filters: Sequence[ServiceFilter] = (),
        sdk_info: SdkInfo | None = None,
    ):
        super().__init__(context, sdk_info=sdk_info)
        self._http = http
        self._filters = tuple(filters)
        self._pipeline: NextServiceFilter = compose(self._filters, self._execute)

    @property
    def filters(self) -> tuple[ServiceFilter, ...]:
        return self._filters

    def _execute(self, request: ServiceFilterRequest) -> ServiceFilterResponse:
        response: ServiceFilterResponse | None = None
        try:
            response = _to_service_response(self._http.send(_build_request(self._http, request)))
            return classify_response(response)
        except MobileServiceError:
            raise
        except Exception as e:
            raise MobileServiceTransportError(
                "Error while processing request.", response=response
            ) from e

    def start(self, request: ServiceFilterRequest) -> ServiceFilterResponse:
        """
        Execute `request` through the filter chain.

        Raises:
            MobileServiceInvalidArgumentError: If `request` is None.
            MobileServiceHttpError: If the service answered with a non-2xx status.
            MobileServiceTransportError: If the request could not be executed.
        """
        return self._pipeline(self._prepare(request))

    def start_with_callback(
        self, request: ServiceFilterRequest, callback: ServiceFilterResponseCallback
    ) -> None:
        """Execute `request` and report `(response, error)` to `callback`."""
        prepared = self._prepare(request)
        try:
            response = self._pipeline(prepared)
        except Exception as e:
            callback(get_service_response(e), e)
            return
        callback(response, None)


class AsyncConnection(_BaseConnection):
    """
    Asynchronous connection.

    `start` validates and composes headers immediately, then schedules the chain on
    the running event loop and returns the task. The task completes exactly once.
    """

    def __init__(
        self,
        context: ClientContext,
        http: httpx.AsyncClient,
        *,
        filters: Sequence[AsyncServiceFilter] = (),
        sdk_info: SdkInfo | None = None,
    ):
        super().__init__(context, sdk_info=sdk_info)
        self._http = http
        self._filters = tuple(filters)
        self._pipeline: AsyncNextServiceFilter = compose_async(self._filters, self._execute)

    @property
    def filters(self) -> tuple[AsyncServiceFilter, ...]:
        return self._filters

    async def _execute(self, request: ServiceFilterRequest) -> ServiceFilterResponse:
        response: ServiceFilterResponse | None = None
        try:
            http_response = await self._http.send(_build_request(self._http, request))
            response = _to_service_response(http_response)
            return classify_response(response)
        except MobileServiceError:
            raise
        except Exception as e:
            raise MobileServiceTransportError(
                "Error while processing request.", response=response
            ) from e

    def start(self, request: ServiceFilterRequest) -> asyncio.Future[ServiceFilterResponse]:
        prepared = self._prepare(request)
        return asyncio.get_running_loop().create_task(self._pipeline(prepared))

    def start_with_callback(
        self, request: ServiceFilterRequest, callback: ServiceFilterResponseCallback
    ) -> asyncio.Future[ServiceFilterResponse]:
        future = self.start(request)

        def _done(f: asyncio.Future[ServiceFilterResponse]) -> None:
            if f.cancelled():
                callback(None, asyncio.CancelledError())
                return
            error = f.exception()
            if error is not None:
                callback(get_service_response(error), error)
            else:
                callback(f.result(), None)

        future.add_done_callback(_done)
        return future
