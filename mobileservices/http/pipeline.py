"""
Service filter pipeline primitives.

Requests and responses are modeled independently of the HTTP transport so that
user-supplied service filters can observe or rewrite them around the network call.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeAlias


@dataclass(slots=True)
class ServiceFilterRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    content: str | bytes | None = None
    params: Sequence[tuple[str, str]] | None = None

    def add_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def contains_header(self, name: str) -> bool:
        return self.headers.get(name) is not None


@dataclass(frozen=True, slots=True)
class ServiceFilterResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    content: str | None = None

    def json(self) -> Any | None:
        if self.content is None or not self.content.strip():
            return None
        return json.loads(self.content)


NextServiceFilter: TypeAlias = Callable[[ServiceFilterRequest], ServiceFilterResponse]
AsyncNextServiceFilter: TypeAlias = Callable[
    [ServiceFilterRequest], Awaitable[ServiceFilterResponse]
]


class ServiceFilter(Protocol):
    def __call__(
        self, req: ServiceFilterRequest, next: NextServiceFilter
    ) -> ServiceFilterResponse: ...


class AsyncServiceFilter(Protocol):
    async def __call__(
        self, req: ServiceFilterRequest, next: AsyncNextServiceFilter
    ) -> ServiceFilterResponse: ...


def compose(filters: Sequence[ServiceFilter], terminal: NextServiceFilter) -> NextServiceFilter:
    """
    Chain `filters` around `terminal`.

    The first filter is outermost: it sees the request first and the response (or
    error) last. Each filter decides whether and how often to call its `next`.
    """
    pipeline = terminal
    for service_filter in reversed(filters):
        next_pipeline = pipeline

        def _wrapped(
            req: ServiceFilterRequest,
            *,
            _f: ServiceFilter = service_filter,
            _n: NextServiceFilter = next_pipeline,
        ) -> ServiceFilterResponse:
            return _f(req, _n)

        pipeline = _wrapped
    return pipeline


def compose_async(
    filters: Sequence[AsyncServiceFilter], terminal: AsyncNextServiceFilter
) -> AsyncNextServiceFilter:
    """Async counterpart of `compose`, with the same ordering."""
    pipeline = terminal
    for service_filter in reversed(filters):
        next_pipeline = pipeline

        async def _wrapped(
            req: ServiceFilterRequest,
            *,
            _f: AsyncServiceFilter = service_filter,
            _n: AsyncNextServiceFilter = next_pipeline,
        ) -> ServiceFilterResponse:
            return await _f(req, _n)

        pipeline = _wrapped
    return pipeline
