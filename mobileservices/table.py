"""
Table operations.

Rows are read from and written to `/tables/<name>`. Results are converted into the
table's entity type with `parse_results`, so the service's `id` lands on whatever
field the entity type uses as its identifier.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .entities import SERVICE_ID_PROPERTY, parse_results, serialize_entity
from .exceptions import MobileServiceInvalidArgumentError

if TYPE_CHECKING:
    from .client import AsyncMobileServiceClient, MobileServiceClient
    from .http.pipeline import ServiceFilterResponse

E = TypeVar("E")

TABLES_ROOT = "tables"


def _item_id(body: Mapping[str, Any]) -> Any:
    item_id = body.get(SERVICE_ID_PROPERTY)
    if item_id is None:
        raise MobileServiceInvalidArgumentError("Item must have an id to be updated")
    return item_id


class _TableBase(Generic[E]):
    def __init__(self, name: str, entity_type: Any):
        self.name = name
        self.entity_type = entity_type

    def _path(self, *extra: Any) -> list[str]:
        return [TABLES_ROOT, self.name, *(str(part) for part in extra)]

    def _one(self, response: ServiceFilterResponse) -> E:
        return parse_results(response.content or "", self.entity_type)[0]

    def _many(self, response: ServiceFilterResponse) -> list[E]:
        return parse_results(response.content or "", self.entity_type)


class MobileServiceTable(_TableBase[E]):
    """
    Synchronous access to a single table.

    Uses `POST` for inserts and `PATCH` for updates, as the service expects.
    """

    def __init__(self, client: MobileServiceClient, name: str, entity_type: Any):
        super().__init__(name, entity_type)
        self._client = client

    def lookup(self, item_id: Any) -> E:
        """Fetch a single row by id."""
        return self._one(self._client.request("GET", self._path(item_id)))

    def read(self, parameters: Mapping[str, str] | None = None) -> list[E]:
        """
        Query the table.

        Args:
            parameters: Raw OData query options, e.g. `{"$filter": "complete eq false"}`
        """
        return self._many(self._client.request("GET", self._path(), parameters=parameters))

    def insert(self, item: E | Mapping[str, Any]) -> E:
        body = serialize_entity(item)
        return self._one(self._client.request("POST", self._path(), body=body))

    def update(self, item: E | Mapping[str, Any]) -> E:
        body = serialize_entity(item)
        item_id = _item_id(body)
        return self._one(self._client.request("PATCH", self._path(item_id), body=body))

    def delete(self, item_id: Any) -> None:
        self._client.request("DELETE", self._path(item_id))


class AsyncMobileServiceTable(_TableBase[E]):
    def __init__(self, client: AsyncMobileServiceClient, name: str, entity_type: Any):
        super().__init__(name, entity_type)
        self._client = client

    async def lookup(self, item_id: Any) -> E:
        return self._one(await self._client.request("GET", self._path(item_id)))

    async def read(self, parameters: Mapping[str, str] | None = None) -> list[E]:
        return self._many(await self._client.request("GET", self._path(), parameters=parameters))

    async def insert(self, item: E | Mapping[str, Any]) -> E:
        body = serialize_entity(item)
        return self._one(await self._client.request("POST", self._path(), body=body))

    async def update(self, item: E | Mapping[str, Any]) -> E:
        body = serialize_entity(item)
        item_id = _item_id(body)
        return self._one(await self._client.request("PATCH", self._path(item_id), body=body))

    async def delete(self, item_id: Any) -> None:
        await self._client.request("DELETE", self._path(item_id))
