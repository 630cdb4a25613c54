from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

import httpx
import pytest
from pydantic import BaseModel

from mobileservices import (
    AsyncMobileServiceClient,
    IdentifierField,
    InstallationIdStore,
    MobileServiceClient,
    MobileServiceUser,
    register_entity_type,
)
from mobileservices.exceptions import (
    EntityParseError,
    MobileServiceHttpError,
    MobileServiceInvalidArgumentError,
    MobileServiceTransportError,
)
from mobileservices.http.pipeline import (
    AsyncNextServiceFilter,
    NextServiceFilter,
    ServiceFilterRequest,
    ServiceFilterResponse,
)

APP_URL = "https://app.example"


class TodoItem(BaseModel):
    key: int | None = IdentifierField(None)
    text: str
    complete: bool = False


@dataclass
class Note:
    key: int | None
    text: str


register_entity_type(Note, fields={"key": None, "text": None}, identifier="key")


def _client(handler, **kwargs) -> MobileServiceClient:
    kwargs.setdefault("installation_id", "install-1")
    return MobileServiceClient(APP_URL, transport=httpx.MockTransport(handler), **kwargs)


def test_invoke_api_sends_json_and_returns_result() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"greeting": "hi"}, request=request)

    with _client(handler) as client:
        client.current_user = MobileServiceUser("Facebook:1", "tok")
        result = client.invoke_api("hello", {"name": "x"}, parameters={"lang": "en"})

    assert result == {"greeting": "hi"}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/api/hello"
    assert request.url.params["lang"] == "en"
    assert json.loads(request.content) == {"name": "x"}
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["X-ZUMO-AUTH"] == "tok"
    assert request.headers["X-ZUMO-INSTALLATION-ID"] == "install-1"


def test_invoke_api_rejects_non_json_result() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="plain text ok", request=request)

    with _client(handler) as client, pytest.raises(EntityParseError) as excinfo:
        client.invoke_api("x")

    assert excinfo.value.response is not None
    assert excinfo.value.response.status_code == 200
    assert excinfo.value.response.content == "plain text ok"


def test_invoke_api_keeps_caller_accept_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204, request=request)

    with _client(handler) as client:
        result = client.invoke_api("ping", method="get", headers={"Accept": "text/plain"})

    assert result is None
    assert seen[0].method == "GET"
    assert seen[0].headers["Accept"] == "text/plain"
    assert seen[0].headers["Accept-Encoding"] == "gzip"
    assert "X-ZUMO-AUTH" not in seen[0].headers


def test_invoke_api_requires_name() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        pytest.fail("no network call expected")

    with _client(handler) as client, pytest.raises(MobileServiceInvalidArgumentError):
        client.invoke_api("  ")


def test_logout_clears_auth_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={}, request=request)

    with _client(handler) as client:
        client.current_user = MobileServiceUser("u", "tok")
        client.invoke_api("a")
        client.logout()
        client.invoke_api("a")

    assert seen[0].headers["X-ZUMO-AUTH"] == "tok"
    assert "X-ZUMO-AUTH" not in seen[1].headers


def test_with_filter_returns_new_client_and_keeps_registration_order() -> None:
    events: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        events.append("network:" + request.headers.get("X-Order", ""))
        return httpx.Response(200, json=[], request=request)

    def _filter(name: str):
        def _f(req: ServiceFilterRequest, next: NextServiceFilter) -> ServiceFilterResponse:
            events.append(f"{name}:down")
            req.add_header("X-Order", req.headers.get("X-Order", "") + name)
            response = next(req)
            events.append(f"{name}:up")
            return response

        return _f

    base = _client(handler)
    filtered = base.with_filter(_filter("a")).with_filter(_filter("b"))
    try:
        filtered.table("todo").read()
        assert events == ["a:down", "b:down", "network:ab", "b:up", "a:up"]

        events.clear()
        base.table("todo").read()
        assert events == ["network:"]
    finally:
        base.close()


def test_table_read_maps_ids_onto_entity_type() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/tables/TodoItem"
        assert request.url.params["$filter"] == "complete eq false"
        return httpx.Response(
            200,
            json=[{"id": 1, "text": "a"}, {"id": 2, "text": "b", "complete": True}],
            request=request,
        )

    with _client(handler) as client:
        items = client.table("TodoItem", TodoItem).read({"$filter": "complete eq false"})

    assert [(i.key, i.text, i.complete) for i in items] == [(1, "a", False), (2, "b", True)]


def test_table_lookup_insert_update_delete() -> None:
    calls: list[tuple[str, str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        calls.append((request.method, request.url.path, body))
        if request.method == "GET":
            return httpx.Response(200, json={"id": 7, "text": "got"}, request=request)
        if request.method == "POST":
            return httpx.Response(201, json={**body, "id": 8}, request=request)
        if request.method == "PATCH":
            return httpx.Response(200, json=body, request=request)
        return httpx.Response(204, request=request)

    with _client(handler) as client:
        table = client.table("TodoItem", TodoItem)
        looked_up = table.lookup(7)
        inserted = table.insert(TodoItem(text="new"))
        updated = table.update(TodoItem(key=8, text="changed", complete=True))
        table.delete(8)

    assert looked_up.key == 7 and looked_up.text == "got"
    assert inserted.key == 8
    assert updated.key == 8 and updated.complete is True
    assert calls == [
        ("GET", "/tables/TodoItem/7", None),
        ("POST", "/tables/TodoItem", {"text": "new", "complete": False}),
        ("PATCH", "/tables/TodoItem/8", {"id": 8, "text": "changed", "complete": True}),
        ("DELETE", "/tables/TodoItem/8", None),
    ]


def test_table_update_requires_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        pytest.fail("no network call expected")

    with _client(handler) as client, pytest.raises(MobileServiceInvalidArgumentError):
        client.table("TodoItem", TodoItem).update(TodoItem(text="no id"))


def test_table_errors_surface_http_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "missing"}, request=request)

    with _client(handler) as client, pytest.raises(MobileServiceHttpError) as excinfo:
        client.table("TodoItem", TodoItem).lookup(99)
    assert excinfo.value.status_code == 404
    assert json.loads(excinfo.value.message) == {"error": "missing"}


def test_log_requests_redacts_auth_token(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={}, request=request)

    caplog.set_level(logging.INFO, logger="mobileservices")
    with _client(handler, log_requests=True) as client:
        client.current_user = MobileServiceUser("u", "secret-token")
        client.invoke_api("a")

    assert "/api/a" in caplog.text
    assert "[REDACTED]" in caplog.text
    assert "secret-token" not in caplog.text


def test_installation_id_is_persisted(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "installation_id"
    first = InstallationIdStore(path).get()
    assert first
    assert InstallationIdStore(path).get() == first
    assert path.read_text(encoding="utf-8").strip() == first


def test_client_uses_stored_installation_id(tmp_path: Path) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={}, request=request)

    path = tmp_path / "installation_id"
    path.write_text("persisted-id\n", encoding="utf-8")
    with MobileServiceClient(
        APP_URL, installation_id_path=path, transport=httpx.MockTransport(handler)
    ) as client:
        assert client.installation_id == "persisted-id"
        client.invoke_api("a")

    assert seen[0].headers["X-ZUMO-INSTALLATION-ID"] == "persisted-id"


def test_table_writes_registered_entity_types() -> None:
    calls: list[tuple[str, str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        calls.append((request.method, request.url.path, body))
        if request.method == "POST":
            return httpx.Response(201, json={**body, "id": 8}, request=request)
        return httpx.Response(200, json=body, request=request)

    with _client(handler) as client:
        table = client.table("Note", Note)
        inserted = table.insert(Note(key=None, text="new"))
        updated = table.update(Note(key=8, text="changed"))

    assert inserted == Note(key=8, text="new")
    assert updated == Note(key=8, text="changed")
    assert calls == [
        ("POST", "/tables/Note", {"text": "new"}),
        ("PATCH", "/tables/Note/8", {"id": 8, "text": "changed"}),
    ]


def test_log_requests_records_transport_failures(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    caplog.set_level(logging.INFO, logger="mobileservices")
    with _client(handler, log_requests=True) as client:
        with pytest.raises(MobileServiceTransportError):
            client.invoke_api("a")

    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("-> POST") for m in messages)
    assert any(m.startswith("<- failed POST") and "connection refused" in m for m in messages)


# =============================================================================
# Async client
# =============================================================================


@pytest.mark.asyncio
async def test_async_client_invoke_api_and_table_read() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/hello":
            return httpx.Response(200, json={"ok": True}, request=request)
        return httpx.Response(200, json=[{"id": 3, "text": "c"}], request=request)

    async with AsyncMobileServiceClient(
        APP_URL, installation_id="install-1", async_transport=httpx.MockTransport(handler)
    ) as client:
        assert await client.invoke_api("hello") == {"ok": True}
        [item] = await client.table("TodoItem", TodoItem).read()

    assert item.key == 3


@pytest.mark.asyncio
async def test_async_client_with_filter_and_errors() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="bad", request=request)

    async def tag(req: ServiceFilterRequest, next: AsyncNextServiceFilter) -> ServiceFilterResponse:
        seen.append(req.url)
        return await next(req)

    client = AsyncMobileServiceClient(
        APP_URL, installation_id="install-1", async_transport=httpx.MockTransport(handler)
    )
    try:
        with pytest.raises(MobileServiceHttpError) as excinfo:
            await client.with_filter(tag).table("TodoItem").lookup("abc")
    finally:
        await client.close()

    assert excinfo.value.message == "bad"
    assert seen == [APP_URL + "/tables/TodoItem/abc"]
