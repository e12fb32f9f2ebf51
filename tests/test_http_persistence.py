from __future__ import annotations

import asyncio
import io
import json
import urllib.error
from typing import Any, List, Optional

import pytest

from sheet_engine.errors import PersistenceFailure
from sheet_engine.store import HttpPersistence, Item


class FakeResponse(io.BytesIO):
    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class FakeOpener:
    def __init__(self, *payloads: Any, error: Optional[BaseException] = None) -> None:
        self.payloads = list(payloads)
        self.error = error
        self.requests: List[Any] = []

    def __call__(self, request: Any, timeout: float) -> FakeResponse:
        self.requests.append((request, timeout))
        if self.error is not None:
            raise self.error
        payload = self.payloads.pop(0)
        raw = b"" if payload is None else json.dumps(payload).encode("utf-8")
        return FakeResponse(raw)


def test_list_parses_items() -> None:
    opener = FakeOpener([{"id": 1, "name": "A", "value": "10"}])
    client = HttpPersistence("http://api.test/items/", opener=opener)

    items = asyncio.run(client.list())

    assert items == [Item(1, "A", "10")]
    request, timeout = opener.requests[0]
    assert request.get_method() == "GET"
    assert request.full_url == "http://api.test/items"
    assert timeout == 5.0


def test_create_posts_json_body() -> None:
    opener = FakeOpener({"id": 9, "name": "A", "value": "10"})
    client = HttpPersistence("http://api.test/items", opener=opener, timeout=2.0)

    item = asyncio.run(client.create("A", "10"))

    assert item == Item(9, "A", "10")
    request, timeout = opener.requests[0]
    assert request.get_method() == "POST"
    assert json.loads(request.data) == {"name": "A", "value": "10"}
    assert request.get_header("Content-type") == "application/json"
    assert timeout == 2.0


def test_update_and_remove_address_item_url() -> None:
    opener = FakeOpener({"id": 3, "name": "B", "value": "20"}, None)
    client = HttpPersistence("http://api.test/items", opener=opener)

    asyncio.run(client.update(3, "B", "20"))
    asyncio.run(client.remove(3))

    methods = [(req.get_method(), req.full_url) for req, _ in opener.requests]
    assert methods == [
        ("PUT", "http://api.test/items/3"),
        ("DELETE", "http://api.test/items/3"),
    ]


def test_http_error_becomes_persistence_failure() -> None:
    error = urllib.error.HTTPError(
        "http://api.test/items/3", 404, "Not Found", hdrs=None, fp=None  # type: ignore[arg-type]
    )
    client = HttpPersistence("http://api.test/items", opener=FakeOpener(error=error))

    with pytest.raises(PersistenceFailure) as info:
        asyncio.run(client.remove(3))

    assert info.value.operation == "remove"
    assert info.value.item_id == 3
    assert "404" in str(info.value)


def test_transport_error_becomes_persistence_failure() -> None:
    opener = FakeOpener(error=urllib.error.URLError("connection refused"))
    client = HttpPersistence("http://api.test/items", opener=opener)

    with pytest.raises(PersistenceFailure):
        asyncio.run(client.create("A", "10"))


def test_malformed_item_response_is_rejected() -> None:
    client = HttpPersistence("http://api.test/items", opener=FakeOpener({"name": "A"}))

    with pytest.raises(PersistenceFailure):
        asyncio.run(client.update(1, "A", "10"))
