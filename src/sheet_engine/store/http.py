"""REST/JSON persistence collaborator for the items API."""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from typing import Any, Callable, List, Optional
from urllib.parse import quote

from sheet_engine.errors import PersistenceFailure
from sheet_engine.runtime import telemetry
from sheet_engine.runtime.config import DEFAULT_API_URL

from .items import Item, ItemId

Opener = Callable[..., Any]


class HttpPersistence:
    """Talks to ``GET/POST {base}`` and ``PUT/DELETE {base}/{id}``.

    ``urllib`` is blocking, so each request runs in a worker thread and the
    caller's event loop stays responsive while it waits.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        *,
        timeout: float = 5.0,
        opener: Optional[Opener] = None,
        logger_name: str | None = "sheet_engine.store",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._open = opener or urllib.request.urlopen
        self._logger_name = logger_name

    async def list(self) -> List[Item]:
        payload = await self._request("list", "GET", self.base_url)
        if not isinstance(payload, list):
            raise PersistenceFailure("list", "expected a JSON array")
        return [self._to_item("list", entry) for entry in payload]

    async def create(self, name: str, value: str) -> Item:
        payload = await self._request(
            "create", "POST", self.base_url, body={"name": name, "value": value}
        )
        return self._to_item("create", payload)

    async def update(self, item_id: ItemId, name: str, value: str) -> Item:
        payload = await self._request(
            "update",
            "PUT",
            self._item_url(item_id),
            body={"name": name, "value": value},
            item_id=item_id,
        )
        return self._to_item("update", payload, item_id=item_id)

    async def remove(self, item_id: ItemId) -> None:
        await self._request("remove", "DELETE", self._item_url(item_id), item_id=item_id)

    def _item_url(self, item_id: ItemId) -> str:
        return f"{self.base_url}/{quote(str(item_id), safe='')}"

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        *,
        body: Optional[dict] = None,
        item_id: ItemId | None = None,
    ) -> Any:
        with telemetry.span(
            f"http::{operation}",
            logger_name=self._logger_name,
            component="persistence",
            metadata={"method": method, "url": url},
        ):
            return await asyncio.to_thread(
                self._send, operation, method, url, body, item_id
            )

    def _send(
        self,
        operation: str,
        method: str,
        url: str,
        body: Optional[dict],
        item_id: ItemId | None,
    ) -> Any:
        data = json.dumps(body).encode("utf-8") if body is not None else None
        request = urllib.request.Request(url, data=data, method=method)
        request.add_header("Accept", "application/json")
        if data is not None:
            request.add_header("Content-Type", "application/json")
        try:
            with self._open(request, timeout=self.timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as exc:
            raise PersistenceFailure(
                operation, f"HTTP {exc.code}", item_id=item_id, cause=exc
            ) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise PersistenceFailure(
                operation, str(exc), item_id=item_id, cause=exc
            ) from exc

        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            raise PersistenceFailure(
                operation, "invalid JSON response", item_id=item_id, cause=exc
            ) from exc

    @staticmethod
    def _to_item(operation: str, payload: Any, *, item_id: ItemId | None = None) -> Item:
        if not isinstance(payload, dict) or "id" not in payload:
            raise PersistenceFailure(operation, "response is not an item", item_id=item_id)
        return Item.from_mapping(payload)


__all__ = ["HttpPersistence"]
