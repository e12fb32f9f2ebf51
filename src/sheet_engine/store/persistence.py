"""Persistence collaborator protocol and an in-memory implementation."""

from __future__ import annotations

import itertools
from typing import Dict, List, Optional, Protocol

from sheet_engine.errors import PersistenceFailure

from .items import Item, ItemId


class Persistence(Protocol):
    """Remote store the engine mirrors. Every call may raise ``PersistenceFailure``."""

    async def list(self) -> List[Item]:
        """Return every persisted row (initial load)."""
        ...

    async def create(self, name: str, value: str) -> Item:
        """Persist a new row; the collaborator assigns its id."""
        ...

    async def update(self, item_id: ItemId, name: str, value: str) -> Item:
        """Replace the mutable fields of ``item_id``."""
        ...

    async def remove(self, item_id: ItemId) -> None:
        """Delete ``item_id``."""
        ...


class MemoryPersistence:
    """Dict-backed collaborator with sequential integer ids.

    Ids are never reused, so re-creating a deleted row always yields a fresh
    id, matching what the REST backend does.
    """

    def __init__(self, items: Optional[List[Item]] = None, *, start_id: int = 1) -> None:
        self._rows: Dict[ItemId, Item] = {}
        self._ids = itertools.count(start_id)
        self._failures: Dict[str, int] = {}
        self.calls: List[tuple[str, object]] = []
        for item in items or ():
            self._rows[item.id] = item
        numeric = [item.id for item in self._rows.values() if isinstance(item.id, int)]
        if numeric and max(numeric) >= start_id:
            self._ids = itertools.count(max(numeric) + 1)

    def fail_next(self, operation: str, times: int = 1) -> None:
        """Make the next ``times`` calls of ``operation`` raise ``PersistenceFailure``."""

        self._failures[operation] = self._failures.get(operation, 0) + times

    def rows(self) -> List[Item]:
        return list(self._rows.values())

    def _check(self, operation: str, item_id: ItemId | None = None) -> None:
        self.calls.append((operation, item_id))
        pending = self._failures.get(operation, 0)
        if pending:
            self._failures[operation] = pending - 1
            raise PersistenceFailure(operation, "injected failure", item_id=item_id)

    async def list(self) -> List[Item]:
        self._check("list")
        return self.rows()

    async def create(self, name: str, value: str) -> Item:
        self._check("create")
        item = Item(id=next(self._ids), name=name, value=value)
        self._rows[item.id] = item
        return item

    async def update(self, item_id: ItemId, name: str, value: str) -> Item:
        self._check("update", item_id)
        if item_id not in self._rows:
            raise PersistenceFailure("update", "no such item", item_id=item_id)
        item = Item(id=item_id, name=name, value=value)
        self._rows[item_id] = item
        return item

    async def remove(self, item_id: ItemId) -> None:
        self._check("remove", item_id)
        if self._rows.pop(item_id, None) is None:
            raise PersistenceFailure("remove", "no such item", item_id=item_id)


__all__ = ["Persistence", "MemoryPersistence"]
