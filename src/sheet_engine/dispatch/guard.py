"""In-flight request tracking so persistence calls never interleave."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Hashable, Iterator, List, Set

from sheet_engine.errors import OperationInFlight


class InFlightGuard:
    """Rejects requests that would overlap one still awaiting persistence.

    Fresh edits claim the ids of the rows they touch and may run side by side
    on different rows. A claim without ids (creating a row) still counts as in
    flight. History replays claim the guard exclusively: they start only when
    nothing else is pending and nothing else starts until they finish.
    Conflicts are rejected with ``OperationInFlight`` rather than queued.
    """

    def __init__(self) -> None:
        self._keys: Set[Hashable] = set()
        self._pending: List[str] = []
        self._exclusive: str | None = None

    def busy(self) -> bool:
        return self._exclusive is not None or bool(self._pending)

    def holds(self, key: Hashable) -> bool:
        return key in self._keys

    @contextmanager
    def claim(self, *keys: Hashable, label: str = "edit") -> Iterator[None]:
        if self._exclusive is not None:
            raise OperationInFlight((self._exclusive,))
        conflicts = tuple(key for key in keys if key in self._keys)
        if conflicts:
            raise OperationInFlight(conflicts)
        self._keys.update(keys)
        self._pending.append(label)
        try:
            yield
        finally:
            self._pending.remove(label)
            self._keys.difference_update(keys)

    @contextmanager
    def claim_exclusive(self, label: str) -> Iterator[None]:
        if self._exclusive is not None:
            raise OperationInFlight((self._exclusive,))
        if self._pending:
            raise OperationInFlight(tuple(self._keys) or tuple(self._pending))
        self._exclusive = label
        try:
            yield
        finally:
            self._exclusive = None


__all__ = ["InFlightGuard"]
