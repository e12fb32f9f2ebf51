"""Minimal event bus the dispatcher uses to notify front ends."""

from __future__ import annotations

from typing import Callable, Dict

EVENTS = (
    "store.loaded",
    "store.changed",
    "selection.changed",
    "clipboard.copy",
    "history.changed",
    "dispatch.failed",
)


class EventBus:
    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in self._subscribers.get(event, []):
            callback(payload)


__all__ = ["EventBus", "EVENTS"]
