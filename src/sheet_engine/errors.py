"""Error taxonomy shared by the history engine, dispatcher, and persistence."""

from __future__ import annotations

from typing import Optional


class SheetEngineError(RuntimeError):
    """Base class for every recoverable engine condition."""

    status = "error"


class EmptyHistory(SheetEngineError):
    """Raised when an undo is requested with nothing to undo."""

    status = "empty_history"

    def __init__(self, message: str = "Nothing to undo") -> None:
        super().__init__(message)


class EmptyRedoHistory(SheetEngineError):
    """Raised when a redo is requested with nothing to redo."""

    status = "empty_redo"

    def __init__(self, message: str = "Nothing to redo") -> None:
        super().__init__(message)


class StaleSelection(SheetEngineError):
    """The selected row no longer exists in the item store."""

    status = "stale"

    def __init__(self, item_id: object) -> None:
        super().__init__(f"Item {item_id!r} is no longer present")
        self.item_id = item_id


class ClipboardShapeMismatch(SheetEngineError):
    """Clipboard payload does not fit the current selection granularity."""

    status = "shape_mismatch"

    def __init__(self, clip: object, selection: object) -> None:
        super().__init__(f"Cannot paste {clip!r} onto {selection!r}")
        self.clip = clip
        self.selection = selection


class PersistenceFailure(SheetEngineError):
    """A call to the persistence collaborator failed."""

    status = "failed"

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        item_id: object | None = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.item_id = item_id
        self.cause = cause


class OperationInFlight(SheetEngineError):
    """A conflicting request is still waiting on the persistence collaborator."""

    status = "busy"

    def __init__(self, keys: tuple[object, ...]) -> None:
        super().__init__(f"Request already in flight for {list(keys)!r}")
        self.keys = keys


__all__ = [
    "SheetEngineError",
    "EmptyHistory",
    "EmptyRedoHistory",
    "StaleSelection",
    "ClipboardShapeMismatch",
    "PersistenceFailure",
    "OperationInFlight",
]
