"""Row/cell selection tracking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from sheet_engine.store.items import Field, ItemId, ensure_field


@dataclass(frozen=True, slots=True)
class RowSelection:
    item_id: ItemId


@dataclass(frozen=True, slots=True)
class CellSelection:
    item_id: ItemId
    field: Field

    def __post_init__(self) -> None:
        ensure_field(self.field)


Selection = Union[RowSelection, CellSelection]


class SelectionTracker:
    """Holds the single live selection, if any.

    Selections are not validated against the item store; a selection whose row
    has since been removed is legal and is treated as stale by the dispatcher.
    """

    def __init__(self) -> None:
        self._current: Optional[Selection] = None

    def select(self, item_id: ItemId, field: Optional[str] = None) -> Selection:
        if field is None:
            self._current = RowSelection(item_id)
        else:
            self._current = CellSelection(item_id, ensure_field(field))
        return self._current

    def clear(self) -> None:
        self._current = None

    def current(self) -> Optional[Selection]:
        return self._current

    def targets(self, item_id: ItemId) -> bool:
        return self._current is not None and self._current.item_id == item_id


__all__ = ["RowSelection", "CellSelection", "Selection", "SelectionTracker"]
