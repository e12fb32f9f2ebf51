"""Explicit state object owned by the action dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from sheet_engine.store.items import Item, ItemStore

from .clipboard import Clipboard
from .history import CommandHistory
from .selection import CellSelection, RowSelection, Selection, SelectionTracker


@dataclass(slots=True)
class EditorState:
    """Everything an editing session mutates, in one place."""

    store: ItemStore = field(default_factory=ItemStore)
    selection: SelectionTracker = field(default_factory=SelectionTracker)
    clipboard: Clipboard = field(default_factory=Clipboard)
    history: CommandHistory = field(default_factory=CommandHistory)

    def selected(self) -> Optional[Selection]:
        return self.selection.current()

    def selected_item(self) -> Optional[Item]:
        current = self.selection.current()
        if current is None:
            return None
        return self.store.get(current.item_id)

    def flags(self) -> Dict[str, bool]:
        """Boolean facts keymap ``when`` clauses are evaluated against."""

        current = self.selection.current()
        return {
            "has_selection": current is not None,
            "row_selected": isinstance(current, RowSelection),
            "cell_selected": isinstance(current, CellSelection),
            "can_undo": self.history.can_undo(),
            "can_redo": self.history.can_redo(),
            "has_clip": self.clipboard.clip is not None,
        }


__all__ = ["EditorState"]
