"""Shape-typed clipboard used by copy and paste."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from sheet_engine.store.items import ItemStore

from .selection import CellSelection, RowSelection, Selection


@dataclass(frozen=True, slots=True)
class ScalarClip:
    """Text copied from a single cell."""

    text: str


@dataclass(frozen=True, slots=True)
class RowClip:
    """Name/value pair copied from a whole row."""

    name: str
    value: str


Clip = Union[ScalarClip, RowClip]


class Clipboard:
    def __init__(self) -> None:
        self._clip: Optional[Clip] = None

    @property
    def clip(self) -> Optional[Clip]:
        return self._clip

    def clear(self) -> None:
        self._clip = None

    def copy(self, selection: Optional[Selection], store: ItemStore) -> bool:
        """Capture the selected cell or row. Returns ``False`` when nothing changed."""

        if selection is None:
            return False
        item = store.get(selection.item_id)
        if item is None:
            return False
        if isinstance(selection, CellSelection):
            self._clip = ScalarClip(item.get(selection.field))
        else:
            self._clip = RowClip(name=item.name, value=item.value)
        return True

    def compatible(self, selection: Optional[Selection]) -> bool:
        if isinstance(selection, CellSelection):
            return isinstance(self._clip, ScalarClip)
        if isinstance(selection, RowSelection):
            return isinstance(self._clip, RowClip)
        return False

    def paste(
        self, selection: Optional[Selection], store: ItemStore
    ) -> Optional[Tuple[str, str]]:
        """Return the ``(name, value)`` pair to write onto the selected row.

        ``None`` means there is nothing to apply: the clipboard shape does not
        match the selection granularity, or the target row is gone.
        """

        if selection is None or not self.compatible(selection):
            return None
        item = store.get(selection.item_id)
        if item is None:
            return None
        clip = self._clip
        if isinstance(clip, ScalarClip) and isinstance(selection, CellSelection):
            pasted = item.with_field(selection.field, clip.text)
            return pasted.name, pasted.value
        if isinstance(clip, RowClip):
            return clip.name, clip.value
        return None


__all__ = ["Clip", "Clipboard", "RowClip", "ScalarClip"]
