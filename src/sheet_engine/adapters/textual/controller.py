"""Textual-facing controller that wires dispatcher events into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Sequence

from sheet_engine.dispatch import EVENTS, ActionDispatcher, DispatchResult
from sheet_engine.keymaps import KeyStroke
from sheet_engine.state import CellSelection, Clip, RowClip, ScalarClip, Selection
from sheet_engine.store import Item, ItemId


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_rows: Callable[[Sequence[Item]], None]
    update_status: Callable[[str], None] = _noop
    update_selection: Callable[[Optional[Selection]], None] = _noop
    copy_text: Callable[[str], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    log: Callable[[str], None] = _noop


def key_token(key: str, modifiers: Iterable[str] = ()) -> str:
    """Normalize a Textual key name (``"ctrl+z"``, ``"delete"``) into a keymap token."""

    stroke = KeyStroke.parse(key)
    extra = tuple(str(mod) for mod in modifiers)
    return KeyStroke(stroke.key, stroke.modifiers + extra).token


def clip_text(clip: Clip) -> str:
    if isinstance(clip, ScalarClip):
        return clip.text
    if isinstance(clip, RowClip):
        return f"{clip.name}\t{clip.value}"
    raise TypeError(f"Unsupported clip {clip!r}")


class TextualSheetAdapter:
    """Bridges an ``ActionDispatcher`` to a Textual-friendly surface."""

    def __init__(self, dispatcher: ActionDispatcher, hooks: TextualUIHooks) -> None:
        self.dispatcher = dispatcher
        self.hooks = hooks
        self._subscribe_events()
        self._refresh_rows()

    async def start(self) -> DispatchResult:
        result = await self.dispatcher.load()
        self._after_result("load", result)
        return result

    async def handle_textual_key(
        self, key: str, *, modifiers: Iterable[str] = ()
    ) -> DispatchResult:
        token = key_token(key, modifiers)
        self._log_state("key ->", token=token)
        result = await self.dispatcher.handle_key(token)
        if result.status != "unbound":
            self._after_result(token, result)
        return result

    def select(self, item_id: ItemId, field: Optional[str] = None) -> DispatchResult:
        result = self.dispatcher.on_select(item_id, field)
        self._after_result("select", result)
        return result

    async def edit_cell(self, item_id: ItemId, field: str, text: str) -> DispatchResult:
        result = await self.dispatcher.on_field_edit(item_id, field, text)
        self._after_result("edit", result)
        return result

    async def edit_selection(self, text: str) -> DispatchResult:
        """Write ``text`` into the selected cell, if a cell is selected."""

        selection = self.dispatcher.state.selected()
        if not isinstance(selection, CellSelection):
            result = DispatchResult(consumed=False, status="no_cell_selected")
            self._after_result("edit", result)
            return result
        return await self.edit_cell(selection.item_id, selection.field, text)

    async def add_row(self, name: str, value: str) -> DispatchResult:
        result = await self.dispatcher.on_add_intent(name, value)
        self._after_result("add", result)
        return result

    async def remove_row(self, item_id: ItemId) -> DispatchResult:
        result = await self.dispatcher.on_remove_intent(item_id)
        self._after_result("remove", result)
        return result

    def _after_result(self, source: str, result: DispatchResult) -> None:
        status = result.message if result.ok else f"{result.status}: {result.message or source}"
        self.hooks.update_status(status or result.status)
        self._log_state(
            "result <-",
            source=source,
            consumed=result.consumed,
            status=result.status,
            message=result.message,
        )

    def _subscribe_events(self) -> None:
        bus = self.dispatcher.bus
        for event in EVENTS:
            bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name)
        self.hooks.handle_event(name, payload)
        if name.startswith("store"):
            self._refresh_rows()
        elif name == "selection.changed":
            self.hooks.update_selection(self.dispatcher.state.selected())
        elif name == "clipboard.copy" and payload is not None:
            self.hooks.copy_text(clip_text(payload))  # type: ignore[arg-type]

    def _refresh_rows(self) -> None:
        self.hooks.update_rows(self.dispatcher.state.store.snapshot())

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        state = self.dispatcher.state
        return {
            "rows": len(state.store),
            "selection": state.selected(),
            "undo": len(state.history.undo_stack),
            "redo": len(state.history.redo_stack),
            "busy": self.dispatcher.guard.busy(),
        }


__all__ = ["TextualSheetAdapter", "TextualUIHooks", "key_token", "clip_text"]
