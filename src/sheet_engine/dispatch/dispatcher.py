"""Action dispatcher: routes trigger intents across selection, clipboard and history."""

from __future__ import annotations

import inspect
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from sheet_engine.errors import (
    ClipboardShapeMismatch,
    OperationInFlight,
    PersistenceFailure,
    SheetEngineError,
    StaleSelection,
)
from sheet_engine.keymaps import KeymapRegistry, load_default_keymaps
from sheet_engine.runtime import telemetry
from sheet_engine.state import (
    Added,
    Command,
    CreateRequest,
    Deleted,
    EditorState,
    MutationRequest,
    RemoveRequest,
    RowSelection,
    UpdateRequest,
    Updated,
)
from sheet_engine.store import Item, ItemId, Persistence, ensure_field

from .bus import EventBus
from .guard import InFlightGuard

Confirm = Callable[[Item], Union[bool, Awaitable[bool]]]


@dataclass(slots=True)
class DispatchResult:
    """Outcome of one trigger intent."""

    consumed: bool
    status: str = "ok"
    message: Optional[str] = None
    command: Optional[Command] = None
    error: Optional[SheetEngineError] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class ActionDispatcher:
    """Entry point for trigger collaborators (keyboard, widgets, tests).

    Every mutation goes to the persistence collaborator first; the item store
    and the history stacks change only once the call succeeded. Undo and redo
    move their command across the stacks before awaiting persistence and roll
    the move back if the call fails.
    """

    def __init__(
        self,
        persistence: Persistence,
        *,
        state: Optional[EditorState] = None,
        bus: Optional[EventBus] = None,
        confirm: Optional[Confirm] = None,
        keymap_registry: Optional[KeymapRegistry] = None,
        load_defaults: bool = True,
        logger_name: str = "sheet_engine.dispatch",
    ) -> None:
        self.persistence = persistence
        self.state = state or EditorState()
        self.bus = bus or EventBus()
        self.guard = InFlightGuard()
        self.keymaps = keymap_registry or KeymapRegistry(
            logger_name="sheet_engine.keymaps"
        )
        if load_defaults and keymap_registry is None:
            load_default_keymaps(self.keymaps)
        self._confirm = confirm
        self._logger_name = logger_name
        self.logger = telemetry.get_logger(logger_name)

    # ---------- loading ----------
    async def load(self) -> DispatchResult:
        with self._span("load"):
            try:
                with self.guard.claim_exclusive("load"):
                    items = await self.persistence.list()
            except (PersistenceFailure, OperationInFlight) as exc:
                return self._report(exc, "load")
        self.state.store.reset(items)
        self.state.history.clear()
        self.state.selection.clear()
        self.bus.emit("store.loaded", self.state.store.snapshot())
        return DispatchResult(consumed=True, message=f"loaded {len(items)}")

    # ---------- selection ----------
    def on_select(self, item_id: ItemId, field: Optional[str] = None) -> DispatchResult:
        selection = self.state.selection.select(item_id, field)
        self.bus.emit("selection.changed", selection)
        return DispatchResult(consumed=True, message="select")

    def on_clear_selection(self) -> DispatchResult:
        if self.state.selected() is None:
            return DispatchResult(consumed=False, status="no_selection")
        self.state.selection.clear()
        self.bus.emit("selection.changed", None)
        return DispatchResult(consumed=True, message="clear_selection")

    # ---------- fresh edits ----------
    async def on_delete_intent(self) -> DispatchResult:
        selection = self.state.selected()
        if selection is None:
            return DispatchResult(consumed=False, status="no_selection")
        item = self.state.store.get(selection.item_id)
        if item is None:
            return self._report(StaleSelection(selection.item_id), "delete")

        if isinstance(selection, RowSelection):
            # The row stays claimed while the host asks for confirmation.
            try:
                with self.guard.claim(item.id, label="delete_row"):
                    if not await self._confirmed(item):
                        return DispatchResult(consumed=True, status="cancelled")
                    result = await self._remove(item, label="delete_row", claimed=True)
            except OperationInFlight as exc:
                return self._report(exc, "delete_row")
        else:
            blanked = item.with_field(selection.field, "")
            result = await self._update(item, blanked, label="delete_cell")

        done = result.ok or result.status == "noop"
        if done and self.state.selected() == selection:
            self.state.selection.clear()
            self.bus.emit("selection.changed", None)
        return result

    async def on_remove_intent(self, item_id: ItemId) -> DispatchResult:
        """Delete a row directly (row delete button), without confirmation."""

        item = self.state.store.get(item_id)
        if item is None:
            return self._report(StaleSelection(item_id), "remove")
        result = await self._remove(item, label="remove_row")
        if result.ok and self.state.selection.targets(item_id):
            self.state.selection.clear()
            self.bus.emit("selection.changed", None)
        return result

    async def on_field_edit(
        self, item_id: ItemId, field: str, new_value: str
    ) -> DispatchResult:
        item = self.state.store.get(item_id)
        if item is None:
            return self._report(StaleSelection(item_id), "field_edit")
        target = item.with_field(ensure_field(field), new_value)
        return await self._update(item, target, label="field_edit")

    async def on_add_intent(self, name: str, value: str) -> DispatchResult:
        with self._span("add") as handle:
            try:
                with self.guard.claim(label="add"):
                    item = await self.persistence.create(name, value)
            except (PersistenceFailure, OperationInFlight) as exc:
                handle.add_metadata("status", exc.status)
                return self._report(exc, "add")
            self.state.store.insert(item)
            return self._recorded(Added(item), "add")

    # ---------- clipboard ----------
    def on_copy_intent(self) -> DispatchResult:
        selection = self.state.selected()
        if selection is None:
            return DispatchResult(consumed=False, status="no_selection")
        if selection.item_id not in self.state.store:
            return self._report(StaleSelection(selection.item_id), "copy")
        self.state.clipboard.copy(selection, self.state.store)
        self.bus.emit("clipboard.copy", self.state.clipboard.clip)
        return DispatchResult(consumed=True, message="copy")

    async def on_paste_intent(self) -> DispatchResult:
        selection = self.state.selected()
        if selection is None:
            return DispatchResult(consumed=False, status="no_selection")
        item = self.state.store.get(selection.item_id)
        if item is None:
            return self._report(StaleSelection(selection.item_id), "paste")
        clipboard = self.state.clipboard
        if clipboard.clip is None:
            return DispatchResult(consumed=False, status="empty_clipboard")
        pair = clipboard.paste(selection, self.state.store)
        if pair is None:
            return self._report(ClipboardShapeMismatch(clipboard.clip, selection), "paste")
        name, value = pair
        return await self._update(item, Item(item.id, name, value), label="paste")

    # ---------- history ----------
    async def on_undo_intent(self) -> DispatchResult:
        return await self._replay("undo")

    async def on_redo_intent(self) -> DispatchResult:
        return await self._replay("redo")

    async def _replay(self, direction: str) -> DispatchResult:
        history = self.state.history
        with self._span(direction) as handle:
            try:
                with self.guard.claim_exclusive(direction):
                    transfer = history.undo() if direction == "undo" else history.redo()
                    handle.add_metadata("command", transfer.command.kind)
                    try:
                        result = await self._apply(transfer.request)
                    except (PersistenceFailure, StaleSelection):
                        history.rollback(transfer)
                        raise
                    history.commit(transfer, result)
            except SheetEngineError as exc:
                handle.add_metadata("status", exc.status)
                return self._report(exc, direction)

        self.bus.emit("store.changed", self.state.store.snapshot())
        self.bus.emit("history.changed", direction)
        return DispatchResult(consumed=True, message=direction, command=transfer.command)

    async def _apply(self, request: MutationRequest) -> Optional[Item]:
        """Send a replayed request and mirror its result into the store."""

        store = self.state.store
        if isinstance(request, CreateRequest):
            item = await self.persistence.create(request.name, request.value)
            store.insert(item)
            return item
        if request.item_id not in store:
            raise StaleSelection(request.item_id)
        if isinstance(request, UpdateRequest):
            item = await self.persistence.update(
                request.item_id, request.name, request.value
            )
            store.replace(item)
            return item
        if isinstance(request, RemoveRequest):
            await self.persistence.remove(request.item_id)
            store.remove(request.item_id)
            return None
        raise TypeError(f"Unsupported request {request!r}")

    # ---------- keymaps ----------
    async def handle_key(self, token: str) -> DispatchResult:
        match = self.keymaps.resolve(token, context=self.state.flags())
        if match is None:
            return DispatchResult(consumed=False, status="unbound", message=token)
        with telemetry.span(
            "keymaps::execute",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": match.binding.id, "action": match.action.id},
        ):
            outcome = match.action(self, match)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        if isinstance(outcome, DispatchResult):
            return outcome
        return DispatchResult(consumed=True)

    # ---------- helpers ----------
    async def _update(self, before: Item, target: Item, *, label: str) -> DispatchResult:
        if before.same_content(target):
            return DispatchResult(consumed=True, status="noop", message="unchanged")
        with self._span(label, item_id=before.id) as handle:
            try:
                with self.guard.claim(before.id, label=label):
                    after = await self.persistence.update(
                        before.id, target.name, target.value
                    )
            except (PersistenceFailure, OperationInFlight) as exc:
                handle.add_metadata("status", exc.status)
                return self._report(exc, label)
            self.state.store.replace(after)
            return self._recorded(Updated(before=before, after=after), label)

    async def _remove(
        self, item: Item, *, label: str, claimed: bool = False
    ) -> DispatchResult:
        claim = nullcontext() if claimed else self.guard.claim(item.id, label=label)
        with self._span(label, item_id=item.id) as handle:
            try:
                with claim:
                    await self.persistence.remove(item.id)
            except (PersistenceFailure, OperationInFlight) as exc:
                handle.add_metadata("status", exc.status)
                return self._report(exc, label)
            self.state.store.remove(item.id)
            return self._recorded(Deleted(item), label)

    def _recorded(self, command: Command, label: str) -> DispatchResult:
        self.state.history.record(command)
        self.bus.emit("store.changed", self.state.store.snapshot())
        self.bus.emit("history.changed", label)
        return DispatchResult(consumed=True, message=label, command=command)

    async def _confirmed(self, item: Item) -> bool:
        if self._confirm is None:
            return True
        answer = self._confirm(item)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _report(self, error: SheetEngineError, operation: str) -> DispatchResult:
        fatal_to_request = isinstance(error, (PersistenceFailure, OperationInFlight))
        if fatal_to_request:
            telemetry.record_failure(
                error, operation=operation, logger_name=self._logger_name
            )
            self.bus.emit("dispatch.failed", error)
        else:
            telemetry.record_event(
                f"dispatch.{error.status}",
                level="debug",
                data={"operation": operation, "reason": str(error)},
                logger_name=self._logger_name,
            )
        return DispatchResult(
            consumed=fatal_to_request,
            status=error.status,
            message=str(error),
            error=error,
        )

    def _span(self, label: str, *, item_id: object | None = None):
        metadata: dict[str, object] = {"operation": label}
        if item_id is not None:
            metadata["item_id"] = item_id
        return telemetry.span(
            f"dispatch::{label}",
            logger_name=self._logger_name,
            component="dispatch",
            metadata=metadata,
        )


__all__ = ["ActionDispatcher", "DispatchResult", "Confirm"]
