"""Invertible commands and the undo/redo stacks that replay them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, List, Literal, Optional, Tuple, Union

from sheet_engine.errors import EmptyHistory, EmptyRedoHistory
from sheet_engine.runtime import telemetry
from sheet_engine.store.items import Item, ItemId


@dataclass(frozen=True, slots=True)
class CreateRequest:
    name: str
    value: str

    operation: ClassVar[str] = "create"


@dataclass(frozen=True, slots=True)
class UpdateRequest:
    item_id: ItemId
    name: str
    value: str

    operation: ClassVar[str] = "update"


@dataclass(frozen=True, slots=True)
class RemoveRequest:
    item_id: ItemId

    operation: ClassVar[str] = "remove"


MutationRequest = Union[CreateRequest, UpdateRequest, RemoveRequest]


def _rebind_item(item: Item, old_id: ItemId, new_id: ItemId) -> Item:
    return item.with_id(new_id) if item.id == old_id else item


@dataclass(frozen=True, slots=True)
class Added:
    """A row was created."""

    item: Item

    kind: ClassVar[str] = "added"

    @property
    def item_id(self) -> ItemId:
        return self.item.id

    def inverse(self) -> MutationRequest:
        return RemoveRequest(self.item.id)

    def forward(self) -> MutationRequest:
        return CreateRequest(self.item.name, self.item.value)

    def rebind(self, old_id: ItemId, new_id: ItemId) -> "Added":
        return Added(_rebind_item(self.item, old_id, new_id))


@dataclass(frozen=True, slots=True)
class Updated:
    """A row's fields were replaced; ``before`` and ``after`` share one id."""

    before: Item
    after: Item

    kind: ClassVar[str] = "updated"

    @property
    def item_id(self) -> ItemId:
        return self.after.id

    def inverse(self) -> MutationRequest:
        return UpdateRequest(self.after.id, self.before.name, self.before.value)

    def forward(self) -> MutationRequest:
        return UpdateRequest(self.after.id, self.after.name, self.after.value)

    def rebind(self, old_id: ItemId, new_id: ItemId) -> "Updated":
        return Updated(
            before=_rebind_item(self.before, old_id, new_id),
            after=_rebind_item(self.after, old_id, new_id),
        )


@dataclass(frozen=True, slots=True)
class Deleted:
    """A row was removed. Its identity for replay is the payload, not the id."""

    item: Item

    kind: ClassVar[str] = "deleted"

    @property
    def item_id(self) -> ItemId:
        return self.item.id

    def inverse(self) -> MutationRequest:
        return CreateRequest(self.item.name, self.item.value)

    def forward(self) -> MutationRequest:
        return RemoveRequest(self.item.id)

    def rebind(self, old_id: ItemId, new_id: ItemId) -> "Deleted":
        return Deleted(_rebind_item(self.item, old_id, new_id))


Command = Union[Added, Updated, Deleted]
Direction = Literal["undo", "redo"]


@dataclass(slots=True)
class Transfer:
    """A provisional undo/redo stack move awaiting its persistence result."""

    direction: Direction
    command: Command
    request: MutationRequest


class CommandHistory:
    """Two LIFO stacks of applied commands.

    ``record`` pushes onto the undo stack and empties the redo stack. ``undo``
    and ``redo`` move the tail command across and hand back the request that
    must be sent to the persistence collaborator; the move stays provisional
    until ``commit`` or ``rollback`` is called with the outcome.
    """

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._undo: List[Command] = []
        self._redo: List[Command] = []
        self._pending: Optional[Transfer] = None
        self._logger_name = logger_name

    @property
    def undo_stack(self) -> Tuple[Command, ...]:
        return tuple(self._undo)

    @property
    def redo_stack(self) -> Tuple[Command, ...]:
        return tuple(self._redo)

    @property
    def pending(self) -> Optional[Transfer]:
        return self._pending

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def peek_undo(self) -> Command:
        if not self._undo:
            raise EmptyHistory()
        return self._undo[-1]

    def peek_redo(self) -> Command:
        if not self._redo:
            raise EmptyRedoHistory()
        return self._redo[-1]

    def clear(self) -> None:
        self._ensure_idle("clear")
        self._undo.clear()
        self._redo.clear()

    def record(self, command: Command) -> None:
        self._ensure_idle("record")
        self._undo.append(command)
        self._redo.clear()
        self._emit("history.record", command)

    def undo(self) -> Transfer:
        self._ensure_idle("undo")
        if not self._undo:
            raise EmptyHistory()
        command = self._undo.pop()
        self._redo.append(command)
        self._pending = Transfer("undo", command, command.inverse())
        self._emit("history.undo", command)
        return self._pending

    def redo(self) -> Transfer:
        self._ensure_idle("redo")
        if not self._redo:
            raise EmptyRedoHistory()
        command = self._redo.pop()
        self._undo.append(command)
        self._pending = Transfer("redo", command, command.forward())
        self._emit("history.redo", command)
        return self._pending

    def commit(self, transfer: Transfer, result: Optional[Item] = None) -> None:
        """Finalise ``transfer`` once its request succeeded.

        A replayed create may come back with a new id. Every command on either
        stack that still points at the old id is rebound to the returned one,
        so later replays address the row that actually exists.
        """

        self._ensure_pending(transfer)
        self._pending = None
        if isinstance(transfer.request, CreateRequest) and result is not None:
            old_id = transfer.command.item_id
            if result.id != old_id:
                self._rebind(old_id, result.id)

    def rollback(self, transfer: Transfer) -> None:
        """Return the command of a failed ``transfer`` to the stack it came from."""

        self._ensure_pending(transfer)
        self._pending = None
        if transfer.direction == "undo":
            target, origin = self._redo, self._undo
        else:
            target, origin = self._undo, self._redo
        if not target or target[-1] is not transfer.command:
            raise RuntimeError("History changed while a transfer was pending")
        origin.append(target.pop())
        self._emit(f"history.rollback_{transfer.direction}", transfer.command)

    def _rebind(self, old_id: ItemId, new_id: ItemId) -> None:
        self._undo = [command.rebind(old_id, new_id) for command in self._undo]
        self._redo = [command.rebind(old_id, new_id) for command in self._redo]
        telemetry.record_event(
            "history.rebind",
            level="debug",
            data={"old_id": old_id, "new_id": new_id},
            logger_name=self._logger_name,
        )

    def _ensure_idle(self, operation: str) -> None:
        if self._pending is not None:
            raise RuntimeError(
                f"Cannot {operation} while a {self._pending.direction} is pending"
            )

    def _ensure_pending(self, transfer: Transfer) -> None:
        if self._pending is not transfer:
            raise RuntimeError("Transfer is not the pending history operation")

    def _emit(self, name: str, command: Command) -> None:
        telemetry.record_event(
            name,
            level="debug",
            data={
                "command": command.kind,
                "item_id": command.item_id,
                "undo_depth": len(self._undo),
                "redo_depth": len(self._redo),
            },
            logger_name=self._logger_name,
        )


__all__ = [
    "Added",
    "Updated",
    "Deleted",
    "Command",
    "CreateRequest",
    "UpdateRequest",
    "RemoveRequest",
    "MutationRequest",
    "Transfer",
    "CommandHistory",
]
