from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

from sheet_engine.dispatch import ActionDispatcher
from sheet_engine.errors import ClipboardShapeMismatch, EmptyHistory, PersistenceFailure
from sheet_engine.state import Added, Deleted, RowSelection, Updated
from sheet_engine.store import Item, MemoryPersistence


def make_dispatcher(
    items: Optional[List[Item]] = None, **kwargs: object
) -> Tuple[ActionDispatcher, MemoryPersistence]:
    persistence = MemoryPersistence(items if items is not None else [Item(1, "A", "10")])
    dispatcher = ActionDispatcher(persistence, **kwargs)  # type: ignore[arg-type]
    result = asyncio.run(dispatcher.load())
    assert result.ok
    return dispatcher, persistence


def contents(dispatcher: ActionDispatcher) -> List[Tuple[str, str]]:
    return [(item.name, item.value) for item in dispatcher.state.store]


def test_load_mirrors_persisted_rows() -> None:
    dispatcher, _ = make_dispatcher([Item(1, "A", "10"), Item(2, "B", "20")])

    assert contents(dispatcher) == [("A", "10"), ("B", "20")]


def test_update_undo_redo_scenario() -> None:
    dispatcher, persistence = make_dispatcher()
    history = dispatcher.state.history

    async def scenario() -> None:
        result = await dispatcher.on_field_edit(1, "name", "B")
        assert result.ok
        assert history.undo_stack == (
            Updated(before=Item(1, "A", "10"), after=Item(1, "B", "10")),
        )

        undone = await dispatcher.on_undo_intent()
        assert undone.ok
        assert dispatcher.state.store.get(1) == Item(1, "A", "10")
        assert history.undo_stack == ()
        assert len(history.redo_stack) == 1

        redone = await dispatcher.on_redo_intent()
        assert redone.ok
        assert dispatcher.state.store.get(1) == Item(1, "B", "10")
        assert len(history.undo_stack) == 1
        assert history.redo_stack == ()

    asyncio.run(scenario())
    assert persistence.rows() == [Item(1, "B", "10")]


def test_delete_row_then_undo_recreates_payload() -> None:
    dispatcher, persistence = make_dispatcher()
    dispatcher.on_select(1)

    async def scenario() -> None:
        deleted = await dispatcher.on_delete_intent()
        assert deleted.ok
        assert dispatcher.state.history.undo_stack == (Deleted(Item(1, "A", "10")),)
        assert dispatcher.state.selected() is None
        assert len(dispatcher.state.store) == 0

        undone = await dispatcher.on_undo_intent()
        assert undone.ok

    asyncio.run(scenario())
    assert contents(dispatcher) == [("A", "10")]
    assert len(persistence.rows()) == 1


def test_redo_after_recreate_deletes_the_new_row() -> None:
    dispatcher, persistence = make_dispatcher()
    dispatcher.on_select(1)

    async def scenario() -> None:
        await dispatcher.on_delete_intent()
        await dispatcher.on_undo_intent()
        (recreated,) = dispatcher.state.store.snapshot()
        assert recreated.id != 1
        assert dispatcher.state.history.redo_stack == (Deleted(recreated),)

        redone = await dispatcher.on_redo_intent()
        assert redone.ok

    asyncio.run(scenario())
    assert len(dispatcher.state.store) == 0
    assert persistence.rows() == []


def test_undo_chain_across_recreated_row() -> None:
    dispatcher, _ = make_dispatcher()

    async def scenario() -> None:
        await dispatcher.on_field_edit(1, "value", "11")
        dispatcher.on_select(1)
        await dispatcher.on_delete_intent()
        assert (await dispatcher.on_undo_intent()).ok
        assert (await dispatcher.on_undo_intent()).ok

    asyncio.run(scenario())
    assert contents(dispatcher) == [("A", "10")]


def test_edits_followed_by_equal_undos_restore_store() -> None:
    dispatcher, _ = make_dispatcher([Item(1, "A", "10"), Item(2, "B", "20")])
    before = contents(dispatcher)

    async def scenario() -> None:
        await dispatcher.on_add_intent("C", "30")
        await dispatcher.on_field_edit(2, "name", "BB")
        dispatcher.on_select(1, "value")
        await dispatcher.on_delete_intent()
        await dispatcher.on_remove_intent(2)
        for _ in range(4):
            assert (await dispatcher.on_undo_intent()).ok

    asyncio.run(scenario())
    assert sorted(contents(dispatcher)) == sorted(before)


def test_undo_with_empty_history_reports_and_keeps_state() -> None:
    dispatcher, persistence = make_dispatcher()

    result = asyncio.run(dispatcher.on_undo_intent())

    assert result.status == "empty_history"
    assert isinstance(result.error, EmptyHistory)
    assert result.consumed is False
    assert contents(dispatcher) == [("A", "10")]
    assert persistence.calls == [("list", None)]


def test_fresh_edit_after_undo_clears_redo() -> None:
    dispatcher, _ = make_dispatcher()

    async def scenario() -> None:
        await dispatcher.on_field_edit(1, "name", "B")
        await dispatcher.on_undo_intent()
        await dispatcher.on_field_edit(1, "value", "99")
        result = await dispatcher.on_redo_intent()
        assert result.status == "empty_redo"

    asyncio.run(scenario())
    assert dispatcher.state.history.redo_stack == ()


def test_cell_copy_paste_transfers_scalar() -> None:
    dispatcher, _ = make_dispatcher([Item(1, "A", "10"), Item(2, "B", "20")])

    dispatcher.on_select(1, "name")
    assert dispatcher.on_copy_intent().ok
    dispatcher.on_select(2, "name")
    result = asyncio.run(dispatcher.on_paste_intent())

    assert result.ok
    assert dispatcher.state.store.get(2) == Item(2, "A", "20")
    assert dispatcher.state.history.undo_stack == (
        Updated(before=Item(2, "B", "20"), after=Item(2, "A", "20")),
    )


def test_row_copy_paste_onto_row_replaces_both_fields() -> None:
    dispatcher, _ = make_dispatcher([Item(1, "A", "10"), Item(2, "B", "20")])

    dispatcher.on_select(1)
    dispatcher.on_copy_intent()
    dispatcher.on_select(2)
    result = asyncio.run(dispatcher.on_paste_intent())

    assert result.ok
    assert dispatcher.state.store.get(2) == Item(2, "A", "10")


def test_row_copy_paste_onto_cell_is_noop() -> None:
    dispatcher, persistence = make_dispatcher([Item(1, "A", "10"), Item(2, "B", "20")])

    dispatcher.on_select(1)
    dispatcher.on_copy_intent()
    dispatcher.on_select(2, "value")
    result = asyncio.run(dispatcher.on_paste_intent())

    assert result.status == "shape_mismatch"
    assert isinstance(result.error, ClipboardShapeMismatch)
    assert dispatcher.state.history.undo_stack == ()
    assert [call for call in persistence.calls if call[0] != "list"] == []


def test_paste_is_not_cleared_by_undo() -> None:
    dispatcher, _ = make_dispatcher([Item(1, "A", "10"), Item(2, "B", "20")])

    async def scenario() -> None:
        dispatcher.on_select(1, "value")
        dispatcher.on_copy_intent()
        dispatcher.on_select(2, "value")
        await dispatcher.on_paste_intent()
        await dispatcher.on_undo_intent()

    asyncio.run(scenario())
    assert dispatcher.state.store.get(2) == Item(2, "B", "20")
    assert dispatcher.state.selected() is not None


def test_delete_cell_blanks_only_that_field() -> None:
    dispatcher, _ = make_dispatcher()
    dispatcher.on_select(1, "value")

    result = asyncio.run(dispatcher.on_delete_intent())

    assert result.ok
    assert dispatcher.state.store.get(1) == Item(1, "A", "")
    assert dispatcher.state.selected() is None
    assert isinstance(result.command, Updated)


def test_declined_confirmation_keeps_row_and_selection() -> None:
    dispatcher, persistence = make_dispatcher(confirm=lambda item: False)
    dispatcher.on_select(1)

    result = asyncio.run(dispatcher.on_delete_intent())

    assert result.status == "cancelled"
    assert len(dispatcher.state.store) == 1
    assert dispatcher.state.selected() is not None
    assert persistence.rows() == [Item(1, "A", "10")]


def test_async_confirmation_is_awaited() -> None:
    asked: List[Item] = []

    async def confirm(item: Item) -> bool:
        asked.append(item)
        return True

    dispatcher, _ = make_dispatcher(confirm=confirm)
    dispatcher.on_select(1)

    assert asyncio.run(dispatcher.on_delete_intent()).ok
    assert asked == [Item(1, "A", "10")]


def test_stale_selection_is_silent_noop() -> None:
    dispatcher, persistence = make_dispatcher()
    dispatcher.on_select(1, "name")
    asyncio.run(persistence.remove(1))
    dispatcher.state.store.remove(1)
    calls_before = list(persistence.calls)

    for intent in (dispatcher.on_delete_intent, dispatcher.on_paste_intent):
        result = asyncio.run(intent())
        assert result.status == "stale"
        assert result.consumed is False
    assert dispatcher.on_copy_intent().status == "stale"
    assert persistence.calls == calls_before
    assert dispatcher.state.history.undo_stack == ()


def test_persistence_failure_leaves_state_untouched() -> None:
    dispatcher, persistence = make_dispatcher()
    failures: List[object] = []
    dispatcher.bus.subscribe("dispatch.failed", failures.append)
    persistence.fail_next("update")

    result = asyncio.run(dispatcher.on_field_edit(1, "name", "B"))

    assert result.status == "failed"
    assert isinstance(result.error, PersistenceFailure)
    assert dispatcher.state.store.get(1) == Item(1, "A", "10")
    assert dispatcher.state.history.undo_stack == ()
    assert len(failures) == 1


def test_failed_undo_rolls_back_stack_transfer() -> None:
    dispatcher, persistence = make_dispatcher()
    history = dispatcher.state.history

    async def scenario() -> None:
        await dispatcher.on_field_edit(1, "name", "B")
        persistence.fail_next("update")
        result = await dispatcher.on_undo_intent()
        assert result.status == "failed"
        assert len(history.undo_stack) == 1
        assert history.redo_stack == ()
        assert dispatcher.state.store.get(1) == Item(1, "B", "10")

        retry = await dispatcher.on_undo_intent()
        assert retry.ok

    asyncio.run(scenario())
    assert dispatcher.state.store.get(1) == Item(1, "A", "10")


def test_failed_redo_rolls_back_stack_transfer() -> None:
    dispatcher, persistence = make_dispatcher()
    history = dispatcher.state.history

    async def scenario() -> None:
        await dispatcher.on_add_intent("C", "30")
        await dispatcher.on_undo_intent()
        persistence.fail_next("create")
        result = await dispatcher.on_redo_intent()
        assert result.status == "failed"

    asyncio.run(scenario())
    assert history.undo_stack == ()
    assert len(history.redo_stack) == 1
    assert contents(dispatcher) == [("A", "10")]


def test_add_then_undo_redo() -> None:
    dispatcher, _ = make_dispatcher()

    async def scenario() -> None:
        added = await dispatcher.on_add_intent("C", "30")
        assert isinstance(added.command, Added)
        await dispatcher.on_undo_intent()
        assert contents(dispatcher) == [("A", "10")]
        await dispatcher.on_redo_intent()

    asyncio.run(scenario())
    assert contents(dispatcher) == [("A", "10"), ("C", "30")]


def test_unchanged_edit_records_nothing() -> None:
    dispatcher, _ = make_dispatcher()

    result = asyncio.run(dispatcher.on_field_edit(1, "name", "A"))

    assert result.status == "noop"
    assert dispatcher.state.history.undo_stack == ()


def test_remove_intent_clears_selection_on_that_row() -> None:
    dispatcher, _ = make_dispatcher([Item(1, "A", "10"), Item(2, "B", "20")])
    dispatcher.on_select(2, "name")

    result = asyncio.run(dispatcher.on_remove_intent(2))

    assert result.ok
    assert dispatcher.state.selected() is None
    assert contents(dispatcher) == [("A", "10")]


def test_handle_key_routes_through_default_keymap() -> None:
    dispatcher, _ = make_dispatcher()

    async def scenario() -> None:
        await dispatcher.on_field_edit(1, "name", "B")
        assert (await dispatcher.handle_key("ctrl+z")).message == "undo"
        assert (await dispatcher.handle_key("CTRL+Y")).message == "redo"
        dispatcher.on_select(1, "name")
        assert (await dispatcher.handle_key("ctrl+c")).message == "copy"
        assert (await dispatcher.handle_key("escape")).message == "clear_selection"
        unbound = await dispatcher.handle_key("ctrl+k")
        assert unbound.status == "unbound"
        assert unbound.consumed is False

    asyncio.run(scenario())
    assert dispatcher.state.store.get(1) == Item(1, "B", "10")


def test_clear_selection_reports_when_nothing_selected() -> None:
    dispatcher, _ = make_dispatcher()

    assert dispatcher.on_clear_selection().status == "no_selection"

    dispatcher.on_select(1)
    result = dispatcher.on_clear_selection()

    assert result.ok
    assert dispatcher.state.selected() is None


def test_row_cannot_change_while_delete_awaits_confirmation() -> None:
    outcomes: List[str] = []

    async def confirm(item: Item) -> bool:
        outcomes.append((await dispatcher.on_field_edit(1, "name", "B")).status)
        outcomes.append((await dispatcher.on_undo_intent()).status)
        return True

    dispatcher, persistence = make_dispatcher(
        [Item(1, "A", "10"), Item(2, "C", "30")], confirm=confirm
    )

    async def scenario() -> None:
        await dispatcher.on_field_edit(2, "value", "31")
        dispatcher.on_select(1)
        result = await dispatcher.on_delete_intent()
        assert result.ok
        assert result.command == Deleted(Item(1, "A", "10"))
        assert (await dispatcher.on_undo_intent()).ok

    asyncio.run(scenario())
    assert outcomes == ["busy", "busy"]
    assert ("A", "10") in contents(dispatcher)
    assert ("B", "10") not in contents(dispatcher)
    assert [op for op, _ in persistence.calls].count("update") == 1


def test_failed_row_delete_leaves_state_untouched() -> None:
    dispatcher, persistence = make_dispatcher([Item(1, "A", "10"), Item(2, "B", "20")])
    dispatcher.on_select(1)
    persistence.fail_next("remove")

    result = asyncio.run(dispatcher.on_delete_intent())

    assert result.status == "failed"
    assert isinstance(result.error, PersistenceFailure)
    assert contents(dispatcher) == [("A", "10"), ("B", "20")]
    assert dispatcher.state.selected() == RowSelection(1)
    assert dispatcher.state.history.undo_stack == ()
    assert not dispatcher.guard.busy()


def test_deleting_an_empty_cell_clears_selection_without_recording() -> None:
    dispatcher, _ = make_dispatcher([Item(1, "A", "")])
    dispatcher.on_select(1, "value")

    result = asyncio.run(dispatcher.on_delete_intent())

    assert result.status == "noop"
    assert dispatcher.state.selected() is None
    assert dispatcher.state.history.undo_stack == ()
