"""Executable Textual app that hosts the sheet engine."""

from __future__ import annotations

import argparse
import asyncio
from typing import Dict, Optional, Sequence

try:  # pragma: no cover - imported only when the app is run
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Horizontal, Vertical
    from textual.screen import ModalScreen
    from textual.widgets import Button, DataTable, Footer, Header, Input, Label, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use sheet_engine.adapters.textual.app"
    ) from exc

from sheet_engine.dispatch import ActionDispatcher
from sheet_engine.keymaps import DEFAULT_BINDINGS
from sheet_engine.runtime import EngineConfig, telemetry
from sheet_engine.state import CellSelection, Selection
from sheet_engine.store import FIELDS, HttpPersistence, Item, ItemId, MemoryPersistence

from .controller import TextualSheetAdapter, TextualUIHooks

COLUMN_FIELDS = dict(enumerate(FIELDS))


def create_dispatcher(config: EngineConfig, *, confirm=None) -> ActionDispatcher:
    """Build a dispatcher over the backend named in ``config``."""

    if config.backend == "memory":
        persistence = MemoryPersistence()
    else:
        persistence = HttpPersistence(config.api_url, timeout=config.http_timeout)
    return ActionDispatcher(
        persistence, confirm=confirm if config.confirm_delete else None
    )


class ConfirmScreen(ModalScreen[bool]):
    """Yes/No prompt shown before a row is deleted."""

    BINDINGS = [("y", "answer(True)", "Yes"), ("n,escape", "answer(False)", "No")]

    def __init__(self, prompt: str) -> None:
        super().__init__()
        self._prompt = prompt

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(self._prompt)
            with Horizontal():
                yield Button("Delete", variant="error", id="confirm-yes")
                yield Button("Cancel", id="confirm-no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")

    def action_answer(self, answer: bool) -> None:
        self.dismiss(answer)


class SheetEngineApp(App[None]):
    """Name/value sheet with undo, redo, copy, and paste."""

    CSS = """
    #sheet {
        height: 1fr;
        border: round $accent;
    }

    #add-row, #edit-row {
        height: auto;
    }

    #add-row Input, #edit-row Input {
        width: 1fr;
    }

    #status-line {
        height: 1;
        background: $surface-darken-1;
        padding: 0 1;
    }

    #confirm-dialog {
        width: 50;
        height: auto;
        border: thick $error;
        padding: 1 2;
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+r", "toggle_rows", "Row/cell"),
    ] + [
        Binding(token, f"sheet_key('{token}')", action_id, priority=True, show=False)
        for action_id, tokens in DEFAULT_BINDINGS.items()
        for token in tokens
    ]

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        super().__init__()
        self.config = config or EngineConfig.from_env()
        self.dispatcher = create_dispatcher(self.config, confirm=self._confirm_delete)
        self.adapter: TextualSheetAdapter | None = None
        self._row_ids: Dict[str, ItemId] = {}

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield DataTable(id="sheet", cursor_type="cell", zebra_stripes=True)
        with Horizontal(id="edit-row"):
            yield Input(placeholder="New text for the selected cell", id="edit-text")
        with Horizontal(id="add-row"):
            yield Input(placeholder="Name", id="add-name")
            yield Input(placeholder="Value", id="add-value")
            yield Button("Add", variant="success", id="add-button")
        yield Static("", id="status-line")
        yield Footer()

    async def on_mount(self) -> None:
        table = self.query_one("#sheet", DataTable)
        table.add_columns("Name", "Value")
        hooks = TextualUIHooks(
            update_rows=self._update_rows,
            update_status=self._update_status,
            update_selection=self._update_selection,
            copy_text=self.copy_to_clipboard,
        )
        self.adapter = TextualSheetAdapter(self.dispatcher, hooks)
        await self.adapter.start()

    async def action_sheet_key(self, token: str) -> None:
        if not self.adapter:
            return
        if isinstance(self.focused, Input) and token in {"ctrl+c", "ctrl+v", "delete"}:
            # Inputs keep their own text editing keys.
            return
        # Runs as a worker so the confirm dialog can be answered meanwhile.
        self.run_worker(self.adapter.handle_textual_key(token), group="sheet")

    def action_toggle_rows(self) -> None:
        table = self.query_one("#sheet", DataTable)
        table.cursor_type = "row" if table.cursor_type == "cell" else "cell"

    def on_data_table_cell_selected(self, event: DataTable.CellSelected) -> None:
        if not self.adapter:
            return
        item_id = self._row_ids.get(str(event.cell_key.row_key.value))
        field = COLUMN_FIELDS.get(event.coordinate.column)
        if item_id is not None and field is not None:
            self.adapter.select(item_id, field)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if not self.adapter:
            return
        item_id = self._row_ids.get(str(event.row_key.value))
        if item_id is not None:
            self.adapter.select(item_id)

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if not self.adapter:
            return
        if event.input.id == "edit-text":
            await self.adapter.edit_selection(event.value)
            event.input.value = ""
        else:
            await self._add_from_inputs()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "add-button":
            await self._add_from_inputs()

    async def _add_from_inputs(self) -> None:
        if not self.adapter:
            return
        name_input = self.query_one("#add-name", Input)
        value_input = self.query_one("#add-value", Input)
        result = await self.adapter.add_row(name_input.value, value_input.value)
        if result.ok:
            name_input.value = ""
            value_input.value = ""

    async def _confirm_delete(self, item: Item) -> bool:
        answer: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self.push_screen(
            ConfirmScreen(f"Delete row '{item.name}'?"),
            callback=lambda confirmed: answer.set_result(bool(confirmed)),
        )
        return await answer

    def _update_rows(self, items: Sequence[Item]) -> None:
        table = self.query_one("#sheet", DataTable)
        table.clear()
        self._row_ids = {}
        for item in items:
            key = str(item.id)
            self._row_ids[key] = item.id
            table.add_row(item.name, item.value, key=key)

    def _update_status(self, status: str) -> None:
        self.query_one("#status-line", Static).update(status)

    def _update_selection(self, selection: Optional[Selection]) -> None:
        if selection is None:
            self.sub_title = ""
        elif isinstance(selection, CellSelection):
            self.sub_title = f"cell {selection.item_id}:{selection.field}"
        else:
            self.sub_title = f"row {selection.item_id}"


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Edit a name/value sheet.")
    parser.add_argument("--api-url", help="Items endpoint of the REST backend")
    parser.add_argument(
        "--backend",
        choices=("http", "memory"),
        help="Persistence backend (default: http)",
    )
    parser.add_argument("--timeout", type=float, help="HTTP timeout in seconds")
    parser.add_argument(
        "--no-confirm",
        action="store_true",
        help="Delete rows without asking for confirmation",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    config = EngineConfig.from_env().with_overrides(
        api_url=args.api_url,
        backend=args.backend,
        http_timeout=args.timeout,
        confirm_delete=False if args.no_confirm else None,
    )
    telemetry.configure(preset="quiet")
    SheetEngineApp(config).run()


if __name__ == "__main__":  # pragma: no cover - manual run
    main()
