"""Built-in keymap: Delete, Ctrl+Z/Y/C/V, and Escape."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from sheet_engine.actions import core as core_actions

from .models import ActionRef, Binding, KeyStroke
from .registry import KeymapRegistry

DEFAULT_ACTIONS: tuple[ActionRef, ...] = (
    ActionRef(
        id="edit.delete_selection",
        handler=core_actions.delete_selection,
        description="Delete the selected row or blank the selected cell",
    ),
    ActionRef(
        id="history.undo",
        handler=core_actions.undo,
        description="Undo the last change",
    ),
    ActionRef(
        id="history.redo",
        handler=core_actions.redo,
        description="Redo the last undone change",
    ),
    ActionRef(
        id="clipboard.copy",
        handler=core_actions.copy,
        description="Copy the selected row or cell",
    ),
    ActionRef(
        id="clipboard.paste",
        handler=core_actions.paste,
        description="Paste onto the selected row or cell",
    ),
    ActionRef(
        id="selection.clear",
        handler=core_actions.clear_selection,
        description="Clear the selection",
    ),
)

DEFAULT_BINDINGS: Mapping[str, Sequence[str]] = {
    "edit.delete_selection": ("delete",),
    "history.undo": ("ctrl+z",),
    "history.redo": ("ctrl+y",),
    "clipboard.copy": ("ctrl+c",),
    "clipboard.paste": ("ctrl+v",),
    "selection.clear": ("escape",),
}


def _iter_bindings() -> Iterable[Binding]:
    for action_id, tokens in DEFAULT_BINDINGS.items():
        for token in tokens:
            yield Binding(
                id=f"default.{action_id}.{token}",
                stroke=KeyStroke.parse(token),
                action_id=action_id,
            )


def load_default_keymaps(registry: KeymapRegistry) -> KeymapRegistry:
    for action in DEFAULT_ACTIONS:
        registry.register_action(action, replace=True)
    for binding in _iter_bindings():
        registry.register_binding(binding, replace=True)
    return registry


__all__ = ["DEFAULT_ACTIONS", "DEFAULT_BINDINGS", "load_default_keymaps"]
