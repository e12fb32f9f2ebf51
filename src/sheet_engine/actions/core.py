"""Keymap action handlers forwarding to the dispatcher's intents."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from sheet_engine.dispatch import ActionDispatcher, DispatchResult
    from sheet_engine.keymaps import ResolutionMatch


async def delete_selection(
    dispatcher: "ActionDispatcher", match: "ResolutionMatch"
) -> "DispatchResult":
    del match
    return await dispatcher.on_delete_intent()


async def undo(dispatcher: "ActionDispatcher", match: "ResolutionMatch") -> "DispatchResult":
    del match
    return await dispatcher.on_undo_intent()


async def redo(dispatcher: "ActionDispatcher", match: "ResolutionMatch") -> "DispatchResult":
    del match
    return await dispatcher.on_redo_intent()


def copy(dispatcher: "ActionDispatcher", match: "ResolutionMatch") -> "DispatchResult":
    del match
    return dispatcher.on_copy_intent()


async def paste(dispatcher: "ActionDispatcher", match: "ResolutionMatch") -> "DispatchResult":
    del match
    return await dispatcher.on_paste_intent()


def clear_selection(
    dispatcher: "ActionDispatcher", match: "ResolutionMatch"
) -> "DispatchResult":
    del match
    return dispatcher.on_clear_selection()


__all__ = [
    "delete_selection",
    "undo",
    "redo",
    "copy",
    "paste",
    "clear_selection",
]
