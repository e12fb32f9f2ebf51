"""Action handlers bound to keys by the default keymap."""

from .core import clear_selection, copy, delete_selection, paste, redo, undo

__all__ = [
    "delete_selection",
    "undo",
    "redo",
    "copy",
    "paste",
    "clear_selection",
]
