"""Undo/redo, selection, and clipboard engine for name/value sheets."""

__all__ = [
    "actions",
    "adapters",
    "dispatch",
    "errors",
    "keymaps",
    "runtime",
    "state",
    "store",
]

__version__ = "0.1.0"
