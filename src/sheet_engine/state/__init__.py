"""Selection, clipboard, and command history state."""

from .clipboard import Clip, Clipboard, RowClip, ScalarClip
from .editor import EditorState
from .history import (
    Added,
    Command,
    CommandHistory,
    CreateRequest,
    Deleted,
    MutationRequest,
    RemoveRequest,
    Transfer,
    UpdateRequest,
    Updated,
)
from .selection import CellSelection, RowSelection, Selection, SelectionTracker

__all__ = [
    "EditorState",
    "SelectionTracker",
    "Selection",
    "RowSelection",
    "CellSelection",
    "Clipboard",
    "Clip",
    "ScalarClip",
    "RowClip",
    "CommandHistory",
    "Command",
    "Added",
    "Updated",
    "Deleted",
    "Transfer",
    "MutationRequest",
    "CreateRequest",
    "UpdateRequest",
    "RemoveRequest",
]
