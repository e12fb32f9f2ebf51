"""Item records, the local item store, and persistence collaborators."""

from .http import HttpPersistence
from .items import FIELDS, Field, Item, ItemId, ItemStore, ensure_field
from .persistence import MemoryPersistence, Persistence

__all__ = [
    "Item",
    "ItemId",
    "ItemStore",
    "Field",
    "FIELDS",
    "ensure_field",
    "Persistence",
    "MemoryPersistence",
    "HttpPersistence",
]
