"""Row records and the local mirror of persisted rows."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Iterator, Literal, Optional, Tuple, Union

ItemId = Union[int, str]
Field = Literal["name", "value"]
FIELDS: Tuple[Field, ...] = ("name", "value")


def ensure_field(field: str) -> Field:
    if field not in FIELDS:
        raise ValueError(f"Unknown field '{field}', expected one of {FIELDS}")
    return field  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class Item:
    """One persisted row. ``id`` is assigned by the persistence collaborator."""

    id: ItemId
    name: str
    value: str

    def get(self, field: Field) -> str:
        return self.name if ensure_field(field) == "name" else self.value

    def with_field(self, field: Field, text: str) -> "Item":
        return replace(self, **{ensure_field(field): text})

    def with_id(self, item_id: ItemId) -> "Item":
        return replace(self, id=item_id)

    def same_content(self, other: "Item") -> bool:
        return self.name == other.name and self.value == other.value

    @classmethod
    def from_mapping(cls, data: dict) -> "Item":
        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            value=str(data.get("value", "")),
        )


class ItemStore:
    """Insertion-ordered mirror of the rows held by the persistence collaborator.

    The store has no behaviour beyond lookup and replacement; every mutation is
    applied by the dispatcher after the collaborator confirmed it.
    """

    def __init__(self, items: Optional[Iterable[Item]] = None) -> None:
        self._items: Dict[ItemId, Item] = {}
        if items is not None:
            self.reset(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(list(self._items.values()))

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def get(self, item_id: ItemId) -> Optional[Item]:
        return self._items.get(item_id)

    def snapshot(self) -> Tuple[Item, ...]:
        return tuple(self._items.values())

    def reset(self, items: Iterable[Item]) -> None:
        self._items = {item.id: item for item in items}

    def insert(self, item: Item) -> None:
        if item.id in self._items:
            raise KeyError(f"Item {item.id!r} already present")
        self._items[item.id] = item

    def replace(self, item: Item) -> Item:
        """Replace the row with the same id, keeping its position."""

        if item.id not in self._items:
            raise KeyError(f"Item {item.id!r} not found")
        previous = self._items[item.id]
        self._items[item.id] = item
        return previous

    def remove(self, item_id: ItemId) -> Optional[Item]:
        return self._items.pop(item_id, None)


__all__ = ["Item", "ItemId", "ItemStore", "Field", "FIELDS", "ensure_field"]
