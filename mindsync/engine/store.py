"""In-memory item map shared by concurrent reconciliation branches."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Dict, Iterable, Iterator

from .ordering import persisted_order


@dataclass(slots=True)
class Item:
    """One remote activity ("mind")."""

    id: str
    message: str | None = None
    pinned: bool = False
    time_created: str | None = None
    time_updated: str | None = None
    remind_of: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.message is not None and bool(self.message.strip())


class ItemStore:
    """Map item ids to items; inserts are atomic, last write wins per id."""

    def __init__(self, items: Iterable[Item] | None = None) -> None:
        self._items: Dict[str, Item] = {}
        self._lock = Lock()
        for item in items or ():
            self._items[item.id] = item

    def put(self, item: Item) -> None:
        with self._lock:
            self._items[item.id] = item

    def get(self, item_id: str) -> Item | None:
        with self._lock:
            return self._items.get(item_id)

    def needs_update(self, item_id: str, force: bool = False) -> bool:
        """Whether a candidate with ``item_id`` must be (re)written."""

        if force:
            return True
        existing = self.get(item_id)
        return existing is None or not existing.is_complete

    def snapshot(self) -> dict[str, Item]:
        with self._lock:
            return dict(self._items)

    def messages(self) -> dict[str, str | None]:
        return {item_id: item.message for item_id, item in self.snapshot().items()}

    def ordered(self) -> list[Item]:
        return persisted_order(self.snapshot().values())

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[Item]:
        return iter(list(self.snapshot().values()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ItemStore):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    def __repr__(self) -> str:
        return f"ItemStore({len(self)} items)"


__all__ = ["Item", "ItemStore"]
