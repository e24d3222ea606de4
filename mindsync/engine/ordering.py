"""Total order applied to items when the store is serialised."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .store import Item


def order_key(item_id: str) -> tuple[int, str]:
    return (len(item_id), item_id)


def persisted_order(items: Iterable["Item"]) -> list["Item"]:
    """Return items longest id first, then lexicographically later id first.

    Equivalent to sorting by ``(len(id), id)`` and reversing the result. Ids
    compare by code point, so the output is stable across platforms and
    locales.
    """

    return sorted(items, key=lambda item: order_key(item.id), reverse=True)


__all__ = ["order_key", "persisted_order"]
