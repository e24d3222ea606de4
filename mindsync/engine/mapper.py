"""Map feed and detail documents returned by the Minds API onto items."""

from __future__ import annotations

from typing import Any

from ..errors import EmptyDetailError, RemoteFormatError
from .store import Item


def entity_list(document: Any) -> list[Any]:
    if not isinstance(document, dict):
        raise RemoteFormatError("Response document is not an object")
    entities = document.get("entities")
    if not isinstance(entities, list):
        raise RemoteFormatError("Response document has no 'entities' list")
    return entities


def _id_string(value: Any) -> str | None:
    # guids exceed float precision; ints from the JSON parser are exact
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    return None


def _optional_str(content: dict[str, Any], key: str) -> str | None:
    value = content.get(key)
    return value if isinstance(value, str) else None


def _build_item(entity: Any, content: Any) -> Item:
    if not isinstance(entity, dict):
        raise RemoteFormatError("Entity is not an object")
    item_id = _id_string(entity.get("guid"))
    if item_id is None:
        raise RemoteFormatError("Entity has no usable 'guid'")
    item = Item(id=item_id)
    if not isinstance(content, dict):
        return item
    item.message = _optional_str(content, "message")
    item.pinned = content.get("pinned") is True
    item.time_created = _optional_str(content, "time_created")
    item.time_updated = _optional_str(content, "time_updated")
    remind = content.get("remind_object")
    if isinstance(remind, dict):
        item.remind_of = _id_string(remind.get("guid"))
    return item


def map_feed_entry(document: Any, index: int) -> Item:
    """Map the feed entity at ``index``.

    Feed entries usually wrap the activity in a nested ``entity`` object; when
    that is missing the entry itself carries the fields.
    """

    entities = entity_list(document)
    try:
        entity = entities[index]
    except IndexError as exc:
        raise RemoteFormatError(f"Feed has no entity at index {index}") from exc
    content = entity
    if isinstance(entity, dict) and isinstance(entity.get("entity"), dict):
        content = entity["entity"]
    return _build_item(entity, content)


def map_detail_entry(document: Any, url: str | None = None) -> Item:
    """Map the single entity of a detail response.

    Raises :class:`EmptyDetailError` when the response lists nothing, which
    means the activity was deleted or is no longer visible.
    """

    entities = entity_list(document)
    if not entities:
        raise EmptyDetailError(url)
    entity = entities[0]
    return _build_item(entity, entity)


__all__ = ["entity_list", "map_detail_entry", "map_feed_entry"]
