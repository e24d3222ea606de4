"""Line-oriented store format: ``**MINDSYNC-<id>[<<<remind>]**`` title lines plus bodies.

The format is not a general document format. Bodies are written verbatim,
so a message line that happens to match the title pattern would start a new
record on the next decode. That limitation is part of the on-disk contract.
"""

from __future__ import annotations

import io
from typing import TextIO

from ..errors import FormatError
from .store import Item, ItemStore

TITLE_PREFIX = "**MINDSYNC-"
TITLE_SUFFIX = "**"
REMIND_SEPARATOR = "<<<"
LINE_TERMINATOR = "\n"


def is_title_line(line: str) -> bool:
    candidate = line.rstrip("\r")
    return (
        len(candidate) >= len(TITLE_PREFIX) + len(TITLE_SUFFIX)
        and candidate.startswith(TITLE_PREFIX)
        and candidate.endswith(TITLE_SUFFIX)
    )


def parse_title(line: str) -> tuple[str, str | None]:
    """Split a title line into ``(id, remind_of)``."""

    if not is_title_line(line):
        raise FormatError(f"Not a title line: {line!r}")
    candidate = line.rstrip("\r")
    payload = candidate[len(TITLE_PREFIX) : len(candidate) - len(TITLE_SUFFIX)]
    # an empty id is allowed; only the first separator-delimited part after it is kept
    parts = payload.split(REMIND_SEPARATOR)
    item_id = parts[0]
    remind_of = parts[1] if len(parts) > 1 else None
    return item_id, remind_of


def format_title(item: Item) -> str:
    payload = item.id
    if item.remind_of is not None:
        payload += f"{REMIND_SEPARATOR}{item.remind_of}"
    return f"{TITLE_PREFIX}{payload}{TITLE_SUFFIX}"


def decode(stream: TextIO) -> ItemStore:
    """Read every record from ``stream``; later duplicates overwrite earlier ones."""

    text = stream.read()
    lines = text.split(LINE_TERMINATOR)
    if text.endswith(LINE_TERMINATOR):
        lines.pop()
    # CRLF counts as a single terminator
    lines = [line[:-1] if line.endswith("\r") else line for line in lines]

    store = ItemStore()
    current: tuple[str, str | None] | None = None
    body: list[str] = []

    def _finalise() -> None:
        if current is None:
            return
        item_id, remind_of = current
        message = LINE_TERMINATOR.join(body) if body else None
        store.put(Item(id=item_id, message=message, remind_of=remind_of))

    # lines ahead of the first title belong to no record
    for line in lines:
        if is_title_line(line):
            _finalise()
            current = parse_title(line)
            body = []
        elif current is not None:
            body.append(line)
    _finalise()
    return store


def encode(store: ItemStore, stream: TextIO) -> None:
    """Write ``store`` in persisted order."""

    for item in store.ordered():
        stream.write(format_title(item) + LINE_TERMINATOR)
        if item.message is not None:
            stream.write(item.message + LINE_TERMINATOR)


def loads(text: str) -> ItemStore:
    return decode(io.StringIO(text))


def dumps(store: ItemStore) -> str:
    buffer = io.StringIO()
    encode(store, buffer)
    return buffer.getvalue()


__all__ = [
    "LINE_TERMINATOR",
    "REMIND_SEPARATOR",
    "TITLE_PREFIX",
    "TITLE_SUFFIX",
    "decode",
    "dumps",
    "encode",
    "format_title",
    "is_title_line",
    "loads",
    "parse_title",
]
