"""On-disk persistence of the item store."""

from __future__ import annotations

import os
from pathlib import Path
from threading import Lock

import structlog

from ..engine import codec
from ..engine.store import ItemStore
from ..errors import FormatError


class StoreFile:
    """Load and atomically replace the store file at ``path``."""

    def __init__(self, path: Path, logger: structlog.BoundLogger | None = None) -> None:
        self.path = path
        self.logger = logger or structlog.get_logger("mindsync.storage")
        self._lock = Lock()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> ItemStore:
        """Decode the file, or return an empty store when it does not exist yet."""

        if not self.exists():
            self.logger.info("store_missing", path=str(self.path))
            return ItemStore()
        try:
            # newline="" leaves line endings to the codec; a lone \r stays inside its line
            with self.path.open("r", encoding="utf-8", newline="") as stream:
                store = codec.decode(stream)
        except UnicodeDecodeError as exc:
            raise FormatError(f"Store file is not valid UTF-8: {self.path}") from exc
        self.logger.info("store_loaded", path=str(self.path), items=len(store))
        return store

    def save(self, store: ItemStore) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with self._lock:
            try:
                with tmp_path.open("w", encoding="utf-8", newline="") as stream:
                    codec.encode(store, stream)
                os.replace(tmp_path, self.path)
            except BaseException:
                tmp_path.unlink(missing_ok=True)
                raise
        self.logger.info("store_saved", path=str(self.path), items=len(store))
        return self.path


__all__ = ["StoreFile"]
