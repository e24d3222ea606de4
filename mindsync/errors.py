"""Exception hierarchy shared by the codec, mapper and reconciliation engine."""

from __future__ import annotations


class MindsyncError(Exception):
    """Base class for all mindsync failures."""


class FormatError(MindsyncError):
    """The persisted store file cannot be decoded."""


class RemoteFormatError(MindsyncError):
    """A remote response does not have the expected document shape."""


class EmptyDetailError(MindsyncError):
    """A detail request returned no entity; the content is gone or hidden."""

    def __init__(self, url: str | None = None) -> None:
        self.url = url
        super().__init__(f"Detail response contained no entities: {url or '<unknown>'}")


class FetchError(MindsyncError):
    """Transport failure or unexpected HTTP status."""

    def __init__(self, url: str, status_code: int | None = None, reason: str | None = None) -> None:
        self.url = url
        self.status_code = status_code
        detail = reason or (f"status {status_code}" if status_code is not None else "request failed")
        super().__init__(f"Fetch failed for {url}: {detail}")


__all__ = [
    "EmptyDetailError",
    "FetchError",
    "FormatError",
    "MindsyncError",
    "RemoteFormatError",
]
