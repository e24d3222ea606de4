"""HTTP fetching of Minds API documents."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from ..config import RemoteConfig
from ..errors import FetchError, RemoteFormatError


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    def json(self) -> dict[str, Any]:
        """Decode the body as a UTF-8 JSON object."""

        try:
            payload = json.loads(self.text)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise RemoteFormatError(f"Response from {self.url} is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise RemoteFormatError(f"Response from {self.url} is not a JSON object")
        return payload


class Fetcher:
    """Issue single GET requests; no retries, every failure surfaces as FetchError."""

    def __init__(
        self,
        remote: RemoteConfig,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.remote = remote
        self.logger = logger or structlog.get_logger("mindsync.fetcher")
        headers = {"Accept": "application/json"}
        if remote.user_agent:
            headers["User-Agent"] = remote.user_agent
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=remote.timeout,
            headers=headers,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def fetch(self, url: str) -> FetchResponse:
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            self.logger.warning("fetch_error", url=url, error=str(exc))
            raise FetchError(url, reason=str(exc)) from exc
        if self._is_failure(response):
            self.logger.warning("fetch_bad_status", url=url, status=response.status_code)
            raise FetchError(url, status_code=response.status_code)
        self.logger.debug("fetched", url=url, status=response.status_code, size=len(response.content))
        return FetchResponse(
            url=str(response.url),
            status_code=response.status_code,
            content=response.content,
        )

    def fetch_json(self, url: str) -> dict[str, Any]:
        return self.fetch(url).json()

    @staticmethod
    def _is_failure(response: Any) -> bool:
        status_code = getattr(response, "status_code", 0)
        return not 200 <= status_code < 300


__all__ = ["FetchResponse", "Fetcher"]
