"""Shared fixtures: configuration, a fake Minds API and a worker pool."""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable

import httpx
import pytest

from mindsync.config import ConfigLocator, ConfigRepository, RemoteConfig, SyncConfig
from mindsync.engine import Fetcher, ItemStore, Reconciler

FEED_BASE = "https://minds.test/api/v2/feeds/container"
ENTITY_BASE = "https://minds.test/api/v2/entities"


def feed_entry(guid: str, message: str | None = None, **content: Any) -> dict[str, Any]:
    """Build a feed entity, nesting activity fields under ``entity`` like the API."""

    inner: dict[str, Any] = {"guid": guid, **content}
    if message is not None:
        inner["message"] = message
    return {"guid": guid, "entity": inner}


def detail_entry(guid: str, message: str | None = None, **content: Any) -> dict[str, Any]:
    entity: dict[str, Any] = {"guid": guid, **content}
    if message is not None:
        entity["message"] = message
    return entity


@dataclass
class FakeMindsAPI:
    """In-memory stand-in for the feed and entity endpoints."""

    pages: dict[str | None, dict[str, Any]] = field(default_factory=dict)
    details: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    failing_details: set[str] = field(default_factory=set)
    requests: list[httpx.URL] = field(default_factory=list)

    def add_page(self, entities: Iterable[dict[str, Any]], cursor: str | None = None, load_next: str | None = None) -> None:
        payload: dict[str, Any] = {"status": "success", "entities": list(entities)}
        if load_next is not None:
            payload["load-next"] = load_next
        self.pages[cursor] = payload

    def add_detail(self, item_id: str, *entities: dict[str, Any]) -> None:
        self.details[item_id] = list(entities)

    def feed_requests(self) -> list[httpx.URL]:
        return [url for url in self.requests if url.path.endswith("/activities")]

    def detail_requests(self) -> list[httpx.URL]:
        return [url for url in self.requests if url.path.rstrip("/").endswith("/entities")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url)
        if request.url.path.endswith("/activities"):
            cursor = request.url.params.get("from_timestamp")
            if cursor not in self.pages:
                return httpx.Response(404, json={"status": "error"})
            return httpx.Response(200, content=json.dumps(self.pages[cursor]).encode("utf-8"))
        urn = request.url.params.get("urns", "")
        item_id = urn.rsplit(":", 1)[-1]
        if item_id in self.failing_details:
            return httpx.Response(500, json={"status": "error"})
        payload = {"status": "success", "entities": self.details.get(item_id, [])}
        return httpx.Response(200, content=json.dumps(payload).encode("utf-8"))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def minds_api() -> FakeMindsAPI:
    return FakeMindsAPI()


@pytest.fixture
def remote_config() -> RemoteConfig:
    return RemoteConfig(feed_base=FEED_BASE, entity_base=ENTITY_BASE, page_size=3, timeout=5.0)


@pytest.fixture
def sample_sync_config(tmp_path: Path, remote_config: RemoteConfig) -> SyncConfig:
    return SyncConfig(
        user_id="42",
        output_path=tmp_path / "out.txt",
        progress=False,
        remote=remote_config,
    )


@pytest.fixture
def executor() -> Iterable[ThreadPoolExecutor]:
    pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="mindsync-test")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def make_reconciler(
    minds_api: FakeMindsAPI, remote_config: RemoteConfig, executor: ThreadPoolExecutor
) -> Iterable[Callable[..., Reconciler]]:
    fetchers: list[Fetcher] = []

    def _builder(store: ItemStore | None = None, **overrides: Any) -> Reconciler:
        remote = overrides.pop("remote", remote_config)
        fetcher = Fetcher(remote, transport=minds_api.transport())
        fetchers.append(fetcher)
        return Reconciler(
            fetcher=fetcher,
            store=store if store is not None else ItemStore(),
            user_id=overrides.pop("user_id", "42"),
            remote=remote,
            executor=executor,
            **overrides,
        )

    yield _builder
    for fetcher in fetchers:
        fetcher.close()


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("MINDSYNC_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository
