"""Reconcile the remote activity feed into the local item store."""

from __future__ import annotations

from concurrent.futures import Executor, Future, as_completed
from dataclasses import dataclass, field
from threading import Lock
from typing import Iterator, Protocol

import structlog

from ..config import RemoteConfig
from ..errors import EmptyDetailError, RemoteFormatError
from .fetcher import Fetcher
from .mapper import entity_list, map_detail_entry, map_feed_entry
from .store import Item, ItemStore

UPDATED = "updated"
SKIPPED = "skipped"
EMPTY = "empty"
FAILED = "failed"


@dataclass(slots=True)
class FeedPage:
    """One page of feed candidates plus the cursor for the next request.

    ``size`` is the raw entity count, malformed entries included, so a page
    with unusable entries still counts as full for pagination.
    """

    url: str
    items: list[Item]
    next_cursor: str | None = None
    size: int = 0
    malformed: list[int] = field(default_factory=list)


@dataclass(slots=True)
class BranchResult:
    status: str
    item_id: str
    reason: str | None = None


class ReconcileProgress(Protocol):
    """Receiver for per-page and per-candidate progress."""

    def extend(self, count: int) -> None:
        """Announce ``count`` more candidates."""

    def advance(self, status: str, item_id: str) -> None:
        """Report one finished candidate."""


class Reconciler:
    """Paginate the feed, decide per candidate, fetch details in parallel, merge.

    Pages are requested one after another; the candidates of a page are
    fanned out on ``executor`` and all of them finish before the next page is
    requested. Branches share ``store`` and :attr:`empty_urls`, both of which
    only lock for the insert itself.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        store: ItemStore,
        user_id: str,
        remote: RemoteConfig,
        executor: Executor,
        logger: structlog.BoundLogger | None = None,
        progress: ReconcileProgress | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self.user_id = user_id
        self.remote = remote
        self.executor = executor
        self.logger = logger or structlog.get_logger("mindsync.reconciler")
        self.progress = progress
        self.empty_urls: list[str] = []
        self._empty_lock = Lock()
        self.summary: dict[str, int] = self._blank_summary()

    # ------------------------------------------------------------------
    # Remote endpoints
    # ------------------------------------------------------------------
    def feed_url(self, cursor: str | None = None) -> str:
        url = (
            f"{self.remote.feed_base}/{self.user_id}/activities"
            f"?sync=1&limit={self.remote.page_size}"
        )
        if cursor is not None:
            url += f"&from_timestamp={cursor}"
        return url

    def detail_url(self, item_id: str) -> str:
        return (
            f"{self.remote.entity_base}/?urns=urn%3Aactivity%3A{item_id}"
            "&as_activities=0&export_user_counts=false"
        )

    # ------------------------------------------------------------------
    # Feed pagination
    # ------------------------------------------------------------------
    def fetch_feed_page(self, cursor: str | None = None) -> FeedPage:
        url = self.feed_url(cursor)
        document = self.fetcher.fetch_json(url)
        count = len(entity_list(document))
        items: list[Item] = []
        malformed: list[int] = []
        for index in range(count):
            try:
                items.append(map_feed_entry(document, index))
            except RemoteFormatError as exc:
                self.logger.error("feed_entry_malformed", url=url, index=index, error=str(exc))
                malformed.append(index)
        next_cursor = document.get("load-next")
        if next_cursor in (None, ""):
            next_cursor = None
        else:
            next_cursor = str(next_cursor)
        self.logger.info(
            "feed_page_fetched",
            url=url,
            count=count,
            malformed=len(malformed),
            next_cursor=next_cursor,
        )
        return FeedPage(
            url=url, items=items, next_cursor=next_cursor, size=count, malformed=malformed
        )

    def iter_feed_pages(self) -> Iterator[FeedPage]:
        """Yield pages until a short page or a missing cursor ends the feed."""

        cursor: str | None = None
        while True:
            page = self.fetch_feed_page(cursor)
            yield page
            if page.size < self.remote.page_size:
                break
            if page.next_cursor is None:
                self.logger.warning("feed_cursor_missing", url=page.url)
                break
            if page.next_cursor == cursor:
                self.logger.warning("feed_cursor_repeated", url=page.url, cursor=cursor)
                break
            cursor = page.next_cursor

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------
    def reconcile(self, force: bool = False) -> int:
        """Merge the remote feed into the store and return the update count."""

        self.summary = self._blank_summary()
        for page in self.iter_feed_pages():
            if self.progress is not None:
                self.progress.extend(page.size)
            for index in page.malformed:
                self.summary[FAILED] += 1
                if self.progress is not None:
                    self.progress.advance(FAILED, f"entities[{index}]")
            futures: list[Future[BranchResult]] = [
                self.executor.submit(self._process_candidate, candidate, force)
                for candidate in page.items
            ]
            for future in as_completed(futures):
                result = future.result()
                self.summary[result.status] += 1
                if self.progress is not None:
                    self.progress.advance(result.status, result.item_id)
        self.logger.info("reconcile_finished", force=force, **self.summary)
        return self.summary[UPDATED]

    def _process_candidate(self, candidate: Item, force: bool) -> BranchResult:
        item_id = candidate.id
        try:
            if not self.store.needs_update(item_id, force):
                return BranchResult(status=SKIPPED, item_id=item_id)
            item = candidate
            if candidate.message is None:
                url = self.detail_url(item_id)
                try:
                    item = map_detail_entry(self.fetcher.fetch_json(url), url)
                except EmptyDetailError:
                    with self._empty_lock:
                        self.empty_urls.append(url)
                    self.logger.info("detail_empty", item_id=item_id, url=url)
                    return BranchResult(status=EMPTY, item_id=item_id, reason=url)
                if item.id != item_id:
                    self.logger.debug("detail_id_differs", item_id=item_id, detail_id=item.id)
                # the key stays the feed-observed id, e.g. the remind rather than its original
                item.id = item_id
            self.store.put(item)
            self.logger.info("item_updated", item_id=item_id, fetched_detail=item is not candidate)
            return BranchResult(status=UPDATED, item_id=item_id)
        except Exception as exc:  # noqa: BLE001
            self.logger.error("branch_failed", item_id=item_id, error=str(exc))
            return BranchResult(status=FAILED, item_id=item_id, reason=str(exc))

    @staticmethod
    def _blank_summary() -> dict[str, int]:
        return {UPDATED: 0, SKIPPED: 0, FAILED: 0, EMPTY: 0}


__all__ = [
    "BranchResult",
    "EMPTY",
    "FAILED",
    "FeedPage",
    "ReconcileProgress",
    "Reconciler",
    "SKIPPED",
    "UPDATED",
]
