"""Run orchestrator wiring configuration, store file, fetcher, reconciler and progress."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import httpx
import structlog

from .config import ConfigRepository, SyncConfig
from .engine import Fetcher, Reconciler
from .infra import StoreFile
from .ui import ProgressReporter


@dataclass(slots=True)
class SyncSummary:
    """Outcome of one sync run."""

    user_id: str
    output_path: Path
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    empty: int = 0
    persisted: bool = False
    total_items: int = 0
    empty_urls: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {
            "user_id": self.user_id,
            "output_path": str(self.output_path),
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
            "empty": self.empty,
            "persisted": self.persisted,
            "total_items": self.total_items,
            "empty_urls": list(self.empty_urls),
        }


class Orchestrator:
    """Coordinate one load → reconcile → persist cycle.

    The store file is rewritten only after reconciliation returns and only
    when at least one item changed; an interrupted run leaves it untouched.
    Detail fetches run on a pool that lives for one run and is sized by
    ``max_workers`` (host default when unset).
    """

    def __init__(
        self,
        config_repository: ConfigRepository,
        logger: structlog.BoundLogger | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config_repository = config_repository
        self.config: SyncConfig = config_repository.load_config()
        self.transport = transport
        self.logger = logger or structlog.get_logger("mindsync.orchestrator")

    def run(
        self,
        force: bool = False,
        user_id: str | None = None,
        output_path: Path | None = None,
        progress_enabled: bool | None = None,
        progress_factory: Callable[[str], ProgressReporter] | None = None,
    ) -> SyncSummary:
        overrides: dict[str, object] = {}
        if user_id:
            overrides["user_id"] = user_id
        if output_path is not None:
            overrides["output_path"] = output_path
        config = self.config.model_copy(update=overrides) if overrides else self.config
        target = self.config_repository.output_path(config)
        run_log = self.logger.bind(user_id=config.user_id, output=str(target))
        run_log.info("sync_started", force=force)

        store_file = StoreFile(target, logger=run_log)
        store = store_file.load()

        progress_flag = config.progress if progress_enabled is None else bool(progress_enabled)
        if progress_factory and progress_flag:
            progress = progress_factory(config.user_id)
        else:
            progress = ProgressReporter(enabled=progress_flag, label=config.user_id)

        fetcher = Fetcher(config.remote, logger=run_log, transport=self.transport)
        summary = SyncSummary(user_id=config.user_id, output_path=target)
        try:
            with ThreadPoolExecutor(
                max_workers=config.max_workers, thread_name_prefix="mindsync-detail"
            ) as executor:
                reconciler = Reconciler(
                    fetcher=fetcher,
                    store=store,
                    user_id=config.user_id,
                    remote=config.remote,
                    executor=executor,
                    logger=run_log,
                    progress=progress,
                )
                progress.start()
                updated = reconciler.reconcile(force=force)
        finally:
            progress.close()
            fetcher.close()

        summary.updated = updated
        summary.skipped = reconciler.summary["skipped"]
        summary.failed = reconciler.summary["failed"]
        summary.empty = reconciler.summary["empty"]
        summary.empty_urls = list(reconciler.empty_urls)
        summary.total_items = len(store)
        if updated > 0:
            store_file.save(store)
            summary.persisted = True
        run_log.info(
            "sync_finished",
            updated=summary.updated,
            skipped=summary.skipped,
            failed=summary.failed,
            empty=summary.empty,
            persisted=summary.persisted,
        )
        if summary.empty_urls:
            run_log.warning("empty_detail_urls", urls=summary.empty_urls)
        return summary


__all__ = ["Orchestrator", "SyncSummary"]
