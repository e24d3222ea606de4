from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from mindsync.app import AppState, app
from mindsync.config import ConfigLocator, ConfigRepository
from mindsync.errors import FetchError
from mindsync.orchestrator import SyncSummary


class StubOrchestrator:
    def __init__(self, summary: SyncSummary | None = None, error: Exception | None = None) -> None:
        self.summary = summary
        self.error = error
        self.calls: list[dict] = []

    def run(self, force=False, user_id=None, output_path=None, progress_enabled=None, progress_factory=None):
        self.calls.append({"force": force, "user_id": user_id, "output_path": output_path})
        if self.error is not None:
            raise self.error
        return self.summary


def make_state(tmp_path: Path, orchestrator: StubOrchestrator) -> AppState:
    repository = ConfigRepository(ConfigLocator(project_root=tmp_path))
    return AppState(repository=repository, orchestrator=orchestrator)


def test_sync_passes_flags_and_reports(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MINDSYNC_HOME", str(tmp_path))
    summary = SyncSummary(
        user_id="55",
        output_path=tmp_path / "o.txt",
        updated=3,
        skipped=1,
        empty=1,
        persisted=True,
        total_items=4,
        empty_urls=["https://minds.test/api/v2/entities/?urns=urn%3Aactivity%3A9"],
    )
    state = make_state(tmp_path, StubOrchestrator(summary))
    monkeypatch.setattr("mindsync.app.build_state", lambda verbose: state)

    result = CliRunner().invoke(app, ["sync", "-f", "-u", "55", "-o", str(tmp_path / "o.txt")])

    assert result.exit_code == 0, result.stdout
    assert state.orchestrator.calls == [
        {"force": True, "user_id": "55", "output_path": tmp_path / "o.txt"}
    ]
    assert "Updated" in result.stdout
    assert "Following URLs empty:" in result.stdout
    assert "urn%3Aactivity%3A9" in result.stdout


def test_sync_quiet(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MINDSYNC_HOME", str(tmp_path))
    summary = SyncSummary(user_id="55", output_path=tmp_path / "o.txt", updated=2)
    state = make_state(tmp_path, StubOrchestrator(summary))
    monkeypatch.setattr("mindsync.app.build_state", lambda verbose: state)

    result = CliRunner().invoke(app, ["sync", "--quiet"])

    assert result.exit_code == 0, result.stdout
    assert "2 items updated." in result.stdout
    assert state.orchestrator.calls[0]["force"] is False


def test_sync_json_prints_summary(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MINDSYNC_HOME", str(tmp_path))
    summary = SyncSummary(
        user_id="55",
        output_path=tmp_path / "o.txt",
        updated=1,
        failed=2,
        persisted=True,
        total_items=1,
        empty_urls=["https://minds.test/e"],
    )
    state = make_state(tmp_path, StubOrchestrator(summary))
    monkeypatch.setattr("mindsync.app.build_state", lambda verbose: state)

    result = CliRunner().invoke(app, ["sync", "--json"])

    assert result.exit_code == 0, result.stdout
    assert json.loads(result.stdout) == {
        "user_id": "55",
        "output_path": str(tmp_path / "o.txt"),
        "updated": 1,
        "skipped": 0,
        "failed": 2,
        "empty": 0,
        "persisted": True,
        "total_items": 1,
        "empty_urls": ["https://minds.test/e"],
    }


def test_sync_feed_failure_exits_nonzero(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MINDSYNC_HOME", str(tmp_path))
    error = FetchError("https://minds.test/feed", status_code=503)
    state = make_state(tmp_path, StubOrchestrator(error=error))
    monkeypatch.setattr("mindsync.app.build_state", lambda verbose: state)

    result = CliRunner().invoke(app, ["sync"])

    assert result.exit_code == 1
    assert "Feed request failed" in result.stdout


def test_items_lists_store_in_file_order(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MINDSYNC_HOME", str(tmp_path))
    store_path = tmp_path / "mirror.txt"
    store_path.write_text(
        "**MINDSYNC-1**\nshort id\n**MINDSYNC-222<<<1**\nlong id\nsecond line\n",
        encoding="utf-8",
    )
    state = make_state(tmp_path, StubOrchestrator())
    monkeypatch.setattr("mindsync.app.build_state", lambda verbose: state)

    result = CliRunner().invoke(app, ["items", "-o", str(store_path)])

    assert result.exit_code == 0, result.stdout
    assert "2 items" in result.stdout
    assert result.stdout.index("222") < result.stdout.index("short id")
    assert "second line" not in result.stdout


def test_config_show(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MINDSYNC_HOME", str(tmp_path))
    state = make_state(tmp_path, StubOrchestrator())
    monkeypatch.setattr("mindsync.app.build_state", lambda verbose: state)

    result = CliRunner().invoke(app, ["config", "show"])

    assert result.exit_code == 0, result.stdout
    assert "user_id: '1197537175369949199'" in result.stdout
    assert "page_size: 150" in result.stdout


def test_log_show_without_logs(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("MINDSYNC_HOME", str(tmp_path))
    state = make_state(tmp_path, StubOrchestrator())
    monkeypatch.setattr("mindsync.app.build_state", lambda verbose: state)

    result = CliRunner().invoke(app, ["log", "show", "--tail", "5"])

    assert result.exit_code == 0, result.stdout
    assert "No log entries yet." in result.stdout
