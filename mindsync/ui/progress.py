"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)


@dataclass
class ProgressState:
    total: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    empty: int = 0
    current_id: str | None = None

    @property
    def completed(self) -> int:
        return self.updated + self.skipped + self.failed + self.empty


class ProgressReporter:
    """Render reconciliation progress and maintain counters for CLI feedback.

    The total is unknown until the feed has been paged through, so the bar
    starts indeterminate and grows with every page.
    """

    def __init__(self, enabled: bool = True, label: str = "mindsync", console: Console | None = None) -> None:
        self.enabled = enabled
        self.state = ProgressState()
        self._label = label
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._lock = Lock()

    def start(self) -> None:
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            # non-interactive output falls back to silence
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[label]:<12}"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green", pulse_style="cyan"),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("[green]✓{task.fields[updated]:>4}"),
            TextColumn("[yellow]↺{task.fields[skipped]:>4}"),
            TextColumn("[magenta]∅{task.fields[empty]:>3}"),
            TextColumn("[red]✗{task.fields[failed]:>3}"),
            TextColumn("[dim]{task.fields[current_id]}"),
            console=self._console,
            transient=True,
            expand=True,
        )
        try:
            self._progress.start()
        except LiveError:
            # another live display owns the console
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "reconcile",
            total=None,
            label=self._label,
            updated=0,
            skipped=0,
            empty=0,
            failed=0,
            current_id="fetching feed…",
        )

    def extend(self, count: int) -> None:
        with self._lock:
            self.state.total += count
            if self._progress is not None and self._task_id is not None:
                self._progress.update(self._task_id, total=self.state.total)

    def advance(self, status: str, item_id: str) -> None:
        with self._lock:
            if hasattr(self.state, status):
                setattr(self.state, status, getattr(self.state, status) + 1)
            self.state.current_id = item_id
            if self._progress is not None and self._task_id is not None:
                self._progress.update(
                    self._task_id,
                    advance=1,
                    updated=self.state.updated,
                    skipped=self.state.skipped,
                    empty=self.state.empty,
                    failed=self.state.failed,
                    current_id=item_id,
                )

    def close(self) -> None:
        if self._progress is not None:
            if self._task_id is not None:
                self._progress.update(
                    self._task_id, total=self.state.total, completed=self.state.completed, current_id="done"
                )
            self._progress.stop()
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        return {
            "updated": self.state.updated,
            "skipped": self.state.skipped,
            "failed": self.state.failed,
            "empty": self.state.empty,
        }


__all__ = ["ProgressReporter", "ProgressState"]
