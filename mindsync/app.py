"""Typer CLI entrypoint for mindsync."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository
from .errors import FetchError, FormatError, RemoteFormatError
from .infra import StoreFile
from .logging_conf import APP_LOG_NAME, ERROR_LOG_NAME, configure_logging, tail_log
from .orchestrator import Orchestrator, SyncSummary

app = typer.Typer(
    help="Mirror a Minds user's activity feed into a local text file.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(name="config", help="Configuration commands.", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Log inspection commands.", no_args_is_help=True)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator: Orchestrator


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose, log_dir=repository.locator.logs_dir)
    orchestrator = Orchestrator(config_repository=repository)
    return AppState(repository=repository, orchestrator=orchestrator)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


# progress is drawn only on interactive terminals
def _progress_default_enabled() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _render_summary(summary: SyncSummary) -> Table:
    table = Table(title=f"Sync of {summary.user_id}", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Updated", str(summary.updated))
    table.add_row("Skipped", str(summary.skipped))
    table.add_row("Empty", str(summary.empty))
    table.add_row("Failed", str(summary.failed))
    table.add_row("Stored", str(summary.total_items))
    return table


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("sync", help="Fetch the remote feed and update the local store.")
def sync(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Refetch items that are already complete."),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Minds user id to mirror."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Store file to update."),
    quiet: bool = typer.Option(False, "--quiet", help="Print a one-line result only."),
    as_json: bool = typer.Option(False, "--json", help="Print the run summary as JSON."),
) -> None:
    state = _get_state(ctx)
    try:
        summary = state.orchestrator.run(
            force=force,
            user_id=user,
            output_path=output,
            progress_enabled=_progress_default_enabled() and not (quiet or as_json),
        )
    except FormatError as exc:
        console.print(f"Store file cannot be read: {exc}", style="red")
        raise typer.Exit(code=1) from exc
    except (FetchError, RemoteFormatError) as exc:
        console.print(f"Feed request failed: {exc}", style="red")
        raise typer.Exit(code=1) from exc

    if as_json:
        console.print_json(data=summary.as_dict())
        return
    if quiet:
        console.print(f"{summary.updated} items updated.")
    else:
        console.print(_render_summary(summary))
        if summary.persisted:
            console.print(f"Saved to {summary.output_path}", style="green")
        else:
            console.print("Nothing changed; store file left as is.", style="dim")
    if summary.empty_urls:
        console.print("Following URLs empty:", style="yellow")
        for url in summary.empty_urls:
            console.print(f" {url}", soft_wrap=True)


@app.command("items", help="List stored items in file order.")
def items(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Store file to read."),
    limit: int = typer.Option(50, "--limit", min=0, help="Show at most N items (0 = all)."),
) -> None:
    state = _get_state(ctx)
    config = state.repository.load_config()
    if output is not None:
        config = config.model_copy(update={"output_path": output})
    path = state.repository.output_path(config)
    try:
        store = StoreFile(path).load()
    except FormatError as exc:
        console.print(f"Store file cannot be read: {exc}", style="red")
        raise typer.Exit(code=1) from exc
    ordered = store.ordered()
    shown = ordered if limit == 0 else ordered[:limit]
    table = Table(title=f"{path.name} · {len(ordered)} items", box=box.SIMPLE_HEAD)
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Remind of", style="magenta")
    table.add_column("Message", overflow="ellipsis", no_wrap=True)
    for item in shown:
        first_line = (item.message or "").strip().splitlines()
        table.add_row(item.id, item.remind_of or "-", first_line[0] if first_line else "")
    console.print(table)


@config_app.command("show", help="Print the effective configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    config = state.repository.load_config()
    console.print(f"# {state.repository.locator.config_path()}", style="dim")
    console.print(yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False), end="")


@log_app.command("show", help="Show the most recent log lines.")
def log_show(
    ctx: typer.Context,
    tail: int = typer.Option(100, "--tail", min=1, help="Show the last N lines."),
    errors: bool = typer.Option(False, "--errors", help="Show the error log instead."),
) -> None:
    state = _get_state(ctx)
    name = ERROR_LOG_NAME if errors else APP_LOG_NAME
    lines = tail_log(state.repository.locator.logs_dir / name, tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{name} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), end="", markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
