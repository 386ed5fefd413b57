"""Terminal summaries for worker runs."""

from __future__ import annotations

import json

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from filesource.api_objects.types import WorkerRunSummary
from filesource.constants import TASK_FAILED, TASK_NOT_STARTED, TASK_READY, TASK_STOPPED
from filesource.internal.events import InternalEvent


def _status_style(status: str) -> str:
    if status == TASK_FAILED:
        return "bold red"
    if status in (TASK_READY, TASK_STOPPED):
        return "bold green"
    if status == TASK_NOT_STARTED:
        return "yellow"
    return "dim"


def print_run_summary(summary: WorkerRunSummary, console: Console | None = None) -> None:
    console = console or Console()
    totals = summary.to_dict()["totals"]
    header = (
        f"polls={totals['polls']} | "
        f"records_delivered={totals['records_delivered']} | "
        f"failed_tasks={totals['failed_tasks']} | "
        f"duration={summary.duration_seconds:.2f}s"
    )
    border = "cyan" if summary.ok else "red"
    console.print(Panel(header, title="Worker Run Complete", border_style=border))

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Task", style="bold")
    table.add_column("File")
    table.add_column("Topic")
    table.add_column("Status")
    table.add_column("Polls", justify="right")
    table.add_column("Delivered", justify="right")
    table.add_column("Start", justify="right")
    table.add_column("Committed", justify="right")
    table.add_column("Error", overflow="fold")

    for task in summary.task_summaries:
        style = _status_style(task.status)
        table.add_row(
            task.task_id,
            task.file,
            task.topic,
            f"[{style}]{task.status}[/{style}]",
            str(task.polls),
            str(task.records_delivered),
            "-" if task.start_position is None else str(task.start_position),
            "-" if task.committed_position is None else str(task.committed_position),
            task.error_message or "",
        )
    console.print(table)


def print_run_summary_json(summary: WorkerRunSummary) -> None:
    print(json.dumps(summary.to_dict(), ensure_ascii=True))


def print_internal_events(events: list[InternalEvent], console: Console | None = None) -> None:
    if not events:
        return

    console = console or Console()
    table = Table(title="Recent Internal Events", show_header=True, header_style="bold cyan")
    table.add_column("Time")
    table.add_column("Topic")
    table.add_column("Payload", overflow="fold")
    for event in events:
        table.add_row(
            event.ts.isoformat(timespec="seconds"),
            event.topic,
            json.dumps(event.payload, ensure_ascii=True, sort_keys=True, default=str),
        )
    console.print(table)
