from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from remediation.domain.models import BatchSummary, JobLogEntry
from remediation.resolution.resolver import Resolution

MAX_ERROR_ROWS = 20


def _error_rate(failures: int, total: int) -> str:
    return f"{(failures / total) * 100:.2f}%" if total else "0.00%"


def print_summary(summary: BatchSummary, console: Optional[Console] = None) -> None:
    """
    Render one batch summary as a rich table, followed by its per-record errors.
    """
    console = console or Console()

    table = Table(title=f"Remediation Run: {summary['job_type']}", box=box.ROUNDED)
    table.add_column("Target", justify="right", style="magenta")
    table.add_column("Succeeded", justify="right", style="bold green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Error Rate", justify="right", style="yellow")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_row(
        str(summary["target_count"]),
        str(summary["success_count"]),
        str(summary["failure_count"]),
        _error_rate(summary["failure_count"], summary["target_count"]),
        f"{summary['duration_ms'] / 1000:.1f}",
    )
    console.print(table)

    errors = summary["errors"]
    if not errors:
        return

    err_table = Table(
        title="Errors",
        box=box.SIMPLE,
        caption=f"Showing {min(len(errors), MAX_ERROR_ROWS)} of {len(errors)}",
    )
    err_table.add_column("Record", style="cyan", no_wrap=True)
    err_table.add_column("Error", style="red")
    for err in errors[:MAX_ERROR_ROWS]:
        err_table.add_row(err["record_id"], err["error"])
    console.print(err_table)


def print_job_logs(entries: Sequence[JobLogEntry], console: Optional[Console] = None) -> None:
    """Render recent job log rows, newest first."""
    console = console or Console()

    if not entries:
        console.print("[yellow]No job logs to display.[/yellow]")
        return

    table = Table(title="Recent Remediation Jobs", box=box.ROUNDED)
    table.add_column("Completed", style="dim", no_wrap=True)
    table.add_column("Job", style="cyan", no_wrap=True)
    table.add_column("Target", justify="right", style="magenta")
    table.add_column("OK", justify="right", style="bold green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Note", style="yellow")

    for entry in entries:
        note = entry.metadata.get("message") or ""
        if entry.errors and not note:
            note = entry.errors[0]["error"]
        table.add_row(
            entry.completed_at.strftime("%Y-%m-%d %H:%M:%S"),
            entry.job_type,
            str(entry.target_count),
            str(entry.success_count),
            str(entry.failure_count),
            str(entry.duration_seconds),
            note,
        )
    console.print(table)


def print_resolution(label: str, resolution: Resolution, console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(box=box.SIMPLE)
    table.add_column("Label", style="cyan")
    table.add_column("Strategy", style="magenta")
    table.add_column("Species", style="bold green")
    table.add_column("Id", style="dim")
    table.add_row(label, resolution.strategy, resolution.species_name or "Unknown", resolution.species_id)
    console.print(table)


__all__ = ["print_job_logs", "print_resolution", "print_summary"]
