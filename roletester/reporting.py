"""Rendering of step results and run reports."""

import time
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from roletester.schemas import AnsibleReport

console = Console()

STEP_TITLES = {
    "hosts": "Host discovery",
    "syntax_check": "Syntax check",
    "role": "Role run",
    "idempotence": "Idempotence test",
}


def format_duration(seconds: float) -> str:
    if seconds >= 60:
        return f"{seconds / 60:.1f}m"
    return f"{seconds:.1f}s"


def status_label(passed: bool) -> str:
    return "[green]PASS[/green]" if passed else "[red]FAIL[/red]"


def print_idempotence_result(started: float, passed: bool, out: Optional[Console] = None) -> None:
    """
    Print the idempotence verdict with the time since started.

    Args:
        started: time.monotonic() value taken before the run
        passed: Whether the run was idempotent
        out: Console to print to
    """
    out = out or console
    elapsed = time.monotonic() - started
    out.print(f"Idempotence test: {status_label(passed)} ({format_duration(elapsed)})")


def print_report(report: AnsibleReport, out: Optional[Console] = None) -> None:
    """Print a table of all recorded steps of a run."""
    out = out or console

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Step")
    table.add_column("Result")
    table.add_column("Duration", justify="right")
    table.add_column("Error")

    for step in report.steps:
        table.add_row(
            STEP_TITLES.get(step.name, step.name),
            status_label(step.passed),
            format_duration(step.duration_seconds),
            step.error or "",
        )

    out.print(table)

    if report.recap:
        recap_table = Table(show_header=True, header_style="bold cyan", title="Play recap")
        for column in ("Host", "ok", "changed", "unreachable", "failed", "skipped"):
            recap_table.add_column(column, justify="right" if column != "Host" else "left")
        for host, stats in report.recap.items():
            recap_table.add_row(
                host,
                str(stats.ok),
                str(stats.changed),
                str(stats.unreachable),
                str(stats.failed),
                str(stats.skipped),
            )
        out.print(recap_table)

    border = "green" if report.passed else "red"
    verdict = "[bold green]Role test passed[/bold green]" if report.passed else "[bold red]Role test failed[/bold red]"
    out.print(Panel.fit(
        f"{verdict}\n\n"
        f"Playbook: [yellow]{report.playbook}[/yellow]\n"
        f"Container: [yellow]{report.container_id or '-'}[/yellow]\n"
        f"Duration: [cyan]{format_duration(report.duration_seconds)}[/cyan]",
        border_style=border
    ))


def print_runs(runs: List[dict], out: Optional[Console] = None) -> None:
    """Print a table of recorded runs (as loaded from metadata.json)."""
    out = out or console

    if not runs:
        out.print("[yellow]No runs recorded[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Run ID", no_wrap=True)
    table.add_column("Playbook")
    table.add_column("Image")
    table.add_column("Status")
    table.add_column("Created", no_wrap=True)

    for run in runs:
        table.add_row(
            run.get("run_id", ""),
            run.get("playbook_file", ""),
            run.get("image") or "-",
            run.get("status", ""),
            (run.get("created_at") or "")[:16].replace("T", " "),
        )

    out.print(table)
