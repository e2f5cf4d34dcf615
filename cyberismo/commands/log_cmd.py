"""Configuration log commands."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..configuration_log import ConfigurationLog
from ._common import print_json


def run_log(project_root: Path, *, last_n: int | None = None, output_json: bool = False) -> int:
    console = Console()
    log = ConfigurationLog(project_root)
    entries = log.entries()
    if last_n:
        entries = entries[-last_n:]

    if output_json:
        print_json([e.to_dict() for e in entries])
        return 0

    if not entries:
        console.print("[dim]No configuration changes logged.[/dim]")
        return 0

    table = Table(title="Configuration log")
    table.add_column("timestamp", style="dim", no_wrap=True)
    table.add_column("operation", style="magenta")
    table.add_column("target", style="cyan")
    table.add_column("parameters")
    for entry in entries:
        params = ", ".join(f"{k}={v}" for k, v in entry.parameters.items())
        table.add_row(entry.timestamp, entry.operation.value, entry.target, params)
    console.print(table)
    return 0


def run_log_version(project_root: Path, version: str) -> int:
    err = Console(stderr=True)
    try:
        path = ConfigurationLog(project_root).create_version(version)
    except ValueError as e:
        err.print(f"Error: {e}", style="bold red")
        return 1
    Console().print(f"Versioned configuration log to [cyan]{path}[/cyan]")
    return 0
