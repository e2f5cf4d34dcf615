"""Watch command: refresh the resource cache when `.cards/` changes on disk."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console

from ..errors import CyberismoError
from ..watcher import run_watch_loop
from ._common import open_project, print_error


def run_watch(project_root: Path) -> int:
    console = Console(stderr=True)
    try:
        project = open_project(project_root)
    except CyberismoError as e:
        print_error(console, e)
        return 1

    console.print(f"[bold]Watching[/bold] {project.paths.cards_folder}")
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    refreshes = 0

    def on_change(paths: list[Path]) -> None:
        nonlocal refreshes
        refreshes += 1
        timestamp = datetime.now().strftime("%H:%M:%S")
        for path in paths:
            console.print(f"[dim]{timestamp}[/dim] {path.relative_to(project.root)}")
        counts = project.collector.counts()
        total = sum(c["local"] + c["imported"] for c in counts.values())
        console.print(f"[dim]{timestamp}[/dim] refreshed: {total} resources")

    run_watch_loop(project, on_change=on_change)
    console.print()
    console.print(f"[bold]Stopped.[/bold] {refreshes} refreshes.")
    return 0
