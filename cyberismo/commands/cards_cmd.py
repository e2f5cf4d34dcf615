"""Card listing."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..errors import CyberismoError
from ._common import open_project, print_error, print_json


def run_cards_list(
    project_root: Path,
    *,
    card_type: str | None = None,
    include_templates: bool = False,
    output_json: bool = False,
) -> int:
    err = Console(stderr=True)
    try:
        project = open_project(project_root)
        if card_type:
            card_type = str(project.resource_name(card_type))
        cards = project.all_cards(include_templates=include_templates)
    except CyberismoError as e:
        print_error(err, e)
        return 1

    if card_type:
        cards = [c for c in cards if c.metadata and c.metadata.get("cardType") == card_type]

    rows = [
        {
            "key": c.key,
            "title": (c.metadata or {}).get("title", ""),
            "cardType": (c.metadata or {}).get("cardType", ""),
            "workflowState": (c.metadata or {}).get("workflowState", ""),
            "parent": c.parent_key,
        }
        for c in cards
    ]

    if output_json:
        print_json(rows)
        return 0

    table = Table(title=f"Cards ({len(rows)})")
    table.add_column("key", style="cyan", no_wrap=True)
    table.add_column("title")
    table.add_column("cardType", style="magenta")
    table.add_column("state")
    table.add_column("parent", style="dim")
    for row in rows:
        table.add_row(row["key"], row["title"], row["cardType"], row["workflowState"], row["parent"] or "")
    Console().print(table)
    return 0
