from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from rich.console import Console

from ..containers.project import Project
from ..errors import CyberismoError, SchemaValidationError


def open_project(project_root: Path) -> Project:
    try:
        return Project(project_root)
    except CyberismoError:
        raise
    except ValueError as e:
        raise CyberismoError(f"Cannot open project at '{project_root}': {e}") from e


def print_error(err: Console, error: Exception) -> None:
    err.print(f"Error: {error}", style="bold red")
    if isinstance(error, SchemaValidationError) and len(error.errors) > 1:
        for message in error.errors[1:]:
            err.print(f"  {message}", style="red")


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def parse_value(raw: str | None) -> Any:
    """JSON value from the command line; bare words are taken as strings."""
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw
