"""JSON and text file helpers shared by containers and resources."""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any


def format_json(content: Any) -> str:
    return json.dumps(content, indent=4, ensure_ascii=False) + "\n"


def read_json_file(path: Path) -> Any:
    """Read and parse a JSON file.

    Raises:
        ValueError: file is missing or not valid JSON
    """
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Error while handling JSON file '{path}' : {e}") from e


def write_text_file(path: Path, text: str) -> None:
    """Write text atomically (write to temp, then rename)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(path.name + ".tmp")
    temp_path.write_text(text, encoding="utf-8")
    temp_path.replace(path)


def write_json_file(path: Path, content: Any) -> None:
    write_text_file(path, format_json(content))


def remove_path(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path)
    elif path.exists():
        path.unlink()
