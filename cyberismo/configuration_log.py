"""
Configuration change log.

Records operations that change project structure (resources created,
renamed, updated or deleted; modules added or removed) so that other copies
of the project can be migrated.

Storage format: JSON Lines (.jsonl) - one entry per line
Location: .cards/local/migrations/migrationLog.jsonl
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from .containers.paths import ProjectPaths

logger = logging.getLogger(__name__)


class ConfigurationOperation(str, Enum):
    MODULE_ADD = "module_add"
    MODULE_REMOVE = "module_remove"
    PROJECT_RENAME = "project_rename"
    RESOURCE_CREATE = "resource_create"
    RESOURCE_DELETE = "resource_delete"
    RESOURCE_RENAME = "resource_rename"
    RESOURCE_UPDATE = "resource_update"


@dataclass(frozen=True)
class ConfigurationLogEntry:
    """A single configuration change."""

    timestamp: str
    operation: ConfigurationOperation
    target: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": self.timestamp,
            "operation": self.operation.value,
            "target": self.target,
        }
        if self.parameters:
            data["parameters"] = self.parameters
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConfigurationLogEntry:
        return cls(
            timestamp=data["timestamp"],
            operation=ConfigurationOperation(data["operation"]),
            target=data["target"],
            parameters=dict(data.get("parameters") or {}),
        )


class ConfigurationLog:
    """Append-only log of configuration changes.

    Entries are written after the operation they describe succeeded.
    """

    def __init__(self, project_root: Path):
        self.paths = ProjectPaths(project_root)
        self.log_path = self.paths.configuration_log

    def _ensure_dir(self) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def has_log(self) -> bool:
        return self.log_path.exists()

    def log(
        self,
        operation: ConfigurationOperation,
        target: str,
        parameters: dict[str, Any] | None = None,
    ) -> ConfigurationLogEntry:
        """
        Append an entry.

        Args:
            operation: Kind of change
            target: Resource or module name the change applies to
            parameters: Operation-specific details (e.g. new name, update key)

        Returns:
            The written entry
        """
        entry = ConfigurationLogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            operation=operation,
            target=target,
            parameters=parameters or {},
        )
        self._ensure_dir()
        with self.log_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), separators=(",", ":")) + "\n")
        logger.debug("Logged %s operation for target: %s", operation.value, target)
        return entry

    def iter_entries(self) -> Iterator[ConfigurationLogEntry]:
        if not self.log_path.exists():
            return
        with self.log_path.open("r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    yield ConfigurationLogEntry.from_dict(json.loads(line))
                except (json.JSONDecodeError, KeyError, ValueError):
                    logger.error("Invalid configuration line: %s", line)

    def entries(self) -> list[ConfigurationLogEntry]:
        """Read all entries; malformed lines are skipped."""
        return list(self.iter_entries())

    def clear(self) -> None:
        """Remove all entries. Use with caution."""
        self._ensure_dir()
        self.log_path.write_text("", encoding="utf-8")
        logger.info("Configuration log cleared")

    def create_version(self, version: str) -> Path:
        """
        Snapshot the current log as `migrationLog_<version>.jsonl`.

        The current log is renamed, so subsequent entries start a new log.

        Raises:
            ValueError: no current log, or the log is empty
        """
        if not self.log_path.exists():
            raise ValueError("No current migration log exists to version")
        if not self.log_path.read_text(encoding="utf-8").strip():
            raise ValueError("Current migration log is empty")

        versioned = self.log_path.with_name(f"migrationLog_{version}.jsonl")
        self.log_path.rename(versioned)
        logger.info("Created migration to version: %s at %s", version, versioned)
        return versioned
