"""Filesystem layout of a project."""

from __future__ import annotations

from pathlib import Path

CONFIG_FILE_NAME = "cardsConfig.json"
MIGRATION_LOG_NAME = "migrationLog.jsonl"


class ProjectPaths:
    """Resolves every well-known location under a project root."""

    def __init__(self, root: Path):
        self.root = Path(root)

    @property
    def cards_folder(self) -> Path:
        return self.root / ".cards"

    @property
    def resources_folder(self) -> Path:
        return self.cards_folder / "local"

    @property
    def modules_folder(self) -> Path:
        return self.cards_folder / "modules"

    @property
    def config_file(self) -> Path:
        return self.resources_folder / CONFIG_FILE_NAME

    @property
    def card_root(self) -> Path:
        return self.root / "cardRoot"

    @property
    def calculation_folder(self) -> Path:
        return self.root / ".calc"

    @property
    def migration_log_folder(self) -> Path:
        return self.resources_folder / "migrations"

    @property
    def configuration_log(self) -> Path:
        return self.migration_log_folder / MIGRATION_LOG_NAME

    def resource_folder(self, resource_type: str) -> Path:
        return self.resources_folder / resource_type

    def module_folder(self, prefix: str) -> Path:
        return self.modules_folder / prefix

    def module_resource_folder(self, prefix: str, resource_type: str) -> Path:
        return self.module_folder(prefix) / resource_type


def find_project_root(start: Path) -> Path | None:
    """Find a project root by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if ProjectPaths(p).config_file.is_file():
            return p
    return None
