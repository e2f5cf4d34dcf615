"""
Resource collector.

Keeps, per resource type, the list of resources found in the local project
and in every imported module. The lists are a cache over the directory
listing: whoever changes resource membership must tell the collector
(`add`/`remove`) or refresh it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..naming import RESOURCE_TYPES, ResourceName, is_valid_identifier
from .paths import ProjectPaths

logger = logging.getLogger(__name__)

# Files that live in resource folders but are not resources.
IGNORED_FILES = frozenset({".schema", ".gitkeep"})


class ResourcesFrom(str, Enum):
    ALL = "all"
    IMPORTED = "imported"
    LOCAL = "local"


@dataclass(frozen=True)
class ResourceEntry:
    """A resource found on disk."""

    name: ResourceName
    path: Path

    @property
    def full_name(self) -> str:
        return str(self.name)


def _collect_folder(folder: Path, prefix: str, resource_type: str) -> list[ResourceEntry]:
    if not folder.is_dir():
        return []
    entries: list[ResourceEntry] = []
    for path in sorted(folder.iterdir()):
        if path.name in IGNORED_FILES or not path.is_file() or path.suffix != ".json":
            continue
        identifier = path.stem
        if not is_valid_identifier(identifier):
            logger.warning("Skipping resource file with invalid name: %s", path)
            continue
        entries.append(ResourceEntry(ResourceName(prefix, resource_type, identifier), path))
    return entries


class ResourceCollector:
    """Per-type resource lists for one project."""

    def __init__(self, paths: ProjectPaths, prefix: str):
        self.paths = paths
        self.prefix = prefix
        self._local: dict[str, list[ResourceEntry]] = {t: [] for t in RESOURCE_TYPES}
        self._modules: dict[str, list[ResourceEntry]] = {t: [] for t in RESOURCE_TYPES}
        self._stale = True

    # --- collection ---

    def collect_local_resources(self) -> None:
        """Re-read every local resource folder. Replaces, never appends."""
        for resource_type in RESOURCE_TYPES:
            self._local[resource_type] = _collect_folder(
                self.paths.resource_folder(resource_type), self.prefix, resource_type
            )

    def module_prefixes(self) -> list[str]:
        folder = self.paths.modules_folder
        if not folder.is_dir():
            return []
        return sorted(p.name for p in folder.iterdir() if p.is_dir() and not p.name.startswith("."))

    def collect_resources_from_modules(self, resource_type: str) -> None:
        """Re-read one resource type from every imported module.

        Names keep the module's prefix, so `m/workflows/x` and `p/workflows/x`
        are distinct.
        """
        entries: list[ResourceEntry] = []
        for prefix in self.module_prefixes():
            entries.extend(
                _collect_folder(
                    self.paths.module_resource_folder(prefix, resource_type), prefix, resource_type
                )
            )
        self._modules[resource_type] = entries

    def module_imported(self) -> None:
        """Recompute module resources after a module was imported or removed."""
        for resource_type in RESOURCE_TYPES:
            self.collect_resources_from_modules(resource_type)

    def refresh(self) -> None:
        self.collect_local_resources()
        self.module_imported()
        self._stale = False
        logger.debug("Collected resources: %s", self.counts())

    def invalidate(self) -> None:
        """Mark the cache stale; the next read refreshes it."""
        self._stale = True

    def changed(self) -> None:
        """Called when files changed outside the data handler."""
        self.invalidate()

    def _ensure_fresh(self) -> None:
        if self._stale:
            self.refresh()

    # --- membership ---

    def add(self, name: ResourceName, path: Path) -> None:
        if name.prefix != self.prefix:
            self.invalidate()
            return
        entries = self._local[name.type]
        if any(e.name == name for e in entries):
            return
        entries.append(ResourceEntry(name, path))
        entries.sort(key=lambda e: e.name.identifier)

    def remove(self, name: ResourceName) -> None:
        entries = self._local[name.type]
        self._local[name.type] = [e for e in entries if e.name != name]

    # --- queries ---

    def resources(self, resource_type: str, source: ResourcesFrom = ResourcesFrom.ALL) -> list[ResourceEntry]:
        if resource_type not in self._local:
            raise ValueError(f"Unknown resource type: {resource_type}")
        self._ensure_fresh()
        if source == ResourcesFrom.LOCAL:
            return list(self._local[resource_type])
        if source == ResourcesFrom.IMPORTED:
            return list(self._modules[resource_type])
        return [*self._local[resource_type], *self._modules[resource_type]]

    def resource_names(self, resource_type: str, source: ResourcesFrom = ResourcesFrom.ALL) -> list[str]:
        return [e.full_name for e in self.resources(resource_type, source)]

    def resource_exists(self, resource_type: str, name: str) -> bool:
        return any(e.full_name == name for e in self.resources(resource_type))

    def find(self, name: ResourceName) -> ResourceEntry | None:
        for entry in self.resources(name.type):
            if entry.name == name:
                return entry
        return None

    def counts(self) -> dict[str, dict[str, int]]:
        return {
            t: {"local": len(self._local[t]), "imported": len(self._modules[t])}
            for t in RESOURCE_TYPES
        }
