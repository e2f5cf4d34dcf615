"""
Content watcher.

Watches `.cards/` for resource files changed outside the data handler (an
editor, `git pull`) and marks the project's resource collector stale so the
next query re-reads the folders. Events are debounced so a burst of writes
causes one refresh.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

if TYPE_CHECKING:
    from .containers.project import Project

logger = logging.getLogger(__name__)


class ResourceEventHandler(FileSystemEventHandler):
    """
    Collects file events under `.cards/` and refreshes the collector.

    Only resource metadata and content files count; the configuration log
    and temporary files written during atomic saves are ignored.
    """

    RELEVANT_EXTENSIONS = {".json", ".lp", ".hbs"}
    IGNORED_FOLDERS = {"migrations"}
    DEBOUNCE_SECONDS = 0.5

    def __init__(
        self,
        project: Project,
        on_change: Callable[[list[Path]], None] | None = None,
    ):
        super().__init__()
        self.project = project
        self.on_change = on_change
        # path -> time of the latest event
        self.pending: dict[str, float] = {}

    def is_relevant(self, path: str) -> bool:
        p = Path(path)
        if p.suffix.lower() not in self.RELEVANT_EXTENSIONS:
            return False
        try:
            relative = p.relative_to(self.project.paths.cards_folder)
        except ValueError:
            return False
        return not any(part in self.IGNORED_FOLDERS for part in relative.parts)

    def _record(self, path: str) -> None:
        if self.is_relevant(path):
            self.pending[path] = time.time()

    def flush_pending(self, now: float | None = None) -> list[Path]:
        """Refresh once for every event older than the debounce window."""
        now = time.time() if now is None else now
        ready = [p for p, ts in self.pending.items() if now - ts >= self.DEBOUNCE_SECONDS]
        if not ready:
            return []
        for path in ready:
            del self.pending[path]

        changed = sorted(Path(p) for p in ready)
        self.project.collector.changed()
        logger.debug("Resources changed on disk: %s", ", ".join(str(p) for p in changed))
        if self.on_change:
            self.on_change(changed)
        return changed

    def on_created(self, event: FileCreatedEvent) -> None:
        if not event.is_directory:
            self._record(event.src_path)

    def on_modified(self, event: FileModifiedEvent) -> None:
        if not event.is_directory:
            self._record(event.src_path)

    def on_deleted(self, event: FileDeletedEvent) -> None:
        # A removed folder resource may only report its directory.
        if event.is_directory:
            self._record(event.src_path + ".json")
        else:
            self._record(event.src_path)

    def on_moved(self, event: FileMovedEvent) -> None:
        if event.is_directory:
            return
        self._record(event.src_path)
        self._record(event.dest_path)


class ContentWatcher:
    """Observer plus handler for one project."""

    def __init__(
        self,
        project: Project,
        on_change: Callable[[list[Path]], None] | None = None,
    ):
        self.project = project
        self.handler = ResourceEventHandler(project, on_change=on_change)
        self.observer: Observer | None = None

    def start(self) -> None:
        folder = self.project.paths.cards_folder
        self.observer = Observer()
        self.observer.schedule(self.handler, str(folder), recursive=True)
        self.observer.start()
        logger.info("Watching %s", folder)

    def stop(self) -> None:
        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join()
        self.observer = None

    def poll(self) -> list[Path]:
        return self.handler.flush_pending()


def watch_project(
    project: Project,
    on_change: Callable[[list[Path]], None] | None = None,
) -> ContentWatcher:
    """Start watching `project`; the caller must call `stop()`."""
    watcher = ContentWatcher(project, on_change=on_change)
    watcher.start()
    return watcher


def run_watch_loop(
    project: Project,
    on_change: Callable[[list[Path]], None] | None = None,
) -> None:
    """Block until interrupted, flushing pending events periodically."""
    watcher = watch_project(project, on_change=on_change)
    try:
        while True:
            time.sleep(0.25)
            watcher.poll()
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()
