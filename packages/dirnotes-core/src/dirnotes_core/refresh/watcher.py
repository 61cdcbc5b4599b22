"""Filesystem watcher feeding change events into a RefreshScheduler."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from dirnotes_core.refresh.scheduler import RefreshScheduler

logger = logging.getLogger(__name__)


class _SchedulerHandler(FileSystemEventHandler):
    """Runs on the observer thread; hands events over to the event loop."""

    def __init__(
        self,
        root: Path,
        scheduler: RefreshScheduler,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        super().__init__()
        self._root = root
        self._scheduler = scheduler
        self._loop = loop

    def _relative(self, path: str | bytes) -> str | None:
        path = os.fsdecode(path)
        try:
            return Path(path).relative_to(self._root).as_posix()
        except ValueError:
            return None

    def on_any_event(self, event: FileSystemEvent) -> None:
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)

        for raw in paths:
            rel = self._relative(raw)
            if rel is None:
                continue
            try:
                self._loop.call_soon_threadsafe(
                    self._scheduler.notify, event.event_type, rel, event.is_directory
                )
            except RuntimeError:
                # Loop already closed during shutdown
                logger.debug("Dropped %s event for %s", event.event_type, rel)


class DirectoryWatcher:
    """Watches a workspace root recursively and notifies the scheduler.

    Events arrive in no particular order and may repeat; the scheduler's
    debounce absorbs both.
    """

    def __init__(
        self,
        root: Path,
        scheduler: RefreshScheduler,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._root = Path(root).resolve()
        self._scheduler = scheduler
        self._loop = loop
        self._observer: Observer | None = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Begin watching. Must be called from the scheduler's event loop."""
        if self._observer is not None:
            return
        loop = self._loop or asyncio.get_running_loop()
        handler = _SchedulerHandler(self._root, self._scheduler, loop)
        self._observer = Observer()
        self._observer.schedule(handler, str(self._root), recursive=True)
        self._observer.start()
        logger.info("Watching %s for directory changes", self._root)

    def stop(self) -> None:
        """Stop watching and clean up."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Stopped watching %s", self._root)
