"""Refresh scheduling: debounced change handling and file watching."""

from dirnotes_core.refresh.scheduler import (
    EVENT_KINDS,
    RefreshScheduler,
    SchedulerState,
    is_qualifying_event,
)
from dirnotes_core.refresh.watcher import DirectoryWatcher

__all__ = [
    "EVENT_KINDS",
    "DirectoryWatcher",
    "RefreshScheduler",
    "SchedulerState",
    "is_qualifying_event",
]
