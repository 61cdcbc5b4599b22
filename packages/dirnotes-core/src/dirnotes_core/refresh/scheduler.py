"""Debounced, single-flight scheduling of refresh cycles."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import PurePosixPath

from dirnotes_core.config.models import ExcludeConfig, RefreshConfig
from dirnotes_core.tree.models import join_segments, split_path
from dirnotes_core.tree.scanner import path_is_excluded

logger = logging.getLogger(__name__)

EVENT_KINDS = ("created", "deleted", "modified", "moved")

# Event kinds that change the directory structure
_STRUCTURAL_KINDS = {"created", "deleted", "moved"}


class SchedulerState(str, Enum):
    IDLE = "idle"
    COALESCING = "coalescing"
    RUNNING = "running"


def is_qualifying_event(
    kind: str,
    rel_path: str,
    is_directory: bool,
    *,
    document_filename: str,
    exclude: ExcludeConfig,
) -> bool:
    """Decide whether a filesystem event can change the annotation tree.

    Only structural directory events and any change to the persisted
    document itself qualify. Edits to ordinary file contents never do.
    """
    if kind not in EVENT_KINDS:
        return False
    normalized = join_segments(split_path(rel_path))
    if not normalized:
        return False
    if normalized == document_filename:
        return True
    if not is_directory or kind not in _STRUCTURAL_KINDS:
        return False
    return not path_is_excluded(PurePosixPath(normalized), exclude)


class RefreshScheduler:
    """Coalesces change notifications into scan+merge+save cycles.

    States:
        IDLE        nothing pending, nothing running
        COALESCING  a debounce timer is armed
        RUNNING     a cycle is in flight (a timer may also be armed)

    A fired timer never starts a second concurrent cycle and never starts
    one sooner than ``min_interval_seconds`` after the previous start; in
    both cases the timer is re-armed instead. :meth:`force_refresh`
    bypasses the timer and interval but still waits for an in-flight cycle.
    """

    def __init__(
        self,
        cycle: Callable[[], Awaitable[object]],
        config: RefreshConfig | None = None,
        *,
        event_filter: Callable[[str, str, bool], bool] | None = None,
        invalidate: Callable[[], None] | None = None,
    ) -> None:
        self._cycle = cycle
        self.config = config or RefreshConfig()
        self._event_filter = event_filter
        self._invalidate = invalidate
        self._timer: asyncio.TimerHandle | None = None
        self._running: asyncio.Task[bool] | None = None
        self._last_started: float | None = None
        self._listeners: list[Callable[[], None]] = []
        self._closed = False
        self.cycles_started = 0
        self.cycles_completed = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        if self._running is not None and not self._running.done():
            return SchedulerState.RUNNING
        if self._timer is not None:
            return SchedulerState.COALESCING
        return SchedulerState.IDLE

    def on_index_updated(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register *callback* to run after each completed cycle.

        Returns a function that unregisters it.
        """
        self._listeners.append(callback)

        def _remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _remove

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def notify(self, kind: str, path: str, is_directory: bool = False) -> bool:
        """Feed one filesystem event. Returns True if it armed the timer."""
        if self._closed:
            return False
        if self._event_filter is not None and not self._event_filter(kind, path, is_directory):
            return False
        logger.debug("Change %s %s, debouncing", kind, path)
        self._arm()
        return True

    async def force_refresh(self) -> bool:
        """Run a cycle now, after any in-flight one. Returns its success.

        Returns False without running anything once the scheduler is closed.
        """
        if self._closed:
            return False
        self._cancel_timer()
        while self._running is not None and not self._running.done():
            await asyncio.wait({self._running})
            self._cancel_timer()
            if self._closed:
                return False
        if self._invalidate is not None:
            self._invalidate()
        return await self._start_cycle()

    async def close(self) -> None:
        """Stop accepting events and wait for an in-flight cycle."""
        self._closed = True
        self._cancel_timer()
        if self._running is not None and not self._running.done():
            await asyncio.wait({self._running})

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _arm(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.config.debounce_seconds, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self._closed:
            return

        if self._running is not None and not self._running.done():
            # Deferred until the in-flight cycle completes
            self._arm()
            return

        now = asyncio.get_running_loop().time()
        if (
            self._last_started is not None
            and now - self._last_started < self.config.min_interval_seconds
        ):
            logger.debug("Refresh skipped, last cycle started %.2fs ago", now - self._last_started)
            self._arm()
            return

        self._start_cycle()

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def _start_cycle(self) -> asyncio.Task[bool]:
        loop = asyncio.get_running_loop()
        self._last_started = loop.time()
        self.cycles_started += 1
        self._running = loop.create_task(self._run_cycle())
        return self._running

    async def _run_cycle(self) -> bool:
        try:
            await asyncio.wait_for(self._cycle(), timeout=self.config.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "Refresh cycle timed out after %.1fs, keeping previous state",
                self.config.timeout_seconds,
            )
            return False
        except Exception:
            logger.exception("Refresh cycle failed, keeping previous state")
            return False

        self.cycles_completed += 1
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Index listener failed")
        return True
