"""BaseWatcher — abstract base class for the periodic watchers.

A watcher runs in the background as an asyncio task and performs one
``_tick()`` every ``interval`` seconds.  The first tick happens after one
full interval.  Ticks of one watcher are strictly sequential: the next
wait only starts once the previous tick has returned.

Contract
--------
- ``start()``  — starts the background asyncio task
- ``stop()``   — sets the stop token, cancels the task and waits for it
- ``is_running`` — True between start() and stop()

Implementations must:
1. Override ``_tick()`` — one unit of polling work
2. Catch and log the errors they expect; anything else escaping a tick is
   logged here and the schedule continues

This module also declares the two listener capabilities watchers report to.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from gitpoll.logging import get_logger
from gitpoll.models import BuildConfig, CommitDetails

log = get_logger(__name__)


# ---------------------------------------------------------------------------
# Listener capabilities
# ---------------------------------------------------------------------------


class BuildConfigListener(ABC):
    """Reacts to build configs appearing in or disappearing from the cluster."""

    @abstractmethod
    async def build_config_added(self, build_config: BuildConfig) -> None: ...

    @abstractmethod
    async def build_config_deleted(self, build_id: str) -> None: ...


class CommitListener(ABC):
    """Reacts to a new commit in a watched repository."""

    @abstractmethod
    async def commit_available(self, details: CommitDetails) -> None: ...


# ---------------------------------------------------------------------------
# BaseWatcher
# ---------------------------------------------------------------------------


class BaseWatcher(ABC):
    """Abstract base for fixed-interval polling watchers."""

    def __init__(self, name: str, interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._name = name
        self._interval = float(interval)
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def name(self) -> str:
        return self._name

    @property
    def interval(self) -> float:
        return self._interval

    # ---------------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the watcher background task."""
        if self._task is not None and not self._task.done():
            return  # already running
        self._stop_event.clear()
        self._task = asyncio.create_task(self._guarded_run(), name=f"watcher_{self._name}")
        log.debug("watcher_started", watcher=self._name, interval=self._interval)

    async def stop(self) -> None:
        """Signal the watcher to stop and wait for it to finish."""
        self._stop_event.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        log.debug("watcher_stopped", watcher=self._name)

    @property
    def is_running(self) -> bool:
        """True if the background task is alive."""
        return self._task is not None and not self._task.done()

    # ---------------------------------------------------------------------------
    # Implementation hooks
    # ---------------------------------------------------------------------------

    @abstractmethod
    async def _tick(self) -> None:
        """One unit of polling work."""

    def _bind_context(self) -> None:
        """Bind log context for the watcher task.  Optional."""

    # ---------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------

    async def _run(self) -> None:
        while not self._stopped:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                return  # stop_event was set
            except asyncio.TimeoutError:
                pass  # interval elapsed
            if self._stopped:
                return
            try:
                await self._tick()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                log.error("watcher_tick_failed", watcher=self._name, error=str(exc))

    async def _guarded_run(self) -> None:
        """Wrap ``_run()`` so exceptions don't kill the event loop."""
        self._bind_context()
        try:
            await self._run()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.error("watcher_crashed", watcher=self._name, error=str(exc))

    @property
    def _stopped(self) -> bool:
        """True if stop has been requested."""
        return self._stop_event.is_set()
