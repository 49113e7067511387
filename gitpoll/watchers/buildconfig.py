"""BuildConfigWatcher — snapshot-diff watcher over the build-config list.

Every tick fetches the full list from a ``BuildConfigSource`` and compares
its ids with the ``BuildConfigStore`` snapshot of the previous tick:

    added   = current − previous   → store.update(), then listener.build_config_added()
    removed = previous − current   → store.delete(), then listener.build_config_deleted()

The store is changed before each callback fires, so a listener that looks
at the snapshot mid-callback sees the post-change state.  A failed fetch
leaves the snapshot untouched and is retried on the next tick.
"""

from __future__ import annotations

from gitpoll.exceptions import FetchError
from gitpoll.logging import get_logger
from gitpoll.models import BuildConfig
from gitpoll.source import BuildConfigSource
from gitpoll.store import BuildConfigStore
from gitpoll.watchers.base import BaseWatcher, BuildConfigListener

log = get_logger(__name__)


class BuildConfigWatcher(BaseWatcher):
    """Emits added / deleted notifications exactly once per transition."""

    def __init__(
        self,
        source: BuildConfigSource,
        listener: BuildConfigListener,
        interval: float = 10.0,
        store: BuildConfigStore | None = None,
    ) -> None:
        super().__init__("build_configs", interval)
        self._source = source
        self._listener = listener
        self.store = store or BuildConfigStore()

    async def _tick(self) -> None:
        try:
            await self.sync()
        except FetchError as exc:
            log.warning("build_config_sync_failed", error=exc.message, endpoint=exc.endpoint)

    async def sync(self) -> tuple[list[str], list[str]]:
        """Apply one poll to the snapshot and notify the listener.

        Returns the ``(added, removed)`` ids.  Raises ``FetchError`` when the
        list cannot be fetched; nothing is applied in that case.
        """
        build_configs = await self._source.list_build_configs()

        current: dict[str, BuildConfig] = {}
        for build_config in build_configs:
            if build_config.id in current:
                log.warning("build_config_duplicate_id", build_config_id=build_config.id)
                continue
            current[build_config.id] = build_config

        previous = self.store.ids()
        added = [build_id for build_id in current if build_id not in previous]
        removed = sorted(previous - current.keys())

        for build_id in added:
            build_config = current[build_id]
            self.store.update(build_id, build_config)
            log.info("build_config_added", build_config_id=build_id, uri=build_config.uri)
            try:
                await self._listener.build_config_added(build_config)
            except Exception as exc:
                log.error("build_config_listener_error", build_config_id=build_id, error=str(exc))

        for build_id in removed:
            self.store.delete(build_id)
            log.info("build_config_deleted", build_config_id=build_id)
            try:
                await self._listener.build_config_deleted(build_id)
            except Exception as exc:
                log.error("build_config_listener_error", build_config_id=build_id, error=str(exc))

        return added, removed
