"""WatcherRegistry — build-config id → running RepositoryWatcher.

Owned by exactly one HookDaemon instance; nothing else reads or mutates it.
It is only touched from the BuildConfigWatcher task (add / delete) and from
``HookDaemon.stop()``, so it needs no lock.
"""

from __future__ import annotations

from gitpoll.watchers.repository import RepositoryWatcher


class WatcherRegistry:
    def __init__(self) -> None:
        self._watchers: dict[str, RepositoryWatcher] = {}

    def register(self, build_id: str, watcher: RepositoryWatcher) -> None:
        """Record *watcher* under *build_id*.

        Raises KeyError if the id already has a watcher; the caller must stop
        the old one first.
        """
        if build_id in self._watchers:
            raise KeyError(f"Watcher already registered for build config: {build_id}")
        self._watchers[build_id] = watcher

    def pop(self, build_id: str) -> RepositoryWatcher | None:
        return self._watchers.pop(build_id, None)

    def get(self, build_id: str) -> RepositoryWatcher | None:
        return self._watchers.get(build_id)

    def drain(self) -> list[RepositoryWatcher]:
        """Remove and return every registered watcher."""
        watchers = list(self._watchers.values())
        self._watchers.clear()
        return watchers

    def ids(self) -> list[str]:
        return list(self._watchers)

    def __contains__(self, build_id: object) -> bool:
        return build_id in self._watchers

    def __len__(self) -> int:
        return len(self._watchers)
