"""In-memory snapshot of the build configs seen on the last poll.

BuildConfigWatcher keeps exactly one store.  After every successful sync
its key set equals the ids returned by that poll; a failed poll leaves it
untouched.
"""

from __future__ import annotations

from gitpoll.models import BuildConfig


class BuildConfigStore:
    """Identity-keyed mapping of build configs."""

    def __init__(self) -> None:
        self._items: dict[str, BuildConfig] = {}

    def update(self, build_id: str, build_config: BuildConfig) -> None:
        self._items[build_id] = build_config

    def delete(self, build_id: str) -> BuildConfig | None:
        return self._items.pop(build_id, None)

    def get(self, build_id: str) -> BuildConfig | None:
        return self._items.get(build_id)

    def ids(self) -> set[str]:
        """Return a copy of the known ids."""
        return set(self._items)

    def __contains__(self, build_id: object) -> bool:
        return build_id in self._items

    def __len__(self) -> int:
        return len(self._items)
