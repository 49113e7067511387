"""Unit tests — registry.py (WatcherRegistry)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from gitpoll.registry import WatcherRegistry
from gitpoll.watchers.repository import RepositoryWatcher


def _watcher() -> MagicMock:
    return MagicMock(spec=RepositoryWatcher)


@pytest.mark.unit
class TestWatcherRegistry:
    def test_register_and_get(self) -> None:
        registry = WatcherRegistry()
        watcher = _watcher()
        registry.register("a", watcher)
        assert registry.get("a") is watcher
        assert "a" in registry
        assert len(registry) == 1

    def test_register_duplicate_raises(self) -> None:
        registry = WatcherRegistry()
        registry.register("a", _watcher())
        with pytest.raises(KeyError, match="already registered"):
            registry.register("a", _watcher())

    def test_pop_unknown_returns_none(self) -> None:
        assert WatcherRegistry().pop("missing") is None

    def test_drain_empties_registry(self) -> None:
        registry = WatcherRegistry()
        w1, w2 = _watcher(), _watcher()
        registry.register("a", w1)
        registry.register("b", w2)
        assert registry.drain() == [w1, w2]
        assert len(registry) == 0
        assert registry.ids() == []
