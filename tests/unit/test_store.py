"""Unit tests — store.py (BuildConfigStore)."""

from __future__ import annotations

import pytest

from gitpoll.store import BuildConfigStore

from conftest import make_build_config


@pytest.mark.unit
class TestBuildConfigStore:
    def test_update_and_get(self) -> None:
        store = BuildConfigStore()
        bc = make_build_config("a")
        store.update("a", bc)
        assert store.get("a") is bc
        assert "a" in store
        assert len(store) == 1

    def test_delete_returns_removed_item(self) -> None:
        store = BuildConfigStore()
        bc = make_build_config("a")
        store.update("a", bc)
        assert store.delete("a") is bc
        assert "a" not in store

    def test_delete_unknown_is_noop(self) -> None:
        store = BuildConfigStore()
        assert store.delete("missing") is None
        assert len(store) == 0

    def test_ids_is_a_copy(self) -> None:
        store = BuildConfigStore()
        store.update("a", make_build_config("a"))
        ids = store.ids()
        ids.add("b")
        assert store.ids() == {"a"}
