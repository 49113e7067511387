"""Unit tests — logging.py context binding and configuration."""

from __future__ import annotations

import contextvars
import logging
from pathlib import Path

import pytest

from gitpoll.logging import _inject_context_vars, bind_watch_context, configure_logging, get_logger


def _record(event: dict, **context: str) -> dict:
    """Run the context processor in a throwaway context with *context* bound."""

    def run() -> dict:
        bind_watch_context(**context)
        return _inject_context_vars(None, "info", event)

    return contextvars.copy_context().run(run)


@pytest.mark.unit
class TestWatchContext:
    def test_bound_values_are_injected(self) -> None:
        event = _record({"event": "x"}, build_config_id="a", repository="repo-a")
        assert event["build_config_id"] == "a"
        assert event["repository"] == "repo-a"

    def test_explicit_keys_are_not_overwritten(self) -> None:
        event = _record({"event": "x", "repository": "explicit"}, repository="repo-a")
        assert event["repository"] == "explicit"

    def test_nothing_injected_without_binding(self) -> None:
        assert _record({"event": "x"}) == {"event": "x"}

    def test_binding_stays_inside_its_context(self) -> None:
        _record({"event": "x"}, build_config_id="a")
        assert _inject_context_vars(None, "info", {"event": "y"}) == {"event": "y"}


@pytest.mark.unit
class TestConfigureLogging:
    def test_sets_root_level_and_quiets_httpx(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(level="debug", format="json")
            assert root.level == logging.DEBUG
            assert logging.getLogger("httpx").level == logging.WARNING
            get_logger(__name__).debug("configured", ok=True)
        finally:
            root.handlers = saved_handlers
            root.setLevel(saved_level)

    def test_log_file_gets_a_handler(self, tmp_path: Path) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        log_file = tmp_path / "gitpoll.log"
        try:
            configure_logging(level="info", format="json", log_file=str(log_file))
            file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
            assert len(file_handlers) == 1
            assert file_handlers[0].formatter is not None
        finally:
            for handler in root.handlers:
                if isinstance(handler, logging.FileHandler):
                    handler.close()
            root.handlers = saved_handlers
            root.setLevel(saved_level)
