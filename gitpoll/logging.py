"""gitpoll — Structured logging configuration.

Every component logs through structlog with snake_case event names and
key/value context.  Records rendered through ``configure_logging`` carry:
    - timestamp (ISO-8601)
    - level and logger name
    - build_config_id / repository, taken from the watcher task that emitted
      them (see ``bind_watch_context``)
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Set once per watcher task.  asyncio copies the context when a task is
# created, so a value bound inside one repository task never shows up in
# another one or in the daemon's own records.
_ctx_build_config_id: ContextVar[str | None] = ContextVar("build_config_id", default=None)
_ctx_repository: ContextVar[str | None] = ContextVar("repository", default=None)

QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def bind_watch_context(
    build_config_id: str | None = None,
    repository: str | None = None,
) -> None:
    """Tag every record logged from the current task with the watched item."""
    if build_config_id is not None:
        _ctx_build_config_id.set(build_config_id)
    if repository is not None:
        _ctx_repository.set(repository)


def _inject_context_vars(
    _logger: WrappedLogger, _method: str, event_dict: EventDict
) -> EventDict:
    """Fill in the watch context; explicit keys on the call win."""
    for key, var in (("build_config_id", _ctx_build_config_id), ("repository", _ctx_repository)):
        value = var.get()
        if value is not None:
            event_dict.setdefault(key, value)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _inject_context_vars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def _renderer(format: str) -> Processor:
    if format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(
    level: str = "info",
    format: str = "console",
    log_file: str | None = None,
) -> None:
    """Route structlog through stdlib logging and install the handlers.

    Call once at startup.  *format* is ``"console"`` or ``"json"``; records
    always go to stdout and, when *log_file* is given, to that file too.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(format)],
    )
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level.upper())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger for *name*.

    Usage::

        log = get_logger(__name__)
        log.info("repository_cloned", uri="https://example.com/repo.git")
    """
    return structlog.get_logger(name)
