"""HookDaemon — keeps repository watchers in step with the build configs.

HookDaemon is the watcher lifecycle manager.  It:

1. **Listens** to the BuildConfigWatcher as its ``BuildConfigListener``.
2. **Arms** a RepositoryWatcher for every build config that appears.
3. **Disarms** the watcher of every build config that disappears.
4. **Forwards** each detected commit, together with its build config, to
   the WebhookDispatcher.

Flow::

    BuildConfigWatcher ──added / deleted──► HookDaemon ──start / stop──► RepositoryWatcher
                                                ▲                              │
                                                └──────── commit available ────┘
                                                │
                                                ▼
                                        WebhookDispatcher ──POST──► cluster API

Startup::

    daemon = HookDaemon.from_settings(Settings.load())
    await daemon.start()
    ...
    await daemon.stop()
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from gitpoll.config import Settings
from gitpoll.dispatcher import WebhookDispatcher
from gitpoll.git import CommandRunner, Git
from gitpoll.logging import get_logger
from gitpoll.models import BuildConfig, CommitDetails
from gitpoll.registry import WatcherRegistry
from gitpoll.source import ApiBuildConfigSource, BuildConfigSource
from gitpoll.watchers.base import BuildConfigListener, CommitListener
from gitpoll.watchers.buildconfig import BuildConfigWatcher
from gitpoll.watchers.repository import RepositoryWatcher

log = get_logger(__name__)


class _BuildLauncher(CommitListener):
    """Commit listener scoped to one build config."""

    def __init__(self, daemon: "HookDaemon", build_config: BuildConfig) -> None:
        self._daemon = daemon
        self._build_config = build_config

    async def commit_available(self, details: CommitDetails) -> None:
        await self._daemon.commit_detected(self._build_config, details)


class HookDaemon(BuildConfigListener):
    """Owns the watcher registry and wires watchers to the dispatcher.

    Every instance has its own registry, so several daemons (e.g. in tests)
    never share state.
    """

    def __init__(
        self,
        source: BuildConfigSource,
        dispatcher: WebhookDispatcher,
        git: Git | None = None,
        build_config_interval: float = 10.0,
        repository_interval: float = 10.0,
        workdir_root: Path | None = None,
    ) -> None:
        self._source = source
        self._dispatcher = dispatcher
        self._git = git or Git()
        self._repository_interval = repository_interval
        self._workdir_root = workdir_root
        self.registry = WatcherRegistry()
        self.build_config_watcher = BuildConfigWatcher(
            source=source,
            listener=self,
            interval=build_config_interval,
        )
        self._started = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "HookDaemon":
        """Build a daemon with the HTTP and git collaborators from *settings*."""
        source = ApiBuildConfigSource(
            endpoint=settings.endpoint,
            path=settings.http.build_configs_path,
            timeout=settings.http.timeout_seconds,
        )
        dispatcher = WebhookDispatcher(
            endpoint=settings.endpoint,
            hook_path=settings.http.hook_path,
            provider=settings.http.provider,
            user_agent=settings.http.user_agent,
            timeout=settings.http.timeout_seconds,
        )
        git = Git(
            runner=CommandRunner(timeout=settings.git.timeout_seconds),
            binary=settings.git.binary,
        )
        return cls(
            source=source,
            dispatcher=dispatcher,
            git=git,
            build_config_interval=settings.intervals.build_configs_seconds,
            repository_interval=settings.intervals.repository_seconds,
            workdir_root=settings.git.workdir,
        )

    # ---------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------

    async def start(self) -> None:
        """Start polling the build configs."""
        if self._started:
            return
        self._started = True
        await self.build_config_watcher.start()
        log.info("hook_daemon_started", interval=self.build_config_watcher.interval)

    async def stop(self) -> None:
        """Stop the build-config watcher, every repository watcher, and the clients."""
        if not self._started:
            return
        self._started = False

        await self.build_config_watcher.stop()

        # Stop all watchers concurrently
        watchers = self.registry.drain()
        await asyncio.gather(*(w.stop() for w in watchers), return_exceptions=True)

        await self._source.close()
        await self._dispatcher.close()
        log.info("hook_daemon_stopped", stopped_watchers=len(watchers))

    @property
    def is_running(self) -> bool:
        return self._started

    # ---------------------------------------------------------------------------
    # BuildConfigListener
    # ---------------------------------------------------------------------------

    async def build_config_added(self, build_config: BuildConfig) -> None:
        if build_config.id in self.registry:
            log.warning("repository_watcher_exists", build_config_id=build_config.id)
            return
        watcher = RepositoryWatcher(
            uri=build_config.uri,
            ref=build_config.ref,
            listener=_BuildLauncher(self, build_config),
            interval=self._repository_interval,
            git=self._git,
            workdir_root=self._workdir_root,
            build_config_id=build_config.id,
        )
        self.registry.register(build_config.id, watcher)
        await watcher.start()
        log.info(
            "repository_watcher_armed",
            build_config_id=build_config.id,
            uri=build_config.uri,
            ref=build_config.ref or None,
        )

    async def build_config_deleted(self, build_id: str) -> None:
        watcher = self.registry.pop(build_id)
        if watcher is None:
            return
        await watcher.stop()
        log.info("repository_watcher_disarmed", build_config_id=build_id)

    # ---------------------------------------------------------------------------
    # Commit forwarding
    # ---------------------------------------------------------------------------

    async def commit_detected(self, build_config: BuildConfig, details: CommitDetails) -> None:
        """Hand a detected commit to the dispatcher."""
        log.info(
            "commit_available",
            build_config_id=build_config.id,
            commit=details.commit,
            message=details.message,
        )
        await self._dispatcher.notify(build_config, details)
