"""RepositoryWatcher — detects new commits of one git repository.

One instance per watched repository.  Each tick moves the watcher through
its state machine (see ``WatchState``):

UNINITIALIZED
    Allocate the private working directory (once), clone into it, check out
    the configured ref and read the current commit.  Success reports that
    commit unconditionally and moves to TRACKING.  Any failure is logged and
    the next tick starts over with a fresh clone inside the same directory.

TRACKING
    Fetch and hard-reset the clone to its upstream branch, then read the
    commit.  A failed update skips the read; a read failure keeps the
    last-known commit.  The listener hears only about hashes that differ
    from the last-known one, so a rewritten upstream history is followed
    rather than merged.

STOPPED
    Terminal.  The task is cancelled, any running git process killed, and
    the working directory removed.
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from pathlib import Path

from gitpoll.exceptions import CommitReadError, GitError, PullError
from gitpoll.git import Git
from gitpoll.logging import bind_watch_context, get_logger
from gitpoll.models import CommitDetails, RepositoryState, WatchState
from gitpoll.watchers.base import BaseWatcher, CommitListener

log = get_logger(__name__)


class RepositoryWatcher(BaseWatcher):
    """Polls one repository through a private local clone."""

    def __init__(
        self,
        uri: str,
        ref: str,
        listener: CommitListener | None,
        interval: float = 10.0,
        git: Git | None = None,
        workdir_root: Path | None = None,
        build_config_id: str | None = None,
    ) -> None:
        super().__init__(build_config_id or uri, interval)
        self.build_config_id = build_config_id
        self._listener = listener
        self._git = git or Git()
        self._workdir_root = workdir_root
        self.state = RepositoryState(uri=uri, ref=ref)

    @property
    def watch_state(self) -> WatchState:
        return self.state.state

    @property
    def commit(self) -> str | None:
        return self.state.commit

    async def stop(self) -> None:
        await super().stop()
        self.state.state = WatchState.STOPPED
        if self.state.workdir is not None:
            await asyncio.to_thread(shutil.rmtree, self.state.workdir, True)
            log.debug("repository_workdir_removed", uri=self.state.uri, workdir=str(self.state.workdir))

    def _bind_context(self) -> None:
        bind_watch_context(build_config_id=self.build_config_id, repository=self.state.uri)

    async def _tick(self) -> None:
        await self.tick()

    async def tick(self) -> None:
        """Run one step of the state machine."""
        if self.state.state == WatchState.STOPPED:
            return
        if self.state.state == WatchState.UNINITIALIZED:
            await self._initialize()
        else:
            await self._check_update()

    # ---------------------------------------------------------------------------
    # States
    # ---------------------------------------------------------------------------

    async def _initialize(self) -> None:
        uri = self.state.uri
        log.info("repository_initializing", uri=uri, ref=self.state.ref or None)
        try:
            repo_dir = await asyncio.to_thread(self._prepare_workdir)
        except OSError as exc:
            log.error("repository_workdir_failed", uri=uri, error=str(exc))
            return

        try:
            await self._git.clone(uri, repo_dir)
            if self.state.ref:
                await self._git.checkout(repo_dir, self.state.ref)
            details = await self._git.last_commit(repo_dir)
        except GitError as exc:
            log.warning(
                "repository_initialize_failed",
                uri=uri,
                stage=exc.__class__.__name__,
                error=exc.message,
            )
            return

        self.state.commit = details.commit
        self.state.state = WatchState.TRACKING
        log.info("repository_tracking", uri=uri, commit=details.commit)
        await self._notify(details)

    async def _check_update(self) -> None:
        uri = self.state.uri
        repo_dir = self.state.repo_dir
        if repo_dir is None:
            raise RuntimeError(f"Tracking {uri} without a working directory")
        try:
            await self._git.pull(repo_dir)
        except PullError as exc:
            log.warning("repository_pull_failed", uri=uri, error=exc.message)
            return
        try:
            details = await self._git.last_commit(repo_dir)
        except CommitReadError as exc:
            log.warning("repository_commit_read_failed", uri=uri, error=exc.message)
            return

        if details.commit == self.state.commit:
            return
        log.info("repository_commit_detected", uri=uri, previous=self.state.commit, commit=details.commit)
        self.state.commit = details.commit
        await self._notify(details)

    # ---------------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------------

    def _prepare_workdir(self) -> Path:
        """Allocate the working directory once and clear any stale clone."""
        workdir = self.state.workdir
        if workdir is None:
            if self._workdir_root is not None:
                self._workdir_root.mkdir(parents=True, exist_ok=True)
            workdir = Path(tempfile.mkdtemp(prefix="watchrepo", dir=self._workdir_root))
            self.state.workdir = workdir
        repo_dir = workdir / "repo"
        if repo_dir.exists():
            shutil.rmtree(repo_dir)
        return repo_dir

    async def _notify(self, details: CommitDetails) -> None:
        if self._listener is None:
            return
        try:
            await self._listener.commit_available(details)
        except Exception as exc:
            log.error("commit_listener_error", uri=self.state.uri, error=str(exc))
