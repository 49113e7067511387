"""Shared pytest fixtures for the gitpoll test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from gitpoll.config import Settings
from gitpoll.git import Git
from gitpoll.models import BuildConfig, CommitDetails, CommitUser
from gitpoll.source import BuildConfigSource
from gitpoll.watchers.base import BuildConfigListener, CommitListener


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_commit(commit: str, message: str = "m") -> CommitDetails:
    return CommitDetails(
        commit=commit,
        message=message,
        author=CommitUser(name="Ada", email="ada@example.com"),
        committer=CommitUser(name="Bob", email="bob@example.com"),
    )


def make_build_config(build_id: str, uri: str | None = None, ref: str = "", secret: str = "s") -> BuildConfig:
    return BuildConfig(id=build_id, uri=uri or f"repo-{build_id}", ref=ref, secret=secret)


def mock_git(*commits: object) -> MagicMock:
    """A ``Git`` double whose ``last_commit`` yields *commits* in order."""
    git = MagicMock(spec=Git)
    git.clone = AsyncMock()
    git.checkout = AsyncMock()
    git.pull = AsyncMock()
    git.last_commit = AsyncMock(side_effect=list(commits))
    return git


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeSource(BuildConfigSource):
    """In-memory build-config source.  Set ``items`` or ``error`` between polls."""

    def __init__(self, items: list[BuildConfig] | None = None) -> None:
        self.items: list[BuildConfig] = list(items or [])
        self.error: Exception | None = None
        self.calls = 0
        self.closed = False

    async def list_build_configs(self) -> list[BuildConfig]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.items)

    async def close(self) -> None:
        self.closed = True


class RecordingBuildConfigListener(BuildConfigListener):
    def __init__(self) -> None:
        self.added: list[BuildConfig] = []
        self.deleted: list[str] = []

    async def build_config_added(self, build_config: BuildConfig) -> None:
        self.added.append(build_config)

    async def build_config_deleted(self, build_id: str) -> None:
        self.deleted.append(build_id)


class RecordingCommitListener(CommitListener):
    def __init__(self) -> None:
        self.details: list[CommitDetails] = []

    @property
    def commits(self) -> list[str]:
        return [d.commit for d in self.details]

    async def commit_available(self, details: CommitDetails) -> None:
        self.details.append(details)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        endpoint="http://cluster.test:8080",
        intervals={"build_configs_seconds": 0.01, "repository_seconds": 0.01, "heartbeat_seconds": 0.01},
        git={"workdir": str(tmp_path / "clones")},
        logging={"level": "debug", "format": "console"},
    )


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def build_config_listener() -> RecordingBuildConfigListener:
    return RecordingBuildConfigListener()


@pytest.fixture
def commit_listener() -> RecordingCommitListener:
    return RecordingCommitListener()
