"""gitpoll data models.

Domain state is represented with plain Python dataclasses; the outbound
webhook body is a Pydantic model so that its JSON shape is declared in one
place.

Key classes
-----------
BuildConfig       — one build-trigger configuration from the cluster API
CommitUser        — name + email of a commit author or committer
CommitDetails     — most recent commit of a watched repository
WatchState        — RepositoryWatcher state machine
RepositoryState   — per-repository watch state (clone dir, last commit)
GitHubPushEvent   — synthesised push-event webhook payload

Cluster API shape (v1beta1 BuildConfigList) quick-reference
-----------------------------------------------------------
::

    {"kind": "BuildConfigList",
     "items": [{"id": "frontend",
                "secret": "s3cr3t",
                "parameters": {"source": {"type": "Git",
                                          "git": {"uri": "https://...",
                                                  "ref": "stable"}}}}]}
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from gitpoll.exceptions import CommitReadError

DEFAULT_REF = "master"

# ``git log`` pretty format and the number of fields it yields.
COMMIT_FORMAT = "%H|%an|%ae|%cn|%ce|%s"
COMMIT_SEPARATOR = "|"
COMMIT_FIELD_COUNT = 6


# ---------------------------------------------------------------------------
# Build configurations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BuildConfig:
    """A build-trigger configuration.

    Replaced wholesale on every poll; never updated in place.
    """

    id: str
    uri: str
    ref: str = ""
    secret: str = ""

    @property
    def branch(self) -> str:
        """The ref to notify about, defaulting to ``master``."""
        return self.ref or DEFAULT_REF

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "BuildConfig":
        """Build from one item of a BuildConfigList response.

        Raises ValueError when the item has no id or no git URI.
        """
        build_id = data.get("id") or (data.get("metadata") or {}).get("name") or ""
        parameters = data.get("parameters") or {}
        git = (parameters.get("source") or {}).get("git") or {}
        uri = git.get("uri") or ""
        if not build_id:
            raise ValueError("build config has no id")
        if not uri:
            raise ValueError(f"build config {build_id!r} has no git source URI")
        return cls(
            id=str(build_id),
            uri=str(uri),
            ref=str(git.get("ref") or ""),
            secret=str(data.get("secret") or ""),
        )


# ---------------------------------------------------------------------------
# Commits
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommitUser:
    name: str
    email: str


@dataclass(frozen=True)
class CommitDetails:
    """The most recent commit of a checkout, as read from ``git log``."""

    commit: str
    message: str
    author: CommitUser
    committer: CommitUser

    @classmethod
    def parse(cls, output: str) -> "CommitDetails":
        """Parse one line of ``git log --pretty=%H|%an|%ae|%cn|%ce|%s`` output.

        The subject is the last field, so it may itself contain the
        separator.  Output with fewer than six fields, or without a hash,
        raises ``CommitReadError``.
        """
        line = output.strip("\r\n")
        parts = line.split(COMMIT_SEPARATOR, COMMIT_FIELD_COUNT - 1)
        if len(parts) < COMMIT_FIELD_COUNT or not parts[0].strip():
            raise CommitReadError(
                f"Malformed git log output: expected {COMMIT_FIELD_COUNT} fields, "
                f"got {len(parts)}",
                stderr=line,
            )
        commit, author_name, author_email, committer_name, committer_email, message = parts
        return cls(
            commit=commit.strip(),
            message=message,
            author=CommitUser(name=author_name, email=author_email),
            committer=CommitUser(name=committer_name, email=committer_email),
        )


# ---------------------------------------------------------------------------
# Repository watch state
# ---------------------------------------------------------------------------


class WatchState(str, Enum):
    """Lifecycle state of a RepositoryWatcher.

    State machine::

        UNINITIALIZED → TRACKING (clone + checkout + first commit read succeed)
                      → UNINITIALIZED (any of those fail; retried next tick)

        TRACKING → TRACKING (pull / read failures keep the last commit)

        UNINITIALIZED / TRACKING → STOPPED (external stop, terminal)
    """

    UNINITIALIZED = "uninitialized"
    TRACKING = "tracking"
    STOPPED = "stopped"


@dataclass
class RepositoryState:
    """Mutable per-repository watch state, owned by one RepositoryWatcher."""

    uri: str
    ref: str = ""
    workdir: Path | None = None
    """Private directory allocated on the first tick and reused afterwards."""

    commit: str | None = None
    """Last reported commit hash.  None until the first successful read."""

    state: WatchState = WatchState.UNINITIALIZED

    @property
    def repo_dir(self) -> Path | None:
        """Location of the clone inside the working directory."""
        return self.workdir / "repo" if self.workdir is not None else None


# ---------------------------------------------------------------------------
# Push event payload
# ---------------------------------------------------------------------------


class GitHubUser(BaseModel):
    name: str = ""
    email: str = ""


class GitHubCommit(BaseModel):
    id: str
    author: GitHubUser = Field(default_factory=GitHubUser)
    committer: GitHubUser = Field(default_factory=GitHubUser)
    message: str = ""


class GitHubPushEvent(BaseModel):
    """Best-effort approximation of a GitHub ``push`` webhook body."""

    ref: str
    after: str
    head_commit: GitHubCommit

    @classmethod
    def from_commit(cls, build_config: BuildConfig, details: CommitDetails) -> "GitHubPushEvent":
        return cls(
            ref=f"refs/heads/{build_config.branch}",
            after=details.commit,
            head_commit=GitHubCommit(
                id=details.commit,
                author=GitHubUser(name=details.author.name, email=details.author.email),
                committer=GitHubUser(name=details.committer.name, email=details.committer.email),
                message=details.message,
            ),
        )
