"""gitpoll — Exception hierarchy.

All exceptions raised by gitpoll inherit from GitPollError so that a watcher
tick can catch the full family with a single except clause.

Hierarchy:
    GitPollError
    ├── FetchError          — build-config list could not be fetched
    ├── GitError            — a git subprocess failed
    │   ├── CloneError
    │   ├── CheckoutError
    │   ├── PullError
    │   └── CommitReadError — includes malformed ``git log`` output
    └── DispatchError       — webhook payload could not be delivered

None of these is fatal to the process: every error ends the current tick
only, and the watcher that raised it keeps its schedule.
"""

from __future__ import annotations

from typing import Any


class GitPollError(Exception):
    """Base exception for all gitpoll errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context})"


# ---------------------------------------------------------------------------
# Collection source
# ---------------------------------------------------------------------------


class FetchError(GitPollError):
    """Listing build configurations from the cluster API failed."""

    def __init__(self, endpoint: str, reason: str) -> None:
        super().__init__(
            f"Cannot list build configs from '{endpoint}': {reason}",
            context={"endpoint": endpoint, "reason": reason},
        )
        self.endpoint = endpoint
        self.reason = reason


# ---------------------------------------------------------------------------
# Git
# ---------------------------------------------------------------------------


class GitError(GitPollError):
    """A git command exited non-zero, timed out, or could not be started."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(
            message,
            context={"command": command or [], "returncode": returncode, "stderr": stderr},
        )
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr


class CloneError(GitError):
    """``git clone`` failed."""


class CheckoutError(GitError):
    """``git checkout <ref>`` failed."""


class PullError(GitError):
    """``git pull`` failed."""


class CommitReadError(GitError):
    """``git log`` failed or produced output with missing fields."""


# ---------------------------------------------------------------------------
# Webhook delivery
# ---------------------------------------------------------------------------


class DispatchError(GitPollError):
    """The push event could not be delivered to the webhook endpoint."""

    def __init__(self, url: str, reason: str, status_code: int | None = None) -> None:
        super().__init__(
            f"Webhook delivery to '{url}' failed: {reason}",
            context={"url": url, "reason": reason, "status_code": status_code},
        )
        self.url = url
        self.reason = reason
        self.status_code = status_code
