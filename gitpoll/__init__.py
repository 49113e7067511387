"""gitpoll — turns new git commits into build-config webhook calls.

gitpoll watches the build configurations of a cluster API, clones the git
repository each one points at, and polls those clones for new commits.
Every new commit is delivered to the cluster's build-config webhook as a
GitHub-style push event, so builds can be triggered for repositories whose
hosting side cannot send webhooks itself.

Architecture (leaves first):
    1. Store       — identity-keyed snapshot of known build configs
    2. Source / Git — cluster API client and git subprocess collaborator
    3. Watchers    — BuildConfigWatcher (collection) and RepositoryWatcher
    4. Daemon      — HookDaemon, the watcher lifecycle manager
    5. Dispatcher  — WebhookDispatcher, synthesises and posts push events
"""

__version__ = "0.1.0"
__author__ = "gitpoll Contributors"
__license__ = "Apache-2.0"

from gitpoll.models import BuildConfig, CommitDetails, CommitUser

__all__ = [
    "__version__",
    "BuildConfig",
    "CommitDetails",
    "CommitUser",
]
