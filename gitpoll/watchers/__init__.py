"""Watcher implementations.

Each watcher polls one resource on a fixed interval and reports changes to
a listener.

Available watchers
------------------
BaseWatcher         — abstract fixed-interval polling task (base.py)
BuildConfigWatcher  — snapshot diff over the build-config list (buildconfig.py)
RepositoryWatcher   — new-commit detection through a local clone (repository.py)
"""

from gitpoll.watchers.base import BaseWatcher, BuildConfigListener, CommitListener
from gitpoll.watchers.buildconfig import BuildConfigWatcher
from gitpoll.watchers.repository import RepositoryWatcher

__all__ = [
    "BaseWatcher",
    "BuildConfigListener",
    "CommitListener",
    "BuildConfigWatcher",
    "RepositoryWatcher",
]
