"""
bucketgit - git-like version control synced to an object store
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Stage files, commit full snapshots to a content-addressed local store, and
push or pull the history to an S3 bucket.

Basic usage:
    >>> from bucketgit import Repository
    >>> repo = Repository(".")
    >>> repo.init()
    >>> repo.add("notes.txt")
    >>> repo.commit("First notes")
    >>> repo.push()

:license: MIT, see LICENSE for more details.
"""

__version__ = "0.1.0"

from .core.repository import Repository
from .models.types import Commit, RepositoryState, PushResult, PullResult, RevertResult

__all__ = [
    "Repository",
    "Commit",
    "RepositoryState",
    "PushResult",
    "PullResult",
    "RevertResult",
]
