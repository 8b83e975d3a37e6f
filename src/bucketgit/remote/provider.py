"""Base remote object store interface."""

from abc import ABC, abstractmethod
from typing import List

from ..utils.errors import ObjectNotFoundError

HEAD_KEY = "HEAD"
OBJECTS_PREFIX = "objects/"
COMMITS_PREFIX = "commits/"


def blob_key(blob_id: str) -> str:
    return f"{OBJECTS_PREFIX}{blob_id}"


def commit_key(commit_id: str) -> str:
    return f"{COMMITS_PREFIX}{commit_id}.json"


class RemoteStore(ABC):
    """Abstract base class for remote buckets addressed by key.

    Keys are relative to the store's own prefix. Implementations raise
    ``ObjectNotFoundError`` for absent keys and ``RemoteUnreachableError``
    for transport failures.
    """

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """Store ``data`` under ``key``, replacing any previous value."""
        pass

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Fetch the bytes stored under ``key``."""
        pass

    @abstractmethod
    def list(self, prefix: str = "") -> List[str]:
        """All keys starting with ``prefix``."""
        pass

    def exists(self, key: str) -> bool:
        try:
            self.get(key)
        except ObjectNotFoundError:
            return False
        return True

    def describe(self) -> str:
        return type(self).__name__
