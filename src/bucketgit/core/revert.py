"""Restores working-copy files from a commit snapshot."""

from ..utils.logger import Logger
from ..utils.errors import StorageError
from ..storage.filesystem import FileSystemStorage, atomic_write
from ..storage.objects import ContentStore
from ..models.types import RepositoryState, RevertResult
from .commits import CommitGraph


class RevertEngine:
    """Rewrites tracked files to match a commit.

    A read-only checkout: HEAD, the staging index and the commit graph are
    untouched, and files missing from the snapshot are left in place.
    """

    def __init__(self, storage: FileSystemStorage, objects: ContentStore, graph: CommitGraph):
        self.storage = storage
        self.objects = objects
        self.graph = graph

    def revert(self, state: RepositoryState, ref: str) -> RevertResult:
        commit = self.graph.lookup(self.graph.resolve(ref, state))
        result = RevertResult(commit_id=commit.id)

        # Every path is checked before any file is written.
        targets = [
            (path, blob_id, self.storage.working_path(path))
            for path, blob_id in sorted(commit.snapshot.items())
        ]
        for path, blob_id, target in targets:
            if target.is_file() and self.storage.hash_file(target) == blob_id:
                result.unchanged.append(path)
                continue
            if target.exists() and not target.is_file():
                raise StorageError(f"Cannot restore {path}: a directory is in the way")

            data = self.objects.get(blob_id)
            try:
                atomic_write(target, data, self.storage.fsync)
            except OSError as e:
                raise StorageError(f"Failed to restore {path}: {e}") from e
            result.restored.append(path)
            Logger.debug(f"Restored {path} from {blob_id[:8]}")

        return result
