"""Commit graph: persistence and traversal of commit records."""

from typing import Dict, Iterator, List, Optional

from ..utils.logger import Logger
from ..utils.errors import (
    ObjectNotFoundError, BrokenChainError, NothingStagedError, StorageError
)
from ..storage.filesystem import FileSystemStorage
from ..storage.objects import is_object_id
from ..models.types import Commit, RepositoryState

MIN_PREFIX = 4


class CommitGraph:
    """Linear chain of immutable commits stored as ``commits/<id>.json``."""

    def __init__(self, storage: FileSystemStorage):
        self.storage = storage

    def _parts(self, commit_id: str) -> List[str]:
        return ["commits", f"{commit_id}.json"]

    def has(self, commit_id: Optional[str]) -> bool:
        if not commit_id or not is_object_id(commit_id):
            return False
        return self.storage.exists(*self._parts(commit_id))

    def save(self, commit: Commit) -> None:
        """Persist a commit record; existing records are left as they are."""
        if not commit.verify():
            raise BrokenChainError(f"Refusing to store commit {commit.short_id()}: id does not match content")
        if self.has(commit.id):
            return
        self.storage.save_json(commit.to_dict(), *self._parts(commit.id))

    def lookup(self, commit_id: str) -> Commit:
        if not self.has(commit_id):
            raise ObjectNotFoundError(f"Commit not found: {commit_id}")
        try:
            commit = Commit.from_dict(self.storage.load_json(*self._parts(commit_id)))
        except (StorageError, ValueError, TypeError) as e:
            raise BrokenChainError(f"Commit {commit_id[:12]} is unreadable: {e}") from e
        if commit.id != commit_id or not commit.verify():
            raise BrokenChainError(f"Commit {commit_id[:12]} failed verification")
        return commit

    def ids(self) -> List[str]:
        ids = []
        for path in self.storage.list_dir("commits"):
            name = path.name
            if name.endswith(".json") and is_object_id(name[:-5]):
                ids.append(name[:-5])
        return ids

    def resolve(self, ref: str, state: Optional[RepositoryState] = None) -> str:
        """Turn ``HEAD``, a full id or a unique id prefix into a commit id."""
        ref = (ref or '').strip()
        if ref.upper() == "HEAD":
            if state is None or state.head is None:
                raise ObjectNotFoundError("HEAD does not point to a commit yet")
            return state.head
        if self.has(ref):
            return ref
        ref = ref.lower()
        if len(ref) < MIN_PREFIX:
            raise ObjectNotFoundError(f"Commit not found: {ref!r}")
        matches = [cid for cid in self.ids() if cid.startswith(ref)]
        if not matches:
            raise ObjectNotFoundError(f"Commit not found: {ref}")
        if len(matches) > 1:
            raise ObjectNotFoundError(
                f"Commit prefix {ref} is ambiguous ({len(matches)} matches)"
            )
        return matches[0]

    def walk_history(self, from_id: Optional[str]) -> Iterator[Commit]:
        """Yield commits from ``from_id`` back to the root.

        Lazy and stateless: each call starts a fresh traversal.
        """
        if from_id is None:
            return
        commit = self.lookup(from_id)
        seen = set()
        while True:
            if commit.id in seen:
                raise BrokenChainError(f"History loops back to {commit.short_id()}")
            seen.add(commit.id)
            yield commit
            if commit.parent is None:
                return
            try:
                commit = self.lookup(commit.parent)
            except ObjectNotFoundError:
                raise BrokenChainError(
                    f"Commit {commit.short_id()} references missing parent {commit.parent[:12]}"
                )

    def is_ancestor(self, ancestor: Optional[str], descendant: Optional[str]) -> bool:
        """True if ``ancestor`` is ``descendant`` or one of its parents."""
        if ancestor is None:
            return True
        return any(c.id == ancestor for c in self.walk_history(descendant))

    def create_commit(
        self,
        message: str,
        state: RepositoryState,
        staged: Dict[str, str]
    ) -> Commit:
        """Build and store a commit from the staged entries.

        The snapshot carries every path of the parent snapshot forward and
        overrides the staged paths. HEAD is not moved here.
        """
        if not staged:
            raise NothingStagedError("Nothing staged to commit (use 'bucketgit add <file>')")

        snapshot: Dict[str, str] = {}
        if state.head is not None:
            snapshot.update(self.lookup(state.head).snapshot)
        snapshot.update(staged)

        commit = Commit.create(message=message, snapshot=snapshot, parent=state.head)
        self.save(commit)
        Logger.debug(f"Stored commit {commit.short_id()} ({len(snapshot)} paths)")
        return commit
