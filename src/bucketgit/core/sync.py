"""Synchronization of local history with a remote bucket."""

from typing import List, Optional, Set

from ..utils.logger import Logger
from ..utils.errors import (
    BrokenChainError, DivergentHistoryError, ObjectNotFoundError
)
from ..storage.objects import ContentStore, is_object_id
from ..remote.provider import (
    RemoteStore, HEAD_KEY, OBJECTS_PREFIX, COMMITS_PREFIX, blob_key, commit_key
)
from ..models.types import Commit, RepositoryState, PushResult, PullResult
from ..storage.serialization import Serializer
from .commits import CommitGraph


class RemoteSync:
    """Reconciles the content store and commit graph with one remote.

    Every transfer is existence-checked and keyed by content hash, so an
    interrupted push or pull is resumed by simply running it again.
    """

    def __init__(self, objects: ContentStore, graph: CommitGraph, remote: RemoteStore):
        self.objects = objects
        self.graph = graph
        self.remote = remote
        self.serializer = Serializer()

    def remote_head(self) -> Optional[str]:
        try:
            raw = self.remote.get(HEAD_KEY)
        except ObjectNotFoundError:
            return None
        head = raw.decode('utf-8', errors='replace').strip()
        if not is_object_id(head):
            raise BrokenChainError(f"Remote HEAD is not a commit id: {head[:40]!r}")
        return head

    def manifest(self) -> Set[str]:
        """Keys of every blob and commit currently in the remote."""
        keys = set(self.remote.list(OBJECTS_PREFIX))
        keys.update(self.remote.list(COMMITS_PREFIX))
        return keys

    def push(self, state: RepositoryState, force: bool = False) -> PushResult:
        """Upload local-only objects, then move the remote HEAD."""
        result = PushResult(head=state.head)
        if state.head is None:
            Logger.info("Nothing to push: no commits yet")
            return result

        history = list(self.graph.walk_history(state.head))
        local_ids = {c.id for c in history}

        remote_head = self.remote_head()
        if remote_head == state.head:
            Logger.info(f"Remote already at {state.head[:8]}")
        elif remote_head is not None and remote_head not in local_ids and not force:
            raise DivergentHistoryError(
                f"Remote HEAD {remote_head[:8]} is not in local history; "
                f"pull first or push with --force"
            )

        present = self.manifest()

        blob_ids: List[str] = []
        seen: Set[str] = set()
        for commit in history:
            for blob_id in commit.snapshot.values():
                if blob_id not in seen:
                    seen.add(blob_id)
                    blob_ids.append(blob_id)

        for blob_id in blob_ids:
            if blob_key(blob_id) in present:
                continue
            self.remote.put(blob_key(blob_id), self.objects.get(blob_id))
            result.blobs_uploaded += 1

        # Oldest first, so the remote never holds a commit whose parent is missing.
        for commit in reversed(history):
            if commit_key(commit.id) in present:
                continue
            self.remote.put(commit_key(commit.id), self.serializer.to_json(commit.to_dict()))
            result.commits_uploaded += 1

        if remote_head != state.head:
            self.remote.put(HEAD_KEY, state.head.encode('ascii'))
            result.head_updated = True

        Logger.debug(
            f"Push to {self.remote.describe()}: {result.blobs_uploaded} blobs, "
            f"{result.commits_uploaded} commits uploaded"
        )
        return result

    def _fetch_commit(self, commit_id: str) -> Commit:
        try:
            raw = self.remote.get(commit_key(commit_id))
        except ObjectNotFoundError:
            raise BrokenChainError(f"Remote history references missing commit {commit_id[:12]}")
        try:
            commit = Commit.from_dict(self.serializer.from_json(raw))
        except (ValueError, TypeError) as e:
            raise BrokenChainError(f"Remote commit {commit_id[:12]} is unreadable: {e}") from e
        if commit.id != commit_id or not commit.verify():
            raise BrokenChainError(f"Remote commit {commit_id[:12]} failed verification")
        return commit

    def pull(self, state: RepositoryState) -> PullResult:
        """Download remote-only objects and fast-forward HEAD.

        The caller persists the returned head; nothing local changes if
        this raises.
        """
        result = PullResult(previous_head=state.head, head=state.head)
        remote_head = self.remote_head()
        if remote_head is None:
            Logger.info("Remote has no commits yet")
            return result
        if remote_head == state.head:
            Logger.info(f"Already up to date at {state.head[:8]}")
            return result

        local = state.head[:8] if state.head else '(none)'
        if self.graph.has(remote_head):
            if self.graph.is_ancestor(remote_head, state.head):
                Logger.info(f"Local HEAD is ahead of remote {remote_head[:8]}; nothing to pull")
                return result
            if not self.graph.is_ancestor(state.head, remote_head):
                raise DivergentHistoryError(
                    f"Local HEAD {local} is not an ancestor of remote HEAD {remote_head[:8]}"
                )
            # An earlier pull stored the whole chain but never moved HEAD.
            Logger.info(f"Remote commits already stored; fast-forwarding to {remote_head[:8]}")
            result.head = remote_head
            return result

        # Newest first, stopping at the first commit we already have.
        missing: List[Commit] = []
        commit_id: Optional[str] = remote_head
        while commit_id is not None and not self.graph.has(commit_id):
            commit = self._fetch_commit(commit_id)
            missing.append(commit)
            commit_id = commit.parent
        junction = commit_id

        # The junction is past local HEAD when an earlier pull stopped midway.
        if junction != state.head and (
            junction is None or not self.graph.is_ancestor(state.head, junction)
        ):
            raise DivergentHistoryError(
                f"Local HEAD {local} is not an ancestor of remote HEAD {remote_head[:8]}"
            )

        for commit in reversed(missing):
            for blob_id in sorted(set(commit.snapshot.values())):
                if self.objects.has(blob_id):
                    continue
                try:
                    data = self.remote.get(blob_key(blob_id))
                except ObjectNotFoundError:
                    raise BrokenChainError(
                        f"Remote commit {commit.short_id()} references missing blob {blob_id[:12]}"
                    )
                self.objects.put_verified(data, blob_id)
                result.blobs_downloaded += 1

        for commit in reversed(missing):
            if commit.parent is not None and not self.graph.has(commit.parent):
                raise BrokenChainError(
                    f"Commit {commit.short_id()} references missing parent {commit.parent[:12]}"
                )
            self.graph.save(commit)
            result.commits_downloaded += 1

        result.head = remote_head
        return result
