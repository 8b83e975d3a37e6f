"""Main bucketgit repository implementation."""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional, List, Union

from ..utils.logger import Logger
from ..utils.config import Config, StorageConfig
from ..utils.lock import RepositoryLock
from ..storage.filesystem import FileSystemStorage
from ..storage.objects import ContentStore
from ..storage.index import StagingIndex
from ..storage.state import StateManager
from ..remote import RemoteStore, create_remote
from ..models.types import (
    Commit, RepositoryState, PushResult, PullResult, RevertResult, StatusInfo
)
from .commits import CommitGraph
from .sync import RemoteSync
from .revert import RevertEngine

CONFIG_FILE = 'config.yaml'


class Repository:
    """One working copy and its hidden ``.bucketgit`` store.

    Each command method loads the repository state once and hands it to the
    components explicitly.
    """

    def __init__(
        self,
        repo_path: Union[str, Path] = ".",
        config: Optional[Config] = None,
        remote: Optional[RemoteStore] = None
    ):
        self.repo_path = Path(repo_path).resolve()
        self.config = config or Config.load(
            self.repo_path / StorageConfig.from_env().repo_dir / CONFIG_FILE
        )

        # Initialize components
        self.storage = FileSystemStorage(
            self.repo_path,
            self.config.storage.repo_dir,
            fsync=self.config.storage.fsync
        )
        self.objects = ContentStore(self.storage)
        self.index = StagingIndex(self.storage, self.objects)
        self.state = StateManager(self.storage)
        self.graph = CommitGraph(self.storage)
        self.reverter = RevertEngine(self.storage, self.objects, self.graph)
        self._remote = remote

        Logger.debug(f"Repository opened at {self.repo_path}")

    @property
    def remote(self) -> RemoteStore:
        """The configured remote, created on first use."""
        if self._remote is None:
            self._remote = create_remote(self.config.remote)
        return self._remote

    @contextmanager
    def locked(self):
        self.state.require()
        with RepositoryLock(self.storage.get_path("lock")):
            yield

    def init(self) -> RepositoryState:
        """Initialize a repository at ``repo_path``."""
        state = self.state.init()
        self.index.clear(None)
        config_path = self.storage.get_path(CONFIG_FILE)
        if not config_path.exists():
            self.config.save(config_path)
        Logger.success(f"Initialized empty repository in {self.storage.repo_path}")
        return state

    def load_state(self) -> RepositoryState:
        """Load state and settle an index left behind by an interrupted commit."""
        state = self.state.load()
        action = self._index_action(state)
        if action == "clear":
            Logger.warning(
                f"Clearing staging index already recorded in commit {state.head[:8]}"
            )
            self.index.clear(state.head)
        elif action == "rebase":
            self.index.rebase(state.head)
        return state

    def _index_action(self, state: RepositoryState) -> Optional[str]:
        """How the index must change to match HEAD: ``clear``, ``rebase`` or None."""
        base = self.index.base
        if base == state.head or state.head is None:
            return None
        if self.index.is_empty():
            return "rebase"

        head = self.graph.lookup(state.head)
        staged = self.index.current_snapshot()
        consumed = head.parent == base and all(
            head.snapshot.get(path) == blob_id for path, blob_id in staged.items()
        )
        return "clear" if consumed else "rebase"

    def add(self, file_path: Union[str, Path]) -> str:
        """Stage one file."""
        with self.locked():
            state = self.load_state()
            relative = self.index.stage(file_path, state.head)
        Logger.success(f"Staged {relative}")
        return relative

    def commit(self, message: str) -> Commit:
        """Create a commit from the staged files."""
        with self.locked():
            state = self.load_state()
            commit = self.graph.create_commit(message, state, self.index.current_snapshot())

            # Moving HEAD is the commit point; the index reset after it is
            # recovered by load_state if it never reaches disk.
            state.head = commit.id
            self.state.save(state)
            self.index.clear(commit.id)

        Logger.success(f"Commit {commit.short_id()}: {message}")
        return commit

    def push(self, force: bool = False) -> PushResult:
        """Upload local commits and blobs to the remote."""
        with self.locked():
            state = self.load_state()
            sync = RemoteSync(self.objects, self.graph, self.remote)
            result = sync.push(state, force=force)

        if result.uploads or result.head_updated:
            Logger.success(
                f"Pushed {result.commits_uploaded} commits and {result.blobs_uploaded} blobs "
                f"to {self.remote.describe()}"
            )
        else:
            Logger.success("Everything up to date")
        return result

    def pull(self) -> PullResult:
        """Download remote commits and fast-forward HEAD."""
        with self.locked():
            state = self.load_state()
            sync = RemoteSync(self.objects, self.graph, self.remote)
            result = sync.pull(state)
            if result.updated:
                state.head = result.head
                self.state.save(state)
                self.index.rebase(state.head)

        if result.updated:
            Logger.success(
                f"Pulled {result.commits_downloaded} commits; HEAD is now {result.head[:8]}"
            )
        else:
            Logger.success("Already up to date")
        return result

    def revert(self, commit_ref: str) -> RevertResult:
        """Restore working-copy files to a commit's snapshot."""
        with self.locked():
            state = self.load_state()
            result = self.reverter.revert(state, commit_ref)

        Logger.success(
            f"Restored {len(result.restored)} files from {result.commit_id[:8]} "
            f"({len(result.unchanged)} already matched)"
        )
        return result

    def log(self, limit: Optional[int] = None) -> List[Commit]:
        """Commit history from HEAD, newest first. Writes nothing."""
        state = self.state.load()
        commits = []
        for commit in self.graph.walk_history(state.head):
            if limit is not None and len(commits) >= limit:
                break
            commits.append(commit)
        return commits

    def status(self) -> StatusInfo:
        """Get current status. Writes nothing, so no lock is taken."""
        state = self.state.load()
        staged = {}
        if self._index_action(state) != "clear":
            staged = self.index.current_snapshot()
        info = StatusInfo(head=state.head, staged=staged)
        if state.head is None:
            return info

        head = self.graph.lookup(state.head)
        info.head_message = head.message
        info.commits = sum(1 for _ in self.graph.walk_history(state.head))

        for path, blob_id in sorted(head.snapshot.items()):
            target = self.storage.working_path(path)
            if not target.is_file():
                info.missing.append(path)
            elif self.storage.hash_file(target) != info.staged.get(path, blob_id):
                info.modified.append(path)
        return info
