"""Repository state persistence."""

from pathlib import Path
from typing import Optional, Union

from ..utils.logger import Logger
from ..utils.errors import NotInitializedError, AlreadyInitializedError, StorageError
from ..models.types import RepositoryState
from .filesystem import FileSystemStorage

STATE_FILE = 'state.yaml'
GITIGNORE = "lock\n.tmp_*\n"


def find_root(start: Union[str, Path], repo_dir: str = ".bucketgit") -> Optional[Path]:
    """Walk up from ``start`` to the first directory holding a repository."""
    current = Path(start).resolve()
    for candidate in [current, *current.parents]:
        if (candidate / repo_dir / STATE_FILE).exists():
            return candidate
    return None


class StateManager:
    """Creates, loads and saves the repository state record."""

    def __init__(self, storage: FileSystemStorage):
        self.storage = storage

    def is_initialized(self) -> bool:
        return self.storage.exists(STATE_FILE)

    def init(self) -> RepositoryState:
        """Create the storage layout and an empty state."""
        if self.is_initialized():
            raise AlreadyInitializedError(
                f"Repository already initialized at {self.storage.repo_path}"
            )

        for d in ("objects", "commits"):
            self.storage.ensure_dir(d)
        if not self.storage.exists(".gitignore"):
            self.storage.save_text(GITIGNORE, ".gitignore")

        state = RepositoryState(root_path=str(self.storage.root_path), head=None)
        # The state record is written last: its presence marks the repository.
        self.save(state)
        return state

    def require(self) -> None:
        if not self.is_initialized():
            raise NotInitializedError(
                f"Not a bucketgit repository: {self.storage.root_path} "
                f"(run 'bucketgit init' first)"
            )

    def load(self) -> RepositoryState:
        self.require()
        data = self.storage.load_yaml(STATE_FILE)
        try:
            state = RepositoryState.from_dict(data)
        except (KeyError, ValueError) as e:
            raise StorageError(f"Corrupted repository state: {e}") from e

        actual = str(self.storage.root_path)
        if state.root_path != actual:
            Logger.debug(f"Repository moved from {state.root_path} to {actual}")
            state = RepositoryState(root_path=actual, head=state.head)
        return state

    def save(self, state: RepositoryState) -> None:
        self.storage.save_yaml(state.to_dict(), STATE_FILE)
        Logger.debug(f"HEAD -> {state.head or '(none)'}")
