"""Filesystem operations for bucketgit."""

import os
import tempfile
from pathlib import Path
from typing import List, Any, Union
import hashlib

from ..utils.errors import StorageError
from .serialization import Serializer


def atomic_write(path: Path, data: bytes, fsync: bool = True) -> None:
    """Write bytes to ``path`` via a temp file and an atomic rename.

    Readers see either the old content or the new content, never a
    partially written file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(
        dir=str(path.parent), prefix=".tmp_", suffix=f"_{path.name}"
    )
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            if fsync:
                os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise


class FileSystemStorage:
    """Handles all file access below the repository's hidden directory."""

    def __init__(self, root_path: Union[str, Path], repo_dir: str = ".bucketgit",
                 fsync: bool = True):
        self.root_path = Path(root_path).resolve()
        self.repo_path = self.root_path / repo_dir
        self.serializer = Serializer()
        self.fsync = fsync

    def ensure_dir(self, *parts: str) -> Path:
        """Ensure directory exists and return its path."""
        path = self.repo_path.joinpath(*parts)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_path(self, *parts: str) -> Path:
        """Get path relative to the repository directory."""
        return self.repo_path.joinpath(*parts)

    def exists(self, *parts: str) -> bool:
        """Check if path exists."""
        return self.get_path(*parts).exists()

    def list_dir(self, *parts: str) -> List[Path]:
        """List contents of directory."""
        path = self.get_path(*parts)
        if not path.exists():
            return []
        return sorted(path.iterdir())

    def save_bytes(self, data: bytes, *parts: str) -> Path:
        path = self.get_path(*parts)
        try:
            atomic_write(path, data, self.fsync)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        return path

    def load_bytes(self, *parts: str) -> bytes:
        path = self.get_path(*parts)
        if not path.exists():
            raise StorageError(f"File not found: {path}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def save_json(self, data: Any, *parts: str) -> Path:
        """Save data as JSON."""
        return self.save_bytes(self.serializer.to_json(data), *parts)

    def load_json(self, *parts: str) -> Any:
        """Load data from JSON."""
        raw = self.load_bytes(*parts)
        try:
            return self.serializer.from_json(raw)
        except ValueError as e:
            raise StorageError(f"Corrupted JSON record {self.get_path(*parts)}: {e}") from e

    def save_yaml(self, data: Any, *parts: str) -> Path:
        """Save data as YAML."""
        return self.save_bytes(self.serializer.to_yaml(data), *parts)

    def load_yaml(self, *parts: str) -> Any:
        """Load data from YAML."""
        raw = self.load_bytes(*parts)
        try:
            return self.serializer.from_yaml(raw)
        except Exception as e:
            raise StorageError(f"Corrupted YAML record {self.get_path(*parts)}: {e}") from e

    def save_text(self, text: str, *parts: str) -> Path:
        """Save text file."""
        return self.save_bytes(text.encode('utf-8'), *parts)

    def relative_to_root(self, file_path: Union[str, Path]) -> str:
        """Return the POSIX path of a working-copy file relative to the root.

        Relative paths are taken relative to the current directory.
        """
        path = Path(file_path)
        if not path.is_absolute():
            path = Path.cwd() / path
        path = Path(os.path.normpath(path))
        try:
            relative = path.relative_to(self.root_path)
        except ValueError:
            raise StorageError(f"{file_path} is outside the repository at {self.root_path}")
        if not relative.parts:
            raise StorageError(f"{file_path} is the repository root, not a file")
        if relative.parts[0] == self.repo_path.name:
            raise StorageError(f"{file_path} is inside the repository's own storage")
        return relative.as_posix()

    def working_path(self, relative: str) -> Path:
        """Absolute working-copy path for a repository-relative path."""
        parts = relative.split('/')
        if any(p in ('', '.', '..') for p in parts) or parts[0] == self.repo_path.name:
            raise StorageError(f"Refusing working-copy path outside the tracked tree: {relative!r}")
        return self.root_path.joinpath(*parts)

    @staticmethod
    def hash_bytes(data: bytes) -> str:
        """SHA-256 content identifier of a byte payload."""
        return hashlib.sha256(data).hexdigest()

    @staticmethod
    def hash_file(file_path: Path) -> str:
        """SHA-256 of a file's content, read in chunks."""
        hasher = hashlib.sha256()
        with open(file_path, 'rb') as f:
            for chunk in iter(lambda: f.read(65536), b''):
                hasher.update(chunk)
        return hasher.hexdigest()
