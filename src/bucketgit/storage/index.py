"""Staging index management for bucketgit."""

from datetime import datetime
from typing import Dict, Optional, Any, Union
from pathlib import Path

from ..utils.logger import Logger
from ..utils.errors import StorageError, MissingFileError
from .filesystem import FileSystemStorage
from .objects import ContentStore


class StagingIndex:
    """Manages the staging index (path -> blob id queued for the next commit).

    The record also stores ``base``: the HEAD the entries were staged
    against. The commit logic uses it to recognise an index that was
    already consumed by a commit whose index reset never reached disk.
    """

    def __init__(self, storage: FileSystemStorage, objects: ContentStore):
        self.storage = storage
        self.objects = objects
        self.index_path = ['index.yaml']
        self._cache: Optional[Dict[str, Any]] = None

    def load(self) -> Dict[str, Any]:
        """Load index from disk."""
        if self._cache is not None:
            return self._cache

        if self.storage.exists(*self.index_path):
            data = self.storage.load_yaml(*self.index_path)
            if not isinstance(data.get('entries', {}), dict):
                raise StorageError("Corrupted staging index: entries is not a mapping")
            data.setdefault('entries', {})
            data.setdefault('base', None)
            self._cache = data
        else:
            self._cache = self._create_default()
        return self._cache

    def save(self) -> None:
        """Save index to disk."""
        if self._cache is None:
            return
        self._cache['last_modified'] = datetime.now().isoformat()
        self.storage.save_yaml(self._cache, *self.index_path)

    def _create_default(self, base: Optional[str] = None) -> Dict[str, Any]:
        """Create default index structure."""
        return {
            'version': '1.0',
            'last_modified': datetime.now().isoformat(),
            'base': base,
            'entries': {},
        }

    @property
    def base(self) -> Optional[str]:
        return self.load().get('base')

    def stage(self, file_path: Union[str, Path], base: Optional[str]) -> str:
        """Stage one working-copy file; returns its repository-relative path.

        The index is written to disk before returning.
        """
        relative = self.storage.relative_to_root(file_path)
        source = self.storage.working_path(relative)
        if not source.exists():
            raise MissingFileError(f"File not found: {file_path}")
        if not source.is_file():
            raise MissingFileError(f"Not a regular file: {file_path}")

        try:
            data = source.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read {file_path}: {e}") from e
        blob_id = self.objects.put(data)

        index = self.load()
        previous = index['entries'].get(relative)
        index['entries'][relative] = blob_id
        index['base'] = base
        self.save()

        if previous and previous != blob_id:
            Logger.debug(f"Re-staged {relative}: {previous[:8]} -> {blob_id[:8]}")
        else:
            Logger.debug(f"Staged {relative} as {blob_id[:8]}")
        return relative

    def current_snapshot(self) -> Dict[str, str]:
        """Full staged set (path -> blob id)."""
        return dict(self.load()['entries'])

    def is_empty(self) -> bool:
        return not self.load()['entries']

    def clear(self, base: Optional[str] = None) -> None:
        """Empty the index, recording ``base`` as the new HEAD."""
        self._cache = self._create_default(base)
        self.save()

    def rebase(self, base: Optional[str]) -> None:
        """Keep the staged entries but record a new HEAD they apply to."""
        index = self.load()
        if index.get('base') == base:
            return
        index['base'] = base
        self.save()
