"""Content-addressable blob store."""

import re
from typing import Iterator

from ..utils.logger import Logger
from ..utils.errors import ObjectNotFoundError, BrokenChainError, StorageError
from .filesystem import FileSystemStorage

OBJECT_ID = re.compile(r'^[0-9a-f]{64}$')


def is_object_id(value: str) -> bool:
    return bool(OBJECT_ID.match(value or ''))


class ContentStore:
    """Stores blobs under the SHA-256 of their bytes.

    Layout: ``objects/<id[:2]>/<id[2:]>``. Identical payloads share a
    single file; blobs are never rewritten once present.
    """

    def __init__(self, storage: FileSystemStorage):
        self.storage = storage

    def _parts(self, blob_id: str):
        if not is_object_id(blob_id):
            raise ObjectNotFoundError(f"Invalid blob id: {blob_id!r}")
        return ("objects", blob_id[:2], blob_id[2:])

    def put(self, data: bytes) -> str:
        """Store ``data`` and return its content identifier."""
        blob_id = self.storage.hash_bytes(data)
        if self.has(blob_id):
            return blob_id
        self.storage.save_bytes(data, *self._parts(blob_id))
        Logger.debug(f"Stored blob {blob_id[:12]} ({len(data)} bytes)")
        return blob_id

    def put_verified(self, data: bytes, expected_id: str) -> str:
        """Store downloaded bytes, refusing payloads that don't match their id."""
        actual = self.storage.hash_bytes(data)
        if actual != expected_id:
            raise BrokenChainError(
                f"Blob {expected_id[:12]} failed verification (content hashes to {actual[:12]})"
            )
        return self.put(data)

    def get(self, blob_id: str) -> bytes:
        parts = self._parts(blob_id)
        if not self.storage.exists(*parts):
            raise ObjectNotFoundError(f"Blob not found: {blob_id}")
        try:
            return self.storage.load_bytes(*parts)
        except StorageError as e:
            raise ObjectNotFoundError(f"Blob unreadable: {blob_id} ({e})") from e

    def has(self, blob_id: str) -> bool:
        if not is_object_id(blob_id):
            return False
        return self.storage.exists(*self._parts(blob_id))

    def ids(self) -> Iterator[str]:
        """Iterate over every locally stored blob id."""
        for fan_out in self.storage.list_dir("objects"):
            if not fan_out.is_dir():
                continue
            for path in fan_out.iterdir():
                blob_id = fan_out.name + path.name
                if is_object_id(blob_id):
                    yield blob_id
