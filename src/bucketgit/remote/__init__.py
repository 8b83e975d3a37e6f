"""Remote store factory."""

from typing import Dict, List, Optional

from .provider import RemoteStore, HEAD_KEY, blob_key, commit_key
from .local import LocalRemote
from .s3 import S3Remote
from ..utils.config import RemoteConfig
from ..utils.logger import Logger
from ..utils.errors import ConfigurationError, ObjectNotFoundError, RemoteUnreachableError


class MemoryRemote(RemoteStore):
    """In-memory remote for testing.

    ``writes`` counts every put so tests can assert on upload volume;
    ``fail_after`` makes the store fail once that many puts succeeded.
    """

    def __init__(self, fail_after: Optional[int] = None):
        self.objects: Dict[str, bytes] = {}
        self.writes = 0
        self.fail_after = fail_after
        self.offline = False

    def _check(self):
        if self.offline:
            raise RemoteUnreachableError("Memory remote is offline")

    def put(self, key: str, data: bytes) -> None:
        self._check()
        if self.fail_after is not None and self.writes >= self.fail_after:
            raise RemoteUnreachableError(f"Simulated transport failure writing {key}")
        self.objects[key] = bytes(data)
        self.writes += 1

    def get(self, key: str) -> bytes:
        self._check()
        if key not in self.objects:
            raise ObjectNotFoundError(f"Remote key not found: {key}")
        return self.objects[key]

    def list(self, prefix: str = "") -> List[str]:
        self._check()
        return sorted(k for k in self.objects if k.startswith(prefix))

    def describe(self) -> str:
        return "memory"


def create_remote(config: RemoteConfig) -> RemoteStore:
    """Create remote store instance."""
    Logger.debug(f"Creating {config.backend} remote")

    if config.backend == "s3":
        return S3Remote(
            bucket=config.bucket,
            prefix=config.prefix,
            region=config.region,
            endpoint_url=config.endpoint_url,
            timeout=config.timeout,
            retries=config.retries,
        )
    if config.backend == "local":
        if not config.path:
            raise ConfigurationError(
                "No remote directory configured (set remote.path or BUCKETGIT_REMOTE_PATH)"
            )
        return LocalRemote(config.path, prefix=config.prefix)
    if config.backend == "memory":
        return MemoryRemote()
    raise ConfigurationError(f"Unknown remote backend: {config.backend}")


__all__ = [
    "RemoteStore",
    "MemoryRemote",
    "LocalRemote",
    "S3Remote",
    "create_remote",
    "HEAD_KEY",
    "blob_key",
    "commit_key",
]
