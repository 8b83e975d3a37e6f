"""Directory-backed remote, for shared drives and tests."""

from pathlib import Path
from typing import List, Union

from ..utils.logger import Logger
from ..utils.errors import ObjectNotFoundError, RemoteUnreachableError
from ..storage.filesystem import atomic_write
from .provider import RemoteStore


class LocalRemote(RemoteStore):
    """Treats a directory as a bucket: each key is a file below it."""

    def __init__(self, path: Union[str, Path], prefix: str = ""):
        self.path = Path(path).expanduser().absolute()
        self.prefix = prefix.strip("/")

    def _file(self, key: str) -> Path:
        parts = [p for p in f"{self.prefix}/{key}".split("/") if p]
        if any(p in (".", "..") for p in parts):
            raise ObjectNotFoundError(f"Invalid key: {key}")
        return self.path.joinpath(*parts)

    def put(self, key: str, data: bytes) -> None:
        try:
            atomic_write(self._file(key), data)
        except OSError as e:
            raise RemoteUnreachableError(f"Cannot write {key} to {self.path}: {e}") from e
        Logger.debug(f"Wrote {key} ({len(data)} bytes) to {self.path}")

    def get(self, key: str) -> bytes:
        path = self._file(key)
        if not path.is_file():
            raise ObjectNotFoundError(f"Remote key not found: {key}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise RemoteUnreachableError(f"Cannot read {key} from {self.path}: {e}") from e

    def list(self, prefix: str = "") -> List[str]:
        if not self.path.exists():
            return []
        base = self._file("")
        if not base.is_dir():
            return []
        keys = []
        try:
            for path in base.rglob("*"):
                if not path.is_file() or path.name.startswith(".tmp_"):
                    continue
                key = path.relative_to(base).as_posix()
                if key.startswith(prefix):
                    keys.append(key)
        except OSError as e:
            raise RemoteUnreachableError(f"Cannot list {self.path}: {e}") from e
        return sorted(keys)

    def describe(self) -> str:
        return f"local:{self.path}"
