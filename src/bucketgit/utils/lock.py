"""Advisory repository lock."""

import fcntl
import os
from pathlib import Path
from typing import Optional

from .logger import Logger
from .errors import RepositoryLockedError


class RepositoryLock:
    """Exclusive, non-blocking ``flock`` on a lock file.

    Held for the duration of one mutating command. The kernel drops the
    lock if the process dies, so a stale lock file never blocks later runs.
    """

    def __init__(self, path: Path):
        self.path = path
        self._fd: Optional[int] = None

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            raise RepositoryLockedError(
                f"Repository is locked by another process ({self.path})"
            )
        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode())
        self._fd = fd
        Logger.debug(f"Acquired lock {self.path}")

    def release(self) -> None:
        if self._fd is None:
            return
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            os.close(self._fd)
            self._fd = None
        Logger.debug(f"Released lock {self.path}")

    @property
    def held(self) -> bool:
        return self._fd is not None

    def __enter__(self) -> 'RepositoryLock':
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
