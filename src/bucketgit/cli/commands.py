"""Typed command records and their single dispatch point."""

from dataclasses import dataclass
from typing import Any, Optional, Union

from ..core.repository import Repository
from ..utils.errors import BucketGitError


@dataclass(frozen=True)
class InitCommand:
    pass


@dataclass(frozen=True)
class AddCommand:
    file: str


@dataclass(frozen=True)
class CommitCommand:
    message: str


@dataclass(frozen=True)
class PushCommand:
    force: bool = False


@dataclass(frozen=True)
class PullCommand:
    pass


@dataclass(frozen=True)
class RevertCommand:
    commit_id: str


@dataclass(frozen=True)
class LogCommand:
    limit: Optional[int] = None


@dataclass(frozen=True)
class StatusCommand:
    pass


Command = Union[
    InitCommand, AddCommand, CommitCommand, PushCommand,
    PullCommand, RevertCommand, LogCommand, StatusCommand,
]


def dispatch(repo: Repository, command: Command) -> Any:
    """Run one command against ``repo`` and return its result."""
    if isinstance(command, InitCommand):
        return repo.init()
    if isinstance(command, AddCommand):
        return repo.add(command.file)
    if isinstance(command, CommitCommand):
        return repo.commit(command.message)
    if isinstance(command, PushCommand):
        return repo.push(force=command.force)
    if isinstance(command, PullCommand):
        return repo.pull()
    if isinstance(command, RevertCommand):
        return repo.revert(command.commit_id)
    if isinstance(command, LogCommand):
        return repo.log(command.limit)
    if isinstance(command, StatusCommand):
        return repo.status()
    raise BucketGitError(f"Unknown command: {type(command).__name__}")
