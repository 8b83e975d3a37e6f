"""Custom exceptions for bucketgit."""


class BucketGitError(Exception):
    """Base exception for all bucketgit errors."""
    exit_code = 1


class NotInitializedError(BucketGitError):
    """Raised when no repository exists at the given root."""
    exit_code = 2


class AlreadyInitializedError(BucketGitError):
    """Raised when init is run inside an existing repository."""
    exit_code = 3


class MissingFileError(BucketGitError):
    """Raised when a working-copy file to stage does not exist."""
    exit_code = 4


class NothingStagedError(BucketGitError):
    """Raised when committing with an empty staging index."""
    exit_code = 5


class ObjectNotFoundError(BucketGitError):
    """Raised when a blob, commit or remote key cannot be found."""
    exit_code = 6


class BrokenChainError(BucketGitError):
    """Raised when history references a missing or corrupted object.

    Local corruption is never repaired automatically.
    """
    exit_code = 7


class RemoteUnreachableError(BucketGitError):
    """Raised for transport failures and timeouts talking to the remote."""
    exit_code = 8


class DivergentHistoryError(BucketGitError):
    """Raised when local and remote histories cannot be fast-forwarded."""
    exit_code = 9


class RepositoryLockedError(BucketGitError):
    """Raised when another process holds the repository lock."""
    exit_code = 10


class StorageError(BucketGitError):
    """Raised for storage-related errors."""
    pass


class ConfigurationError(BucketGitError):
    """Raised for configuration errors."""
    pass
