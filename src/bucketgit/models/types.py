"""Core data models for bucketgit."""

from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
import hashlib
from pydantic import BaseModel, Field, field_validator

from ..storage.serialization import Serializer


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Commit(BaseModel):
    """
    An immutable commit record.

    ``snapshot`` maps every tracked path to its blob id: it is the full
    tree at this commit, not a diff against the parent. The id is derived
    from the record's own content, so identical commits share one id.
    """

    id: str = Field(..., description="Commit ID (content hash)")
    parent: Optional[str] = Field(None, description="Parent commit ID")
    message: str = Field(..., description="Commit message")
    timestamp: datetime = Field(default_factory=utcnow)
    snapshot: Dict[str, str] = Field(
        default_factory=dict,
        description="File path -> blob id"
    )

    @field_validator('timestamp')
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator('snapshot')
    @classmethod
    def ensure_relative_paths(cls, v: Dict[str, str]) -> Dict[str, str]:
        for path in v:
            if any(part in ('', '.', '..') for part in path.split('/')):
                raise ValueError(f"Snapshot path must be relative and normalised: {path!r}")
        return v

    @staticmethod
    def compute_id(
        parent: Optional[str],
        snapshot: Dict[str, str],
        message: str,
        timestamp: datetime
    ) -> str:
        payload = {
            'parent': parent,
            'snapshot': snapshot,
            'message': message,
            'timestamp': timestamp.isoformat(),
        }
        return hashlib.sha256(Serializer.canonical_json(payload)).hexdigest()

    @classmethod
    def create(
        cls,
        message: str,
        snapshot: Dict[str, str],
        parent: Optional[str] = None,
        timestamp: Optional[datetime] = None
    ) -> 'Commit':
        """Build a commit and derive its id."""
        timestamp = timestamp or utcnow()
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return cls(
            id=cls.compute_id(parent, snapshot, message, timestamp),
            parent=parent,
            message=message,
            timestamp=timestamp,
            snapshot=dict(snapshot),
        )

    def verify(self) -> bool:
        """True if the id matches the record's content."""
        return self.id == self.compute_id(
            self.parent, self.snapshot, self.message, self.timestamp
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'parent': self.parent,
            'message': self.message,
            'timestamp': self.timestamp.isoformat(),
            'snapshot': dict(sorted(self.snapshot.items())),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Commit':
        """Create from dictionary."""
        data = dict(data)
        if 'timestamp' in data and isinstance(data['timestamp'], str):
            data['timestamp'] = datetime.fromisoformat(data['timestamp'])
        return cls(**data)

    def short_id(self) -> str:
        """Get short version of commit ID."""
        return self.id[:8]


class RepositoryState(BaseModel):
    """Persisted pointer record: where the repository lives and its HEAD."""

    root_path: str
    head: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'root_path': self.root_path, 'head': self.head}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RepositoryState':
        return cls(root_path=data['root_path'], head=data.get('head'))


class PushResult(BaseModel):
    """Outcome of a push."""

    head: Optional[str] = None
    blobs_uploaded: int = 0
    commits_uploaded: int = 0
    head_updated: bool = False

    @property
    def uploads(self) -> int:
        return self.blobs_uploaded + self.commits_uploaded


class PullResult(BaseModel):
    """Outcome of a pull."""

    previous_head: Optional[str] = None
    head: Optional[str] = None
    commits_downloaded: int = 0
    blobs_downloaded: int = 0

    @property
    def updated(self) -> bool:
        return self.previous_head != self.head


class RevertResult(BaseModel):
    """Outcome of restoring the working copy to a commit."""

    commit_id: str
    restored: List[str] = Field(default_factory=list)
    unchanged: List[str] = Field(default_factory=list)


class StatusInfo(BaseModel):
    """Current status information."""

    head: Optional[str] = None
    head_message: Optional[str] = None
    staged: Dict[str, str] = Field(default_factory=dict)
    modified: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    commits: int = 0
