"""Configuration management for bucketgit."""

import os
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv
import yaml

from .errors import ConfigurationError

# Load environment variables from .env file
load_dotenv()

REMOTE_BACKENDS = ("s3", "local", "memory")

# Remote setting -> environment variables that override it when set
REMOTE_ENV = {
    'backend': ("BUCKETGIT_REMOTE",),
    'bucket': ("BUCKETGIT_BUCKET", "S3_BUCKET"),
    'prefix': ("BUCKETGIT_PREFIX",),
    'region': ("AWS_REGION", "AWS_DEFAULT_REGION"),
    'endpoint_url': ("BUCKETGIT_ENDPOINT_URL",),
    'path': ("BUCKETGIT_REMOTE_PATH",),
    'timeout': ("BUCKETGIT_TIMEOUT",),
    'retries': ("BUCKETGIT_RETRIES",),
}


@dataclass
class StorageConfig:
    """Local storage configuration."""
    repo_dir: str = ".bucketgit"
    fsync: bool = True

    @classmethod
    def from_env(cls) -> 'StorageConfig':
        """Create config from environment variables."""
        return cls(
            repo_dir=os.getenv("BUCKETGIT_DIR", ".bucketgit"),
        )


@dataclass
class RemoteConfig:
    """Remote object store configuration."""
    backend: str = "s3"
    bucket: Optional[str] = None
    prefix: str = ""
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    path: Optional[str] = None
    timeout: float = 30.0
    retries: int = 3

    @classmethod
    def from_env(cls) -> 'RemoteConfig':
        """Create config from environment variables."""
        timeout = os.getenv("BUCKETGIT_TIMEOUT")
        retries = os.getenv("BUCKETGIT_RETRIES")
        try:
            return cls(
                backend=os.getenv("BUCKETGIT_REMOTE", cls.backend),
                bucket=os.getenv("BUCKETGIT_BUCKET") or os.getenv("S3_BUCKET"),
                prefix=os.getenv("BUCKETGIT_PREFIX", cls.prefix),
                region=os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION"),
                endpoint_url=os.getenv("BUCKETGIT_ENDPOINT_URL"),
                path=os.getenv("BUCKETGIT_REMOTE_PATH"),
                timeout=float(timeout) if timeout is not None else cls.timeout,
                retries=int(retries) if retries is not None else cls.retries,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid remote setting in environment: {e}")


@dataclass
class Config:
    """Main configuration for bucketgit."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    verbose: bool = False
    debug: bool = False

    @classmethod
    def load(cls, path: Optional[Path] = None) -> 'Config':
        """Load configuration from file and environment."""
        config = cls()

        # Load from file if exists
        if path and path.exists():
            with open(path, 'r') as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigurationError(f"Invalid config file {path}: {e}")

            if 'storage' in data:
                for key, value in (data['storage'] or {}).items():
                    if hasattr(config.storage, key):
                        setattr(config.storage, key, value)

            if 'remote' in data:
                for key, value in (data['remote'] or {}).items():
                    if hasattr(config.remote, key):
                        setattr(config.remote, key, value)

            config.verbose = data.get('verbose', False)
            config.debug = data.get('debug', False)

        # Override with environment variables
        env_storage = StorageConfig.from_env()
        if os.getenv("BUCKETGIT_DIR"):
            config.storage.repo_dir = env_storage.repo_dir

        env_remote = RemoteConfig.from_env()
        for key, names in REMOTE_ENV.items():
            if any(os.getenv(name) is not None for name in names):
                setattr(config.remote, key, getattr(env_remote, key))

        config.validate()
        return config

    def validate(self) -> None:
        """Reject settings no command could work with."""
        if self.remote.backend not in REMOTE_BACKENDS:
            raise ConfigurationError(
                f"Unknown remote backend '{self.remote.backend}' "
                f"(expected one of: {', '.join(REMOTE_BACKENDS)})"
            )
        if self.remote.timeout <= 0:
            raise ConfigurationError("remote.timeout must be positive")
        if self.remote.retries < 0:
            raise ConfigurationError("remote.retries must not be negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'storage': {
                'repo_dir': self.storage.repo_dir,
                'fsync': self.storage.fsync,
            },
            'remote': {
                'backend': self.remote.backend,
                'bucket': self.remote.bucket,
                'prefix': self.remote.prefix,
                'region': self.remote.region,
                'endpoint_url': self.remote.endpoint_url,
                'path': self.remote.path,
                'timeout': self.remote.timeout,
                'retries': self.remote.retries,
            },
            'verbose': self.verbose,
            'debug': self.debug,
        }

    def save(self, path: Path):
        """Save configuration to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)
