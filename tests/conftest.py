"""Pytest configuration and fixtures."""

import pytest
import tempfile
import shutil
from pathlib import Path
from bucketgit import Repository
from bucketgit.remote import MemoryRemote
from bucketgit.utils.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer settings out of the tests."""
    for var in ["BUCKETGIT_DIR", "BUCKETGIT_REMOTE", "BUCKETGIT_BUCKET", "S3_BUCKET",
                "BUCKETGIT_PREFIX", "BUCKETGIT_ENDPOINT_URL", "BUCKETGIT_REMOTE_PATH",
                "BUCKETGIT_TIMEOUT", "BUCKETGIT_RETRIES"]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def temp_repo():
    """Create a temporary directory for testing."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir).resolve()
    shutil.rmtree(temp_dir)


@pytest.fixture
def remote():
    """Shared in-memory bucket."""
    return MemoryRemote()


@pytest.fixture
def make_repo(remote):
    """Factory for initialized repositories sharing the ``remote`` fixture."""
    def _make(path: Path) -> Repository:
        config = Config()
        config.remote.backend = "memory"
        config.storage.fsync = False
        repo = Repository(path, config, remote=remote)
        repo.init()
        return repo
    return _make


@pytest.fixture
def repo(temp_repo, make_repo):
    """An initialized repository backed by the in-memory remote."""
    return make_repo(temp_repo)


@pytest.fixture
def write_file():
    """Write text into the working copy and return the path."""
    def _write(repo: Repository, name: str, content: str) -> Path:
        path = repo.repo_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path
    return _write
