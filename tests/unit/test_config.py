"""Unit tests for configuration loading."""

import pytest
import yaml
from bucketgit.remote import create_remote, MemoryRemote, LocalRemote, S3Remote
from bucketgit.utils.config import Config, RemoteConfig
from bucketgit.utils.errors import ConfigurationError


def test_defaults():
    config = Config.load()
    assert config.storage.repo_dir == ".bucketgit"
    assert config.remote.backend == "s3"
    assert config.remote.timeout == 30.0


def test_file_then_environment(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        'remote': {'backend': 'local', 'path': '/srv/a', 'retries': 5},
        'verbose': True,
    }))
    monkeypatch.setenv("BUCKETGIT_REMOTE_PATH", "/srv/b")

    config = Config.load(path)

    assert config.remote.backend == "local"
    assert config.remote.path == "/srv/b"
    assert config.remote.retries == 5
    assert config.verbose


def test_s3_bucket_from_legacy_variable(monkeypatch):
    monkeypatch.setenv("S3_BUCKET", "legacy-bucket")
    assert Config.load().remote.bucket == "legacy-bucket"


def test_save_and_reload(tmp_path):
    config = Config()
    config.remote.bucket = "my-bucket"
    config.remote.prefix = "repos/demo"
    path = tmp_path / "nested" / "config.yaml"
    config.save(path)

    loaded = Config.load(path)
    assert loaded.remote.bucket == "my-bucket"
    assert loaded.remote.prefix == "repos/demo"


@pytest.mark.parametrize("setting, value", [
    ("backend", "ftp"),
    ("timeout", 0),
    ("retries", -1),
])
def test_invalid_remote_settings(setting, value):
    config = Config()
    setattr(config.remote, setting, value)
    with pytest.raises(ConfigurationError):
        config.validate()


def test_invalid_environment_value(monkeypatch):
    monkeypatch.setenv("BUCKETGIT_TIMEOUT", "soon")
    with pytest.raises(ConfigurationError):
        Config.load()


def test_create_remote(tmp_path):
    assert isinstance(create_remote(RemoteConfig(backend="memory")), MemoryRemote)
    assert isinstance(create_remote(RemoteConfig(backend="local", path=str(tmp_path))), LocalRemote)
    s3 = create_remote(RemoteConfig(backend="s3", bucket="b", region="us-east-1"))
    assert isinstance(s3, S3Remote)
    assert s3.describe() == "s3://b"

    with pytest.raises(ConfigurationError):
        create_remote(RemoteConfig(backend="s3"))
    with pytest.raises(ConfigurationError):
        create_remote(RemoteConfig(backend="local"))


def test_zero_retries_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({'remote': {'retries': 5}}))
    monkeypatch.setenv("BUCKETGIT_RETRIES", "0")

    assert Config.load(path).remote.retries == 0


def test_empty_prefix_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({'remote': {'prefix': 'repos/demo'}}))
    monkeypatch.setenv("BUCKETGIT_PREFIX", "")

    assert Config.load(path).remote.prefix == ""
