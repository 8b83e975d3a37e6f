"""CLI tests using click's runner against a directory remote."""

import json

import pytest
from click.testing import CliRunner

from bucketgit.cli.main import cli
from bucketgit.cli.commands import dispatch, AddCommand, CommitCommand, StatusCommand
from bucketgit.utils.errors import (
    AlreadyInitializedError, MissingFileError, NothingStagedError, ObjectNotFoundError,
    NotInitializedError, DivergentHistoryError,
)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Two working copies sharing one bucket directory."""
    monkeypatch.setenv("BUCKETGIT_REMOTE", "local")
    monkeypatch.setenv("BUCKETGIT_REMOTE_PATH", str(tmp_path / "bucket"))
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    return first, second


def invoke(runner, root, *args):
    return runner.invoke(cli, ["--repo", str(root), *args], obj={})


def test_full_workflow(runner, workspace):
    first, second = workspace
    target = first / "a.txt"

    assert invoke(runner, first, "init").exit_code == 0
    target.write_text("x")
    assert invoke(runner, first, "add", str(target)).exit_code == 0
    assert invoke(runner, first, "commit", "first").exit_code == 0

    log = invoke(runner, first, "log", "--format", "json")
    assert log.exit_code == 0
    first_id = json.loads(log.output)[0]["id"]

    target.write_text("y")
    invoke(runner, first, "add", str(target))
    assert invoke(runner, first, "commit", "second").exit_code == 0
    assert invoke(runner, first, "push").exit_code == 0

    assert invoke(runner, first, "revert", first_id).exit_code == 0
    assert target.read_text() == "x"

    assert invoke(runner, second, "init").exit_code == 0
    assert invoke(runner, second, "pull").exit_code == 0
    pulled = json.loads(invoke(runner, second, "log", "-f", "json").output)
    assert [c["message"] for c in pulled] == ["second", "first"]


def test_failure_exit_codes(runner, workspace):
    first, second = workspace

    assert invoke(runner, first, "commit", "x").exit_code == NotInitializedError.exit_code
    invoke(runner, first, "init")
    assert invoke(runner, first, "init").exit_code == AlreadyInitializedError.exit_code
    assert invoke(runner, first, "add", str(first / "ghost.txt")).exit_code == MissingFileError.exit_code
    assert invoke(runner, first, "commit", "x").exit_code == NothingStagedError.exit_code
    assert invoke(runner, first, "revert", "deadbeef").exit_code == ObjectNotFoundError.exit_code


def test_pull_divergent_exit_code(runner, workspace):
    first, second = workspace
    for root, content in ((first, "remote"), (second, "local")):
        invoke(runner, root, "init")
        (root / "a.txt").write_text(content)
        invoke(runner, root, "add", str(root / "a.txt"))
        invoke(runner, root, "commit", content)
    assert invoke(runner, first, "push").exit_code == 0

    result = invoke(runner, second, "pull")
    assert result.exit_code == DivergentHistoryError.exit_code


def test_commands_find_root_from_subdirectory(runner, workspace):
    first, _ = workspace
    invoke(runner, first, "init")
    nested = first / "src" / "pkg"
    nested.mkdir(parents=True)
    (nested / "mod.txt").write_text("m")

    assert invoke(runner, nested, "add", str(nested / "mod.txt")).exit_code == 0
    assert invoke(runner, nested, "commit", "nested").exit_code == 0
    status = invoke(runner, first, "status")
    assert status.exit_code == 0
    assert "Working copy clean" in status.output


def test_dispatch_runs_typed_commands(repo, write_file):
    write_file(repo, "a.txt", "x")
    dispatch(repo, AddCommand(file=str(repo.repo_path / "a.txt")))
    commit = dispatch(repo, CommitCommand(message="typed"))
    info = dispatch(repo, StatusCommand())

    assert info.head == commit.id
    assert info.staged == {}
    assert info.modified == []


def test_status_reports_changes(repo, write_file):
    a = write_file(repo, "a.txt", "x")
    b = write_file(repo, "b.txt", "b")
    repo.add(a)
    repo.add(b)
    repo.commit("first")
    a.write_text("changed")
    b.unlink()

    info = repo.status()

    assert info.modified == ["a.txt"]
    assert info.missing == ["b.txt"]
    assert info.commits == 1
