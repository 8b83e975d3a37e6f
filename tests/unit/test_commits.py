"""Tests for committing and history traversal."""

import pytest
from bucketgit.models.types import Commit
from bucketgit.utils.errors import (
    NothingStagedError, ObjectNotFoundError, BrokenChainError, NotInitializedError
)


def blob_of(repo, content: str) -> str:
    return repo.storage.hash_bytes(content.encode())


def test_add_then_commit(repo, write_file):
    write_file(repo, "a.txt", "x")
    repo.add(repo.repo_path / "a.txt")

    commit = repo.commit("first")

    assert commit.parent is None
    assert commit.snapshot == {"a.txt": blob_of(repo, "x")}
    assert repo.index.is_empty()
    assert repo.load_state().head == commit.id
    assert repo.graph.lookup(commit.id) == commit


def test_commit_twice_fails(repo, write_file):
    write_file(repo, "a.txt", "x")
    repo.add(repo.repo_path / "a.txt")
    repo.commit("first")

    with pytest.raises(NothingStagedError):
        repo.commit("second")


def test_commit_on_empty_repository_fails(repo):
    with pytest.raises(NothingStagedError):
        repo.commit("nothing")
    assert repo.load_state().head is None


def test_snapshot_carries_forward_unstaged_paths(repo, write_file):
    write_file(repo, "a.txt", "a1")
    write_file(repo, "dir/b.txt", "b1")
    repo.add(repo.repo_path / "a.txt")
    repo.add(repo.repo_path / "dir" / "b.txt")
    first = repo.commit("first")

    write_file(repo, "a.txt", "a2")
    repo.add(repo.repo_path / "a.txt")
    second = repo.commit("second")

    assert second.parent == first.id
    assert second.snapshot == {
        "a.txt": blob_of(repo, "a2"),
        "dir/b.txt": first.snapshot["dir/b.txt"],
    }


def test_walk_history_is_restartable(repo, write_file):
    ids = []
    for n in range(3):
        write_file(repo, "a.txt", str(n))
        repo.add(repo.repo_path / "a.txt")
        ids.append(repo.commit(f"c{n}").id)

    walked = [c.id for c in repo.graph.walk_history(ids[-1])]
    assert walked == list(reversed(ids))
    assert [c.id for c in repo.graph.walk_history(ids[1])] == [ids[1], ids[0]]
    assert [c.id for c in repo.graph.walk_history(ids[-1])] == walked
    assert list(repo.graph.walk_history(None)) == []


def test_walk_history_broken_chain(repo):
    orphan = Commit.create("dangling", {}, parent="d" * 64)
    repo.graph.save(orphan)

    history = repo.graph.walk_history(orphan.id)
    assert next(history).id == orphan.id
    with pytest.raises(BrokenChainError):
        next(history)


def test_lookup_unknown_commit(repo):
    with pytest.raises(ObjectNotFoundError):
        repo.graph.lookup("a" * 64)


def test_lookup_detects_corruption(repo, write_file):
    write_file(repo, "a.txt", "x")
    repo.add(repo.repo_path / "a.txt")
    commit = repo.commit("first")

    record = repo.storage.load_json("commits", f"{commit.id}.json")
    record["message"] = "forged"
    repo.storage.save_json(record, "commits", f"{commit.id}.json")

    with pytest.raises(BrokenChainError):
        repo.graph.lookup(commit.id)


def test_resolve_prefix_and_head(repo, write_file):
    write_file(repo, "a.txt", "x")
    repo.add(repo.repo_path / "a.txt")
    commit = repo.commit("first")
    state = repo.load_state()

    assert repo.graph.resolve(commit.id[:10]) == commit.id
    assert repo.graph.resolve("HEAD", state) == commit.id
    with pytest.raises(ObjectNotFoundError):
        repo.graph.resolve(commit.id[:2])
    with pytest.raises(ObjectNotFoundError):
        repo.graph.resolve("ffff" if not commit.id.startswith("ffff") else "0000")


def test_is_ancestor(repo, write_file):
    write_file(repo, "a.txt", "1")
    repo.add(repo.repo_path / "a.txt")
    first = repo.commit("one")
    write_file(repo, "a.txt", "2")
    repo.add(repo.repo_path / "a.txt")
    second = repo.commit("two")

    assert repo.graph.is_ancestor(first.id, second.id)
    assert repo.graph.is_ancestor(second.id, second.id)
    assert not repo.graph.is_ancestor(second.id, first.id)
    assert repo.graph.is_ancestor(None, first.id)


def test_interrupted_commit_clears_consumed_index(repo, write_file):
    """HEAD advanced but the index reset never reached disk."""
    write_file(repo, "a.txt", "x")
    repo.add(repo.repo_path / "a.txt")
    state = repo.load_state()
    staged = repo.index.current_snapshot()

    commit = repo.graph.create_commit("first", state, staged)
    state.head = commit.id
    repo.state.save(state)
    # process dies here: index still holds the staged entry

    assert not repo.index.is_empty()
    assert repo.load_state().head == commit.id
    assert repo.index.is_empty()
    with pytest.raises(NothingStagedError):
        repo.commit("again")


def test_orphan_commit_without_head_move_is_invisible(repo, write_file):
    """Commit object written but HEAD never advanced."""
    write_file(repo, "a.txt", "x")
    repo.add(repo.repo_path / "a.txt")
    state = repo.load_state()
    repo.graph.create_commit("lost", state, repo.index.current_snapshot())

    assert repo.load_state().head is None
    assert repo.index.current_snapshot() == {"a.txt": blob_of(repo, "x")}
    assert repo.commit("first").parent is None


def test_commands_require_init(temp_repo, remote):
    from bucketgit import Repository
    from bucketgit.utils.config import Config

    bare = Repository(temp_repo, Config(), remote=remote)
    with pytest.raises(NotInitializedError):
        bare.add(temp_repo / "a.txt")
    with pytest.raises(NotInitializedError):
        bare.commit("x")
    assert not (temp_repo / ".bucketgit").exists()


def test_status_and_log_leave_interrupted_index_on_disk(repo, write_file):
    write_file(repo, "a.txt", "x")
    repo.add(repo.repo_path / "a.txt")
    state = repo.load_state()
    commit = repo.graph.create_commit("first", state, repo.index.current_snapshot())
    state.head = commit.id
    repo.state.save(state)
    index_file = repo.storage.get_path("index.yaml")
    before = index_file.read_bytes()

    info = repo.status()
    history = repo.log()

    assert info.staged == {}
    assert [c.id for c in history] == [commit.id]
    assert index_file.read_bytes() == before
