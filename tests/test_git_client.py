"""
Tests for the git client against real local repositories.
"""

from pathlib import Path
from unittest.mock import patch
import subprocess

import pytest

from obsenv.exit_codes import (
    BranchNotFoundError,
    CloneError,
    DirtyWorkingTreeError,
    RefNotFoundError,
    RepositoryNotFoundError,
    VcsError,
)
from obsenv.infra.git_client import GitClient

from .conftest import requires_git, run_git

pytestmark = requires_git


@pytest.fixture
def client():
    return GitClient(timeout=60)


@pytest.fixture
def clone(client, remotes, tmp_path) -> Path:
    destination = tmp_path / "env" / "alpha"
    client.clone(str(remotes["alpha"]), destination)
    return destination


class TestClone:

    def test_clone_creates_repository(self, client, remotes, tmp_path):
        result = client.clone(str(remotes["alpha"]), tmp_path / "env" / "alpha")
        assert result.existed is False
        assert client.is_git_repo(result.path)
        assert (result.path / "README.md").exists()

    def test_existing_repository_is_not_recloned(self, client, remotes, clone):
        result = client.clone(str(remotes["alpha"]), clone)
        assert result.existed is True
        assert result.path == clone

    def test_unreachable_remote(self, client, tmp_path):
        with pytest.raises(CloneError) as exc_info:
            client.clone(str(tmp_path / "does-not-exist"), tmp_path / "env" / "x")
        assert exc_info.value.path == str(tmp_path / "env" / "x")

    def test_occupied_destination(self, client, remotes, tmp_path):
        destination = tmp_path / "env" / "alpha"
        destination.mkdir(parents=True)
        (destination / "stray.txt").write_text("not a repo")
        with pytest.raises(CloneError):
            client.clone(str(remotes["alpha"]), destination)

    def test_file_in_place_of_destination(self, client, remotes, tmp_path):
        destination = tmp_path / "env" / "alpha"
        destination.parent.mkdir(parents=True)
        destination.write_text("not a directory")
        with pytest.raises(CloneError) as exc_info:
            client.clone(str(remotes["alpha"]), destination)
        assert "not a directory" in str(exc_info.value)

    def test_clone_branch(self, client, remotes, tmp_path):
        result = client.clone(str(remotes["alpha"]), tmp_path / "d", branch="develop", depth=1)
        assert client.current_version(result.path) == "develop"


class TestCurrentVersion:

    def test_branch(self, client, clone):
        assert client.current_version(clone) == "main"

    def test_detached_at_tag(self, client, clone):
        run_git("checkout", "--detach", "v1", cwd=clone)
        assert client.current_version(clone) == "v1"

    def test_detached_without_tag_gives_sha(self, client, clone):
        sha = run_git("rev-parse", "HEAD~2", cwd=clone)
        run_git("checkout", "--detach", sha, cwd=clone)
        assert client.current_version(clone) == sha

    def test_missing_repository(self, client, tmp_path):
        with pytest.raises(RepositoryNotFoundError):
            client.current_version(tmp_path / "nothing")


class TestResolveCommit:

    def test_tag_and_head(self, client, clone):
        client.checkout_to_version(clone, "v1")
        assert client.resolve_commit(clone, "v1") == client.resolve_commit(clone, "HEAD")

    def test_short_sha(self, client, clone):
        full = run_git("rev-parse", "v1", cwd=clone)
        assert client.resolve_commit(clone, full[:10]) == full

    def test_unknown_ref(self, client, clone):
        assert client.resolve_commit(clone, "v99") is None

    def test_missing_repository(self, client, tmp_path):
        with pytest.raises(RepositoryNotFoundError):
            client.resolve_commit(tmp_path / "missing", "HEAD")


class TestCheckout:

    def test_checkout_remote_branch_creates_tracking_branch(self, client, clone):
        client.checkout_branch(clone, "develop")
        assert client.current_version(clone) == "develop"
        upstream = run_git("rev-parse", "--abbrev-ref", "develop@{upstream}", cwd=clone)
        assert upstream == "origin/develop"

    def test_checkout_local_branch(self, client, clone):
        client.checkout_branch(clone, "develop")
        client.checkout_branch(clone, "main")
        assert client.current_version(clone) == "main"

    def test_unknown_branch(self, client, clone):
        with pytest.raises(BranchNotFoundError):
            client.checkout_branch(clone, "feature-x")

    def test_checkout_tag(self, client, clone):
        client.checkout_to_version(clone, "v1")
        assert client.current_version(clone) == "v1"
        assert (clone / "VERSION").read_text() == "v1\n"

    def test_checkout_unknown_version(self, client, clone):
        with pytest.raises(RefNotFoundError):
            client.checkout_to_version(clone, "v99")

    def test_checkout_version_that_is_a_remote_branch(self, client, clone):
        client.checkout_to_version(clone, "develop")
        assert client.current_version(clone) == "develop"

    def test_dirty_tree_blocks_checkout(self, client, clone):
        (clone / "VERSION").write_text("local edit\n")
        assert client.is_dirty(clone)
        with pytest.raises(DirtyWorkingTreeError):
            client.checkout_to_version(clone, "v1")

    def test_checkout_in_missing_repository(self, client, tmp_path):
        with pytest.raises(RepositoryNotFoundError):
            client.checkout_branch(tmp_path / "nothing", "main")


def test_timeout_becomes_vcs_error(tmp_path):
    client = GitClient(timeout=1)
    with patch("obsenv.infra.git_client.subprocess.run",
               side_effect=subprocess.TimeoutExpired(cmd="git", timeout=1)):
        with pytest.raises(VcsError, match="timed out"):
            client.clone("https://example.com/x.git", tmp_path / "x")
