"""
Shared fixtures for obsenv tests.

Real-git fixtures build small local repositories that stand in for the
remotes of the registry; local paths are valid clone URLs.
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from obsenv.domain import RepositoryIdentity

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def run_git(*args, cwd: Path) -> str:
    """Run a git command in cwd and return stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def create_git_repo(
    path: Path,
    files: Optional[Dict[str, str]] = None,
    tags: Optional[List[str]] = None,
    branches: Optional[List[str]] = None,
) -> Path:
    """
    Create a repository on branch ``main`` with one commit per tag.

    Args:
        path: Directory to create
        files: Files for the initial commit (default: a README)
        tags: Tags to create; each gets its own commit
        branches: Extra branches created at the last commit

    Returns:
        Path to the created repository
    """
    path.mkdir(parents=True)
    run_git("init", cwd=path)
    run_git("symbolic-ref", "HEAD", "refs/heads/main", cwd=path)

    for filename, content in (files or {"README.md": f"# {path.name}\n"}).items():
        file_path = path / filename
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
    run_git("add", ".", cwd=path)
    run_git("commit", "-m", "Initial commit", cwd=path)

    for tag in tags or []:
        (path / "VERSION").write_text(f"{tag}\n")
        run_git("add", "VERSION", cwd=path)
        run_git("commit", "-m", f"Release {tag}", cwd=path)
        run_git("tag", tag, cwd=path)

    for branch in branches or []:
        run_git("branch", branch, cwd=path)

    return path


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep tests away from the user's config and git identity."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in [k for k in os.environ if k.startswith("OBSENV_")]:
        monkeypatch.delenv(key)
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    return home


@pytest.fixture
def remotes(tmp_path) -> Dict[str, Path]:
    """Two upstream repositories with tags v1/v2 and a develop branch."""
    base = tmp_path / "remotes"
    return {
        name: create_git_repo(base / name, tags=["v1", "v2"], branches=["develop"])
        for name in ("alpha", "beta")
    }


@pytest.fixture
def registry(remotes) -> List[RepositoryIdentity]:
    """A registry whose remotes are the local ``remotes`` repositories."""
    return [RepositoryIdentity(name, str(path)) for name, path in remotes.items()]


@pytest.fixture
def descriptor(tmp_path) -> Path:
    """A base environment descriptor with a manifest on ``main`` and ``cycle``."""
    path = create_git_repo(
        tmp_path / "descriptor",
        files={"base_env_versions.yaml": "alpha: v1\nbeta: v2\n"},
    )
    run_git("checkout", "-b", "cycle", cwd=path)
    (path / "base_env_versions.yaml").write_text("versions:\n  alpha: v2\n")
    run_git("commit", "-am", "Only alpha", cwd=path)
    run_git("checkout", "main", cwd=path)
    return path
