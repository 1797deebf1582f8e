"""
Git client infrastructure for obsenv.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from the orchestration logic

Failures are raised as VcsError subclasses scoped to one repository.
"""

import subprocess
from dataclasses import dataclass
from typing import List, Optional, Tuple
from pathlib import Path
import logging

from ..exit_codes import (
    VcsError,
    CloneError,
    RepositoryNotFoundError,
    BranchNotFoundError,
    RefNotFoundError,
    DirtyWorkingTreeError,
)

logger = logging.getLogger(__name__)

_NOT_FOUND_MARKERS = (
    "did not match any file(s) known to git",
    "unknown revision",
    "invalid reference",
    "not a valid object name",
    "not a commit",
    "couldn't find remote ref",
)
_DIRTY_MARKERS = (
    "would be overwritten by checkout",
    "commit your changes or stash them",
    "untracked working tree files would be",
)


@dataclass(frozen=True)
class CloneResult:
    """Result of a clone request."""
    path: Path
    existed: bool = False


class GitClient:
    """
    Abstraction over git commands.

    Provides the clone/inspect/checkout operations the observing
    environment drives for each repository.

    Example:
        client = GitClient()
        client.clone("https://github.com/lsst-ts/ts_xml.git", Path("/tmp/env/ts_xml"))
        print(client.current_version(Path("/tmp/env/ts_xml")))
    """

    def __init__(self, timeout: int = 300):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 300)
        """
        self.timeout = timeout

    def _run(self, args: List[str], cwd: Optional[Path] = None) -> Tuple[str, str, int]:
        """
        Run a git command.

        Args:
            args: Git arguments without the leading ``git``
            cwd: Working directory

        Returns:
            Tuple of (stdout, stderr, returncode)

        Raises:
            VcsError: If git cannot be executed or times out
        """
        cmd = ["git", *args]
        logger.debug(f"Running {' '.join(cmd)} in {cwd or '.'}")
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise VcsError(f"Git command timed out after {self.timeout}s: {' '.join(cmd)}",
                           path=str(cwd) if cwd else None) from e
        except OSError as e:
            raise VcsError(f"Could not run git: {e}", path=str(cwd) if cwd else None) from e

        return result.stdout.strip(), result.stderr.strip(), result.returncode

    def is_git_repo(self, path: Path) -> bool:
        """Check if path is a git repository."""
        return (Path(path) / ".git").exists()

    def _require_repo(self, path: Path) -> None:
        if not self.is_git_repo(path):
            raise RepositoryNotFoundError(f"No git repository at {path}", path=str(path))

    def clone(
        self,
        remote: str,
        destination: Path,
        branch: Optional[str] = None,
        depth: Optional[int] = None
    ) -> CloneResult:
        """
        Clone ``remote`` into ``destination``.

        An existing repository at ``destination`` is left untouched and
        reported with ``existed=True``.

        Raises:
            CloneError: If the clone fails or destination is occupied
        """
        destination = Path(destination)
        if self.is_git_repo(destination):
            return CloneResult(path=destination, existed=True)
        if destination.exists():
            if not destination.is_dir():
                raise CloneError(f"Destination {destination} exists and is not a directory",
                                 path=str(destination))
            try:
                occupied = any(destination.iterdir())
            except OSError as e:
                raise CloneError(f"Cannot inspect destination {destination}: {e}",
                                 path=str(destination)) from e
            if occupied:
                raise CloneError(f"Destination {destination} exists and is not a git repository",
                                 path=str(destination))

        args = ["clone"]
        if branch:
            args += ["--branch", branch]
        if depth:
            args += ["--depth", str(depth)]
        args += ["--", remote, str(destination)]

        _, stderr, code = self._run(args)
        if code != 0:
            raise CloneError(f"Failed to clone {remote}: {stderr or 'git clone failed'}",
                             path=str(destination), stderr=stderr)
        return CloneResult(path=destination)

    def current_branch(self, path: Path) -> Optional[str]:
        """Get current branch name, or None when HEAD is detached."""
        self._require_repo(path)
        output, _, code = self._run(["symbolic-ref", "--quiet", "--short", "HEAD"], cwd=path)
        if code == 0 and output:
            return output
        return None

    def current_version(self, path: Path) -> str:
        """
        Get the checked-out version of a repository.

        Returns the branch name; for a detached HEAD the exact tag at HEAD,
        otherwise the full commit SHA.
        """
        branch = self.current_branch(path)
        if branch:
            return branch

        output, _, code = self._run(["describe", "--tags", "--exact-match", "HEAD"], cwd=path)
        if code == 0 and output:
            return output

        output, stderr, code = self._run(["rev-parse", "HEAD"], cwd=path)
        if code != 0 or not output:
            raise VcsError(f"Cannot read HEAD of {path}: {stderr}", path=str(path), stderr=stderr)
        return output

    def resolve_commit(self, path: Path, ref: str) -> Optional[str]:
        """
        Resolve a branch, tag or (abbreviated) commit to a full commit SHA.

        Returns:
            The SHA, or None if ``ref`` names no commit in the repository
        """
        self._require_repo(path)
        output, _, code = self._run(
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], cwd=path
        )
        if code == 0 and output:
            return output
        return None

    def is_dirty(self, path: Path) -> bool:
        """Check if repo has uncommitted changes to tracked files."""
        self._require_repo(path)
        output, _, code = self._run(["status", "--porcelain", "--untracked-files=no"], cwd=path)
        return code == 0 and bool(output)

    def fetch(self, path: Path, remote: str = "origin") -> bool:
        """
        Fetch branches and tags from remote.

        Returns:
            True if successful
        """
        _, stderr, code = self._run(["fetch", "--tags", remote], cwd=path)
        if code != 0:
            logger.debug(f"Fetch from {remote} failed in {path}: {stderr}")
        return code == 0

    def branch_exists(self, path: Path, branch: str, remote: Optional[str] = None) -> bool:
        ref = f"refs/remotes/{remote}/{branch}" if remote else f"refs/heads/{branch}"
        _, _, code = self._run(["show-ref", "--verify", "--quiet", ref], cwd=path)
        return code == 0

    def checkout_branch(self, path: Path, branch: str) -> None:
        """
        Check out a branch, creating a tracking branch from origin if needed.

        Raises:
            RepositoryNotFoundError, BranchNotFoundError, DirtyWorkingTreeError
        """
        self._require_repo(path)
        if self.branch_exists(path, branch):
            args = ["checkout", branch]
        else:
            self.fetch(path)
            if not self.branch_exists(path, branch, remote="origin"):
                raise BranchNotFoundError(f"Branch {branch!r} not found in {path}", path=str(path))
            args = ["checkout", "-b", branch, "--track", f"origin/{branch}"]

        _, stderr, code = self._run(args, cwd=path)
        if code != 0:
            raise self._classify(stderr, path, f"Cannot checkout branch {branch!r}",
                                 not_found=BranchNotFoundError)

    def checkout_to_version(self, path: Path, version: str) -> None:
        """
        Check out a version (local branch, tag or commit).

        Tags and commits are checked out detached.

        Raises:
            RepositoryNotFoundError, RefNotFoundError, DirtyWorkingTreeError
        """
        self._require_repo(path)
        if self.branch_exists(path, version):
            args = ["checkout", version]
        else:
            self.fetch(path)
            if self.branch_exists(path, version, remote="origin"):
                self.checkout_branch(path, version)
                return
            args = ["checkout", "--detach", version]

        _, stderr, code = self._run(args, cwd=path)
        if code != 0:
            raise self._classify(stderr, path, f"Cannot checkout version {version!r}",
                                 not_found=RefNotFoundError)

    @staticmethod
    def _classify(stderr: str, path: Path, summary: str, not_found=RefNotFoundError) -> VcsError:
        """Map git stderr to the matching VcsError subclass."""
        lowered = stderr.lower()
        message = f"{summary} in {path}: {stderr or 'git checkout failed'}"
        if any(marker in lowered for marker in _DIRTY_MARKERS):
            return DirtyWorkingTreeError(message, path=str(path), stderr=stderr)
        if any(marker in lowered for marker in _NOT_FOUND_MARKERS):
            return not_found(message, path=str(path), stderr=stderr)
        return VcsError(message, path=str(path), stderr=stderr)
