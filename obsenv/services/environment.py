"""
Observing environment orchestration for obsenv.

The ObservingEnvironment owns a destination directory and drives the git
backend across every repository of the registry. Two failure policies
apply:

- Batch operations (clone, current versions, reset, compare) attempt every
  repository and record one outcome per repository. A VcsError or OSError
  becomes a FAILED outcome; it never stops the batch.
- Single-repository operations and base-version resolution are
  all-or-nothing and raise.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

from ..config import get_default_config, load_config
from ..domain import (
    BatchResult,
    RepoOutcome,
    RepositoryIdentity,
    RepositoryInstance,
    Version,
)
from ..exit_codes import (
    ConfigurationError,
    EnvironmentIOError,
    UnknownRepositoryError,
    VcsError,
)
from ..infra.git_client import GitClient
from ..repos import Repos
from .base_versions import BaseVersionResolver

logger = logging.getLogger(__name__)

NO_BASE_VERSION = "no base version specified"


class ObservingEnvironment:
    """
    Orchestrates clone, inspection and reset of the managed repositories.

    Example:
        env = ObservingEnvironment.with_destination("/net/obs-env/auto_base_packages")
        env.create_path()
        result = env.clone_repositories()
        for outcome in result.failures:
            print(outcome.name, outcome.error)
    """

    def __init__(
        self,
        destination,
        git_client: Optional[GitClient] = None,
        resolver: Optional[BaseVersionResolver] = None,
        registry: Optional[Iterable[RepositoryIdentity]] = None
    ):
        """
        Initialize ObservingEnvironment.

        Args:
            destination: Directory holding one checkout per repository
            git_client: GitClient instance (creates new if None)
            resolver: BaseVersionResolver (built from defaults if None)
            registry: Repositories to manage (default: the Repos registry)
        """
        self.destination = Path(destination).expanduser()
        self.git = git_client or GitClient()
        self.registry = list(registry) if registry is not None else Repos.identities()
        if resolver is None:
            base_env = get_default_config()["base_env"]
            resolver = BaseVersionResolver(
                base_env["descriptor_remote"],
                base_env["manifest_file"],
                git_client=self.git,
                registry=self.registry,
            )
        self.resolver = resolver

    @classmethod
    def with_destination(cls, destination, config: Optional[Dict[str, Any]] = None) -> 'ObservingEnvironment':
        """Build an environment and its collaborators from configuration."""
        config = config or load_config()
        git = GitClient(timeout=config["git"]["timeout_seconds"])
        resolver = BaseVersionResolver(
            config["base_env"]["descriptor_remote"],
            config["base_env"]["manifest_file"],
            git_client=git,
        )
        return cls(destination, git_client=git, resolver=resolver)

    def repository_path(self, identity: RepositoryIdentity) -> Path:
        return self.destination / identity.name

    def _lookup(self, repository_name: str) -> RepositoryIdentity:
        for identity in self.registry:
            if identity.name == repository_name:
                return identity
        raise UnknownRepositoryError(repository_name)

    def _for_each(
        self,
        operation: str,
        action: Callable[[RepositoryIdentity], RepoOutcome]
    ) -> BatchResult:
        """Apply ``action`` to every repository, folding errors into outcomes."""
        result = BatchResult(operation=operation)
        for identity in self.registry:
            try:
                outcome = action(identity)
            except (VcsError, OSError) as e:
                logger.debug(f"{operation} failed for {identity.name}: {e}")
                outcome = RepoOutcome.failure(identity, e)
            result.add(outcome)
        return result

    def create_path(self) -> Path:
        """
        Ensure the destination directory exists.

        Raises:
            EnvironmentIOError: If it cannot be created or is not a directory
        """
        if self.destination.exists() and not self.destination.is_dir():
            raise EnvironmentIOError(f"{self.destination} exists and is not a directory")
        try:
            self.destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise EnvironmentIOError(f"Cannot create {self.destination}: {e}") from e
        return self.destination

    def clone_repositories(self) -> BatchResult:
        """Clone every repository into the destination directory."""
        def clone(identity: RepositoryIdentity) -> RepoOutcome:
            path = self.repository_path(identity)
            logger.debug(f"Cloning {identity.remote} into {path}")
            cloned = self.git.clone(identity.remote, path)
            instance = RepositoryInstance(identity=identity, path=cloned.path)
            return RepoOutcome.success(
                identity, instance,
                message="already exists" if cloned.existed else "cloned",
            )

        return self._for_each("clone", clone)

    def summarize(self) -> str:
        """Human-readable rendering of the environment configuration."""
        lines = [
            "Observing environment:",
            f"  destination: {self.destination}",
            f"  base environment: {self.resolver.descriptor_remote} ({self.resolver.manifest_file})",
            f"  repositories ({len(self.registry)}):",
        ]
        for identity in self.registry:
            lines.append(f"    {identity.name}: {identity.remote}")
        return "\n".join(lines)

    def get_current_env_versions(self) -> BatchResult:
        """Read the checked-out version of every repository."""
        def current(identity: RepositoryIdentity) -> RepoOutcome:
            return RepoOutcome.success(
                identity, self.git.current_version(self.repository_path(identity))
            )

        return self._for_each("current_versions", current)

    def get_base_env_versions(self, reference_branch_name: str) -> Dict[str, Version]:
        """
        Resolve the base version of each repository.

        Raises:
            ResolverError: If the descriptor cannot be read
        """
        return self.resolver.resolve(reference_branch_name)

    def reset_base_environment(self, reference_branch_name: str) -> BatchResult:
        """
        Check out the base version of every repository.

        Resolution happens first; if it fails nothing is checked out.
        Repositories without a base version are reported as skipped.

        Raises:
            ResolverError: If the descriptor cannot be read
        """
        base_versions = self.get_base_env_versions(reference_branch_name)

        def reset(identity: RepositoryIdentity) -> RepoOutcome:
            version = base_versions.get(identity.name)
            if version is None:
                return RepoOutcome.skipped(identity, NO_BASE_VERSION)
            logger.debug(f"Resetting {identity.name} to {version}")
            self.git.checkout_to_version(self.repository_path(identity), version)
            return RepoOutcome.success(identity, version)

        return self._for_each("reset", reset)

    def compare_env_versions(self, reference_branch_name: str) -> BatchResult:
        """
        Compare current versions against base versions.

        A repository succeeds when its HEAD is the commit its base version
        names, whether the base version is a branch, a tag or a (short)
        commit SHA. It fails when the commits differ or cannot be read.

        Raises:
            ResolverError: If the descriptor cannot be read
        """
        base_versions = self.get_base_env_versions(reference_branch_name)

        def compare(identity: RepositoryIdentity) -> RepoOutcome:
            expected = base_versions.get(identity.name)
            if expected is None:
                return RepoOutcome.skipped(identity, NO_BASE_VERSION)
            path = self.repository_path(identity)
            current = self.git.current_version(path)
            if current == expected:
                return RepoOutcome.success(identity, current)
            expected_commit = self.git.resolve_commit(path, expected)
            if expected_commit is not None and expected_commit == self.git.resolve_commit(path, "HEAD"):
                return RepoOutcome.success(identity, current)
            return RepoOutcome.failure(
                identity,
                VcsError(f"at {current}, base version is {expected}"),
                message="version mismatch",
            )

        return self._for_each("compare", compare)

    def checkout_branch(self, repository_name: str, branch_name: str) -> None:
        """
        Check out a branch in one repository.

        Raises:
            UnknownRepositoryError: If the repository is not registered
            ConfigurationError: If no branch name is given
            VcsError: If the backend fails
        """
        identity = self._lookup(repository_name)
        if not branch_name:
            raise ConfigurationError("A branch name is required to checkout a branch")
        logger.info(f"Checking out branch {branch_name} in {identity.name}")
        self.git.checkout_branch(self.repository_path(identity), branch_name)

    def reset_index_to_version(self, repository_name: str, version: Version) -> None:
        """
        Check out a version in one repository.

        Raises:
            UnknownRepositoryError: If the repository is not registered
            ConfigurationError: If no version is given
            VcsError: If the backend fails
        """
        identity = self._lookup(repository_name)
        if not version:
            raise ConfigurationError("A version is required to checkout a version")
        logger.info(f"Checking out version {version} in {identity.name}")
        self.git.checkout_to_version(self.repository_path(identity), version)
