"""
obsenv - Manage an observing environment of git repositories.

obsenv keeps a fixed set of repositories cloned under one destination
directory and moves them between known versions: the version each
repository is at now, and the base versions recorded for a reference
branch of the base environment descriptor.

Quick Start:
    from obsenv import ObservingEnvironment

    env = ObservingEnvironment.with_destination("~/obs-env")
    env.create_path()
    env.clone_repositories()

    # Per-repository outcomes; one failure never stops the batch
    for outcome in env.get_current_env_versions():
        print(outcome.name, outcome.value or outcome.error)

    # Reset every repository to the base environment on "main"
    result = env.reset_base_environment("main")
    for outcome in result.failures:
        print(outcome.name, outcome.error)
"""

__version__ = "0.3.0"

from .domain import (
    RepositoryIdentity,
    RepositoryInstance,
    OperationStatus,
    RepoOutcome,
    BatchResult,
)
from .repos import Repos
from .services import ObservingEnvironment, BaseVersionResolver
from .config import load_config

__all__ = [
    "__version__",
    "RepositoryIdentity",
    "RepositoryInstance",
    "OperationStatus",
    "RepoOutcome",
    "BatchResult",
    "Repos",
    "ObservingEnvironment",
    "BaseVersionResolver",
    "load_config",
]
