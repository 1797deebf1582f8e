"""
Base-version resolution for obsenv.

The base ("reference") version of every managed repository is recorded in
a manifest checked into a descriptor repository. Each reference branch of
that repository describes one base environment. The manifest is a YAML
mapping of repository name to version::

    ts_xml: v22.1.0
    ts_salobj: v8.0.0
    summit_utils: "w.2024.30"

or the same mapping nested under a ``versions:`` key.

The descriptor is fetched fresh on every call and never cached.
Resolution is all-or-nothing: any fetch or parse problem raises
ResolverError and no partial mapping is returned.
"""

import logging
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Optional

import yaml

from ..domain import RepositoryIdentity, Version
from ..exit_codes import ResolverError, VcsError
from ..infra.git_client import GitClient
from ..repos import Repos

logger = logging.getLogger(__name__)


def parse_manifest(
    text: str,
    registry: Optional[Iterable[RepositoryIdentity]] = None
) -> Dict[str, Version]:
    """
    Parse manifest text into a name -> version mapping.

    Args:
        text: YAML manifest content
        registry: Known repositories (default: the Repos registry)

    Returns:
        Mapping restricted to registry repositories, in registry order.
        Registry repositories absent from the manifest are absent here.

    Raises:
        ResolverError: On invalid YAML, a non-mapping document or a
            version that is not a non-empty string.
    """
    identities = list(registry) if registry is not None else Repos.identities()

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ResolverError(f"Invalid base environment manifest: {e}") from e

    if data is None:
        data = {}
    if isinstance(data, dict) and isinstance(data.get('versions'), dict):
        data = data['versions']
    if not isinstance(data, dict):
        raise ResolverError("Base environment manifest must be a mapping of repository to version")

    known = {identity.name for identity in identities}
    for name, version in data.items():
        if name not in known:
            logger.warning(f"Ignoring unknown repository in base environment manifest: {name}")
        elif not isinstance(version, str) or not version.strip():
            raise ResolverError(
                f"Invalid version for {name!r}: {version!r} (versions must be quoted strings)"
            )

    return {
        identity.name: data[identity.name].strip()
        for identity in identities
        if identity.name in data
    }


class BaseVersionResolver:
    """
    Resolve base versions from a descriptor repository.

    Example:
        resolver = BaseVersionResolver(
            "https://github.com/lsst-ts/ts_observing_environment.git")
        versions = resolver.resolve("main")
        print(versions["ts_xml"])
    """

    def __init__(
        self,
        descriptor_remote: str,
        manifest_file: str = "base_env_versions.yaml",
        git_client: Optional[GitClient] = None,
        registry: Optional[Iterable[RepositoryIdentity]] = None
    ):
        """
        Initialize BaseVersionResolver.

        Args:
            descriptor_remote: Clone location of the descriptor repository
                (a URL or a local path)
            manifest_file: Manifest path relative to the descriptor root
            git_client: GitClient instance (creates new if None)
            registry: Known repositories (default: the Repos registry)
        """
        self.descriptor_remote = descriptor_remote
        self.manifest_file = manifest_file
        self.git = git_client or GitClient()
        self.registry = list(registry) if registry is not None else Repos.identities()

    def resolve(self, reference_branch_name: str) -> Dict[str, Version]:
        """
        Read the base versions recorded on ``reference_branch_name``.

        Raises:
            ResolverError: If the descriptor cannot be fetched or parsed
        """
        if not reference_branch_name:
            raise ResolverError("A base environment branch name is required")

        logger.debug(
            f"Fetching base environment {self.descriptor_remote}@{reference_branch_name}"
        )
        with tempfile.TemporaryDirectory(prefix="obsenv-base-") as tmp:
            checkout = Path(tmp) / "descriptor"
            try:
                self.git.clone(
                    self.descriptor_remote,
                    checkout,
                    branch=reference_branch_name,
                    depth=1,
                )
            except VcsError as e:
                raise ResolverError(
                    f"Cannot fetch base environment {reference_branch_name!r} "
                    f"from {self.descriptor_remote}: {e}"
                ) from e

            manifest = checkout / self.manifest_file
            try:
                text = manifest.read_text(encoding="utf-8")
            except OSError as e:
                raise ResolverError(
                    f"Cannot read {self.manifest_file} on {reference_branch_name!r}: {e}"
                ) from e

        versions = parse_manifest(text, self.registry)
        logger.debug(f"Resolved {len(versions)} base versions from {reference_branch_name!r}")
        return versions
