"""
Repository domain objects for obsenv.

A RepositoryIdentity is a statically known entry of the registry; a
RepositoryInstance is that identity materialized on disk inside the
observing environment.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

# Branch name, tag or commit SHA. Treated as opaque everywhere.
Version = str


@dataclass(frozen=True)
class RepositoryIdentity:
    """Name and clone location of a managed repository."""
    name: str
    remote: str

    def __str__(self) -> str:
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'remote': self.remote}


@dataclass(frozen=True)
class RepositoryInstance:
    """
    A repository cloned under the environment destination directory.

    Instances are addressed by ``(destination, identity.name)``; the
    directory on disk is the only state obsenv manages.
    """
    identity: RepositoryIdentity
    path: Path

    @property
    def name(self) -> str:
        return self.identity.name

    def to_dict(self) -> Dict[str, Any]:
        result = self.identity.to_dict()
        result['path'] = str(self.path)
        return result
