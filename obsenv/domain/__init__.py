"""
Domain layer for obsenv.

Contains pure domain objects with no I/O or side effects:
- RepositoryIdentity: A registry entry (name + remote)
- RepositoryInstance: An identity cloned at a path
- RepoOutcome / BatchResult: Per-repository results of batch operations
"""

from .repository import RepositoryIdentity, RepositoryInstance, Version
from .operation import OperationStatus, RepoOutcome, BatchResult

__all__ = [
    'RepositoryIdentity',
    'RepositoryInstance',
    'Version',
    'OperationStatus',
    'RepoOutcome',
    'BatchResult',
]
