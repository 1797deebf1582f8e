"""
Infrastructure layer for obsenv.

Contains abstractions for external systems:
- GitClient: Git command execution (the version-control backend)

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, CloneResult

__all__ = [
    'GitClient',
    'CloneResult',
]
