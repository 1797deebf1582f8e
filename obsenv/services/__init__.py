"""
Service layer for obsenv.

Services contain the orchestration logic and use the infrastructure
layer for I/O:
- ObservingEnvironment: Batch and single-repository operations
- BaseVersionResolver: Base versions from the descriptor repository
"""

from .base_versions import BaseVersionResolver, parse_manifest
from .environment import ObservingEnvironment, NO_BASE_VERSION

__all__ = [
    'BaseVersionResolver',
    'parse_manifest',
    'ObservingEnvironment',
    'NO_BASE_VERSION',
]
