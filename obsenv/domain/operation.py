"""
Operation result domain objects for obsenv.

Batch operations over the registry never abort on a single repository.
Each repository contributes exactly one RepoOutcome to a BatchResult,
whether the backend call succeeded, failed or was skipped.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .repository import RepositoryIdentity


class OperationStatus(Enum):
    """Status of an individual repository operation."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # e.g. no base version specified


@dataclass
class RepoOutcome:
    """
    What happened to one repository during a batch operation.

    ``value`` carries the successful result (a RepositoryInstance, a
    version string, ...); ``error`` carries the exception of a failure.
    """
    identity: RepositoryIdentity
    status: OperationStatus
    value: Any = None
    error: Optional[Exception] = None
    message: Optional[str] = None

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @classmethod
    def success(cls, identity: RepositoryIdentity, value: Any = None,
                message: Optional[str] = None) -> 'RepoOutcome':
        return cls(identity, OperationStatus.SUCCESS, value=value, message=message)

    @classmethod
    def failure(cls, identity: RepositoryIdentity, error: Exception,
                message: Optional[str] = None) -> 'RepoOutcome':
        return cls(identity, OperationStatus.FAILED, error=error, message=message)

    @classmethod
    def skipped(cls, identity: RepositoryIdentity, message: str) -> 'RepoOutcome':
        return cls(identity, OperationStatus.SKIPPED, message=message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: Dict[str, Any] = {
            'name': self.identity.name,
            'status': self.status.value,
        }
        if self.value is not None:
            if hasattr(self.value, 'to_dict'):
                result['value'] = self.value.to_dict()
            else:
                result['value'] = str(self.value)
        if self.message:
            result['message'] = self.message
        if self.error is not None:
            result['error'] = str(self.error)
            result['error_type'] = type(self.error).__name__
        return result


@dataclass
class BatchResult:
    """
    Ordered per-repository outcomes of one batch operation.

    Outcomes are kept in registry order. A full result is always
    produced; failures-only views are derived from it.
    """
    operation: str
    outcomes: List[RepoOutcome] = field(default_factory=list)

    def add(self, outcome: RepoOutcome) -> None:
        self.outcomes.append(outcome)

    def __iter__(self) -> Iterator[RepoOutcome]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    @property
    def successes(self) -> List[RepoOutcome]:
        return [o for o in self.outcomes if o.status == OperationStatus.SUCCESS]

    @property
    def failures(self) -> List[RepoOutcome]:
        return [o for o in self.outcomes if o.status == OperationStatus.FAILED]

    @property
    def skipped(self) -> List[RepoOutcome]:
        return [o for o in self.outcomes if o.status == OperationStatus.SKIPPED]

    @property
    def success(self) -> bool:
        """True if no repository failed."""
        return not self.failures

    def get(self, name: str) -> Optional[RepoOutcome]:
        """Return the outcome for a repository name, if present."""
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Summary record for JSON serialization."""
        return {
            'type': 'summary',
            'operation': self.operation,
            'total': len(self.outcomes),
            'successful': len(self.successes),
            'skipped': len(self.skipped),
            'failed': len(self.failures),
            'errors': [f"{o.name}: {o.error}" for o in self.failures],
        }
