"""
Standard exit codes and error types for obsenv.

Following Unix/POSIX conventions for command-line tools. Every error the
orchestration layer raises is a CommandError carrying the exit code the
CLI should terminate with.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
CONFIG_ERROR = 66        # Configuration file or parameter error
PERMISSION_ERROR = 67    # Destination cannot be created or accessed
PARTIAL_SUCCESS = 71     # Some repositories succeeded, some failed
VCS_ERROR = 72           # Version-control backend failure
RESOLVER_ERROR = 73      # Base-version descriptor could not be read
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for exceptions that are not CommandErrors
EXCEPTION_EXIT_CODES = {
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigurationError(CommandError):
    """Invalid action/parameter combination or unreadable config file."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class UnknownRepositoryError(CommandError):
    """Raised when a repository name is not part of the registry."""
    def __init__(self, name: str):
        super().__init__(f"Unknown repository: {name!r}", USAGE_ERROR)
        self.name = name


class EnvironmentIOError(CommandError):
    """Raised when the environment destination cannot be created."""
    def __init__(self, message: str):
        super().__init__(message, PERMISSION_ERROR)


class ResolverError(CommandError):
    """Raised when the base-version descriptor cannot be fetched or parsed."""
    def __init__(self, message: str):
        super().__init__(message, RESOLVER_ERROR)


class VcsError(CommandError):
    """
    Version-control failure scoped to one repository.

    Batch operations capture it per repository; single-repository
    operations let it propagate.
    """
    def __init__(self, message: str, path: Optional[str] = None,
                 stderr: Optional[str] = None):
        super().__init__(message, VCS_ERROR)
        self.path = path
        self.stderr = stderr


class RepositoryNotFoundError(VcsError):
    """The repository is not present on disk."""


class CloneError(VcsError):
    """Cloning failed (unreachable remote, occupied destination, ...)."""


class BranchNotFoundError(VcsError):
    """The requested branch exists neither locally nor on origin."""


class RefNotFoundError(VcsError):
    """The requested tag, commit or ref does not exist."""


class DirtyWorkingTreeError(VcsError):
    """Checkout refused because local changes would be overwritten."""
