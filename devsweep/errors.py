"""Error taxonomy for devsweep.

Cleanup failures are never raised to the caller. Cleaners report them as an
``ErrorKind`` on their result and the runner moves on to the next task. Only
configuration problems abort a run, and they do so before any task executes.
"""

from enum import Enum


class ErrorKind(Enum):
    """Why a cleanup task did not (fully) happen."""

    TOOL_MISSING = "tool missing"
    PERMISSION_DENIED = "permission denied"
    PATH_NOT_FOUND = "nothing to clean"
    COMMAND_FAILED = "failed"


class ConfigError(ValueError):
    """Raised when the configuration file or environment is invalid."""
