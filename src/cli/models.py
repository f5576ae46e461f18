"""Data models for CLI operations."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    These exit codes provide meaningful feedback about the operation result:
    - SUCCESS (0): Every document was mirrored (written or unchanged)
    - GENERAL_ERROR (1): General error (config issues, validation failures)
    - AUTH_ERROR (3): Invalid credentials or a missing app permission
    - NETWORK_ERROR (4): Network connectivity or API availability issues
    - PARTIAL_FAILURE (5): Some documents failed, the others were mirrored
    - CANCELLED (130): Interrupted by the user (Ctrl-C)

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 3
    NETWORK_ERROR = 4
    PARTIAL_FAILURE = 5
    CANCELLED = 130
