"""Centralized exit codes for all CLI commands.

Exit code ranges:
    0: Success
    1-9: General errors
    10-19: Validation errors (config, manifest)
    30-39: Tool errors
    40-49: Build errors
    60-69: Warning states
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for sbo CLI commands."""

    # Success (0)
    SUCCESS = 0

    # General errors (1-9)
    GENERAL_ERROR = 1

    # Validation errors (10-19)
    CONFIG_ERROR = 11
    MANIFEST_ERROR = 12

    # Tool errors (30-39)
    TOOL_NOT_AVAILABLE = 30

    # Build errors (40-49)
    FETCH_FAILED = 40
    BUILD_STEP_FAILED = 41

    # Warning states (60-69)
    WARNINGS = 60
