"""Core utilities shared across sbo modules."""

from sbo.core.formatting import format_file_size, tail_lines
from sbo.core.subprocess_utils import (
    CommandResult,
    CommandRunner,
    SubprocessRunner,
    run_command,
)

__all__ = [
    "CommandResult",
    "CommandRunner",
    "SubprocessRunner",
    "format_file_size",
    "run_command",
    "tail_lines",
]
