"""Subprocess utilities for external tool invocation.

This module provides the standard subprocess wrapper used for every
external command sbo runs (git, configure, cmake, make, ldd, the produced
binary) and the ``CommandRunner`` seam that components receive so tests
can substitute a scripted runner.
"""

from __future__ import annotations

import logging
import subprocess  # nosec B404 - subprocess is required for build commands
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


def run_command(
    args: Sequence[str | Path],
    timeout: float | None = 120,
    capture_output: bool = True,
    text: bool = True,
    errors: str = "replace",
    **kwargs: Any,
) -> tuple[str, str, int]:
    """Run external command with standard error handling.

    This function wraps subprocess.run with sbo's standard patterns:
    - Explicit text decoding with error replacement
    - Configurable timeout (default 2 minutes, None for no limit)
    - Consistent return format

    Args:
        args: Command and arguments. Path objects are converted to strings.
        timeout: Timeout in seconds, or None to wait indefinitely.
        capture_output: Capture stdout/stderr (default True).
        text: Return text instead of bytes (default True).
        errors: Error handling mode for text decoding (default "replace").
        **kwargs: Additional subprocess.run arguments (cwd, env, ...).

    Returns:
        Tuple of (stdout, stderr, returncode).

    Raises:
        subprocess.TimeoutExpired: If command times out.
        OSError: If the command cannot be spawned (FileNotFoundError for a
            missing executable, PermissionError for one without exec bits).
    """
    str_args = [str(arg) for arg in args]
    command_name = str_args[0].split("/")[-1] if str_args else "unknown"

    logger.debug(
        "Executing command: %s",
        " ".join(str_args),
        extra={"command": command_name, "arg_count": len(str_args)},
    )

    start_time = time.monotonic()

    try:
        result = subprocess.run(  # nosec B603 - caller validates args
            str_args,
            capture_output=capture_output,
            text=text,
            errors=errors,
            timeout=timeout,
            **kwargs,
        )

        elapsed = time.monotonic() - start_time
        logger.debug(
            "Command completed",
            extra={
                "command": command_name,
                "elapsed_seconds": round(elapsed, 3),
                "returncode": result.returncode,
            },
        )

        return result.stdout or "", result.stderr or "", result.returncode
    except subprocess.TimeoutExpired:
        elapsed = time.monotonic() - start_time
        logger.warning(
            "Command timed out after %ss: %s",
            timeout,
            " ".join(str_args[:3]) + ("..." if len(str_args) > 3 else ""),
            extra={
                "command": command_name,
                "timeout_seconds": timeout,
                "elapsed_seconds": round(elapsed, 3),
            },
        )
        raise


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single external command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        """Return True if the command exited with status 0."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        if self.stdout and self.stderr:
            return f"{self.stdout.rstrip()}\n{self.stderr}"
        return self.stdout or self.stderr


class CommandRunner(Protocol):
    """Callable seam used by every component that spawns processes."""

    def run(
        self,
        args: Sequence[str | Path],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult: ...


class SubprocessRunner:
    """CommandRunner backed by ``run_command``.

    Spawn failures become ordinary failed results using the shell's
    conventions: 127 for a missing executable and 126 for one that cannot
    be executed. A missing working directory or any other OS error is
    reported as status 1 with the error text on stderr.
    """

    def run(
        self,
        args: Sequence[str | Path],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        str_args = tuple(str(a) for a in args)
        if cwd is not None and not Path(cwd).is_dir():
            return CommandResult(
                str_args, 1, "", f"working directory does not exist: {cwd}"
            )
        try:
            stdout, stderr, rc = run_command(
                str_args,
                timeout=timeout,
                cwd=str(cwd) if cwd is not None else None,
                env=dict(env) if env is not None else None,
            )
        except FileNotFoundError as e:
            return CommandResult(str_args, 127, "", str(e))
        except PermissionError as e:
            return CommandResult(str_args, 126, "", str(e))
        except subprocess.TimeoutExpired as e:
            return CommandResult(str_args, -1, "", f"timed out after {e.timeout}s")
        except OSError as e:
            return CommandResult(str_args, 1, "", str(e))
        return CommandResult(str_args, rc, stdout, stderr)
