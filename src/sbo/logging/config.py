"""Install sbo's log handlers on the root logger."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from sbo.logging.context import StepContextFilter
from sbo.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from sbo.config.models import LoggingConfig

# step_tag renders as "[x265:configure] " inside a step and "" outside one.
TEXT_FORMAT = "%(asctime)s - %(step_tag)s%(name)s - %(levelname)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _formatter(fmt: str) -> logging.Formatter:
    if fmt.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def _open_log_file(path: Path, config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating build log, or return None if it cannot be created."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"sbo: cannot open log file {path}: {e}; using stderr\n")
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Replace the root logger's handlers according to ``config``.

    Output goes to the log file when one is configured and can be opened,
    and to stderr otherwise or when ``include_stderr`` is set. Every handler
    gets the step context filter so lines carry the dependency and step.
    """
    level = logging.getLevelName(config.level.upper())
    handlers: list[logging.Handler] = []

    if config.file is not None:
        file_handler = _open_log_file(Path(config.file).expanduser(), config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = _formatter(config.format)
    step_filter = StepContextFilter()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(step_filter)
        root.addHandler(handler)
