"""Build step context for structured logging.

Provides context propagation using contextvars, enabling automatic
injection of the dependency being built and the current step into log
records.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_dependency: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "dependency", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@contextmanager
def step_context(
    dependency: str, step: str | None = None
) -> Generator[None, None, None]:
    """Context manager tagging log records with a dependency and step.

    Restores the previous context on exit, so contexts nest.

    Example:
        with step_context("x265", "configure"):
            logger.info("Running cmake")  # tagged [x265:configure]
    """
    dep_token = _dependency.set(dependency)
    step_token = _step.set(step)
    try:
        yield
    finally:
        _step.reset(step_token)
        _dependency.reset(dep_token)


def get_step_context() -> tuple[str | None, str | None]:
    """Get current context as (dependency, step), either may be None."""
    return _dependency.get(), _step.get()


class StepContextFilter(logging.Filter):
    """Logging filter that injects build step context into log records.

    Adds ``dependency`` and ``step`` attributes for JSON output and a
    compact ``step_tag`` such as ``[x265:configure] `` for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        dependency, step = get_step_context()

        record.dependency = dependency
        record.step = step

        if dependency:
            if step:
                record.step_tag = f"[{dependency}:{step}] "
            else:
                record.step_tag = f"[{dependency}] "
        else:
            record.step_tag = ""

        return True  # Never filter out records
