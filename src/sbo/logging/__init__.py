"""Structured logging module for sbo.

Provides configurable logging with JSON format support and file rotation.
Includes build step context so every line names the dependency and step.
"""

from sbo.logging.config import configure_logging
from sbo.logging.context import (
    StepContextFilter,
    get_step_context,
    step_context,
)
from sbo.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "StepContextFilter",
    "configure_logging",
    "get_step_context",
    "step_context",
]
