"""CLI output helpers for JSON and human-readable output.

This module provides consistent error handling and result formatting
across all CLI commands.
"""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, NoReturn

import click

from sbo.cli.exit_codes import ExitCode

if TYPE_CHECKING:
    from sbo.errors import BuildWarning
    from sbo.features.models import FeatureFlag
    from sbo.orchestrator import RunReport
    from sbo.planner.models import VerificationReport


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Exit with formatted error message.

    Args:
        message: Error message to display.
        code: Exit code to use (ExitCode enum or int).
        json_output: Whether to format output as JSON.

    Note:
        This function never returns; it always calls sys.exit().
    """
    if isinstance(code, ExitCode):
        code_name = code.name
        exit_value = int(code)
    else:
        code_name = "UNKNOWN_ERROR"
        exit_value = code

    if json_output:
        click.echo(
            json.dumps(
                {
                    "status": "failed",
                    "error": {"code": code_name, "message": message},
                }
            ),
            err=True,
        )
    else:
        click.echo(f"Error: {message}", err=True)

    sys.exit(exit_value)


def echo_json(data: dict[str, Any]) -> None:
    """Print a JSON document to stdout."""
    click.echo(json.dumps(data, indent=2, default=str))


def format_feature_table(features: tuple[FeatureFlag, ...]) -> list[str]:
    """Render resolved features as aligned text lines."""
    if not features:
        return ["  (no features declared)"]
    width = max(len(f.name) for f in features)
    lines = []
    for flag in features:
        mark = "✓" if flag.enabled else "✗"
        kind = "optional" if flag.optional else "mandatory"
        lines.append(f"  {mark} {flag.name:<{width}}  {kind:<9}  {flag.reason}")
    return lines


def format_warnings(warnings: list[BuildWarning]) -> list[str]:
    return [f"  ⚠ [{w.kind}] {w}" for w in warnings]


def format_verification(report: VerificationReport) -> list[str]:
    static = {True: "yes", False: "NO", None: "unknown"}[report.static]
    return [
        f"  Binary:   {report.binary}",
        f"  Version:  {report.version or 'unknown'}",
        f"  Static:   {static}",
        f"  Encoders: {len(report.encoders)}",
    ]


def format_run_report(report: RunReport) -> str:
    """Human-readable summary printed at the end of ``sbo build``."""
    lines: list[str] = []
    if report.success:
        lines.append(f"Build complete: {report.binary}")
    else:
        lines.append(f"Build FAILED at {report.failed_step}")
        if report.error is not None:
            lines.append(f"  {report.error}")

    if report.features:
        lines += ["", "Features:"]
        lines += format_feature_table(report.features)

    if report.verification is not None:
        lines += ["", "Verification:"]
        lines += format_verification(report.verification)

    if report.warnings:
        lines += ["", f"Warnings ({len(report.warnings)}):"]
        lines += format_warnings(report.warnings)

    return "\n".join(lines)
