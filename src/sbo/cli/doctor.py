"""sbo doctor command for checking host build tools.

This module provides the 'sbo doctor' command to check that every tool
the build shells out to is installed, with a usable version.
"""

from __future__ import annotations

import click

from sbo.cli.common import json_option, load_config, load_manifest_for
from sbo.cli.exit_codes import ExitCode
from sbo.cli.output import echo_json
from sbo.tools import (
    RequirementLevel,
    check_requirements,
    detect_host_tools,
)


def _format_status(available: bool) -> str:
    """Format status for display."""
    return "✓" if available else "✗"


@click.command("doctor")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show tool paths.",
)
@json_option
@click.pass_context
def doctor_command(ctx: click.Context, verbose: bool, json_output: bool) -> None:
    """Check host build tool availability.

    Exit codes:
      0 - All tools available
      30 - A required tool is missing or too old
      60 - A recommended tool is missing
    """
    config = load_config(ctx, json_output=json_output)
    manifest = load_manifest_for(config, json_output)

    registry = detect_host_tools()
    report = check_requirements(registry, manifest)

    if not report.required_satisfied:
        exit_code = ExitCode.TOOL_NOT_AVAILABLE
    elif report.get_unsatisfied(RequirementLevel.RECOMMENDED):
        exit_code = ExitCode.WARNINGS
    else:
        exit_code = ExitCode.SUCCESS

    if json_output:
        echo_json(
            {
                "tools": registry.summary(),
                "requirements": [
                    {
                        "tool": r.requirement.tool_name,
                        "level": r.requirement.level.value,
                        "satisfied": r.satisfied,
                        "message": r.message,
                    }
                    for r in report.results
                ],
            }
        )
        ctx.exit(int(exit_code))

    click.echo("sbo Host Tool Health Check")
    click.echo("=" * 40)
    click.echo()

    for result in report.results:
        req = result.requirement
        tool = registry.get_tool(req.tool_name)
        version = result.current_version or "not found"
        path_info = f" ({tool.path})" if verbose and tool and tool.path else ""
        click.echo(
            f"  {_format_status(result.satisfied)} {req.tool_name:<11} "
            f"{version:<12} [{req.level.value}]{path_info}"
        )
    click.echo()

    for level, title in (
        (RequirementLevel.REQUIRED, "Critical Issues:"),
        (RequirementLevel.RECOMMENDED, "Warnings:"),
    ):
        messages = report.get_messages(level)
        if messages:
            click.echo(title)
            click.echo("-" * 20)
            for message in messages:
                click.echo(f"  ✗ {message}")
            click.echo()

    if exit_code == ExitCode.SUCCESS:
        click.echo("All required tools are available.")

    ctx.exit(int(exit_code))
