"""sbo build command: run the full pipeline."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from sbo.cli.common import (
    build_context,
    json_option,
    load_config,
    load_manifest_for,
    prefix_options,
)
from sbo.cli.exit_codes import ExitCode
from sbo.cli.output import echo_json, error_exit, format_run_report
from sbo.config import ConfigSource
from sbo.core.subprocess_utils import SubprocessRunner
from sbo.errors import FetchError
from sbo.orchestrator import RunOptions, RunReport, run_pipeline
from sbo.tools import RequirementLevel, check_requirements, detect_host_tools

logger = logging.getLogger(__name__)


def _exit_code(report: RunReport) -> ExitCode:
    if not report.success:
        if isinstance(report.error, FetchError):
            return ExitCode.FETCH_FAILED
        return ExitCode.BUILD_STEP_FAILED
    if report.has_warnings:
        return ExitCode.WARNINGS
    return ExitCode.SUCCESS


@click.command("build")
@prefix_options
@click.option(
    "--source-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for fetched source trees.",
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=None,
    help="Parallel compile jobs (default: CPU count).",
)
@click.option(
    "--skip-updates",
    is_flag=True,
    default=False,
    help="Reuse existing source trees without pulling.",
)
@click.option(
    "--sudo/--no-sudo",
    "use_sudo",
    default=None,
    help="Run install steps through sudo.",
)
@click.option(
    "--no-strip",
    is_flag=True,
    default=False,
    help="Keep debug symbols in the final binary.",
)
@click.option(
    "--skip-tool-check",
    is_flag=True,
    default=False,
    help="Do not check host tools before building.",
)
@json_option
@click.pass_context
def build_command(
    ctx: click.Context,
    prefix: Path | None,
    manifest: Path | None,
    source_dir: Path | None,
    jobs: int | None,
    skip_updates: bool,
    use_sudo: bool | None,
    no_strip: bool,
    skip_tool_check: bool,
    json_output: bool,
) -> None:
    """Fetch, build and install every dependency, then the final binary.

    Optional dependencies that fail to build are reported as warnings and
    their features are left out of the final build.

    Exit codes:
      0 - Build complete
      40 - A mandatory source could not be fetched
      41 - A mandatory build step failed
      60 - Build complete with warnings
    """
    cli = ConfigSource(
        prefix=prefix,
        source_dir=source_dir,
        manifest=manifest,
        jobs=jobs,
        use_sudo=use_sudo,
        skip_updates=skip_updates or None,
        strip_binary=False if no_strip else None,
    )
    config = load_config(ctx, cli, json_output)
    dep_manifest = load_manifest_for(config, json_output)
    context = build_context(config)

    if not skip_tool_check:
        requirements = check_requirements(detect_host_tools(), dep_manifest)
        if not requirements.required_satisfied:
            messages = requirements.get_messages(RequirementLevel.REQUIRED)
            error_exit(
                "Missing required host tools:\n  " + "\n  ".join(messages),
                ExitCode.TOOL_NOT_AVAILABLE,
                json_output,
            )

    report = run_pipeline(
        dep_manifest,
        context,
        SubprocessRunner(),
        RunOptions.from_config(config),
    )

    if json_output:
        echo_json(report.to_dict())
    else:
        click.echo(format_run_report(report))

    ctx.exit(int(_exit_code(report)))
