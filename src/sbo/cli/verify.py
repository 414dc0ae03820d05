"""sbo verify command: check an existing binary."""

from __future__ import annotations

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
from sbo.cli.output import echo_json, format_verification, format_warnings
from sbo.config import ConfigSource
from sbo.core.subprocess_utils import SubprocessRunner
from sbo.orchestrator import plan_from_prefix
from sbo.planner import verify_binary


@click.command("verify")
@click.argument(
    "binary",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@prefix_options
@json_option
@click.pass_context
def verify_command(
    ctx: click.Context,
    binary: Path,
    prefix: Path | None,
    manifest: Path | None,
    json_output: bool,
) -> None:
    """Check BINARY is static and lists every encoder the prefix enables.

    Features are resolved from the prefix exactly as a build would
    resolve them.

    Exit codes:
      0 - No mismatches
      60 - Mismatches found
    """
    cli = ConfigSource(prefix=prefix, manifest=manifest)
    config = load_config(ctx, cli, json_output)
    dep_manifest = load_manifest_for(config, json_output)
    context = build_context(config)

    runner = SubprocessRunner()
    _probes, features, _plan = plan_from_prefix(dep_manifest, context, runner)
    report = verify_binary(binary, features, runner)

    if json_output:
        echo_json(report.to_dict())
    else:
        click.echo("Verification:")
        for line in format_verification(report):
            click.echo(line)
        if report.mismatches:
            click.echo()
            for line in format_warnings(list(report.mismatches)):
                click.echo(line)
        else:
            click.echo("\nNo mismatches.")

    ctx.exit(int(ExitCode.SUCCESS if report.ok else ExitCode.WARNINGS))
