"""sbo plan command: show the final configure invocation."""

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
from sbo.cli.output import echo_json, format_feature_table
from sbo.config import ConfigSource
from sbo.orchestrator import plan_from_prefix


@click.command("plan")
@prefix_options
@json_option
@click.pass_context
def plan_command(
    ctx: click.Context,
    prefix: Path | None,
    manifest: Path | None,
    json_output: bool,
) -> None:
    """Print the configure command the final build would run now.

    Like a build, this repairs the prefix first: misplaced libraries and
    headers are linked into place and missing pkg-config descriptors are
    written (through sudo when use_sudo is configured). The printed
    command is therefore the one ``sbo build`` would run.
    """
    cli = ConfigSource(prefix=prefix, manifest=manifest)
    config = load_config(ctx, cli, json_output)
    dep_manifest = load_manifest_for(config, json_output)
    context = build_context(config)

    _probes, features, plan = plan_from_prefix(dep_manifest, context)

    if json_output:
        data = plan.to_dict()
        data["features"] = [f.to_dict() for f in features]
        echo_json(data)
        return

    click.echo("Features:")
    for line in format_feature_table(features):
        click.echo(line)
    click.echo()
    click.echo(f"./configure {plan.flag_string}")
