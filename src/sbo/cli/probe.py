"""sbo probe command: report what the install prefix provides."""

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
from sbo.cli.output import echo_json, format_feature_table, format_warnings
from sbo.config import ConfigSource
from sbo.orchestrator import plan_from_prefix


@click.command("probe")
@prefix_options
@json_option
@click.pass_context
def probe_command(
    ctx: click.Context,
    prefix: Path | None,
    manifest: Path | None,
    json_output: bool,
) -> None:
    """Probe the prefix for dependency artifacts without building.

    Misplaced libraries and headers are linked into their canonical
    location and missing pkg-config descriptors are synthesized, as during
    a build, through sudo when use_sudo is configured.
    """
    cli = ConfigSource(prefix=prefix, manifest=manifest)
    config = load_config(ctx, cli, json_output)
    dep_manifest = load_manifest_for(config, json_output)
    context = build_context(config)

    probes, features, _plan = plan_from_prefix(dep_manifest, context)

    if json_output:
        echo_json(
            {
                "prefix": str(context.prefix),
                "probes": [p.to_dict() for p in probes],
                "features": [f.to_dict() for f in features],
            }
        )
        return

    click.echo(f"Prefix: {context.prefix}")
    click.echo()
    click.echo("Artifacts:")
    for probe in probes:
        for location in probe.locations:
            where = location.resolved or "not found"
            click.echo(f"  {probe.dependency}: {location.name} -> {where}")
        for healed in probe.healed:
            click.echo(f"    linked {healed}")
        if probe.pkgconfig is not None:
            click.echo(f"    wrote {probe.pkgconfig}")
    click.echo()
    click.echo("Features:")
    for line in format_feature_table(features):
        click.echo(line)

    warnings = [w for p in probes for w in p.warnings]
    if warnings:
        click.echo()
        for line in format_warnings(warnings):
            click.echo(line)
