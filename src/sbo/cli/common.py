"""Shared helpers for CLI commands: config, manifest and context loading."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from sbo.cli.exit_codes import ExitCode
from sbo.cli.output import error_exit
from sbo.config import ConfigSource, SboConfig, get_config
from sbo.context import BuildContext
from sbo.errors import ConfigError, ManifestError
from sbo.manifest import Manifest, load_default_manifest, load_manifest

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def prefix_options(func: F) -> F:
    """Add --prefix and --manifest to a command."""
    func = click.option(
        "--manifest",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="Dependency manifest YAML (default: packaged ffmpeg-static).",
    )(func)
    func = click.option(
        "--prefix",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Install prefix shared by all dependencies.",
    )(func)
    return func


def json_option(func: F) -> F:
    return click.option(
        "--json",
        "json_output",
        is_flag=True,
        help="Output results as JSON.",
    )(func)


def load_config(
    ctx: click.Context,
    cli: ConfigSource | None = None,
    json_output: bool = False,
) -> SboConfig:
    """Load configuration with command-line overrides applied.

    Exits with CONFIG_ERROR if the configuration is invalid.
    """
    obj = ctx.find_root().obj or {}
    config_path = obj.get("config_path")
    try:
        return get_config(config_path, cli=cli, strict=config_path is not None)
    except ConfigError as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR, json_output)


def load_manifest_for(config: SboConfig, json_output: bool = False) -> Manifest:
    """Load the configured manifest, or the packaged default.

    Exits with MANIFEST_ERROR if it cannot be loaded.
    """
    try:
        if config.paths.manifest is not None:
            return load_manifest(config.paths.manifest.expanduser())
        return load_default_manifest()
    except FileNotFoundError as e:
        error_exit(str(e), ExitCode.MANIFEST_ERROR, json_output)
    except ManifestError as e:
        error_exit(e.message, ExitCode.MANIFEST_ERROR, json_output)


def build_context(config: SboConfig) -> BuildContext:
    context = BuildContext.from_config(config)
    logger.debug(
        "Using prefix %s, sources in %s, %d jobs",
        context.prefix,
        context.source_dir,
        context.jobs,
    )
    return context
