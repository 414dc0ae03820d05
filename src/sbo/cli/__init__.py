"""CLI module for sbo."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from sbo.cli.exit_codes import ExitCode
from sbo.cli.output import error_exit
from sbo.config import build_logging_config, get_config
from sbo.errors import ConfigError
from sbo.logging import configure_logging

logger = logging.getLogger(__name__)


def _configure_logging(
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from the config file, environment and CLI options."""
    try:
        config = get_config(config_path, strict=config_path is not None)
        logging_config = build_logging_config(
            config.logging,
            level=log_level,
            file=log_file,
            format="json" if log_json else None,
        )
    except (ConfigError, ValueError) as e:
        error_exit(str(e), ExitCode.CONFIG_ERROR)
    configure_logging(logging_config)


@click.group()
@click.version_option(package_name="static-build-orchestrator")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.sbo/config.toml).",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Static Build Orchestrator - build a static FFmpeg and its codecs."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    _configure_logging(config_path, log_level, log_file, log_json)


# Defer import to avoid circular dependency
def _register_commands() -> None:
    from sbo.cli.build import build_command
    from sbo.cli.doctor import doctor_command
    from sbo.cli.plan import plan_command
    from sbo.cli.probe import probe_command
    from sbo.cli.verify import verify_command

    main.add_command(build_command)
    main.add_command(doctor_command)
    main.add_command(plan_command)
    main.add_command(probe_command)
    main.add_command(verify_command)


_register_commands()
