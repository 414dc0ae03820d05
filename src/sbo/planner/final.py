"""Run the final composite build."""

from __future__ import annotations

import logging
from pathlib import Path

from sbo.build.builder import BuildStep, install_command, run_step
from sbo.context import BuildContext
from sbo.core.formatting import format_file_size
from sbo.core.subprocess_utils import CommandRunner
from sbo.errors import BuildStepError
from sbo.planner.models import BuildPlan

logger = logging.getLogger(__name__)


def final_steps(
    plan: BuildPlan,
    source_path: Path,
    context: BuildContext,
    *,
    strip: bool = True,
    install: bool = False,
) -> list[BuildStep]:
    """Commands for the final build, in execution order."""
    binary = source_path / plan.binary
    steps = [
        BuildStep("configure", ("./configure", *plan.configure_args), source_path),
        BuildStep("compile", ("make", f"-j{context.jobs}"), source_path),
    ]
    if strip:
        steps.append(BuildStep("strip", ("strip", str(binary)), source_path))
    if install:
        steps.append(BuildStep("install", tuple(install_command(context)), source_path))
    return steps


def run_final_build(
    plan: BuildPlan,
    source_path: Path,
    context: BuildContext,
    runner: CommandRunner,
    *,
    strip: bool = True,
    install: bool = False,
) -> Path:
    """Configure, compile, strip and optionally install the final build.

    Args:
        plan: Resolved configure invocation.
        source_path: Root of the final source tree.
        context: Prefix, job count and privilege settings.
        runner: Command runner.
        strip: Strip debug symbols from the binary.
        install: Run ``make install`` afterwards.

    Returns:
        Path of the produced binary.

    Raises:
        BuildStepError: If a step fails or the binary is not produced.
    """
    binary = source_path / plan.binary
    logger.info("Configuring %s: %s", plan.target, plan.flag_string)

    for step in final_steps(plan, source_path, context, strip=strip, install=install):
        run_step(plan.target, step, context, runner)
        if step.name == "compile" and not binary.exists():
            raise BuildStepError(
                plan.target, "compile", 0, f"{plan.binary} was not produced"
            )

    logger.info("Built %s (%s)", binary, format_file_size(binary.stat().st_size))
    return binary
