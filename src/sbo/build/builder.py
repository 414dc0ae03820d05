"""Per-dependency build execution.

Each dependency is built by running its recipe as a fixed sequence of
steps (configure, compile, install). The first step that exits non-zero
raises ``BuildStepError``; nothing already installed is rolled back.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from sbo.context import BuildContext
from sbo.core.formatting import tail_lines
from sbo.core.subprocess_utils import CommandRunner
from sbo.errors import BuildStepError
from sbo.logging.context import step_context
from sbo.manifest.models import BuildRecipe, BuildSystem, Dependency

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildStep:
    """One command of a build recipe.

    Attributes:
        name: "configure", "compile" or "install".
        args: Fully expanded command line.
        cwd: Directory the command runs in.
    """

    name: str
    args: tuple[str, ...]
    cwd: Path


def make_command(context: BuildContext, recipe: BuildRecipe) -> list[str]:
    """Compile command: ``make -j<jobs>`` or plain ``make``."""
    args = ["make"]
    if recipe.parallel:
        args.append(f"-j{context.jobs}")
    args.extend(context.expand(a) for a in recipe.make_args)
    return args


def install_command(context: BuildContext, extra: tuple[str, ...] = ()) -> list[str]:
    """Install command, prefixed with sudo when configured."""
    args = ["sudo"] if context.use_sudo else []
    args += ["make", "install"]
    args.extend(context.expand(a) for a in extra)
    return args


def plan_steps(
    dependency: Dependency, source_path: Path, context: BuildContext
) -> list[BuildStep]:
    """Expand a dependency's recipe into concrete commands.

    Args:
        dependency: Dependency to build.
        source_path: Root of its fetched source tree.
        context: Prefix, job count and privilege settings.

    Returns:
        Steps in execution order. Recipes for plain ``make`` projects
        have no configure step.
    """
    recipe = dependency.build
    work_dir = source_path / recipe.work_dir
    configure_args = [context.expand(a) for a in recipe.configure_args]

    steps: list[BuildStep] = []
    if recipe.system is BuildSystem.AUTOTOOLS:
        steps.append(
            BuildStep("configure", ("./configure", *configure_args), work_dir)
        )
    elif recipe.system is BuildSystem.CMAKE:
        steps.append(
            BuildStep(
                "configure",
                ("cmake", recipe.cmake_source, *configure_args),
                work_dir,
            )
        )

    steps.append(BuildStep("compile", tuple(make_command(context, recipe)), work_dir))
    steps.append(
        BuildStep(
            "install",
            tuple(install_command(context, recipe.install_args)),
            work_dir,
        )
    )
    return steps


def run_step(
    subject: str,
    step: BuildStep,
    context: BuildContext,
    runner: CommandRunner,
) -> None:
    """Run one build step, raising BuildStepError on failure.

    Output of a failed command is logged (last 50 lines) and attached to
    the error. Builds have no timeout.
    """
    with step_context(subject, step.name):
        logger.info("Running %s", " ".join(step.args))
        start = time.monotonic()
        result = runner.run(step.args, cwd=step.cwd, env=context.build_env())
        elapsed = time.monotonic() - start

        if not result.ok:
            tail = tail_lines(result.output)
            logger.error(
                "%s step failed with exit code %d",
                step.name,
                result.returncode,
                extra={"returncode": result.returncode},
            )
            if tail:
                logger.error("Last output lines:\n%s", tail)
            raise BuildStepError(subject, step.name, result.returncode, tail)

        logger.debug(
            "%s step finished in %.1fs",
            step.name,
            elapsed,
            extra={"elapsed_seconds": round(elapsed, 3)},
        )


def build_dependency(
    dependency: Dependency,
    source_path: Path,
    context: BuildContext,
    runner: CommandRunner,
) -> None:
    """Configure, compile and install one dependency.

    Steps run strictly in order and stop at the first failure.

    Raises:
        BuildStepError: If any step exits non-zero.
    """
    steps = plan_steps(dependency, source_path, context)
    logger.info(
        "Building %s (%s, %d steps)",
        dependency.name,
        dependency.build.system.value,
        len(steps),
    )
    for step in steps:
        run_step(dependency.name, step, context, runner)
    logger.info("Installed %s into %s", dependency.name, context.prefix)
