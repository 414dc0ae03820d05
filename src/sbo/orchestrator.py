"""End-to-end build pipeline.

The orchestrator runs the components strictly in sequence:

    fetch -> build -> probe   (per dependency, in manifest order)
    resolve features -> plan -> fetch final -> final build -> verify

Fatal errors (``SboError``) stop the run at once and are reported as
the failed step. Warnings (``BuildWarning``) are collected and returned
with the feature summary. A failure in an optional dependency is
downgraded to ``OptionalDependencyFailed`` and its feature disabled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from sbo.build.builder import build_dependency
from sbo.config.models import SboConfig
from sbo.context import BuildContext
from sbo.core.subprocess_utils import CommandRunner
from sbo.errors import (
    BuildStepError,
    BuildWarning,
    FetchError,
    OptionalDependencyFailed,
    SboError,
)
from sbo.features.models import FeatureFlag
from sbo.features.resolver import resolve_features
from sbo.fetch.fetcher import fetch_source
from sbo.manifest.models import Dependency, Manifest, SourceSpec
from sbo.planner.final import run_final_build
from sbo.planner.models import BuildPlan, VerificationReport
from sbo.planner.plan import make_build_plan
from sbo.planner.verify import verify_binary
from sbo.probe.heal import PrefixWriter
from sbo.probe.models import ProbeResult
from sbo.probe.probe import probe_dependency

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunOptions:
    """Final-build switches that are not part of the BuildContext."""

    strip_binary: bool = True
    install_final: bool = False
    ffmpeg_version: str = "git"

    @classmethod
    def from_config(cls, config: SboConfig) -> RunOptions:
        return cls(
            strip_binary=config.build.strip_binary,
            install_final=config.build.install_final,
            ffmpeg_version=config.build.ffmpeg_version,
        )


@dataclass
class RunReport:
    """Summary of one orchestration run.

    Attributes:
        success: True if a binary was produced.
        failed_step: "<subject>:<step>" of the fatal error, if any.
        error: The fatal error, if any.
        features: Resolved features (empty if the run stopped earlier).
        warnings: Every non-fatal condition, in the order encountered.
        probes: Probe results per dependency.
        plan: Final configure plan, if one was made.
        binary: Produced executable, if any.
        verification: Verification report, if verification ran.
    """

    success: bool = False
    failed_step: str | None = None
    error: SboError | None = None
    features: tuple[FeatureFlag, ...] = ()
    warnings: list[BuildWarning] = field(default_factory=list)
    probes: list[ProbeResult] = field(default_factory=list)
    plan: BuildPlan | None = None
    binary: Path | None = None
    verification: VerificationReport | None = None

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "failed_step": self.failed_step,
            "error": str(self.error) if self.error else None,
            "features": [f.to_dict() for f in self.features],
            "warnings": [w.to_dict() for w in self.warnings],
            "probes": [p.to_dict() for p in self.probes],
            "plan": self.plan.to_dict() if self.plan else None,
            "binary": str(self.binary) if self.binary else None,
            "verification": (
                self.verification.to_dict() if self.verification else None
            ),
        }


def probe_all(
    manifest: Manifest,
    context: BuildContext,
    runner: CommandRunner | None = None,
) -> list[ProbeResult]:
    """Probe every dependency that declares artifacts.

    Repairs go through sudo when ``context.use_sudo`` is set.
    """
    writer = PrefixWriter.for_context(context, runner)
    return [
        probe_dependency(
            dep, context.prefix, link_mode=context.link_mode, writer=writer
        )
        for dep in manifest.dependencies
        if dep.artifacts.declared
    ]


def plan_from_prefix(
    manifest: Manifest,
    context: BuildContext,
    runner: CommandRunner | None = None,
) -> tuple[list[ProbeResult], tuple[FeatureFlag, ...], BuildPlan]:
    """Probe the prefix as it is now and plan the final build.

    Nothing is fetched or built, but the prefix is repaired exactly as a
    build would repair it: misplaced artifacts are linked into place and
    missing descriptors written. Planning on an unrepaired prefix would
    describe a different build than ``sbo build`` runs.
    """
    probes = probe_all(manifest, context, runner)
    features = resolve_features(manifest.features, probes, manifest.dependencies)
    plan = make_build_plan(manifest.final, features, context)
    return probes, features, plan


class Orchestrator:
    """Runs the full pipeline for one manifest and context."""

    def __init__(
        self,
        manifest: Manifest,
        context: BuildContext,
        runner: CommandRunner,
        options: RunOptions | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.manifest = manifest
        self.context = context
        self.runner = runner
        self.options = options or RunOptions()
        self.http_client = http_client
        self.writer = PrefixWriter.for_context(context, runner)

    def _fetch(self, name: str, source: SourceSpec) -> Path:
        return fetch_source(
            name,
            source,
            self.context.source_dir,
            runner=self.runner,
            skip_updates=self.context.skip_updates,
            http_client=self.http_client,
        ).path

    def _build_dependency(self, dep: Dependency, report: RunReport) -> bool:
        """Fetch and build one dependency.

        Returns:
            False if an optional dependency failed, True otherwise.

        Raises:
            FetchError, BuildStepError: For mandatory dependencies.
        """
        try:
            source_path = self._fetch(dep.name, dep.source)
            build_dependency(dep, source_path, self.context, self.runner)
        except (FetchError, BuildStepError) as e:
            if not dep.optional:
                raise
            warning = OptionalDependencyFailed(dep.name, str(e))
            logger.warning("Optional dependency %s failed: %s", dep.name, e)
            report.warnings.append(warning)
            return False
        return True

    def run(self) -> RunReport:
        """Run the pipeline.

        Returns:
            RunReport; ``success`` is False when a fatal error stopped
            the run, with ``failed_step`` naming where.
        """
        report = RunReport()
        failed: set[str] = set()
        final = self.manifest.final
        stage = "start"

        logger.info(
            "Building %d dependencies into %s",
            len(self.manifest.dependencies),
            self.context.prefix,
        )
        try:
            for dep in self.manifest.dependencies:
                stage = f"{dep.name}:build"
                if not self._build_dependency(dep, report):
                    failed.add(dep.name)
                if dep.artifacts.declared:
                    stage = f"{dep.name}:probe"
                    probe = probe_dependency(
                        dep,
                        self.context.prefix,
                        link_mode=self.context.link_mode,
                        writer=self.writer,
                    )
                    report.probes.append(probe)
                    report.warnings.extend(probe.warnings)

            report.features = resolve_features(
                self.manifest.features,
                report.probes,
                self.manifest.dependencies,
                failed=failed,
            )
            stage = f"{final.name}:plan"
            report.plan = make_build_plan(final, report.features, self.context)
            stage = f"{final.name}:build"

            source_path = self._fetch(
                final.name, final.source_for(self.options.ffmpeg_version)
            )
            report.binary = run_final_build(
                report.plan,
                source_path,
                self.context,
                self.runner,
                strip=self.options.strip_binary,
                install=self.options.install_final,
            )
        except FetchError as e:
            return self._fail(report, f"{e.dependency}:fetch", e)
        except BuildStepError as e:
            return self._fail(report, f"{e.dependency}:{e.step}", e)
        except OSError as e:
            return self._fail(report, stage, SboError(f"{stage}: {e}"))

        report.verification = verify_binary(
            report.binary, report.features, self.runner
        )
        report.warnings.extend(report.verification.mismatches)
        report.success = True

        logger.info(
            "Build complete: %s (%d warnings)", report.binary, len(report.warnings)
        )
        return report

    def _fail(self, report: RunReport, step: str, error: SboError) -> RunReport:
        logger.error("Run stopped at %s: %s", step, error)
        report.failed_step = step
        report.error = error
        report.success = False
        return report


def run_pipeline(
    manifest: Manifest,
    context: BuildContext,
    runner: CommandRunner,
    options: RunOptions | None = None,
    http_client: httpx.Client | None = None,
) -> RunReport:
    """Convenience wrapper around ``Orchestrator(...).run()``."""
    return Orchestrator(manifest, context, runner, options, http_client).run()
