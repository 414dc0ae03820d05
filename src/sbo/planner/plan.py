"""Construct the final configure invocation from resolved features."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sbo.context import BuildContext
from sbo.features.models import FeatureFlag
from sbo.manifest.models import FinalBuildSpec
from sbo.planner.models import BuildPlan

logger = logging.getLogger(__name__)


def _merge(values: Iterable[str]) -> list[str]:
    """Deduplicate flags, keeping first occurrences in order."""
    return list(dict.fromkeys(v for v in values if v))


def _collect(
    context: BuildContext,
    base: tuple[str, ...],
    enabled: list[FeatureFlag],
    attr: str,
) -> list[str]:
    values = list(base)
    for flag in enabled:
        values.extend(getattr(flag, attr))
    return _merge(context.expand(v) for v in values)


def make_build_plan(
    final_spec: FinalBuildSpec,
    features: Iterable[FeatureFlag],
    context: BuildContext,
) -> BuildPlan:
    """Build the configure argument list for the final build.

    The arguments are, in order: the base arguments from the manifest,
    each enabled feature's configure flags in feature order, then a
    single merged ``--extra-cflags``, ``--extra-ldflags`` and
    ``--extra-libs``. Disabled features contribute nothing, so a plan
    with every optional feature disabled is still a complete build.

    Args:
        final_spec: Final build declaration.
        features: Resolved features, in manifest order.
        context: Provides placeholder expansion.

    Returns:
        The BuildPlan.
    """
    resolved = tuple(features)
    enabled = [f for f in resolved if f.enabled]

    args = [context.expand(a) for a in final_spec.configure_args]
    for flag in enabled:
        args.extend(context.expand(a) for a in flag.configure_flags)

    cflags = _collect(context, final_spec.extra_cflags, enabled, "cflags")
    ldflags = _collect(context, final_spec.extra_ldflags, enabled, "ldflags")
    libs = _collect(context, final_spec.extra_libs, enabled, "extra_libs")

    if cflags:
        args.append(f"--extra-cflags={' '.join(cflags)}")
    if ldflags:
        args.append(f"--extra-ldflags={' '.join(ldflags)}")
    if libs:
        args.append(f"--extra-libs={' '.join(libs)}")

    plan = BuildPlan(
        features=resolved,
        configure_args=tuple(args),
        target=final_spec.name,
        binary=final_spec.binary,
    )
    disabled = [f.name for f in plan.disabled]
    if disabled:
        logger.warning(
            "Building %s without: %s", final_spec.name, ", ".join(disabled)
        )
    logger.info(
        "Planned %s with %d of %d features",
        final_spec.name,
        len(plan.enabled),
        len(resolved),
    )
    return plan
