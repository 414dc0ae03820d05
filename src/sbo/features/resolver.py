"""Map probe results to enabled and disabled features.

``resolve_features`` is a pure function of its arguments: it performs no
filesystem or process access and returns the same flags for the same
inputs. It logs one line per feature so a degraded build can be
diagnosed from the log alone.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable

from sbo.features.models import FeatureFlag
from sbo.manifest.models import Dependency, FeatureSpec
from sbo.probe.models import ProbeResult

logger = logging.getLogger(__name__)


def _search_flags(
    probe: ProbeResult | None,
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Return (-I flags, -L flags) for artifacts found off the canonical path."""
    if probe is None:
        return (), ()
    cflags: tuple[str, ...] = ()
    ldflags: tuple[str, ...] = ()
    if probe.include_dir is not None:
        cflags = (f"-I{probe.include_dir}",)
    if probe.library_dir is not None:
        ldflags = (f"-L{probe.library_dir}",)
    return cflags, ldflags


def _missing_reason(probe: ProbeResult) -> str:
    if not probe.missing and probe.descriptor_missing:
        return (
            f"{probe.dependency} pkg-config descriptor unavailable: "
            f"{probe.descriptor_name}.pc"
        )
    names = ", ".join(loc.name for loc in probe.missing)
    return f"{probe.dependency} artifacts not found: {names}"


def resolve_feature(
    spec: FeatureSpec,
    dependency: Dependency | None,
    probe: ProbeResult | None,
    *,
    failed: bool = False,
) -> FeatureFlag:
    """Resolve a single feature.

    Args:
        spec: Feature declaration.
        dependency: Providing dependency, None if the feature has none.
        probe: Probe result for the dependency, None if not probed.
        failed: Whether the dependency's fetch or build failed.

    Returns:
        The resolved FeatureFlag.
    """
    optional = dependency is not None and dependency.optional

    if not optional:
        enabled = True
        if dependency is None:
            reason = "built in"
        elif probe is not None and not probe.satisfied:
            reason = f"mandatory ({_missing_reason(probe)})"
        else:
            reason = "mandatory"
    elif failed:
        enabled = False
        reason = f"{spec.dependency} failed to build"
    elif probe is None:
        enabled = False
        reason = f"{spec.dependency} was not probed"
    elif not probe.satisfied:
        enabled = False
        reason = _missing_reason(probe)
    else:
        enabled = True
        reason = f"{spec.dependency} artifacts found"

    cflags, ldflags = _search_flags(probe) if enabled else ((), ())
    return FeatureFlag(
        name=spec.name,
        dependency=spec.dependency,
        enabled=enabled,
        optional=optional,
        configure_flags=spec.configure_flags,
        cflags=spec.cflags + cflags,
        ldflags=spec.ldflags + ldflags,
        extra_libs=spec.extra_libs,
        encoders=spec.encoders,
        reason=reason,
    )


def resolve_features(
    feature_specs: Iterable[FeatureSpec],
    probe_results: Iterable[ProbeResult],
    dependencies: Iterable[Dependency],
    *,
    failed: Collection[str] = (),
) -> tuple[FeatureFlag, ...]:
    """Resolve every feature, preserving declaration order.

    Args:
        feature_specs: Feature declarations from the manifest.
        probe_results: Probe results, one per probed dependency.
        dependencies: Manifest dependencies, used for optionality.
        failed: Names of optional dependencies whose fetch or build failed.

    Returns:
        One FeatureFlag per feature spec.
    """
    probes = {p.dependency: p for p in probe_results}
    deps = {d.name: d for d in dependencies}

    flags = []
    for spec in feature_specs:
        dep = deps.get(spec.dependency) if spec.dependency is not None else None
        probe = probes.get(spec.dependency) if spec.dependency is not None else None
        flag = resolve_feature(spec, dep, probe, failed=spec.dependency in failed)
        if flag.enabled and probe is not None and not probe.satisfied:
            logger.warning("Feature %s enabled: %s", flag.name, flag.reason)
        elif flag.enabled:
            logger.info("Feature %s enabled: %s", flag.name, flag.reason)
        else:
            logger.warning("Feature %s disabled: %s", flag.name, flag.reason)
        flags.append(flag)
    return tuple(flags)
