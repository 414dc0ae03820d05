"""Artifact discovery, canonical-path repair and pkg-config synthesis."""

from sbo.probe.heal import PrefixWriter, ensure_canonical_link
from sbo.probe.models import ArtifactKind, ArtifactLocation, ProbeResult
from sbo.probe.pkgconfig import (
    is_pkgconfig_discoverable,
    render_pkgconfig,
    synthesize_pkgconfig,
)
from sbo.probe.probe import find_header, find_library, probe_dependency

__all__ = [
    "ArtifactKind",
    "ArtifactLocation",
    "PrefixWriter",
    "ProbeResult",
    "ensure_canonical_link",
    "find_header",
    "find_library",
    "is_pkgconfig_discoverable",
    "probe_dependency",
    "render_pkgconfig",
    "synthesize_pkgconfig",
]
