"""Locate installed artifacts under the install prefix.

Search order for a library named ``libfoo.a``:

1. ``<prefix>/lib/libfoo.a`` (canonical)
2. each declared fallback directory, in declared order
   (``<prefix>/lib64/libfoo.a``, ...)
3. every other file named ``libfoo.a`` under the prefix, shallowest
   first, ties broken by path

Headers use the same scheme without step 2: the canonical path is
``<prefix>/include/<relpath>`` and recursive matches must end with the
full relative path (``vpx/vpx_encoder.h``).

An artifact found off its canonical path is linked into place, and the
directory it was really found in is still passed to the compiler or
linker where the link alone may not be enough.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from sbo.errors import ArtifactMissing, BuildWarning, SelfHealFailed
from sbo.logging.context import step_context
from sbo.manifest.models import Dependency
from sbo.probe.heal import PrefixWriter, ensure_canonical_link
from sbo.probe.models import ArtifactKind, ArtifactLocation, ProbeResult
from sbo.probe.pkgconfig import (
    descriptor_target,
    existing_descriptor,
    synthesize_pkgconfig,
)

logger = logging.getLogger(__name__)


def _search(prefix: Path, relpath: str) -> list[Path]:
    """Find files under ``prefix`` whose path ends with ``relpath``.

    Symlinked directories are not followed. Results are ordered by
    depth below the prefix, then lexicographically.
    """
    parts = Path(relpath).parts
    basename = parts[-1]
    matches: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(prefix):
        dirnames.sort()
        if basename not in filenames:
            continue
        candidate = Path(dirpath) / basename
        if candidate.parts[-len(parts) :] == parts:
            matches.append(candidate)

    def _key(path: Path) -> tuple[int, str]:
        return len(path.relative_to(prefix).parts), path.as_posix()

    return sorted(matches, key=_key)


def _locate(
    kind: ArtifactKind, name: str, ordered: list[Path], prefix: Path
) -> ArtifactLocation:
    candidates = list(dict.fromkeys(ordered))
    for match in _search(prefix, name):
        if match not in candidates:
            candidates.append(match)

    resolved = next((c for c in candidates if c.is_file()), None)
    return ArtifactLocation(
        kind=kind,
        name=name,
        candidates=tuple(candidates),
        resolved=resolved,
    )


def find_library(
    prefix: Path, name: str, fallback_dirs: tuple[str, ...] = ()
) -> ArtifactLocation:
    """Search for a library file under the prefix."""
    ordered = [prefix / "lib" / name]
    ordered += [prefix / sub / name for sub in fallback_dirs]
    return _locate(ArtifactKind.LIBRARY, name, ordered, prefix)


def find_header(prefix: Path, relpath: str) -> ArtifactLocation:
    """Search for a header (path relative to include/) under the prefix."""
    return _locate(ArtifactKind.HEADER, relpath, [prefix / "include" / relpath], prefix)


def _heal(
    dependency: Dependency,
    location: ArtifactLocation,
    *,
    link_mode: str,
    writer: PrefixWriter,
    warnings: list[BuildWarning],
) -> bool:
    """Link a misplaced artifact into its canonical path."""
    assert location.resolved is not None
    try:
        return ensure_canonical_link(
            location.resolved, location.canonical, link_mode=link_mode, writer=writer
        )
    except OSError as e:
        warning = SelfHealFailed(dependency.name, location.canonical, str(e))
        warnings.append(warning)
        logger.warning("%s", warning)
        return False


def probe_dependency(
    dependency: Dependency,
    prefix: Path,
    *,
    link_mode: str = "symlink",
    writer: PrefixWriter | None = None,
) -> ProbeResult:
    """Probe the prefix for a dependency's declared artifacts.

    A library found only outside ``<prefix>/lib``, or a header found only
    outside ``<prefix>/include``, gets a canonical link (or copy). When
    every artifact is found and the dependency declares a pkg-config
    template, a descriptor is synthesized if none exists. A descriptor
    that cannot be written leaves the result unsatisfied.

    Missing artifacts and failed repairs are reported as warnings on the
    result, never raised.

    Args:
        dependency: Dependency whose artifacts to look for.
        prefix: Install prefix to search.
        link_mode: "symlink" or "copy" for canonical repairs.
        writer: Performs repairs, through sudo for a root-owned prefix.
            Direct writes if None.

    Returns:
        ProbeResult describing what was found and repaired.
    """
    spec = dependency.artifacts
    writer = writer or PrefixWriter()
    warnings: list[BuildWarning] = []
    healed: list[Path] = []
    pkgconfig_path: Path | None = None
    descriptor: Path | None = None

    with step_context(dependency.name, "probe"):
        library = None
        if spec.library is not None:
            library = find_library(prefix, spec.library, spec.library_fallback_dirs)
        header = None
        if spec.header is not None:
            header = find_header(prefix, spec.header)
        locations = [loc for loc in (library, header) if loc is not None]

        for location in locations:
            if location.found:
                logger.debug("Found %s at %s", location.name, location.resolved)
                continue
            warning = ArtifactMissing(
                dependency.name, location.name, len(location.candidates)
            )
            warnings.append(warning)
            logger.warning("%s", warning)

        for location in locations:
            if location.found and not location.is_canonical:
                if _heal(
                    dependency,
                    location,
                    link_mode=link_mode,
                    writer=writer,
                    warnings=warnings,
                ):
                    healed.append(location.canonical)

        template = dependency.pkgconfig
        if template is not None:
            descriptor = existing_descriptor(template.name, prefix)
        found_all = all(loc.found for loc in locations)
        if template is not None and descriptor is None and found_all:
            libdir = None
            if library is not None and library.found:
                if library.is_canonical or library.canonical in healed:
                    libdir = library.canonical.parent
                else:
                    libdir = library.directory
            includedir = header.directory if header is not None else None
            try:
                pkgconfig_path = synthesize_pkgconfig(
                    template,
                    prefix,
                    libdir=libdir,
                    includedir=includedir,
                    writer=writer,
                )
            except OSError as e:
                target = descriptor_target(template.name, prefix)
                warning = SelfHealFailed(dependency.name, target, str(e))
                warnings.append(warning)
                logger.warning("%s", warning)
            descriptor = pkgconfig_path

    return ProbeResult(
        dependency=dependency.name,
        optional=dependency.optional,
        library=library,
        header=header,
        healed=tuple(healed),
        pkgconfig=pkgconfig_path,
        descriptor_name=template.name if template is not None else None,
        descriptor=descriptor,
        warnings=tuple(warnings),
    )
