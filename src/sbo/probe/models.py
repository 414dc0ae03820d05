"""Typed results of artifact probing.

The probe reports what it searched and what it found as plain data; the
feature resolver decides what that means for the final build.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from sbo.errors import BuildWarning


class ArtifactKind(Enum):
    """Kind of installed artifact."""

    LIBRARY = "library"
    HEADER = "header"


@dataclass(frozen=True)
class ArtifactLocation:
    """Search outcome for one artifact.

    Attributes:
        kind: Library or header.
        name: Library file name, or header path relative to include/.
        candidates: Every path checked, in search order. The first entry
            is always the canonical path.
        resolved: First existing candidate, or None.
    """

    kind: ArtifactKind
    name: str
    candidates: tuple[Path, ...]
    resolved: Path | None = None

    @property
    def found(self) -> bool:
        return self.resolved is not None

    @property
    def canonical(self) -> Path:
        return self.candidates[0]

    @property
    def is_canonical(self) -> bool:
        """Return True if the artifact was found at its canonical path."""
        return self.resolved is not None and self.resolved == self.canonical

    @property
    def directory(self) -> Path | None:
        """Directory to add to a search path so ``name`` resolves.

        For a header ``vpx/vpx_encoder.h`` found at
        ``/p/include/x/vpx/vpx_encoder.h`` this is ``/p/include/x``.
        """
        if self.resolved is None:
            return None
        depth = len(Path(self.name).parts)
        return self.resolved.parents[depth - 1]

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "resolved": str(self.resolved) if self.resolved else None,
            "candidates": len(self.candidates),
        }


@dataclass(frozen=True)
class ProbeResult:
    """Everything the probe learned about one dependency.

    Attributes:
        dependency: Dependency name.
        optional: Whether the dependency is optional.
        library: Library search outcome, None if no library is declared.
        header: Header search outcome, None if no header is declared.
        healed: Canonical links created by this probe.
        pkgconfig: Descriptor written by this probe, if any.
        descriptor_name: pkg-config name the dependency must provide, None
            if it declares no descriptor template.
        descriptor: Existing or written descriptor for ``descriptor_name``.
        warnings: Non-fatal problems found while probing.
    """

    dependency: str
    optional: bool = False
    library: ArtifactLocation | None = None
    header: ArtifactLocation | None = None
    healed: tuple[Path, ...] = ()
    pkgconfig: Path | None = None
    descriptor_name: str | None = None
    descriptor: Path | None = None
    warnings: tuple[BuildWarning, ...] = field(default=(), compare=False)

    @property
    def locations(self) -> tuple[ArtifactLocation, ...]:
        return tuple(loc for loc in (self.library, self.header) if loc is not None)

    @property
    def descriptor_missing(self) -> bool:
        """Return True if a declared pkg-config descriptor could not be made."""
        return self.descriptor_name is not None and self.descriptor is None

    @property
    def satisfied(self) -> bool:
        """Return True if every declared artifact and descriptor is present."""
        return (
            all(loc.found for loc in self.locations) and not self.descriptor_missing
        )

    @property
    def missing(self) -> tuple[ArtifactLocation, ...]:
        return tuple(loc for loc in self.locations if not loc.found)

    @property
    def include_dir(self) -> Path | None:
        """Include directory the compiler must be told about.

        Still set after the header was linked into include/, since sibling
        headers it includes were not.
        """
        if self.header is None or not self.header.found or self.header.is_canonical:
            return None
        return self.header.directory

    @property
    def library_dir(self) -> Path | None:
        """Non-canonical library directory the linker must be told about.

        None when the library is canonical or a canonical link was made.
        """
        lib = self.library
        if lib is None or not lib.found or lib.is_canonical:
            return None
        if lib.canonical in self.healed:
            return None
        return lib.directory

    def to_dict(self) -> dict[str, object]:
        return {
            "dependency": self.dependency,
            "optional": self.optional,
            "satisfied": self.satisfied,
            "artifacts": [loc.to_dict() for loc in self.locations],
            "healed": [str(p) for p in self.healed],
            "pkgconfig": str(self.pkgconfig) if self.pkgconfig else None,
            "descriptor": str(self.descriptor) if self.descriptor else None,
        }
