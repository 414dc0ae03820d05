"""Data models for the dependency manifest.

A manifest declares the dependencies to build (in order), the optional and
mandatory features of the final build, and how the final binary itself is
fetched and configured. All models are immutable once loaded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SourceKind(Enum):
    """Where a dependency's source tree comes from."""

    GIT = "git"
    ARCHIVE = "archive"


class BuildSystem(Enum):
    """How a dependency is configured before `make`."""

    AUTOTOOLS = "autotools"  # ./configure <args>
    CMAKE = "cmake"  # cmake <source> <args>
    MAKE = "make"  # no configure step


@dataclass(frozen=True)
class SourceSpec:
    """Location of a source tree.

    Attributes:
        kind: Git repository or downloadable archive.
        url: Clone URL or archive download URL.
        directory: Directory name under the source working directory.
            For archives this is the top-level directory the archive
            extracts to.
        depth: Optional shallow clone depth (git only).
        sha256: Optional expected archive checksum (archive only).
    """

    kind: SourceKind
    url: str
    directory: str
    depth: int | None = None
    sha256: str | None = None


@dataclass(frozen=True)
class BuildRecipe:
    """Configure/compile/install recipe for one dependency.

    Arguments may contain ``{prefix}``, ``{jobs}`` and ``{src_dir}``
    placeholders which are expanded at build time.
    """

    system: BuildSystem
    work_dir: str = "."  # relative to the source tree
    cmake_source: str = "."  # relative to work_dir
    configure_args: tuple[str, ...] = ()
    make_args: tuple[str, ...] = ()
    install_args: tuple[str, ...] = ()
    parallel: bool = True


@dataclass(frozen=True)
class ArtifactSpec:
    """Files a dependency is expected to install into the prefix.

    Attributes:
        library: Library file name expected in ``<prefix>/lib``.
        header: Header path relative to ``<prefix>/include``.
        library_fallback_dirs: Prefix-relative directories checked, in
            order, when the library is not in ``<prefix>/lib``.
    """

    library: str | None = None
    header: str | None = None
    library_fallback_dirs: tuple[str, ...] = ("lib64",)

    @property
    def declared(self) -> bool:
        """Return True if at least one artifact is declared."""
        return self.library is not None or self.header is not None


@dataclass(frozen=True)
class PkgConfigSpec:
    """Template for a synthesized pkg-config descriptor."""

    name: str
    version: str
    description: str = ""
    libs: str = ""
    libs_private: str = ""
    cflags: str = "-I${includedir}"


@dataclass(frozen=True)
class Dependency:
    """A third-party library built into the shared prefix."""

    name: str
    source: SourceSpec
    build: BuildRecipe
    artifacts: ArtifactSpec = field(default_factory=ArtifactSpec)
    optional: bool = False
    pkgconfig: PkgConfigSpec | None = None


@dataclass(frozen=True)
class FeatureSpec:
    """A capability of the final build and the flags it contributes.

    Attributes:
        name: Feature name (e.g. "libx265").
        dependency: Dependency providing the feature, or None for features
            that need nothing beyond the final source tree.
        configure_flags: Flags appended to the final configure invocation.
        cflags / ldflags / extra_libs: Merged into --extra-cflags,
            --extra-ldflags and --extra-libs.
        encoders: Encoder names the final binary must list when the
            feature is enabled.
    """

    name: str
    dependency: str | None = None
    configure_flags: tuple[str, ...] = ()
    cflags: tuple[str, ...] = ()
    ldflags: tuple[str, ...] = ()
    extra_libs: tuple[str, ...] = ()
    encoders: tuple[str, ...] = ()


@dataclass(frozen=True)
class FinalBuildSpec:
    """The composite build linked against every dependency."""

    name: str
    source: SourceSpec
    release_url: str | None = None  # contains {version}
    configure_args: tuple[str, ...] = ()
    extra_cflags: tuple[str, ...] = ()
    extra_ldflags: tuple[str, ...] = ()
    extra_libs: tuple[str, ...] = ()
    binary: str = "ffmpeg"

    def source_for(self, version: str) -> SourceSpec:
        """Return the source to fetch for a release version, or "git"."""
        if version == "git" or self.release_url is None:
            return self.source
        return SourceSpec(
            kind=SourceKind.ARCHIVE,
            url=self.release_url.format(version=version),
            directory=f"{self.name}-{version}",
        )


@dataclass(frozen=True)
class Manifest:
    """Complete, validated build description."""

    dependencies: tuple[Dependency, ...]
    features: tuple[FeatureSpec, ...]
    final: FinalBuildSpec

    def get_dependency(self, name: str) -> Dependency | None:
        """Look up a dependency by name."""
        for dep in self.dependencies:
            if dep.name == name:
                return dep
        return None

    def uses_build_system(self, system: BuildSystem) -> bool:
        """Return True if any dependency is built with ``system``."""
        return any(dep.build.system is system for dep in self.dependencies)
