"""Manifest file loading and validation.

This module provides functions to load YAML manifest files and validate
them using Pydantic models. Validated models are converted into the
immutable dataclasses in ``sbo.manifest.models``.
"""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from sbo.errors import ManifestError
from sbo.manifest.models import (
    ArtifactSpec,
    BuildRecipe,
    BuildSystem,
    Dependency,
    FeatureSpec,
    FinalBuildSpec,
    Manifest,
    PkgConfigSpec,
    SourceKind,
    SourceSpec,
)

SCHEMA_VERSION = 1

DEFAULT_MANIFEST = "ffmpeg-static.yaml"


class SourceModel(BaseModel):
    """Pydantic model for a source location."""

    model_config = ConfigDict(extra="forbid")

    git: str | None = None
    archive: str | None = None
    directory: str | None = None
    depth: int | None = Field(default=None, ge=1)
    sha256: str | None = Field(default=None, pattern=r"^[0-9a-fA-F]{64}$")

    @model_validator(mode="after")
    def validate_single_kind(self) -> SourceModel:
        """Exactly one of git/archive must be given."""
        if (self.git is None) == (self.archive is None):
            raise ValueError("source needs exactly one of 'git' or 'archive'")
        if self.archive is not None and not self.directory:
            raise ValueError("archive sources must name their 'directory'")
        if self.git is not None and self.sha256 is not None:
            raise ValueError("sha256 only applies to archive sources")
        return self


class BuildModel(BaseModel):
    """Pydantic model for a build recipe."""

    model_config = ConfigDict(extra="forbid")

    system: Literal["autotools", "cmake", "make"]
    work_dir: str = "."
    cmake_source: str = "."
    configure_args: list[str] = Field(default_factory=list)
    make_args: list[str] = Field(default_factory=list)
    install_args: list[str] = Field(default_factory=list)
    parallel: bool = True

    @model_validator(mode="after")
    def validate_configure_args(self) -> BuildModel:
        """make-only recipes have no configure step."""
        if self.system == "make" and self.configure_args:
            raise ValueError("configure_args are not allowed for system 'make'")
        return self


class ArtifactsModel(BaseModel):
    """Pydantic model for expected artifacts."""

    model_config = ConfigDict(extra="forbid")

    library: str | None = None
    header: str | None = None
    library_fallback_dirs: list[str] = Field(default_factory=lambda: ["lib64"])

    @field_validator("library")
    @classmethod
    def validate_library_name(cls, v: str | None) -> str | None:
        """Library is a bare file name looked up in lib directories."""
        if v is not None and "/" in v:
            raise ValueError("library must be a file name, not a path")
        return v


class PkgConfigModel(BaseModel):
    """Pydantic model for a pkg-config descriptor template."""

    model_config = ConfigDict(extra="forbid")

    name: str
    version: str
    description: str = ""
    libs: str = ""
    libs_private: str = ""
    cflags: str = "-I${includedir}"


class DependencyModel(BaseModel):
    """Pydantic model for one dependency."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    source: SourceModel
    build: BuildModel
    artifacts: ArtifactsModel = Field(default_factory=ArtifactsModel)
    optional: bool = False
    pkgconfig: PkgConfigModel | None = None

    @model_validator(mode="after")
    def validate_optional_has_artifacts(self) -> DependencyModel:
        """Optional dependencies are only detectable through artifacts."""
        if self.optional and not (self.artifacts.library or self.artifacts.header):
            raise ValueError(
                f"optional dependency '{self.name}' must declare an artifact"
            )
        return self


class FeatureModel(BaseModel):
    """Pydantic model for a feature of the final build."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    dependency: str | None = None
    configure_flags: list[str] = Field(default_factory=list)
    cflags: list[str] = Field(default_factory=list)
    ldflags: list[str] = Field(default_factory=list)
    extra_libs: list[str] = Field(default_factory=list)
    encoders: list[str] = Field(default_factory=list)


class FinalModel(BaseModel):
    """Pydantic model for the final composite build."""

    model_config = ConfigDict(extra="forbid")

    name: str = "ffmpeg"
    source: SourceModel
    release_url: str | None = None
    configure_args: list[str] = Field(default_factory=list)
    extra_cflags: list[str] = Field(default_factory=list)
    extra_ldflags: list[str] = Field(default_factory=list)
    extra_libs: list[str] = Field(default_factory=list)
    binary: str = "ffmpeg"

    @field_validator("release_url")
    @classmethod
    def validate_release_url(cls, v: str | None) -> str | None:
        """Release URLs are templates over {version}."""
        if v is not None and "{version}" not in v:
            raise ValueError("release_url must contain a {version} placeholder")
        return v


class ManifestModel(BaseModel):
    """Pydantic model for a complete manifest."""

    model_config = ConfigDict(extra="forbid")

    schema_version: int
    dependencies: list[DependencyModel]
    features: list[FeatureModel] = Field(default_factory=list)
    final: FinalModel

    @field_validator("schema_version")
    @classmethod
    def validate_schema_version(cls, v: int) -> int:
        """Only schema version 1 exists."""
        if v != SCHEMA_VERSION:
            raise ValueError(f"only schema_version {SCHEMA_VERSION} is supported")
        return v

    @model_validator(mode="after")
    def validate_references(self) -> ManifestModel:
        """Names are unique and features reference declared dependencies."""
        dep_names = [d.name for d in self.dependencies]
        duplicates = sorted({n for n in dep_names if dep_names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate dependency names: {', '.join(duplicates)}")

        feature_names = [f.name for f in self.features]
        duplicates = sorted({n for n in feature_names if feature_names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate feature names: {', '.join(duplicates)}")

        known = set(dep_names)
        for feature in self.features:
            if feature.dependency is not None and feature.dependency not in known:
                raise ValueError(
                    f"feature '{feature.name}' references unknown dependency "
                    f"'{feature.dependency}'"
                )
        return self


def _convert_source(model: SourceModel, default_directory: str) -> SourceSpec:
    if model.git is not None:
        return SourceSpec(
            kind=SourceKind.GIT,
            url=model.git,
            directory=model.directory or default_directory,
            depth=model.depth,
        )
    assert model.archive is not None
    return SourceSpec(
        kind=SourceKind.ARCHIVE,
        url=model.archive,
        directory=model.directory or default_directory,
        sha256=model.sha256.lower() if model.sha256 else None,
    )


def _convert_dependency(model: DependencyModel) -> Dependency:
    build = model.build
    pkgconfig = None
    if model.pkgconfig is not None:
        pkgconfig = PkgConfigSpec(**model.pkgconfig.model_dump())
    return Dependency(
        name=model.name,
        source=_convert_source(model.source, model.name),
        build=BuildRecipe(
            system=BuildSystem(build.system),
            work_dir=build.work_dir,
            cmake_source=build.cmake_source,
            configure_args=tuple(build.configure_args),
            make_args=tuple(build.make_args),
            install_args=tuple(build.install_args),
            parallel=build.parallel,
        ),
        artifacts=ArtifactSpec(
            library=model.artifacts.library,
            header=model.artifacts.header,
            library_fallback_dirs=tuple(model.artifacts.library_fallback_dirs),
        ),
        optional=model.optional,
        pkgconfig=pkgconfig,
    )


def _convert_feature(model: FeatureModel) -> FeatureSpec:
    return FeatureSpec(
        name=model.name,
        dependency=model.dependency,
        configure_flags=tuple(model.configure_flags),
        cflags=tuple(model.cflags),
        ldflags=tuple(model.ldflags),
        extra_libs=tuple(model.extra_libs),
        encoders=tuple(e.casefold() for e in model.encoders),
    )


def _convert_final(model: FinalModel) -> FinalBuildSpec:
    return FinalBuildSpec(
        name=model.name,
        source=_convert_source(model.source, model.name),
        release_url=model.release_url,
        configure_args=tuple(model.configure_args),
        extra_cflags=tuple(model.extra_cflags),
        extra_ldflags=tuple(model.extra_ldflags),
        extra_libs=tuple(model.extra_libs),
        binary=model.binary,
    )


def _format_validation_error(error: Exception) -> str:
    """Format a Pydantic validation error into a user-friendly message."""
    if isinstance(error, ValidationError):
        errors = error.errors()
        if errors:
            first_error = errors[0]
            loc = ".".join(str(x) for x in first_error.get("loc", []))
            msg = first_error.get("msg", str(error))
            if loc:
                return f"Manifest validation failed: {loc}: {msg}"
            return f"Manifest validation failed: {msg}"

    return f"Manifest validation failed: {error}"


def load_manifest_from_dict(data: dict[str, Any]) -> Manifest:
    """Load and validate a manifest from a dictionary.

    Raises:
        ManifestError: If the manifest data is invalid.
    """
    try:
        model = ManifestModel.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(x) for x in first.get("loc", [])) or None
        raise ManifestError(_format_validation_error(e), field=field) from e

    return Manifest(
        dependencies=tuple(_convert_dependency(d) for d in model.dependencies),
        features=tuple(_convert_feature(f) for f in model.features),
        final=_convert_final(model.final),
    )


def _parse_yaml(text: str, origin: str) -> Manifest:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML syntax in {origin}: {e}") from e

    if data is None:
        raise ManifestError(f"Manifest {origin} is empty")

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {origin} must be a YAML mapping")

    return load_manifest_from_dict(data)


def load_manifest(manifest_path: Path) -> Manifest:
    """Load and validate a manifest from a YAML file.

    Args:
        manifest_path: Path to the YAML manifest.

    Returns:
        Validated Manifest.

    Raises:
        ManifestError: If the manifest file is invalid.
        FileNotFoundError: If the manifest file does not exist.
    """
    if not manifest_path.exists():
        raise FileNotFoundError(f"Manifest file not found: {manifest_path}")

    return _parse_yaml(manifest_path.read_text(encoding="utf-8"), str(manifest_path))


def load_default_manifest() -> Manifest:
    """Load the packaged static FFmpeg manifest."""
    text = (
        resources.files("sbo.manifest")
        .joinpath("data", DEFAULT_MANIFEST)
        .read_text(encoding="utf-8")
    )
    return _parse_yaml(text, DEFAULT_MANIFEST)
