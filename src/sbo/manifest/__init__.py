"""Declarative dependency manifest: what to build and which features it feeds."""

from sbo.manifest.loader import (
    load_default_manifest,
    load_manifest,
    load_manifest_from_dict,
)
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

__all__ = [
    "ArtifactSpec",
    "BuildRecipe",
    "BuildSystem",
    "Dependency",
    "FeatureSpec",
    "FinalBuildSpec",
    "Manifest",
    "PkgConfigSpec",
    "SourceKind",
    "SourceSpec",
    "load_default_manifest",
    "load_manifest",
    "load_manifest_from_dict",
]
