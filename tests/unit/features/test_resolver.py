"""Tests for feature resolution."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import pytest

from sbo.features import resolve_feature, resolve_features
from sbo.manifest.models import (
    ArtifactSpec,
    BuildRecipe,
    BuildSystem,
    Dependency,
    FeatureSpec,
    SourceKind,
    SourceSpec,
)
from sbo.probe.models import ArtifactKind, ArtifactLocation, ProbeResult

PREFIX = Path("/opt/ffbuild")


def _dep(name: str, optional: bool = False) -> Dependency:
    return Dependency(
        name=name,
        source=SourceSpec(
            kind=SourceKind.GIT, url=f"https://example.invalid/{name}", directory=name
        ),
        build=BuildRecipe(system=BuildSystem.AUTOTOOLS),
        artifacts=ArtifactSpec(library=f"lib{name}.a", header=f"{name}.h"),
        optional=optional,
    )


def _probe(
    name: str,
    *,
    library_at: Path | None = None,
    header_at: Path | None = None,
    optional: bool = False,
    healed: tuple[Path, ...] = (),
) -> ProbeResult:
    lib_canonical = PREFIX / "lib" / f"lib{name}.a"
    hdr_canonical = PREFIX / "include" / f"{name}.h"
    return ProbeResult(
        dependency=name,
        optional=optional,
        library=ArtifactLocation(
            ArtifactKind.LIBRARY,
            f"lib{name}.a",
            (lib_canonical,) + ((library_at,) if library_at else ()),
            library_at,
        ),
        header=ArtifactLocation(
            ArtifactKind.HEADER,
            f"{name}.h",
            (hdr_canonical,) + ((header_at,) if header_at else ()),
            header_at,
        ),
        healed=healed,
    )


def _found(name: str, optional: bool = False) -> ProbeResult:
    return _probe(
        name,
        library_at=PREFIX / "lib" / f"lib{name}.a",
        header_at=PREFIX / "include" / f"{name}.h",
        optional=optional,
    )


X265 = FeatureSpec(
    name="libx265",
    dependency="x265",
    configure_flags=("--enable-libx265",),
    extra_libs=("-lx265", "-lstdc++"),
    encoders=("libx265",),
)
X264 = FeatureSpec(
    name="libx264",
    dependency="x264",
    configure_flags=("--enable-libx264",),
    encoders=("libx264",),
)


class TestResolveFeature:
    """Tests for resolve_feature."""

    def test_optional_found_is_enabled(self) -> None:
        flag = resolve_feature(X265, _dep("x265", True), _found("x265", True))

        assert flag.enabled
        assert flag.optional
        assert flag.configure_flags == ("--enable-libx265",)
        assert flag.extra_libs == ("-lx265", "-lstdc++")
        assert flag.cflags == ()
        assert flag.ldflags == ()
        assert flag.reason == "x265 artifacts found"

    def test_optional_missing_is_disabled(self) -> None:
        probe = _probe("x265", header_at=PREFIX / "include" / "x265.h")

        flag = resolve_feature(X265, _dep("x265", True), probe)

        assert not flag.enabled
        assert flag.reason == "x265 artifacts not found: libx265.a"

    def test_optional_without_descriptor_is_disabled(self) -> None:
        probe = dataclasses.replace(_found("x265", True), descriptor_name="x265")

        flag = resolve_feature(X265, _dep("x265", True), probe)

        assert not flag.enabled
        assert flag.reason == "x265 pkg-config descriptor unavailable: x265.pc"

    def test_optional_with_descriptor_is_enabled(self) -> None:
        probe = dataclasses.replace(
            _found("x265", True),
            descriptor_name="x265",
            descriptor=PREFIX / "lib" / "pkgconfig" / "x265.pc",
        )

        assert resolve_feature(X265, _dep("x265", True), probe).enabled

    def test_optional_failed_build(self) -> None:
        flag = resolve_feature(
            X265, _dep("x265", True), _found("x265", True), failed=True
        )

        assert not flag.enabled
        assert flag.reason == "x265 failed to build"

    def test_optional_not_probed(self) -> None:
        flag = resolve_feature(X265, _dep("x265", True), None)
        assert not flag.enabled
        assert "not probed" in flag.reason

    def test_mandatory_always_enabled(self) -> None:
        flag = resolve_feature(X264, _dep("x264"), _probe("x264"))

        assert flag.enabled
        assert not flag.optional
        assert flag.reason.startswith("mandatory (x264 artifacts not found")

    def test_builtin_feature(self) -> None:
        spec = FeatureSpec(name="gpl", configure_flags=("--enable-gpl",))
        flag = resolve_feature(spec, None, None)

        assert flag.enabled
        assert flag.reason == "built in"

    def test_non_canonical_locations_add_search_flags(self) -> None:
        probe = _probe(
            "x265",
            library_at=PREFIX / "lib64" / "libx265.a",
            header_at=PREFIX / "include" / "x265" / "x265.h",
            optional=True,
        )

        flag = resolve_feature(X265, _dep("x265", True), probe)

        assert flag.cflags == (f"-I{PREFIX / 'include' / 'x265'}",)
        assert flag.ldflags == (f"-L{PREFIX / 'lib64'}",)

    def test_healed_library_needs_no_search_flag(self) -> None:
        probe = _probe(
            "x265",
            library_at=PREFIX / "lib64" / "libx265.a",
            header_at=PREFIX / "include" / "x265.h",
            optional=True,
            healed=(PREFIX / "lib" / "libx265.a",),
        )

        flag = resolve_feature(X265, _dep("x265", True), probe)

        assert flag.ldflags == ()


class TestResolveFeatures:
    """Tests for resolve_features."""

    def test_preserves_order_and_is_deterministic(self) -> None:
        specs = [X264, X265]
        probes = [_found("x264"), _probe("x265", optional=True)]
        deps = [_dep("x264"), _dep("x265", True)]

        first = resolve_features(specs, probes, deps)
        second = resolve_features(specs, probes, deps)

        assert first == second
        assert [f.name for f in first] == ["libx264", "libx265"]
        assert [f.enabled for f in first] == [True, False]

    def test_failed_names_disable_features(self) -> None:
        flags = resolve_features(
            [X265], [_found("x265", True)], [_dep("x265", True)], failed={"x265"}
        )
        assert not flags[0].enabled

    def test_logs_disabled_features(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="sbo.features"):
            resolve_features(
                [X264, X265],
                [_found("x264"), _probe("x265", optional=True)],
                [_dep("x264"), _dep("x265", True)],
            )

        messages = [(r.levelname, r.getMessage()) for r in caplog.records]
        assert ("INFO", "Feature libx264 enabled: mandatory") in messages
        assert (
            "WARNING",
            "Feature libx265 disabled: x265 artifacts not found: libx265.a, x265.h",
        ) in messages
