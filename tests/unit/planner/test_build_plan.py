"""Tests for final configure planning."""

from __future__ import annotations

import dataclasses

from sbo.context import BuildContext
from sbo.features.models import FeatureFlag
from sbo.manifest.models import FinalBuildSpec, SourceKind, SourceSpec
from sbo.planner import make_build_plan

FINAL = FinalBuildSpec(
    name="ffmpeg",
    source=SourceSpec(
        kind=SourceKind.GIT,
        url="https://example.invalid/ffmpeg.git",
        directory="ffmpeg",
    ),
    configure_args=("--enable-gpl", "--enable-static"),
    extra_cflags=("-I{prefix}/include",),
    extra_ldflags=("-L{prefix}/lib", "-static"),
)

X264 = FeatureFlag(
    name="libx264",
    dependency="x264",
    enabled=True,
    optional=False,
    configure_flags=("--enable-libx264",),
)
X265 = FeatureFlag(
    name="libx265",
    dependency="x265",
    enabled=True,
    optional=True,
    configure_flags=("--enable-libx265",),
    ldflags=("-L/opt/x/lib64",),
    extra_libs=("-lx265", "-lstdc++"),
)


class TestMakeBuildPlan:
    """Tests for make_build_plan."""

    def test_all_enabled(self, build_context: BuildContext) -> None:
        plan = make_build_plan(FINAL, [X264, X265], build_context)
        prefix = build_context.prefix

        assert plan.configure_args == (
            "--enable-gpl",
            "--enable-static",
            "--enable-libx264",
            "--enable-libx265",
            f"--extra-cflags=-I{prefix}/include",
            f"--extra-ldflags=-L{prefix}/lib -static -L/opt/x/lib64",
            "--extra-libs=-lx265 -lstdc++",
        )
        assert [f.name for f in plan.enabled] == ["libx264", "libx265"]
        assert plan.disabled == ()

    def test_disabled_feature_contributes_nothing(
        self, build_context: BuildContext
    ) -> None:
        off = dataclasses.replace(X265, enabled=False, reason="x265 failed to build")

        plan = make_build_plan(FINAL, [X264, off], build_context)

        assert "--enable-libx265" not in plan.configure_args
        assert not any(a.startswith("--extra-libs") for a in plan.configure_args)
        assert not any("lib64" in a for a in plan.configure_args)
        assert [f.name for f in plan.disabled] == ["libx265"]

    def test_duplicate_flags_are_merged(self, build_context: BuildContext) -> None:
        dup = dataclasses.replace(
            X264, ldflags=("-static",), extra_libs=("-lstdc++",)
        )

        plan = make_build_plan(FINAL, [dup, X265], build_context)

        ldflags = [a for a in plan.configure_args if a.startswith("--extra-ldflags")]
        libs = [a for a in plan.configure_args if a.startswith("--extra-libs")]
        assert ldflags == [
            f"--extra-ldflags=-L{build_context.prefix}/lib -static -L/opt/x/lib64"
        ]
        assert libs == ["--extra-libs=-lstdc++ -lx265"]

    def test_flag_string_quotes_multi_word_values(
        self, build_context: BuildContext
    ) -> None:
        plan = make_build_plan(FINAL, [X265], build_context)

        assert "'--extra-libs=-lx265 -lstdc++'" in plan.flag_string

    def test_to_dict(self, build_context: BuildContext) -> None:
        off = dataclasses.replace(X265, enabled=False)
        data = make_build_plan(FINAL, [X264, off], build_context).to_dict()

        assert data["target"] == "ffmpeg"
        assert data["enabled"] == ["libx264"]
        assert data["disabled"] == ["libx265"]
