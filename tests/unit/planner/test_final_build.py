"""Tests for the final build steps."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from conftest import FakeRunner, RecordedCall, touch
from sbo.context import BuildContext
from sbo.errors import BuildStepError
from sbo.planner import BuildPlan, run_final_build

PLAN = BuildPlan(features=(), configure_args=("--enable-gpl", "--enable-static"))


def _produce_binary(source: Path):
    def effect(call: RecordedCall) -> None:
        touch(source / "ffmpeg", "ELF")

    return effect


class TestRunFinalBuild:
    """Tests for run_final_build."""

    def test_step_order(
        self, tmp_path: Path, build_context: BuildContext, fake_runner: FakeRunner
    ) -> None:
        source = tmp_path / "ffmpeg"
        fake_runner.on(("make", "-j4"), effect=_produce_binary(source))

        binary = run_final_build(PLAN, source, build_context, fake_runner)

        assert binary == source / "ffmpeg"
        assert fake_runner.commands == [
            ("./configure", "--enable-gpl", "--enable-static"),
            ("make", "-j4"),
            ("strip", str(source / "ffmpeg")),
        ]
        assert {c.cwd for c in fake_runner.calls} == {source}

    def test_no_strip_with_install(
        self, tmp_path: Path, build_context: BuildContext, fake_runner: FakeRunner
    ) -> None:
        source = tmp_path / "ffmpeg"
        fake_runner.on(("make", "-j4"), effect=_produce_binary(source))
        context = dataclasses.replace(build_context, use_sudo=True)

        run_final_build(
            PLAN, source, context, fake_runner, strip=False, install=True
        )

        assert fake_runner.commands[-1] == ("sudo", "make", "install")
        assert not any(c[0] == "strip" for c in fake_runner.commands)

    def test_configure_failure(
        self, tmp_path: Path, build_context: BuildContext, fake_runner: FakeRunner
    ) -> None:
        fake_runner.on(("./configure",), returncode=1, stdout="ERROR: x265 not found")

        with pytest.raises(BuildStepError) as exc_info:
            run_final_build(PLAN, tmp_path / "ffmpeg", build_context, fake_runner)

        assert exc_info.value.dependency == "ffmpeg"
        assert exc_info.value.step == "configure"
        assert "x265 not found" in exc_info.value.output_tail
        assert len(fake_runner.calls) == 1

    def test_missing_binary_after_compile(
        self, tmp_path: Path, build_context: BuildContext, fake_runner: FakeRunner
    ) -> None:
        with pytest.raises(BuildStepError) as exc_info:
            run_final_build(PLAN, tmp_path / "ffmpeg", build_context, fake_runner)

        assert exc_info.value.step == "compile"
        assert "was not produced" in exc_info.value.output_tail

    def test_strip_failure_is_fatal(
        self, tmp_path: Path, build_context: BuildContext, fake_runner: FakeRunner
    ) -> None:
        source = tmp_path / "ffmpeg"
        fake_runner.on(("make", "-j4"), effect=_produce_binary(source))
        fake_runner.on(("strip",), returncode=1)

        with pytest.raises(BuildStepError, match="strip step failed"):
            run_final_build(PLAN, source, build_context, fake_runner)
