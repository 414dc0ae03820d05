"""Tests for the sbo command line."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import FakeRunner, touch
from sbo.cli import main
from sbo.cli.exit_codes import ExitCode
from sbo.errors import BuildStepError, FetchError, OptionalDependencyFailed
from sbo.orchestrator import RunReport
from sbo.tools import HostToolRegistry, ToolInfo, ToolStatus

TOOL_VERSIONS = {
    "git": "2.43.0",
    "make": "4.3",
    "cmake": "3.28.3",
    "pkg-config": "1.8.1",
    "nasm": "2.16.1",
    "strip": "2.42",
    "ldd": "2.39",
    "yasm": "1.3.0",
    "nvidia-smi": "550.54",
}


def _registry(*missing: str) -> HostToolRegistry:
    tools = {}
    for name, version in TOOL_VERSIONS.items():
        if name in missing:
            tools[name] = ToolInfo(name=name, status=ToolStatus.MISSING)
        else:
            tools[name] = ToolInfo(
                name=name,
                path=Path(f"/usr/bin/{name}"),
                version=version,
                version_tuple=tuple(int(p) for p in version.split(".")),
                status=ToolStatus.AVAILABLE,
            )
    return HostToolRegistry(tools=tools)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestMain:
    """Tests for the top-level group."""

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ("build", "doctor", "plan", "probe", "verify"):
            assert command in result.output

    def test_invalid_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        config = touch(tmp_path / "config.toml", "[build\njobs = 2\n")

        result = runner.invoke(main, ["--config", str(config), "doctor"])

        assert result.exit_code == ExitCode.CONFIG_ERROR
        assert "Failed to load config file" in result.stderr


class TestDoctorCommand:
    """Tests for sbo doctor."""

    @patch("sbo.cli.doctor.detect_host_tools")
    def test_all_available(self, mock_detect, runner: CliRunner) -> None:
        mock_detect.return_value = _registry()

        result = runner.invoke(main, ["doctor"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "All required tools are available." in result.stdout

    @patch("sbo.cli.doctor.detect_host_tools")
    def test_missing_required(self, mock_detect, runner: CliRunner) -> None:
        mock_detect.return_value = _registry("nasm")

        result = runner.invoke(main, ["doctor"])

        assert result.exit_code == ExitCode.TOOL_NOT_AVAILABLE
        assert "Critical Issues:" in result.stdout
        assert "nasm not found" in result.stdout

    @patch("sbo.cli.doctor.detect_host_tools")
    def test_missing_recommended(self, mock_detect, runner: CliRunner) -> None:
        mock_detect.return_value = _registry("ldd")

        result = runner.invoke(main, ["doctor"])

        assert result.exit_code == ExitCode.WARNINGS
        assert "Warnings:" in result.stdout

    @patch("sbo.cli.doctor.detect_host_tools")
    def test_json(self, mock_detect, runner: CliRunner) -> None:
        mock_detect.return_value = _registry("yasm")

        result = runner.invoke(main, ["doctor", "--json"])

        assert result.exit_code == ExitCode.SUCCESS
        data = json.loads(result.stdout)
        assert data["tools"]["yasm"]["available"] is False
        levels = {r["tool"]: r["level"] for r in data["requirements"]}
        assert levels["cmake"] == "required"
        assert levels["yasm"] == "optional"


class TestPlanCommand:
    """Tests for sbo plan."""

    def test_empty_prefix_drops_optional_features(
        self, runner: CliRunner, prefix: Path
    ) -> None:
        result = runner.invoke(main, ["plan", "--prefix", str(prefix), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["disabled"] == ["libx265", "nvenc"]
        assert "--enable-libx264" in data["configure_args"]
        assert "--enable-libx265" not in data["configure_args"]

    def test_misplaced_x265_is_enabled(
        self, runner: CliRunner, prefix: Path
    ) -> None:
        touch(prefix / "lib64" / "libx265.a")
        touch(prefix / "include" / "x265.h")

        result = runner.invoke(main, ["plan", "--prefix", str(prefix), "--json"])

        data = json.loads(result.stdout)
        assert "libx265" in data["enabled"]
        assert "--enable-libx265" in data["configure_args"]
        assert (prefix / "lib" / "libx265.a").is_symlink()
        assert (prefix / "lib" / "pkgconfig" / "x265.pc").is_file()

    def test_text_output(self, runner: CliRunner, prefix: Path) -> None:
        result = runner.invoke(main, ["plan", "--prefix", str(prefix)])

        assert result.exit_code == 0
        assert "./configure --pkg-config-flags=--static" in result.stdout
        assert "✗ libx265" in result.stdout

    def test_invalid_manifest(
        self, runner: CliRunner, prefix: Path, tmp_path: Path
    ) -> None:
        bad = touch(tmp_path / "bad.yaml", "schema_version: 9\n")

        result = runner.invoke(
            main, ["plan", "--prefix", str(prefix), "--manifest", str(bad)]
        )

        assert result.exit_code == ExitCode.MANIFEST_ERROR
        assert "Manifest validation failed" in result.stderr


class TestProbeCommand:
    """Tests for sbo probe."""

    def test_reports_artifacts(self, runner: CliRunner, prefix: Path) -> None:
        touch(prefix / "lib" / "libx264.a")
        touch(prefix / "include" / "x264.h")

        result = runner.invoke(main, ["probe", "--prefix", str(prefix), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        probes = {p["dependency"]: p for p in data["probes"]}
        assert probes["x264"]["satisfied"] is True
        assert probes["x265"]["satisfied"] is False

    def test_text_lists_warnings(self, runner: CliRunner, prefix: Path) -> None:
        result = runner.invoke(main, ["probe", "--prefix", str(prefix)])

        assert result.exit_code == 0
        assert "x265: libx265.a -> not found" in result.stdout
        assert "[artifact_missing]" in result.stdout


class TestBuildCommand:
    """Tests for sbo build with the pipeline stubbed out."""

    def _invoke(self, runner: CliRunner, prefix: Path, *extra: str):
        return runner.invoke(
            main,
            [
                "build",
                "--prefix",
                str(prefix),
                "--source-dir",
                str(prefix.parent / "src"),
                *extra,
            ],
        )

    @patch("sbo.cli.build.run_pipeline")
    @patch("sbo.cli.build.detect_host_tools")
    def test_success(
        self, mock_detect, mock_run, runner: CliRunner, prefix: Path
    ) -> None:
        mock_detect.return_value = _registry()
        mock_run.return_value = RunReport(success=True, binary=Path("/b/ffmpeg"))

        result = self._invoke(runner, prefix, "-j", "3", "--no-strip")

        assert result.exit_code == ExitCode.SUCCESS
        assert "Build complete: /b/ffmpeg" in result.stdout
        _manifest, context, _runner, options = mock_run.call_args.args
        assert context.prefix == prefix
        assert context.jobs == 3
        assert options.strip_binary is False

    @patch("sbo.cli.build.run_pipeline")
    @patch("sbo.cli.build.detect_host_tools")
    def test_warnings(
        self, mock_detect, mock_run, runner: CliRunner, prefix: Path
    ) -> None:
        mock_detect.return_value = _registry()
        mock_run.return_value = RunReport(
            success=True,
            binary=Path("/b/ffmpeg"),
            warnings=[OptionalDependencyFailed("x265", "cmake failed")],
        )

        result = self._invoke(runner, prefix, "--json")

        assert result.exit_code == ExitCode.WARNINGS
        data = json.loads(result.stdout)
        assert data["warnings"][0]["kind"] == "optional_dependency_failed"

    @pytest.mark.parametrize(
        ("error", "code", "step"),
        [
            (
                FetchError("x264", "git clone exited with status 128"),
                ExitCode.FETCH_FAILED,
                "x264:fetch",
            ),
            (
                BuildStepError("libvpx", "compile", 2),
                ExitCode.BUILD_STEP_FAILED,
                "libvpx:compile",
            ),
        ],
    )
    @patch("sbo.cli.build.run_pipeline")
    @patch("sbo.cli.build.detect_host_tools")
    def test_fatal_errors(
        self,
        mock_detect,
        mock_run,
        error,
        code,
        step,
        runner: CliRunner,
        prefix: Path,
    ) -> None:
        mock_detect.return_value = _registry()
        mock_run.return_value = RunReport(failed_step=step, error=error)

        result = self._invoke(runner, prefix)

        assert result.exit_code == code
        assert f"Build FAILED at {step}" in result.stdout

    @patch("sbo.cli.build.run_pipeline")
    @patch("sbo.cli.build.detect_host_tools")
    def test_missing_tools_stop_before_building(
        self, mock_detect, mock_run, runner: CliRunner, prefix: Path
    ) -> None:
        mock_detect.return_value = _registry("git", "cmake")

        result = self._invoke(runner, prefix)

        assert result.exit_code == ExitCode.TOOL_NOT_AVAILABLE
        assert "git not found" in result.stderr
        mock_run.assert_not_called()

    @patch("sbo.cli.build.run_pipeline")
    @patch("sbo.cli.build.detect_host_tools")
    def test_skip_tool_check(
        self, mock_detect, mock_run, runner: CliRunner, prefix: Path
    ) -> None:
        mock_run.return_value = RunReport(success=True, binary=Path("/b/ffmpeg"))

        result = self._invoke(runner, prefix, "--skip-tool-check")

        assert result.exit_code == ExitCode.SUCCESS
        mock_detect.assert_not_called()


class TestVerifyCommand:
    """Tests for sbo verify."""

    @patch("sbo.cli.verify.SubprocessRunner")
    def test_reports_missing_encoders(
        self, mock_runner_cls, runner: CliRunner, prefix: Path, tmp_path: Path
    ) -> None:
        binary = touch(tmp_path / "ffmpeg")
        fake = FakeRunner()
        fake.on(("ldd",), returncode=1, stderr="\tnot a dynamic executable\n")
        fake.on((str(binary), "-version"), stdout="ffmpeg version 7.1\n")
        fake.on(
            (str(binary), "-hide_banner", "-encoders"),
            stdout=" V....D libx264    libx264 H.264\n",
        )
        mock_runner_cls.return_value = fake

        result = runner.invoke(
            main, ["verify", str(binary), "--prefix", str(prefix), "--json"]
        )

        assert result.exit_code == ExitCode.WARNINGS
        data = json.loads(result.stdout)
        assert data["static"] is True
        assert data["version"] == "7.1"
        messages = [m["message"] for m in data["mismatches"]]
        # Mandatory features stay enabled, so their encoders are checked
        assert any("libvpx" in m for m in messages)
        assert not any("libx264" in m for m in messages)
        assert not any("libx265" in m for m in messages)
