"""Tests for configuration model validation."""

from __future__ import annotations

import pytest

from sbo.config import BuildConfig, LoggingConfig, build_logging_config


class TestBuildConfig:
    def test_rejects_zero_jobs(self) -> None:
        with pytest.raises(ValueError, match="jobs"):
            BuildConfig(jobs=0)

    def test_rejects_unknown_link_mode(self) -> None:
        with pytest.raises(ValueError, match="link_mode"):
            BuildConfig(jobs=1, link_mode="hardlink")  # type: ignore[arg-type]

    def test_rejects_blank_ffmpeg_version(self) -> None:
        with pytest.raises(ValueError, match="ffmpeg_version"):
            BuildConfig(jobs=1, ffmpeg_version=" ")


class TestLoggingConfig:
    def test_rejects_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="level"):
            LoggingConfig(level="verbose")

    def test_rejects_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="format"):
            LoggingConfig(format="xml")


class TestBuildLoggingConfig:
    def test_overrides_apply(self) -> None:
        base = LoggingConfig(level="info", format="text", backup_count=3)
        merged = build_logging_config(base, level="debug", format="json")
        assert merged.level == "debug"
        assert merged.format == "json"
        assert merged.backup_count == 3

    def test_none_keeps_base(self) -> None:
        base = LoggingConfig(level="warning")
        assert build_logging_config(base).level == "warning"
