"""Configuration data models.

This module defines dataclasses for sbo configuration options.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

DEFAULT_PREFIX = Path("/usr/local")
DEFAULT_SOURCE_DIR = Path.home() / "ffmpeg_build"


def default_jobs() -> int:
    """Number of parallel compile jobs: one per available processor."""
    return os.cpu_count() or 1


@dataclass
class PathsConfig:
    """Filesystem locations used by a build run."""

    # Shared install prefix every dependency installs into
    prefix: Path = DEFAULT_PREFIX

    # Working directory holding fetched source trees
    source_dir: Path = DEFAULT_SOURCE_DIR

    # Dependency manifest (None = packaged ffmpeg-static manifest)
    manifest: Path | None = None


@dataclass
class BuildConfig:
    """Configuration for build behavior."""

    jobs: int = field(default_factory=default_jobs)
    """Parallel jobs for each compile step (make -j)."""

    use_sudo: bool = False
    """Prefix install steps with sudo (needed for system prefixes)."""

    skip_updates: bool = False
    """Reuse existing source trees without pulling."""

    strip_binary: bool = True
    """Strip the final binary after building."""

    install_final: bool = False
    """Run `make install` for the final binary."""

    link_mode: Literal["symlink", "copy"] = "symlink"
    """How canonical library references are created during self-healing."""

    ffmpeg_version: str = "git"
    """FFmpeg release to build, or "git" for the development tree."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.jobs < 1:
            raise ValueError(f"jobs must be at least 1, got {self.jobs}")
        valid_modes = {"symlink", "copy"}
        if self.link_mode not in valid_modes:
            raise ValueError(
                f"link_mode must be one of {valid_modes}, got {self.link_mode}"
            )
        if not self.ffmpeg_version.strip():
            raise ValueError("ffmpeg_version must not be empty")


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class SboConfig:
    """Main configuration container for sbo.

    Aggregates all configuration sections.
    """

    paths: PathsConfig = field(default_factory=PathsConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
