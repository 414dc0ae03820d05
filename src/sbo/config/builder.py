"""Configuration builder with explicit layering.

This module provides ConfigBuilder for building SboConfig by composing
multiple configuration sources with explicit precedence handling.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from sbo.config.env import EnvReader
from sbo.config.models import (
    DEFAULT_PREFIX,
    DEFAULT_SOURCE_DIR,
    BuildConfig,
    LoggingConfig,
    PathsConfig,
    SboConfig,
    default_jobs,
)


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    # Paths
    prefix: Path | None = None
    source_dir: Path | None = None
    manifest: Path | None = None

    # Build config
    jobs: int | None = None
    use_sudo: bool | None = None
    skip_updates: bool | None = None
    strip_binary: bool | None = None
    install_final: bool | None = None
    link_mode: str | None = None
    ffmpeg_version: str | None = None

    # Logging config
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


class ConfigBuilder:
    """Builds SboConfig by layering ConfigSources with precedence.

    Later sources override earlier ones (for non-None values).

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config), source_name="file")
        builder.apply(source_from_env(reader), source_name="env")
        builder.apply(cli_source, source_name="cli")
        config = builder.build()
    """

    def __init__(self) -> None:
        """Initialize the builder with no values set."""
        self._values: dict[str, Any] = {}
        self._origins: dict[str, str] = {}

    def apply(self, source: ConfigSource, source_name: str = "unknown") -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
            source_name: Label recorded for each value this source sets.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value
                self._origins[field_obj.name] = source_name

    def origin(self, key: str) -> str:
        """Return which source set ``key`` ("default" if none did)."""
        return self._origins.get(key, "default")

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> SboConfig:
        """Build the final SboConfig with defaults for unset values.

        Returns:
            Complete SboConfig with all values resolved.

        Raises:
            ValueError: If a resolved value fails model validation.
        """
        paths = PathsConfig(
            prefix=self._get("prefix", DEFAULT_PREFIX),
            source_dir=self._get("source_dir", DEFAULT_SOURCE_DIR),
            manifest=self._get("manifest", None),
        )

        build = BuildConfig(
            jobs=self._get("jobs", default_jobs()),
            use_sudo=self._get("use_sudo", False),
            skip_updates=self._get("skip_updates", False),
            strip_binary=self._get("strip_binary", True),
            install_final=self._get("install_final", False),
            link_mode=self._get("link_mode", "symlink"),
            ffmpeg_version=str(self._get("ffmpeg_version", "git")),
        )

        logging_config = LoggingConfig(
            level=self._get("logging_level", "info"),
            file=self._get("logging_file", None),
            format=self._get("logging_format", "text"),
            include_stderr=self._get("logging_include_stderr", False),
            max_bytes=self._get("logging_max_bytes", 10_485_760),
            backup_count=self._get("logging_backup_count", 5),
        )

        return SboConfig(paths=paths, build=build, logging=logging_config)


def _path_or_none(value: Any) -> Path | None:
    return Path(value).expanduser() if value else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from parsed TOML config file.

    Args:
        file_config: Parsed configuration dictionary from TOML file.

    Returns:
        ConfigSource with values from the config file.
    """
    paths = file_config.get("paths", {})
    build = file_config.get("build", {})
    logging_conf = file_config.get("logging", {})

    ffmpeg_version = build.get("ffmpeg_version")

    return ConfigSource(
        # Paths
        prefix=_path_or_none(paths.get("prefix")),
        source_dir=_path_or_none(paths.get("source_dir")),
        manifest=_path_or_none(paths.get("manifest")),
        # Build
        jobs=build.get("jobs"),
        use_sudo=build.get("use_sudo"),
        skip_updates=build.get("skip_updates"),
        strip_binary=build.get("strip_binary"),
        install_final=build.get("install_final"),
        link_mode=build.get("link_mode"),
        ffmpeg_version=str(ffmpeg_version) if ffmpeg_version is not None else None,
        # Logging
        logging_level=logging_conf.get("level"),
        logging_file=_path_or_none(logging_conf.get("file")),
        logging_format=logging_conf.get("format"),
        logging_include_stderr=logging_conf.get("include_stderr"),
        logging_max_bytes=logging_conf.get("max_bytes"),
        logging_backup_count=logging_conf.get("backup_count"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from environment variables.

    Args:
        reader: EnvReader instance for reading environment variables.

    Returns:
        ConfigSource with values from environment variables.
    """
    return ConfigSource(
        # Paths
        prefix=reader.get_path("SBO_PREFIX"),
        source_dir=reader.get_path("SBO_SOURCE_DIR"),
        manifest=reader.get_path("SBO_MANIFEST", must_exist=True),
        # Build
        jobs=reader.get_int("SBO_JOBS", minimum=1),
        use_sudo=reader.get_bool("SBO_USE_SUDO"),
        skip_updates=reader.get_bool("SBO_SKIP_UPDATES"),
        strip_binary=reader.get_bool("SBO_STRIP_BINARY"),
        install_final=reader.get_bool("SBO_INSTALL_FINAL"),
        link_mode=reader.get_str("SBO_LINK_MODE"),
        ffmpeg_version=reader.get_str("SBO_FFMPEG_VERSION"),
        # Logging
        logging_level=reader.get_str("SBO_LOG_LEVEL"),
        logging_file=reader.get_path("SBO_LOG_FILE"),
        logging_format=reader.get_str("SBO_LOG_FORMAT"),
        logging_include_stderr=None,
        logging_max_bytes=None,
        logging_backup_count=None,
    )
