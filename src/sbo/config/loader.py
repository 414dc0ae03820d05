"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (SBO_*)
3. Config file (~/.sbo/config.toml)
4. Default values

Environment variables:
- SBO_PREFIX: Shared install prefix (default /usr/local)
- SBO_SOURCE_DIR: Directory holding fetched sources (default ~/ffmpeg_build)
- SBO_MANIFEST: Dependency manifest YAML file
- SBO_JOBS: Parallel compile jobs (default: CPU count)
- SBO_USE_SUDO: Run install steps through sudo
- SBO_SKIP_UPDATES: Do not pull existing source trees
- SBO_STRIP_BINARY / SBO_INSTALL_FINAL: Final binary handling
- SBO_LINK_MODE: "symlink" or "copy" for self-healed library references
- SBO_FFMPEG_VERSION: FFmpeg release, or "git"
- SBO_LOG_LEVEL / SBO_LOG_FILE / SBO_LOG_FORMAT: Logging overrides
- SBO_CONFIG_PATH: Path to config file (overrides default location)
- SBO_DATA_DIR: Path to sbo data directory (overrides ~/.sbo/)
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from sbo.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from sbo.config.env import EnvReader
from sbo.config.models import SboConfig
from sbo.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".sbo"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"


def get_data_dir() -> Path:
    """Get the sbo data directory.

    Can be overridden by SBO_DATA_DIR environment variable.

    Returns:
        Path to the data directory (~/.sbo/ by default).
    """
    env_path = os.environ.get("SBO_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_DIR


def get_default_config_path() -> Path:
    """Get the default config file path.

    SBO_CONFIG_PATH wins over SBO_DATA_DIR, which wins over ~/.sbo.
    """
    env_path = os.environ.get("SBO_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return get_data_dir() / "config.toml"


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from TOML file.

    Args:
        path: Path to config file. If None, uses default location.
        strict: If True, raise ConfigError on parse failures.
                If False (default), log a warning and return an empty dict.

    Returns:
        Parsed configuration dict. Empty dict if file doesn't exist.

    Raises:
        ConfigError: When strict=True and the file cannot be parsed.
    """
    if path is None:
        path = get_default_config_path()

    if not path.exists():
        logger.debug("Config file not found: %s", path)
        return {}

    try:
        with open(path, "rb") as f:
            config: dict[str, Any] = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        if strict:
            raise ConfigError(f"Failed to load config file {path}: {e}") from e
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}

    logger.debug("Loaded config from %s", path)
    return config


def get_config(
    config_path: Path | None = None,
    *,
    cli: ConfigSource | None = None,
    env_reader: EnvReader | None = None,
    strict: bool = False,
) -> SboConfig:
    """Get sbo configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides SBO_CONFIG_PATH).
        cli: Values given on the command line (highest precedence).
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise ConfigError on config file parse failures.

    Returns:
        SboConfig with merged configuration.

    Raises:
        ConfigError: If the file cannot be parsed (strict) or a merged value
            is invalid.
    """
    reader = env_reader or EnvReader()
    file_config = load_config_file(config_path, strict=strict)

    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config), source_name="file")
    builder.apply(source_from_env(reader), source_name="env")
    if cli is not None:
        builder.apply(cli, source_name="cli")

    try:
        return builder.build()
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
