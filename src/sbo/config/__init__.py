"""Configuration management for sbo.

Configuration is loaded with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (SBO_*)
3. Config file (~/.sbo/config.toml)
4. Default values (lowest priority)
"""

from sbo.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from sbo.config.env import EnvReader
from sbo.config.loader import (
    get_config,
    get_data_dir,
    get_default_config_path,
    load_config_file,
)
from sbo.config.logging_factory import build_logging_config
from sbo.config.models import (
    BuildConfig,
    LoggingConfig,
    PathsConfig,
    SboConfig,
)

__all__ = [
    # Models
    "BuildConfig",
    "LoggingConfig",
    "PathsConfig",
    "SboConfig",
    # Loader
    "get_config",
    "get_data_dir",
    "get_default_config_path",
    "load_config_file",
    # Layering
    "EnvReader",
    "ConfigBuilder",
    "ConfigSource",
    "source_from_env",
    "source_from_file",
    "build_logging_config",
]
