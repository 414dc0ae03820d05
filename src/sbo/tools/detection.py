"""Host tool detection and version parsing.

This module finds the build tools sbo shells out to, parses their
versions, and parses the encoder list printed by a built binary.
"""

from __future__ import annotations

import logging
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path

from sbo.core.subprocess_utils import CommandRunner, SubprocessRunner
from sbo.tools.models import (
    HostToolRegistry,
    ToolDetectionConfig,
    ToolInfo,
    ToolStatus,
)

logger = logging.getLogger(__name__)

# Timeout for version detection commands (seconds)
DETECTION_TIMEOUT = 10

HOST_TOOLS: tuple[ToolDetectionConfig, ...] = (
    ToolDetectionConfig("git", "--version", r"git version (\S+)"),
    ToolDetectionConfig("make", "--version", r"GNU Make (\S+)"),
    ToolDetectionConfig("cmake", "--version", r"cmake version (\S+)"),
    ToolDetectionConfig("nasm", "-v", r"NASM version (\S+)"),
    ToolDetectionConfig("yasm", "--version", r"yasm (\S+)"),
    ToolDetectionConfig("pkg-config", "--version", r"^\s*(\S+)"),
    ToolDetectionConfig("strip", "--version", r"strip.*?\s(\d+(?:\.\d+)+)"),
    ToolDetectionConfig("ldd", "--version", r"ldd.*?\s(\d+(?:\.\d+)+)"),
    ToolDetectionConfig(
        "nvidia-smi", "--version", r"NVIDIA-SMI version\s*:\s*(\S+)"
    ),
)

# Encoder list line: " V....D libx264   libx264 H.264 / AVC ..."
_ENCODER_LINE = re.compile(r"\s+[VASFXBDI.]{6}\s+(\S+)")


def parse_version_string(version_str: str) -> tuple[int, ...] | None:
    """Parse a version string into a comparable tuple.

    Handles various version formats:
    - "2.43.0" -> (2, 43, 0)
    - "3.28.3" -> (3, 28, 3)
    - "n7.1" -> (7, 1)  (ffmpeg nightlies)
    - "v1.8.0" -> (1, 8, 0)

    Args:
        version_str: Version string to parse.

    Returns:
        Tuple of version components, or None if parsing fails.
    """
    if not version_str:
        return None

    # Strip leading 'n' or 'v' prefix
    version_str = version_str.lstrip("nv")

    # Extract numeric version parts (stop at first non-numeric segment)
    match = re.match(r"(\d+(?:\.\d+)*)", version_str)
    if not match:
        return None

    return tuple(int(p) for p in match.group(1).split("."))


def parse_encoder_list(output: str) -> set[str]:
    """Parse ``<binary> -encoders`` output into casefolded encoder names."""
    names = set()
    for line in output.splitlines():
        match = _ENCODER_LINE.match(line)
        # The legend lines (" V..... = Video") match the flag column too
        if match and match.group(1) != "=":
            names.add(match.group(1).casefold())
    return names


def parse_binary_version(output: str) -> str | None:
    """Extract the version from ``<binary> -version`` output."""
    match = re.search(r"version\s+(\S+)", output)
    return match.group(1) if match else None


def detect_tool(
    config: ToolDetectionConfig,
    runner: CommandRunner | None = None,
) -> ToolInfo:
    """Detect one tool on PATH and query its version.

    Args:
        config: Tool-specific detection configuration.
        runner: Command runner; defaults to a subprocess runner.

    Returns:
        ToolInfo with detection results.
    """
    runner = runner or SubprocessRunner()
    info = ToolInfo(name=config.name, detected_at=datetime.now(timezone.utc))

    which_result = shutil.which(config.name)
    if not which_result:
        info.status = ToolStatus.MISSING
        info.status_message = f"{config.name} not found in PATH"
        return info

    info.path = Path(which_result)
    result = runner.run(
        [str(info.path), config.version_flag], timeout=DETECTION_TIMEOUT
    )
    if not result.ok:
        info.status = ToolStatus.ERROR
        info.status_message = (
            f"Failed to get {config.name} version: {result.stderr.strip()}"
        )
        return info

    version_match = re.search(config.version_pattern, result.output, re.MULTILINE)
    if version_match:
        info.version = version_match.group(1)
        info.version_tuple = parse_version_string(info.version)
        if info.version_tuple is None:
            logger.warning(
                "Could not parse %s version '%s' into comparable tuple",
                config.name,
                info.version,
            )

    info.status = ToolStatus.AVAILABLE
    info.status_message = None
    return info


def detect_host_tools(runner: CommandRunner | None = None) -> HostToolRegistry:
    """Detect every host tool and build a registry."""
    runner = runner or SubprocessRunner()
    registry = HostToolRegistry(
        tools={config.name: detect_tool(config, runner) for config in HOST_TOOLS},
        detected_at=datetime.now(timezone.utc),
    )
    for name in registry.get_missing_tools():
        logger.debug("Host tool unavailable: %s", name)
    return registry
