"""Data models for host build tools.

This module defines dataclasses for representing detected tool
information and the aggregated host tool registry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path


class ToolStatus(Enum):
    """Status of an external tool."""

    AVAILABLE = "available"  # Tool found and version detected
    MISSING = "missing"  # Tool not found in PATH
    ERROR = "error"  # Tool found but version query failed


@dataclass
class ToolInfo:
    """Detection result for one host tool."""

    name: str
    path: Path | None = None
    version: str | None = None
    version_tuple: tuple[int, ...] | None = None  # Parsed version for comparison
    status: ToolStatus = ToolStatus.MISSING
    status_message: str | None = None
    detected_at: datetime | None = None

    def is_available(self) -> bool:
        """Return True if the tool is available and usable."""
        return self.status == ToolStatus.AVAILABLE

    def meets_version(self, min_version: tuple[int, ...]) -> bool:
        """Check if tool version meets minimum requirement.

        Args:
            min_version: Minimum version as tuple (e.g., (2, 13) for 2.13).

        Returns:
            True if tool version >= min_version, False otherwise.
        """
        if self.version_tuple is None:
            return False
        # Compare tuple by tuple, padding shorter with zeros
        max_len = max(len(self.version_tuple), len(min_version))
        v1 = self.version_tuple + (0,) * (max_len - len(self.version_tuple))
        v2 = min_version + (0,) * (max_len - len(min_version))
        return v1 >= v2


@dataclass(frozen=True)
class ToolDetectionConfig:
    """How to detect one tool.

    Attributes:
        name: Executable name looked up on PATH.
        version_flag: Flag that prints the version.
        version_pattern: Regex with one group capturing the version.
    """

    name: str
    version_flag: str
    version_pattern: str


@dataclass
class HostToolRegistry:
    """Aggregated detection results for every host tool sbo may invoke."""

    tools: dict[str, ToolInfo] = field(default_factory=dict)
    detected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_tool(self, name: str) -> ToolInfo | None:
        """Get tool info by name, or None for an unknown tool."""
        return self.tools.get(name.casefold())

    def is_available(self, name: str) -> bool:
        tool = self.get_tool(name)
        return tool is not None and tool.is_available()

    def get_missing_tools(self) -> list[str]:
        """Names of detected tools that are not available."""
        return [name for name in self.tools if not self.is_available(name)]

    def summary(self) -> dict[str, dict[str, str | bool]]:
        """Get summary of all tools for display.

        Returns:
            Dict mapping tool name to status info.
        """

        def tool_summary(tool: ToolInfo) -> dict[str, str | bool]:
            return {
                "available": tool.is_available(),
                "version": tool.version or "not found",
                "path": str(tool.path) if tool.path else "not found",
            }

        return {name: tool_summary(tool) for name, tool in self.tools.items()}
