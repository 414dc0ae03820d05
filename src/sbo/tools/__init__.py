"""Host build tool detection and requirement checks."""

from sbo.tools.detection import (
    HOST_TOOLS,
    detect_host_tools,
    detect_tool,
    parse_binary_version,
    parse_encoder_list,
    parse_version_string,
)
from sbo.tools.models import (
    HostToolRegistry,
    ToolDetectionConfig,
    ToolInfo,
    ToolStatus,
)
from sbo.tools.requirements import (
    RequirementCheckResult,
    RequirementLevel,
    RequirementsReport,
    ToolRequirement,
    check_requirement,
    check_requirements,
    requirements_for,
)

__all__ = [
    "HOST_TOOLS",
    "HostToolRegistry",
    "RequirementCheckResult",
    "RequirementLevel",
    "RequirementsReport",
    "ToolDetectionConfig",
    "ToolInfo",
    "ToolRequirement",
    "ToolStatus",
    "check_requirement",
    "check_requirements",
    "detect_host_tools",
    "detect_tool",
    "parse_binary_version",
    "parse_encoder_list",
    "parse_version_string",
    "requirements_for",
]
