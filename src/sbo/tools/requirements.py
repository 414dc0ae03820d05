"""Host tool requirements for a build.

This module defines which host tools a manifest needs and checks a
detected registry against them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from sbo.manifest.models import BuildSystem, Manifest
from sbo.tools.models import HostToolRegistry


class RequirementLevel(Enum):
    """Severity level of a requirement."""

    REQUIRED = "required"  # Build cannot run without this
    RECOMMENDED = "recommended"  # Build runs but a step is skipped or degraded
    OPTIONAL = "optional"  # Informational


@dataclass
class ToolRequirement:
    """A single tool requirement specification."""

    tool_name: str
    purpose: str
    level: RequirementLevel = RequirementLevel.REQUIRED
    min_version: tuple[int, ...] | None = None  # None means any version
    install_hint: str | None = None


@dataclass
class RequirementCheckResult:
    """Result of checking a single requirement."""

    requirement: ToolRequirement
    satisfied: bool
    current_version: str | None = None
    message: str = ""


@dataclass
class RequirementsReport:
    """Full report of all requirement checks."""

    results: list[RequirementCheckResult] = field(default_factory=list)

    @property
    def all_satisfied(self) -> bool:
        return all(r.satisfied for r in self.results)

    @property
    def required_satisfied(self) -> bool:
        """Check if all REQUIRED requirements are satisfied."""
        return all(
            r.satisfied
            for r in self.results
            if r.requirement.level == RequirementLevel.REQUIRED
        )

    def get_unsatisfied(
        self, level: RequirementLevel | None = None
    ) -> list[RequirementCheckResult]:
        """Get unsatisfied requirements, optionally filtered by level."""
        results = [r for r in self.results if not r.satisfied]
        if level:
            results = [r for r in results if r.requirement.level == level]
        return results

    def get_messages(self, level: RequirementLevel | None = None) -> list[str]:
        """Get messages for unsatisfied requirements."""
        return [r.message for r in self.get_unsatisfied(level) if r.message]


BASE_REQUIREMENTS = [
    ToolRequirement(
        tool_name="git",
        purpose="cloning and updating git sources",
        install_hint="Install git from your distribution's packages",
    ),
    ToolRequirement(
        tool_name="make",
        purpose="compiling and installing every dependency",
        install_hint="Install build-essential (or your distribution's equivalent)",
    ),
    ToolRequirement(
        tool_name="pkg-config",
        purpose="locating dependencies during the final configure",
        install_hint="Install pkg-config",
    ),
    ToolRequirement(
        tool_name="nasm",
        purpose="assembling optimized codec routines",
        min_version=(2, 13),
        install_hint="Install nasm 2.13 or newer",
    ),
    ToolRequirement(
        tool_name="strip",
        purpose="stripping the final binary",
        level=RequirementLevel.RECOMMENDED,
        install_hint="Install binutils",
    ),
    ToolRequirement(
        tool_name="ldd",
        purpose="verifying the final binary is static",
        level=RequirementLevel.RECOMMENDED,
        install_hint="Install libc-bin (glibc utilities)",
    ),
    ToolRequirement(
        tool_name="yasm",
        purpose="assembler fallback for older codec releases",
        level=RequirementLevel.OPTIONAL,
    ),
    ToolRequirement(
        tool_name="nvidia-smi",
        purpose="NVENC encoders need the NVIDIA driver at runtime",
        level=RequirementLevel.OPTIONAL,
        install_hint="Install the NVIDIA driver on machines that will run NVENC",
    ),
]

CMAKE_REQUIREMENT = ToolRequirement(
    tool_name="cmake",
    purpose="configuring CMake-based dependencies",
    install_hint="Install cmake",
)


def requirements_for(manifest: Manifest | None = None) -> list[ToolRequirement]:
    """Requirements for building ``manifest``.

    cmake is only required when some dependency is built with it. Without
    a manifest it is listed as required.
    """
    requirements = list(BASE_REQUIREMENTS)
    if manifest is None or manifest.uses_build_system(BuildSystem.CMAKE):
        requirements.insert(2, CMAKE_REQUIREMENT)
    return requirements


def check_requirement(
    registry: HostToolRegistry, requirement: ToolRequirement
) -> RequirementCheckResult:
    """Check if a single requirement is satisfied.

    Args:
        registry: Registry with detected tools.
        requirement: Requirement to check.

    Returns:
        RequirementCheckResult with status and message.
    """
    tool = registry.get_tool(requirement.tool_name)

    if tool is None or not tool.is_available():
        return RequirementCheckResult(
            requirement=requirement,
            satisfied=False,
            current_version=None,
            message=(
                f"{requirement.tool_name} not found ({requirement.purpose}). "
                f"{requirement.install_hint or ''}"
            ).strip(),
        )

    if requirement.min_version and not tool.meets_version(requirement.min_version):
        min_ver_str = ".".join(str(v) for v in requirement.min_version)
        return RequirementCheckResult(
            requirement=requirement,
            satisfied=False,
            current_version=tool.version,
            message=(
                f"{requirement.tool_name} version {tool.version} < required "
                f"{min_ver_str}. {requirement.install_hint or ''}"
            ).strip(),
        )

    return RequirementCheckResult(
        requirement=requirement,
        satisfied=True,
        current_version=tool.version,
    )


def check_requirements(
    registry: HostToolRegistry,
    manifest: Manifest | None = None,
    requirements: list[ToolRequirement] | None = None,
) -> RequirementsReport:
    """Check requirements against the tool registry.

    Args:
        registry: Registry with detected tools.
        manifest: Manifest used to derive requirements when
            ``requirements`` is not given.
        requirements: Explicit requirements to check.

    Returns:
        RequirementsReport with all check results.
    """
    if requirements is None:
        requirements = requirements_for(manifest)
    return RequirementsReport(
        results=[check_requirement(registry, req) for req in requirements]
    )
