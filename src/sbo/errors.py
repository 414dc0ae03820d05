"""Exception types for build orchestration.

Errors fall into two families:

- Fatal errors (``SboError`` subclasses) stop the run immediately.
- Warnings (``BuildWarning`` subclasses) degrade the build but never stop
  it. They are collected into the run report instead of being raised.
"""

from __future__ import annotations

from pathlib import Path


class SboError(Exception):
    """Base exception for fatal orchestration errors.

    All fatal errors inherit from this class, allowing callers to catch
    every run-stopping condition with a single except clause.
    """


class ConfigError(SboError):
    """Raised when configuration values are invalid."""


class ManifestError(SboError):
    """Raised when a dependency manifest cannot be loaded or validated.

    Attributes:
        field: Dotted path of the offending field, if known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


class FetchError(SboError):
    """Raised when a dependency's sources cannot be retrieved.

    Attributes:
        dependency: Name of the dependency being fetched.
        reason: Human-readable failure description.
    """

    def __init__(self, dependency: str, reason: str) -> None:
        self.dependency = dependency
        self.reason = reason
        super().__init__(f"Failed to fetch {dependency}: {reason}")


class BuildStepError(SboError):
    """Raised when a configure, compile or install step exits non-zero.

    Attributes:
        dependency: Name of the dependency being built.
        step: Step name ("configure", "compile", "install", "strip").
        returncode: Exit status of the failed command.
        output_tail: Last lines of combined command output.
    """

    def __init__(
        self,
        dependency: str,
        step: str,
        returncode: int,
        output_tail: str = "",
    ) -> None:
        self.dependency = dependency
        self.step = step
        self.returncode = returncode
        self.output_tail = output_tail
        super().__init__(
            f"{dependency}: {step} step failed with exit code {returncode}"
        )


class BuildWarning(Exception):
    """Base class for non-fatal conditions accumulated during a run."""

    kind = "warning"

    def __init__(self, subject: str, message: str) -> None:
        self.subject = subject
        self.message = message
        super().__init__(f"{subject}: {message}")

    def to_dict(self) -> dict[str, str]:
        """Serialize for JSON reports."""
        return {"kind": self.kind, "subject": self.subject, "message": self.message}


class ArtifactMissing(BuildWarning):
    """An artifact could not be located, even after the fallback search."""

    kind = "artifact_missing"

    def __init__(self, dependency: str, artifact: str, searched: int) -> None:
        self.artifact = artifact
        self.searched = searched
        super().__init__(
            dependency,
            f"{artifact} not found ({searched} candidate locations checked)",
        )


class OptionalDependencyFailed(BuildWarning):
    """An optional dependency failed to fetch or build."""

    kind = "optional_dependency_failed"


class SelfHealFailed(BuildWarning):
    """A canonical link or pkg-config descriptor could not be written."""

    kind = "self_heal_failed"

    def __init__(self, dependency: str, target: Path, reason: str) -> None:
        self.target = target
        super().__init__(dependency, f"could not write {target}: {reason}")


class VerificationMismatch(BuildWarning):
    """The final binary does not reflect what the build plan enabled."""

    kind = "verification_mismatch"
