"""Build plan and verification report models."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path

from sbo.errors import VerificationMismatch
from sbo.features.models import FeatureFlag


@dataclass(frozen=True)
class BuildPlan:
    """Fully resolved configure invocation for the final build.

    Attributes:
        features: Every resolved feature, enabled or not, in manifest order.
        configure_args: Arguments passed to ``./configure``.
        target: Name of the final build, used in logs and errors.
        binary: File name of the produced executable.
    """

    features: tuple[FeatureFlag, ...]
    configure_args: tuple[str, ...]
    target: str = "ffmpeg"
    binary: str = "ffmpeg"

    @property
    def enabled(self) -> tuple[FeatureFlag, ...]:
        return tuple(f for f in self.features if f.enabled)

    @property
    def disabled(self) -> tuple[FeatureFlag, ...]:
        return tuple(f for f in self.features if not f.enabled)

    @property
    def flag_string(self) -> str:
        """Shell-quoted configure arguments, ready to paste into a shell."""
        return shlex.join(self.configure_args)

    def to_dict(self) -> dict[str, object]:
        return {
            "target": self.target,
            "configure_args": list(self.configure_args),
            "enabled": [f.name for f in self.enabled],
            "disabled": [f.name for f in self.disabled],
        }


@dataclass(frozen=True)
class VerificationReport:
    """Outcome of checking the produced binary.

    Attributes:
        binary: Path of the checked executable.
        static: True if ldd reports no dynamic dependencies, None if the
            check could not run.
        version: Version reported by the binary, if it ran.
        encoders: Encoder names the binary lists.
        mismatches: Every discrepancy found. Never raised.
    """

    binary: Path
    static: bool | None = None
    version: str | None = None
    encoders: frozenset[str] = frozenset()
    mismatches: tuple[VerificationMismatch, ...] = field(default=(), compare=False)

    @property
    def ok(self) -> bool:
        return not self.mismatches

    def to_dict(self) -> dict[str, object]:
        return {
            "binary": str(self.binary),
            "static": self.static,
            "version": self.version,
            "encoder_count": len(self.encoders),
            "mismatches": [m.to_dict() for m in self.mismatches],
        }
