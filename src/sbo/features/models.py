"""Feature flag model produced by the resolver."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FeatureFlag:
    """Resolved state of one feature of the final build.

    A disabled flag contributes nothing to the final configure command;
    its flag fields are kept so reports can show what was dropped.

    Attributes:
        name: Feature name.
        dependency: Providing dependency, or None.
        enabled: Whether the final build gets this feature.
        optional: Whether the providing dependency is optional.
        configure_flags: Flags for the final configure invocation.
        cflags: Extra compiler flags, including resolved -I directories.
        ldflags: Extra linker flags, including resolved -L directories.
        extra_libs: Extra libraries for --extra-libs.
        encoders: Encoders the final binary must report when enabled.
        reason: Why the feature is enabled or disabled.
    """

    name: str
    dependency: str | None
    enabled: bool
    optional: bool
    configure_flags: tuple[str, ...] = ()
    cflags: tuple[str, ...] = ()
    ldflags: tuple[str, ...] = ()
    extra_libs: tuple[str, ...] = ()
    encoders: tuple[str, ...] = ()
    reason: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "dependency": self.dependency,
            "enabled": self.enabled,
            "optional": self.optional,
            "configure_flags": list(self.configure_flags),
            "encoders": list(self.encoders),
            "reason": self.reason,
        }
