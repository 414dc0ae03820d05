"""Shared state handle passed to every build component."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from sbo.config.models import SboConfig

# Prefix-relative directories pkg-config searches for descriptors
PKGCONFIG_SUBDIRS = ("lib/pkgconfig", "lib64/pkgconfig", "share/pkgconfig")


@dataclass(frozen=True)
class BuildContext:
    """The install prefix, source directory and build knobs for one run.

    Every component receives the context explicitly instead of reading a
    global install location, so tests inject a temporary prefix.
    """

    prefix: Path
    source_dir: Path
    jobs: int = 1
    use_sudo: bool = False
    skip_updates: bool = False
    link_mode: str = "symlink"
    base_env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))

    @classmethod
    def from_config(cls, config: SboConfig) -> BuildContext:
        """Create a context from loaded configuration."""
        return cls(
            prefix=config.paths.prefix.expanduser(),
            source_dir=config.paths.source_dir.expanduser(),
            jobs=config.build.jobs,
            use_sudo=config.build.use_sudo,
            skip_updates=config.build.skip_updates,
            link_mode=config.build.link_mode,
        )

    @property
    def pkgconfig_dirs(self) -> tuple[Path, ...]:
        """Descriptor directories under the prefix, in search order."""
        return tuple(self.prefix / sub for sub in PKGCONFIG_SUBDIRS)

    def expand(self, value: str) -> str:
        """Expand ``{prefix}``, ``{jobs}`` and ``{src_dir}`` placeholders.

        Only these names are replaced; other braces (such as the
        ``${libdir}`` pkg-config variables) pass through untouched.
        """
        return (
            value.replace("{prefix}", str(self.prefix))
            .replace("{jobs}", str(self.jobs))
            .replace("{src_dir}", str(self.source_dir))
        )

    def build_env(self) -> dict[str, str]:
        """Environment for build subprocesses.

        Prefix pkg-config directories come before any inherited
        PKG_CONFIG_PATH, and ``<prefix>/bin`` leads PATH.
        """
        env = dict(self.base_env)
        pc_paths = [str(p) for p in self.pkgconfig_dirs]
        inherited = env.get("PKG_CONFIG_PATH")
        if inherited:
            pc_paths.append(inherited)
        env["PKG_CONFIG_PATH"] = os.pathsep.join(pc_paths)

        path_entries = [str(self.prefix / "bin")]
        if env.get("PATH"):
            path_entries.append(env["PATH"])
        env["PATH"] = os.pathsep.join(path_entries)
        return env
