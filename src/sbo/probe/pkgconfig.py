"""pkg-config descriptor synthesis and discovery."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from sbo.context import PKGCONFIG_SUBDIRS
from sbo.manifest.models import PkgConfigSpec
from sbo.probe.heal import PrefixWriter

if TYPE_CHECKING:
    from sbo.core.subprocess_utils import CommandRunner

logger = logging.getLogger(__name__)

# Directories checked for an existing descriptor before writing one
DESCRIPTOR_DIRS = ("lib/pkgconfig", "lib64/pkgconfig")


def render_pkgconfig(
    spec: PkgConfigSpec,
    prefix: Path,
    *,
    libdir: Path | None = None,
    includedir: Path | None = None,
) -> str:
    """Render a minimal ``.pc`` descriptor.

    ``libdir`` and ``includedir`` default to the prefix's ``lib`` and
    ``include`` directories and are written relative to ``${prefix}``
    when they live under it.
    """

    def _rel(path: Path | None, default: str, var: str) -> str:
        if path is None:
            return f"{var}/{default}"
        try:
            return f"{var}/{path.relative_to(prefix).as_posix()}"
        except ValueError:
            return str(path)

    lines = [
        f"prefix={prefix}",
        "exec_prefix=${prefix}",
        f"libdir={_rel(libdir, 'lib', '${exec_prefix}')}",
        f"includedir={_rel(includedir, 'include', '${prefix}')}",
        "",
        f"Name: {spec.name}",
        f"Description: {spec.description or spec.name}",
        f"Version: {spec.version}",
        f"Libs: {spec.libs}",
    ]
    if spec.libs_private:
        lines.append(f"Libs.private: {spec.libs_private}")
    lines.append(f"Cflags: {spec.cflags}")
    return "\n".join(lines) + "\n"


def descriptor_target(name: str, prefix: Path) -> Path:
    """Where a synthesized descriptor for ``name`` is written."""
    return prefix / "lib" / "pkgconfig" / f"{name}.pc"


def existing_descriptor(name: str, prefix: Path) -> Path | None:
    """Return the descriptor for ``name`` under lib/ or lib64/, if any."""
    for sub in DESCRIPTOR_DIRS:
        candidate = prefix / sub / f"{name}.pc"
        if candidate.exists():
            return candidate
    return None


def synthesize_pkgconfig(
    spec: PkgConfigSpec,
    prefix: Path,
    *,
    libdir: Path | None = None,
    includedir: Path | None = None,
    writer: PrefixWriter | None = None,
) -> Path | None:
    """Write ``<prefix>/lib/pkgconfig/<name>.pc`` unless one exists.

    An existing descriptor in ``lib/pkgconfig`` or ``lib64/pkgconfig`` is
    never overwritten. ``writer`` decides whether the file is written
    directly or installed through sudo.

    Returns:
        Path of the written descriptor, or None if one already existed.

    Raises:
        OSError: If the descriptor cannot be written.
    """
    existing = existing_descriptor(spec.name, prefix)
    if existing is not None:
        logger.debug("pkg-config descriptor already present: %s", existing)
        return None

    writer = writer or PrefixWriter()
    target = descriptor_target(spec.name, prefix)
    writer.make_dirs(target.parent)
    writer.write_text(
        target, render_pkgconfig(spec, prefix, libdir=libdir, includedir=includedir)
    )
    logger.info("Synthesized pkg-config descriptor %s", target)
    return target


def is_pkgconfig_discoverable(
    name: str,
    prefix: Path,
    *,
    runner: CommandRunner | None = None,
    env: dict[str, str] | None = None,
) -> bool:
    """Report whether pkg-config would find ``name`` in the prefix.

    Without a runner this is a file check over the prefix's pkg-config
    directories. With a runner, ``pkg-config --exists`` is consulted;
    if pkg-config is not installed the file check decides.
    """
    on_disk = any((prefix / sub / f"{name}.pc").exists() for sub in PKGCONFIG_SUBDIRS)
    if runner is None:
        return on_disk

    result = runner.run(["pkg-config", "--exists", name], env=env)
    if result.returncode == 127:
        logger.debug("pkg-config not available; using file check for %s", name)
        return on_disk
    return result.ok
