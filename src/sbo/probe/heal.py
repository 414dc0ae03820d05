"""Canonical-path self-healing for misplaced artifacts.

Every write into the install prefix goes through a ``PrefixWriter``. A
prefix owned by root (``use_sudo``) is written with ``sudo mkdir``,
``sudo ln``, ``sudo cp`` and ``sudo install`` run through the command
runner; otherwise this process writes directly.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from sbo.core.subprocess_utils import CommandRunner, SubprocessRunner

if TYPE_CHECKING:
    from sbo.context import BuildContext

logger = logging.getLogger(__name__)

LINK_MODES = ("symlink", "copy")


class PrefixWriter:
    """Creates directories, links and small files under the prefix.

    Failed ``sudo`` commands raise OSError, the same as a failed direct
    write, so callers handle both modes alike.
    """

    def __init__(
        self, *, use_sudo: bool = False, runner: CommandRunner | None = None
    ) -> None:
        self.use_sudo = use_sudo
        self.runner = runner if runner is not None else SubprocessRunner()

    @classmethod
    def for_context(
        cls, context: BuildContext, runner: CommandRunner | None = None
    ) -> PrefixWriter:
        return cls(use_sudo=context.use_sudo, runner=runner)

    def _sudo(self, *args: str | Path) -> None:
        result = self.runner.run(["sudo", *args])
        if not result.ok:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise OSError(f"sudo {args[0]} failed: {detail}")

    def make_dirs(self, path: Path) -> None:
        if self.use_sudo:
            self._sudo("mkdir", "-p", path)
        else:
            path.mkdir(parents=True, exist_ok=True)

    def remove(self, path: Path) -> None:
        if self.use_sudo:
            self._sudo("rm", "-f", path)
        else:
            path.unlink(missing_ok=True)

    def link(self, found: Path, canonical: Path, *, link_mode: str) -> None:
        """Make ``canonical`` a symlink to, or a copy of, ``found``."""
        if self.use_sudo:
            if link_mode == "copy":
                self._sudo("cp", "-p", found, canonical)
            else:
                self._sudo("ln", "-sf", found, canonical)
        elif link_mode == "copy":
            shutil.copy2(found, canonical)
        else:
            canonical.symlink_to(found)

    def write_text(self, target: Path, text: str) -> None:
        if not self.use_sudo:
            target.write_text(text, encoding="utf-8")
            return
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", suffix=target.suffix, delete=False
        ) as staged:
            staged.write(text)
        try:
            self._sudo("install", "-m", "644", staged.name, target)
        finally:
            Path(staged.name).unlink(missing_ok=True)


def _points_to(link: Path, target: Path) -> bool:
    try:
        return link.resolve(strict=True) == target.resolve(strict=True)
    except OSError:
        return False


def ensure_canonical_link(
    found: Path,
    canonical: Path,
    *,
    link_mode: str = "symlink",
    writer: PrefixWriter | None = None,
) -> bool:
    """Make ``canonical`` refer to the artifact at ``found``.

    Idempotent: an existing canonical file, or a link already pointing at
    ``found``, is left alone. A dangling link at ``canonical`` is
    replaced.

    Args:
        found: Where the artifact was actually installed.
        canonical: Where downstream tools look for it.
        link_mode: "symlink" to link, "copy" to copy the file.
        writer: Performs the writes; direct unprivileged writes if None.

    Returns:
        True if a link or copy was created, False if nothing was needed.

    Raises:
        ValueError: If ``link_mode`` is unknown.
        OSError: If the link or copy cannot be created.
    """
    if link_mode not in LINK_MODES:
        raise ValueError(f"link_mode must be one of {LINK_MODES}, got {link_mode!r}")
    writer = writer or PrefixWriter()

    if canonical.exists():
        if canonical.is_symlink() and not _points_to(canonical, found):
            logger.debug("%s links elsewhere; leaving it alone", canonical)
        return False

    if canonical.is_symlink():
        logger.info("Replacing dangling link %s", canonical)
        writer.remove(canonical)

    writer.make_dirs(canonical.parent)
    try:
        writer.link(found, canonical, link_mode=link_mode)
    except FileExistsError:
        # Created concurrently by another process; fine if it resolves.
        if canonical.exists():
            return False
        raise

    logger.info(
        "Created canonical %s %s -> %s",
        "copy" if link_mode == "copy" else "link",
        canonical,
        found,
    )
    return True
