"""Clone-or-update for git sources."""

from __future__ import annotations

import logging
from pathlib import Path

from sbo.core.formatting import tail_lines
from sbo.core.subprocess_utils import CommandResult, CommandRunner
from sbo.errors import FetchError
from sbo.fetch.fetcher import FetchAction, FetchResult
from sbo.logging.context import step_context
from sbo.manifest.models import SourceSpec

logger = logging.getLogger(__name__)

# Network operations may be slow but should not hang forever
GIT_TIMEOUT_SECONDS = 1800


def _check(dependency: str, result: CommandResult, action: str) -> CommandResult:
    if not result.ok:
        tail = tail_lines(result.output)
        if tail:
            logger.error("git %s output:\n%s", action, tail)
        raise FetchError(
            dependency, f"git {action} exited with status {result.returncode}"
        )
    return result


def _head(dependency: str, path: Path, runner: CommandRunner) -> str | None:
    result = runner.run(
        ["git", "rev-parse", "HEAD"], cwd=path, timeout=GIT_TIMEOUT_SECONDS
    )
    if not result.ok:
        # A checkout without commits has no HEAD; not an error by itself.
        logger.debug("%s: could not read HEAD: %s", dependency, result.stderr)
        return None
    return result.stdout.strip() or None


def fetch_git(
    dependency_name: str,
    source: SourceSpec,
    src_dir: Path,
    *,
    runner: CommandRunner,
    skip_updates: bool = False,
) -> FetchResult:
    """Clone a repository, or fast-forward an existing checkout.

    A missing directory is cloned (shallow when ``source.depth`` is set).
    An existing checkout is pulled with ``--ff-only`` and its submodules
    updated, so running this twice leaves the same tree as running it
    once. With ``skip_updates`` an existing checkout is returned as is.

    Raises:
        FetchError: If a git command fails or the directory exists but is
            not a git checkout.
    """
    dest = src_dir / source.directory

    with step_context(dependency_name, "fetch"):
        if not dest.exists():
            args: list[str] = ["git", "clone"]
            if source.depth is not None:
                args += ["--depth", str(source.depth)]
            args += [source.url, str(dest)]
            logger.info("Cloning %s", source.url)
            _check(
                dependency_name,
                runner.run(args, cwd=src_dir, timeout=GIT_TIMEOUT_SECONDS),
                "clone",
            )
            return FetchResult(
                path=dest,
                action=FetchAction.CLONED,
                revision_after=_head(dependency_name, dest, runner),
            )

        if not (dest / ".git").exists():
            raise FetchError(
                dependency_name, f"{dest} exists but is not a git checkout"
            )

        if skip_updates:
            logger.info("Skipping update of existing checkout %s", dest)
            return FetchResult(path=dest, action=FetchAction.SKIPPED)

        before = _head(dependency_name, dest, runner)
        logger.info("Updating existing checkout %s", dest)
        _check(
            dependency_name,
            runner.run(
                ["git", "pull", "--ff-only", "--quiet"],
                cwd=dest,
                timeout=GIT_TIMEOUT_SECONDS,
            ),
            "pull",
        )
        _check(
            dependency_name,
            runner.run(
                ["git", "submodule", "update", "--init", "--recursive", "--quiet"],
                cwd=dest,
                timeout=GIT_TIMEOUT_SECONDS,
            ),
            "submodule update",
        )
        after = _head(dependency_name, dest, runner)
        if before is not None and before == after:
            logger.debug("%s already up to date at %s", dependency_name, after)

        return FetchResult(
            path=dest,
            action=FetchAction.UPDATED,
            revision_before=before,
            revision_after=after,
        )
