"""Fetch dispatch and result types.

``fetch_source`` is the single entry point the orchestrator uses. It
picks the git or archive strategy from the ``SourceSpec`` and returns a
``FetchResult`` describing what was done to the working tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from sbo.errors import FetchError
from sbo.manifest.models import SourceKind, SourceSpec

if TYPE_CHECKING:
    import httpx

    from sbo.core.subprocess_utils import CommandRunner

logger = logging.getLogger(__name__)


class FetchAction(Enum):
    """What a fetch did to the source directory."""

    CLONED = "cloned"
    UPDATED = "updated"
    SKIPPED = "skipped"
    PRESENT = "present"
    DOWNLOADED = "downloaded"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of fetching one source tree.

    Attributes:
        path: Directory holding the source tree.
        action: What was done to obtain it.
        revision_before: Git HEAD before the update, if known.
        revision_after: Git HEAD after the fetch, if known.
    """

    path: Path
    action: FetchAction
    revision_before: str | None = None
    revision_after: str | None = None

    @property
    def changed(self) -> bool:
        """Return True if the tree's contents may differ from before."""
        if self.action in (FetchAction.CLONED, FetchAction.DOWNLOADED):
            return True
        if self.action is FetchAction.UPDATED:
            return self.revision_before != self.revision_after
        return False


def fetch_source(
    dependency_name: str,
    source: SourceSpec,
    src_dir: Path,
    *,
    runner: CommandRunner,
    skip_updates: bool = False,
    http_client: httpx.Client | None = None,
) -> FetchResult:
    """Obtain the source tree for a dependency.

    Args:
        dependency_name: Name used in errors and log lines.
        source: Where the sources come from.
        src_dir: Working directory that holds every source tree.
        runner: Command runner for git invocations.
        skip_updates: Leave existing git checkouts untouched.
        http_client: Optional client for archive downloads.

    Returns:
        FetchResult for the tree at ``src_dir / source.directory``.

    Raises:
        FetchError: If the sources cannot be retrieved.
    """
    from sbo.fetch.archive import fetch_archive
    from sbo.fetch.git import fetch_git

    try:
        src_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FetchError(dependency_name, f"cannot create {src_dir}: {e}") from e

    if source.kind is SourceKind.GIT:
        result = fetch_git(
            dependency_name,
            source,
            src_dir,
            runner=runner,
            skip_updates=skip_updates,
        )
    else:
        result = fetch_archive(
            dependency_name,
            source,
            src_dir,
            client=http_client,
        )

    logger.info(
        "Fetched %s: %s",
        dependency_name,
        result.action.value,
        extra={"source_path": str(result.path), "action": result.action.value},
    )
    return result
