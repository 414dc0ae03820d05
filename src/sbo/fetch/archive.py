"""Download-and-extract for archive sources."""

from __future__ import annotations

import hashlib
import logging
import tarfile
from pathlib import Path
from urllib.parse import urlsplit

import httpx

from sbo.core.formatting import format_file_size
from sbo.errors import FetchError
from sbo.fetch.fetcher import FetchAction, FetchResult
from sbo.logging.context import step_context
from sbo.manifest.models import SourceSpec

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT_SECONDS = 300.0
CHUNK_SIZE = 64 * 1024


def _archive_name(url: str) -> str:
    name = Path(urlsplit(url).path).name
    return name or "download.tar"


def _download(client: httpx.Client, url: str, dest: Path) -> str:
    """Stream ``url`` into ``dest`` and return its SHA-256 hex digest.

    The body is written to a ``.part`` file first and renamed when
    complete, so an interrupted download never looks finished.
    """
    partial = dest.with_name(dest.name + ".part")
    digest = hashlib.sha256()
    size = 0
    try:
        with client.stream("GET", url, follow_redirects=True) as response:
            response.raise_for_status()
            with partial.open("wb") as fh:
                for chunk in response.iter_bytes(CHUNK_SIZE):
                    fh.write(chunk)
                    digest.update(chunk)
                    size += len(chunk)
        partial.replace(dest)
    finally:
        partial.unlink(missing_ok=True)

    logger.info("Downloaded %s (%s)", dest.name, format_file_size(size))
    return digest.hexdigest()


def _extract(archive: Path, src_dir: Path) -> None:
    with tarfile.open(archive, "r:*") as tar:
        tar.extractall(src_dir, filter="data")


def fetch_archive(
    dependency_name: str,
    source: SourceSpec,
    src_dir: Path,
    *,
    client: httpx.Client | None = None,
) -> FetchResult:
    """Download and unpack a source archive unless already extracted.

    Args:
        dependency_name: Name used in errors and log lines.
        source: Archive source; ``directory`` is the top-level directory
            the archive extracts to.
        src_dir: Working directory holding every source tree.
        client: HTTP client to use. A short-lived client is created when
            omitted.

    Returns:
        FetchResult with action PRESENT when the tree already existed,
        DOWNLOADED otherwise.

    Raises:
        FetchError: On HTTP errors, checksum mismatch, an unreadable
            archive, or an archive that does not produce ``directory``.
    """
    dest = src_dir / source.directory
    if dest.is_dir():
        logger.debug("%s already extracted at %s", dependency_name, dest)
        return FetchResult(path=dest, action=FetchAction.PRESENT)

    archive_path = src_dir / _archive_name(source.url)
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=DOWNLOAD_TIMEOUT_SECONDS)

    with step_context(dependency_name, "fetch"):
        try:
            logger.info("Downloading %s", source.url)
            checksum = _download(client, source.url, archive_path)
        except httpx.TimeoutException as e:
            raise FetchError(dependency_name, f"download timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(
                dependency_name,
                f"HTTP {e.response.status_code} for {source.url}",
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(dependency_name, f"download failed: {e}") from e
        except OSError as e:
            raise FetchError(dependency_name, f"cannot write archive: {e}") from e
        finally:
            if owns_client:
                client.close()

        if source.sha256 is not None and checksum != source.sha256:
            archive_path.unlink(missing_ok=True)
            raise FetchError(
                dependency_name,
                f"checksum mismatch for {archive_path.name}: "
                f"expected {source.sha256}, got {checksum}",
            )

        try:
            _extract(archive_path, src_dir)
        except (tarfile.TarError, OSError) as e:
            raise FetchError(
                dependency_name, f"cannot extract {archive_path.name}: {e}"
            ) from e

        if not dest.is_dir():
            raise FetchError(
                dependency_name,
                f"{archive_path.name} did not produce directory {source.directory}",
            )

    return FetchResult(path=dest, action=FetchAction.DOWNLOADED)
