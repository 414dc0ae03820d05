"""Source retrieval for dependencies and the final build."""

from sbo.fetch.archive import fetch_archive
from sbo.fetch.fetcher import FetchAction, FetchResult, fetch_source
from sbo.fetch.git import fetch_git

__all__ = [
    "FetchAction",
    "FetchResult",
    "fetch_archive",
    "fetch_git",
    "fetch_source",
]
