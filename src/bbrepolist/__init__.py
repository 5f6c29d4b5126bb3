"""bbrepolist - Bitbucket workspace repository listing and reporting."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from bbrepolist.bitbucket_client import BitbucketClient, create_client
from bbrepolist.config import RepoListConfig, load_config
from bbrepolist.exceptions import BBRepoListError, BitbucketAPIError, InvalidResponseError
from bbrepolist.models import FilterPattern, RepoLoadProgress, Repository
from bbrepolist.service import RepositoryService

try:
    __version__ = version("bbrepolist")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "BBRepoListError",
    "BitbucketAPIError",
    "BitbucketClient",
    "FilterPattern",
    "InvalidResponseError",
    "RepoListConfig",
    "RepoLoadProgress",
    "Repository",
    "RepositoryService",
    "__version__",
    "create_client",
    "load_config",
]
