"""Repository loading: streaming, filtering and open-PR enrichment."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Protocol

from bbrepolist.config import BitbucketConfig
from bbrepolist.models import FilterPattern, RepoLoadProgress, Repository

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[RepoLoadProgress], None]


class RepositorySource(Protocol):
    """What :class:`RepositoryService` needs from the API client."""

    def iter_repositories(self) -> AsyncIterator[Repository]: ...

    async def populate_open_pull_request_count(
        self, repository: Repository
    ) -> Repository: ...


class RepositoryService:
    """Loads a workspace's repositories with optional name filtering.

    When open pull request statistics are enabled, matched repositories are
    enriched concurrently by at most ``open_pull_requests_load_threshold``
    workers, and the result keeps the order in which repositories arrived.
    """

    def __init__(self, api: RepositorySource, config: BitbucketConfig) -> None:
        self._api = api
        self._load_open_pull_requests_statistics = config.load_open_pull_requests_statistics
        self._open_pull_requests_load_threshold = config.open_pull_requests_load_threshold

    async def get_repositories(
        self,
        filter_pattern: FilterPattern,
        progress: ProgressCallback | None = None,
    ) -> list[Repository]:
        """Stream, filter and (optionally) enrich the workspace repositories.

        *progress*, when given, receives a :class:`RepoLoadProgress` after
        every streamed repository and after every enriched one. Errors from
        the API client propagate unchanged and abort the remaining work.
        """
        matched_repositories: list[Repository] = []
        seen = 0
        matched = 0

        async for repository in self._api.iter_repositories():
            seen += 1
            if filter_pattern.matches(repository):
                matched += 1
                matched_repositories.append(repository)

            if progress is not None:
                progress(RepoLoadProgress(seen=seen, matched=matched))

        logger.info("Loaded repositories: seen=%d, matched=%d", seen, matched)

        if not self._load_open_pull_requests_statistics or not matched_repositories:
            return matched_repositories

        return await self._enrich(matched_repositories, seen, matched, progress)

    async def _enrich(
        self,
        repositories: list[Repository],
        seen: int,
        matched: int,
        progress: ProgressCallback | None,
    ) -> list[Repository]:
        total = len(repositories)
        enriched: list[Repository | None] = [None] * total
        loaded = 0

        def report() -> None:
            if progress is not None:
                progress(RepoLoadProgress(
                    seen=seen,
                    matched=matched,
                    is_loading_pull_request_statistics=True,
                    pull_request_statistics_loaded=loaded,
                    pull_request_statistics_total=total,
                ))

        report()

        # Workers share one index iterator, so each slot is claimed exactly once.
        pending = iter(range(total))

        async def worker() -> None:
            nonlocal loaded
            for index in pending:
                enriched[index] = await self._api.populate_open_pull_request_count(
                    repositories[index]
                )
                loaded += 1
                report()

        worker_count = min(self._open_pull_requests_load_threshold, total)
        logger.info(
            "Loading open pull request counts for %d repositories (%d workers)",
            total, worker_count,
        )
        workers = [asyncio.create_task(worker()) for _ in range(worker_count)]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for task in workers:
                task.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        return [repository for repository in enriched if repository is not None]
