"""Bitbucket API client: repository listing, self-check and PR counts."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from urllib.parse import quote

from bbrepolist.config import BitbucketConfig
from bbrepolist.exceptions import InvalidResponseError
from bbrepolist.models import AuthenticatedUser, RepoPage, Repository
from bbrepolist.payloads import PullRequestSummaryPayload, RepoPagePayload, UserPayload
from bbrepolist.transport import BitbucketTransport

logger = logging.getLogger(__name__)


class BitbucketClient:
    """Domain-level Bitbucket operations built on :class:`BitbucketTransport`."""

    def __init__(self, transport: BitbucketTransport, config: BitbucketConfig) -> None:
        self._transport = transport
        self._config = config

    async def __aenter__(self) -> BitbucketClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._transport.aclose()

    def first_page_url(self) -> str:
        workspace = quote(self._config.workspace, safe="")
        return f"repositories/{workspace}?pagelen={self._config.page_len}"

    async def get_repositories_page(self, url: str) -> RepoPage:
        """Fetch a single repository page; a ``null`` body is an empty last page."""
        payload = await self._transport.get(url, RepoPagePayload)
        if payload is None:
            return RepoPage(values=[], next=None)
        return payload.to_domain()

    async def iter_repositories(self) -> AsyncIterator[Repository]:
        """Yield every repository in the workspace, following ``next`` cursors.

        The sequence is lazy and single-pass: pages are fetched one at a time
        as the consumer advances, and a fresh call starts over from page one.
        """
        url: str | None = self.first_page_url()
        pages = 0

        while url is not None:
            page = await self.get_repositories_page(url)
            pages += 1
            logger.debug(
                "Fetched repository page %d (%d items, next=%s)",
                pages, len(page.values), page.next,
            )

            for repository in page.values:
                # Yield to the loop so a pending cancellation lands before each item.
                await asyncio.sleep(0)
                yield repository

            url = page.next

    async def auth_self_check(self) -> AuthenticatedUser:
        """Return the account behind the configured credentials.

        Raises:
            InvalidResponseError: If Bitbucket answers with a ``null`` body.
        """
        payload = await self._transport.get("user", UserPayload)
        if payload is None:
            raise InvalidResponseError("Bitbucket user response is empty.")
        return payload.to_domain()

    async def populate_open_pull_request_count(self, repository: Repository) -> Repository:
        """Return *repository* with its open pull request count filled in.

        Repositories without a slug, and responses without a ``size``, are
        returned unchanged so the count stays unknown rather than zero.
        """
        if repository.slug is None:
            logger.debug("Repository %s has no slug; skipping PR count", repository.name)
            return repository

        workspace = quote(self._config.workspace, safe="")
        slug = quote(repository.slug, safe="")
        url = (
            f"repositories/{workspace}/{slug}/pullrequests"
            "?state=OPEN&pagelen=1&fields=size"
        )
        payload = await self._transport.get(url, PullRequestSummaryPayload)
        if payload is None or payload.size is None:
            return repository
        return repository.with_open_pull_requests_count(payload.size)


def create_client(config: BitbucketConfig) -> BitbucketClient:
    """Wire a client and its transport from configuration."""
    return BitbucketClient(BitbucketTransport(config), config)
