"""Shared test fixtures for bbrepolist tests."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from bbrepolist.config import BitbucketConfig
from bbrepolist.models import Repository


@pytest.fixture
def bitbucket_config() -> BitbucketConfig:
    return BitbucketConfig(
        base_url="https://api.bitbucket.org/2.0",
        workspace="acme",
        auth_email="dev@acme.test",
        auth_api_token="secret-token",
        page_len=2,
        retry_count=2,
        load_open_pull_requests_statistics=False,
        open_pull_requests_load_threshold=2,
    )


@pytest.fixture
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Replace backoff sleeps so retry tests run instantly."""
    sleep = AsyncMock()
    monkeypatch.setattr("bbrepolist.transport.asyncio.sleep", sleep)
    return sleep


@pytest.fixture
def sample_repository() -> Repository:
    return Repository(
        name="payments-api",
        slug="payments-api",
        created_on=datetime(2021, 3, 1, 10, 0, tzinfo=UTC),
        last_updated_on=datetime(2024, 5, 20, 8, 30, tzinfo=UTC),
    )


@pytest.fixture
def sample_repositories() -> list[Repository]:
    return [
        Repository(name="Repo-1", slug="repo-1"),
        Repository(name="App-One", slug="app-one"),
        Repository(name="app-two", slug="app-two"),
        Repository(name="Other", slug="other"),
    ]
