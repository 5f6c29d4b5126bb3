"""Custom exception hierarchy for bbrepolist."""

from __future__ import annotations


class BBRepoListError(Exception):
    """Base exception for bbrepolist."""


class BitbucketAPIError(BBRepoListError):
    """Non-successful response (or unrecoverable network failure) from Bitbucket."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        reason: str | None = None,
        body: str | None = None,
        url: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.url = url


class InvalidResponseError(BBRepoListError):
    """Bitbucket returned a body that does not have the expected shape."""


class ConfigError(BBRepoListError):
    """Error with configuration."""
