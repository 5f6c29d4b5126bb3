"""Authenticated HTTP transport for the Bitbucket REST API."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from bbrepolist.config import BitbucketConfig
from bbrepolist.exceptions import BitbucketAPIError, InvalidResponseError
from bbrepolist.retry import RetryPolicy

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def build_auth_header(auth_email: str, auth_api_token: str) -> str:
    """Build the ``Authorization`` value for Basic auth with an API token."""
    if auth_email is None or auth_api_token is None:
        raise ValueError("auth_email and auth_api_token are required")
    raw = f"{auth_email}:{auth_api_token}".encode()
    return f"Basic {base64.b64encode(raw).decode('ascii')}"


def _with_trailing_slash(url: str) -> str:
    return url.rstrip("/") + "/"


class BitbucketTransport:
    """Issues authenticated GETs and retries transient failures."""

    def __init__(
        self,
        config: BitbucketConfig,
        retry_policy: RetryPolicy | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._retry_policy = (
            retry_policy if retry_policy is not None else RetryPolicy(config.retry_count)
        )
        self._client = client if client is not None else httpx.AsyncClient(
            base_url=_with_trailing_slash(config.base_url),
            headers={
                "Authorization": build_auth_header(
                    config.auth_email, config.auth_api_token
                ),
                "Accept": "application/json",
            },
            timeout=30.0,
        )

    async def __aenter__(self) -> BitbucketTransport:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, model: type[ModelT]) -> ModelT | None:
        """GET *url* and validate the JSON body into *model*.

        Relative URLs resolve against the configured base URL; absolute URLs
        (pagination cursors) are requested as-is.

        Returns:
            The validated body, or ``None`` when the body is JSON ``null``.

        Raises:
            BitbucketAPIError: On a non-retryable status or request error,
                or once retries of a transient failure are exhausted.
            InvalidResponseError: If a successful body cannot be decoded
                or does not match *model*.
        """
        attempt = 0

        while True:
            try:
                response = await self._client.get(url)
            except httpx.TransportError as exc:
                should_retry, delay = self._retry_policy.try_get_delay(
                    attempt + 1, exception=exc
                )
                if not should_retry:
                    raise BitbucketAPIError(
                        f"Bitbucket API request failed: {exc}. Url={url}",
                        url=url,
                    ) from exc
                attempt += 1
                logger.warning(
                    "Request to %s failed (%s); retry %d in %.1fs",
                    url, exc, attempt, delay,
                )
                await asyncio.sleep(delay)
                continue
            except httpx.DecodingError as exc:
                raise InvalidResponseError(
                    f"Response from {url} could not be decoded: {exc}"
                ) from exc
            except httpx.HTTPError as exc:
                raise BitbucketAPIError(
                    f"Bitbucket API request failed: {exc}. Url={url}",
                    url=url,
                ) from exc

            if response.is_success:
                return self._deserialize(response, model)

            should_retry, delay = self._retry_policy.try_get_delay(
                attempt + 1, status_code=response.status_code
            )
            if should_retry:
                attempt += 1
                logger.warning(
                    "Bitbucket returned %d for %s; retry %d in %.1fs",
                    response.status_code, url, attempt, delay,
                )
                await asyncio.sleep(delay)
                continue

            raise BitbucketAPIError(
                f"Bitbucket API error {response.status_code} {response.reason_phrase}. "
                f"Url={response.url}. Body={response.text}",
                status_code=response.status_code,
                reason=response.reason_phrase,
                body=response.text,
                url=str(response.url),
            )

    @staticmethod
    def _deserialize(response: httpx.Response, model: type[ModelT]) -> ModelT | None:
        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidResponseError(
                f"Response from {response.url} is not valid JSON"
            ) from exc

        if data is None:
            return None

        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise InvalidResponseError(
                f"Response from {response.url} does not match {model.__name__}: {exc}"
            ) from exc
