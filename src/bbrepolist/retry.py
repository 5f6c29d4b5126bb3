"""Retry policy for transient Bitbucket API failures."""

from __future__ import annotations

import httpx

BASE_DELAY_SECONDS = 0.2
MAX_RETRY_COUNT = 10


def is_retryable_status(status_code: int) -> bool:
    """429 (rate limited) and every 5xx are worth another attempt."""
    return status_code == 429 or status_code >= 500


class RetryPolicy:
    """Linear-backoff retry decisions.

    Stateless: the same instance is shared by every concurrent request.
    """

    def __init__(self, retry_count: int) -> None:
        if not 0 <= retry_count <= MAX_RETRY_COUNT:
            raise ValueError(
                f"retry_count must be between 0 and {MAX_RETRY_COUNT}, got {retry_count}"
            )
        self.retry_count = retry_count

    def try_get_delay(
        self,
        attempt: int,
        status_code: int | None = None,
        exception: BaseException | None = None,
    ) -> tuple[bool, float]:
        """Decide whether retry number *attempt* (1-based) should happen.

        Returns ``(should_retry, delay_seconds)``; the delay is
        ``0.2 * attempt`` when retrying and ``0.0`` otherwise.
        """
        if attempt <= 0 or attempt > self.retry_count:
            return False, 0.0

        if isinstance(exception, httpx.TransportError):
            return True, BASE_DELAY_SECONDS * attempt

        if status_code is not None and is_retryable_status(status_code):
            return True, BASE_DELAY_SECONDS * attempt

        return False, 0.0
