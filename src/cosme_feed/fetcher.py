"""HTTP retrieval of feed documents with bounded linear-backoff retry."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    stop_after_attempt,
    wait_incrementing,
)

from cosme_feed.config import FetchSettings
from cosme_feed.exceptions import FetchError

if TYPE_CHECKING:
    from types import TracebackType

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    logger.debug(
        "fetch_retry",
        url=retry_state.kwargs.get("url", ""),
        attempt=retry_state.attempt_number,
        wait=retry_state.next_action.sleep if retry_state.next_action else 0.0,
        error=str(error),
    )


class FeedFetcher:
    """Fetch feed documents as text.

    Every failure (transport error or non-2xx status) is retried the same
    way, up to ``settings.attempts`` attempts, sleeping
    ``attempt * settings.backoff_seconds`` between attempts. Exhausted
    retries raise :class:`FetchError` chained from the last error.
    """

    def __init__(
        self,
        settings: FetchSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or FetchSettings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self._settings.timeout),
            follow_redirects=True,
            headers={"User-Agent": self._settings.user_agent, "Accept": "*/*"},
        )

    async def __aenter__(self) -> FeedFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, url: str) -> str:
        """Return the body of ``url`` as text.

        Args:
            url: Feed endpoint to retrieve.

        Returns:
            Decoded response body.

        Raises:
            FetchError: If every attempt failed.
        """
        step = self._settings.backoff_seconds
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.attempts),
            wait=wait_incrementing(start=step, increment=step),
            before_sleep=_log_retry,
        )
        try:
            return await retrying(self._get, url=url)
        except RetryError as exc:
            last = exc.last_attempt.exception()
            raise FetchError(f"{url}: {last}") from last

    async def _get(self, url: str) -> str:
        response = await self._client.get(url)
        response.raise_for_status()
        return response.text
