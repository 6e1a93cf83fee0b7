"""Aggregation driver: sources -> endpoints -> items -> final ordered set.

Endpoints are processed strictly one after another. A fetch or parse
failure is turned into an :class:`EndpointFailure`, reported, and the run
moves on to the next endpoint; only the caller decides what is fatal.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from cosme_feed.config import WindowSettings
from cosme_feed.exceptions import FeedError
from cosme_feed.fetcher import FeedFetcher
from cosme_feed.logging import endpoint_logging_context
from cosme_feed.models import (
    AggregationResult,
    CanonicalItem,
    Category,
    EndpointFailure,
    EndpointResult,
    EndpointSuccess,
    SourceType,
)
from cosme_feed.normalizer import generate_id, normalize_entry
from cosme_feed.parser import parse_feed
from cosme_feed.urls import google_news_feed_url, normalize_url, youtube_feed_url

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    import httpx

    from cosme_feed.config import FetchSettings
    from cosme_feed.models import Source

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_DEFAULT_QUERY_TEMPLATE = "{brand} 新作 OR 新商品 OR コスメ"

FALLBACK_BRAND = "テスト（feed未取得）"
FALLBACK_TITLE = (
    "【新作】フォールバック表示 — brands.json / Actionsログを確認してください"
)
FALLBACK_SUMMARY = (
    "RSSの取得に失敗した可能性があります。URLやクエリ、権限を確認しましょう。"
)
FALLBACK_URL = "https://example.com/"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


def feed_endpoints(source: Source) -> list[str]:
    """Return the ordered feed URLs to poll for ``source``.

    Explicit RSS URLs come first, then one feed per YouTube channel. When
    both are empty and news search is enabled, a single Google News search
    feed is synthesized from the configured or default query.
    """
    endpoints = [*source.rss, *(youtube_feed_url(cid) for cid in source.youtube)]
    if not endpoints and source.use_google_news_rss:
        query = source.google_query or _DEFAULT_QUERY_TEMPLATE.format(
            brand=source.brand
        )
        endpoints.append(google_news_feed_url(query))
    return endpoints


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


class FeedAggregator:
    """Collect normalized items from every endpoint of every source."""

    def __init__(
        self,
        fetcher: FeedFetcher,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = generate_id,
    ) -> None:
        self._fetcher = fetcher
        self._clock = clock
        self._id_factory = id_factory

    async def fetch_endpoint(self, url: str) -> EndpointResult:
        """Fetch and parse one endpoint, capturing feed errors as values."""
        try:
            body = await self._fetcher.fetch(url)
            return EndpointSuccess(url=url, entries=parse_feed(body))
        except FeedError as exc:
            return EndpointFailure(url=url, error=exc)

    async def run(self, sources: Iterable[Source]) -> AggregationResult:
        """Process all sources sequentially.

        Returns:
            Collected items (unfiltered, in discovery order) together with
            feed success counts and the failures encountered.
        """
        result = AggregationResult()
        for source in sources:
            for url in feed_endpoints(source):
                await self._process_endpoint(source, url, result)
        return result

    async def _process_endpoint(
        self, source: Source, url: str, result: AggregationResult
    ) -> None:
        result.feeds_total += 1
        with endpoint_logging_context(source.brand, url) as log:
            outcome = await self.fetch_endpoint(url)
            if isinstance(outcome, EndpointFailure):
                result.failures.append(outcome)
                log.warning(
                    "feed_error",
                    brand=source.brand,
                    endpoint=url,
                    error=str(outcome.error),
                )
                return

            result.feeds_ok += 1
            now = self._clock()
            kept = 0
            for entry in outcome.entries:
                item = normalize_entry(entry, source, now, self._id_factory)
                if item is None:
                    continue
                result.items.append(item)
                kept += 1
            log.debug("feed_processed", entries=len(outcome.entries), items=kept)


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------


def filter_window(
    items: Iterable[CanonicalItem],
    now: datetime,
    window: WindowSettings | None = None,
) -> list[CanonicalItem]:
    """Keep items published within ``[now - lookback, now + lookahead]``."""
    window = window or WindowSettings()
    earliest = now - timedelta(days=window.lookback_days)
    latest = now + timedelta(days=window.lookahead_days)
    return [item for item in items if earliest <= item.published_at <= latest]


def dedupe_by_url(items: Iterable[CanonicalItem]) -> list[CanonicalItem]:
    """Drop items whose canonical URL was already seen; first one wins."""
    seen: set[str] = set()
    unique: list[CanonicalItem] = []
    for item in items:
        key = normalize_url(item.url)
        if not key or key in seen:
            continue
        seen.add(key)
        if item.url != key:
            item = item.model_copy(update={"url": key})
        unique.append(item)
    return unique


def sort_newest_first(items: Iterable[CanonicalItem]) -> list[CanonicalItem]:
    return sorted(items, key=lambda item: item.published_at, reverse=True)


def fallback_item(
    now: datetime, id_factory: Callable[[], str] = generate_id
) -> CanonicalItem:
    """Diagnostic placeholder published when a run yields no items."""
    return CanonicalItem(
        id=id_factory(),
        brand=FALLBACK_BRAND,
        title=FALLBACK_TITLE,
        summary=FALLBACK_SUMMARY,
        published_at=now,
        category=str(Category.SKINCARE),
        source_type=SourceType.WEBSITE,
        url=FALLBACK_URL,
    )


def finalize(
    items: Sequence[CanonicalItem],
    now: datetime,
    window: WindowSettings | None = None,
    id_factory: Callable[[], str] = generate_id,
) -> list[CanonicalItem]:
    """Filter to the time window, deduplicate, sort, and never return empty."""
    final = sort_newest_first(dedupe_by_url(filter_window(items, now, window)))
    if not final:
        logger.warning("no_items_collected", fallback_url=FALLBACK_URL)
        return [fallback_item(now, id_factory)]
    return final


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def build_items(
    sources: Sequence[Source],
    fetch_settings: FetchSettings | None = None,
    window: WindowSettings | None = None,
    client: httpx.AsyncClient | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> tuple[list[CanonicalItem], AggregationResult]:
    """Run the whole pipeline for ``sources``.

    Args:
        sources: Brand sources to poll.
        fetch_settings: HTTP and retry settings.
        window: Publication window applied to the collected items.
        client: Optional preconfigured HTTP client (used by tests).
        clock: Source of the current time.

    Returns:
        The final ordered items (never empty) and the raw aggregation result.
    """
    async with FeedFetcher(fetch_settings, client=client) as fetcher:
        result = await FeedAggregator(fetcher, clock=clock).run(sources)
    return finalize(result.items, clock(), window), result
