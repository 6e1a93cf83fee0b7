"""URL canonicalization and feed endpoint templates."""

from __future__ import annotations

import re
from urllib.parse import quote, urlsplit, urlunsplit

from cosme_feed.models import SourceType

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_YOUTUBE_FEED_TEMPLATE = "https://www.youtube.com/feeds/videos.xml?channel_id={}"
_GOOGLE_NEWS_TEMPLATE = "https://news.google.com/rss/search?q={}&hl=ja&gl=JP&ceid=JP:ja"

_VIDEO_HOST_RE = re.compile(r"youtube|youtu\.be", re.IGNORECASE)


# ---------------------------------------------------------------------------
# URL normalization
# ---------------------------------------------------------------------------


def normalize_url(url: str) -> str:
    """Normalize a URL for storage and deduplication.

    Applies the following transformations:
    - Remove URL fragment (#section)
    - Strip trailing slashes from the path (but keep "/" for root)

    Anything that does not parse as an absolute URL is returned unchanged.

    Args:
        url: The raw URL to normalize.

    Returns:
        Normalized URL string.
    """
    try:
        parsed = urlsplit(url)
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url

    path = parsed.path
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/") or "/"

    return urlunsplit((parsed.scheme, parsed.netloc, path, parsed.query, ""))


def source_type_for(url: str) -> SourceType:
    """Classify an item URL as a video or a regular web page."""
    if _VIDEO_HOST_RE.search(url):
        return SourceType.YOUTUBE
    return SourceType.WEBSITE


# ---------------------------------------------------------------------------
# Endpoint templates
# ---------------------------------------------------------------------------


def youtube_feed_url(channel_id: str) -> str:
    return _YOUTUBE_FEED_TEMPLATE.format(channel_id)


def google_news_feed_url(query: str) -> str:
    """Build a Google News search feed URL (Japanese locale) for ``query``."""
    return _GOOGLE_NEWS_TEMPLATE.format(quote(query, safe="!'()*"))
