"""Heuristics for titles, categories, summaries, and feed dates.

All functions here are pure: they take strings (and a reference time where
needed) and never raise on malformed input.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from cosme_feed.models import Category

# ---------------------------------------------------------------------------
# Title normalization
# ---------------------------------------------------------------------------

_EMPTY_TITLE_SUFFIX = "の最新情報"
_BRAND_SEPARATOR = "："

_WHITESPACE_RE = re.compile(r"\s+")
_PROMO_MARKER_RE = re.compile(r"【?(PR|広告|お知らせ|News)】?", re.IGNORECASE)
_LEADING_TAGS_RE = re.compile(r"^(?:【[^】]*】)*")

# (pattern, tag) pairs, applied in order; every match prepends its tag.
_TITLE_TAGS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"限定|先行|数量", re.IGNORECASE), "【限定】"),
    (re.compile(r"新作|新色|新商品", re.IGNORECASE), "【新作】"),
    (re.compile(r"発売|解禁|公開", re.IGNORECASE), "【発売】"),
]


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_title(brand: str, raw: str | None) -> str:
    """Clean up a feed title and decorate it for display.

    Promotional markers (PR, 広告, お知らせ, News) are removed, a bracket tag
    is prepended for each of the limited / new-product / release patterns
    the title matches, and the brand name is inserted after those tags
    unless the title already names the brand there.

    Args:
        brand: Brand display name.
        raw: Title text as found in the feed, possibly empty.

    Returns:
        The display title, never empty.

    Example::

        >>> normalize_title("ABC", "新作コスメ登場")
        '【新作】ABC：新作コスメ登場'
    """
    if not raw:
        return f"{brand}{_EMPTY_TITLE_SUFFIX}"

    title = _collapse(str(raw))
    title = _PROMO_MARKER_RE.sub("", title).strip()

    for pattern, tag in _TITLE_TAGS:
        if pattern.search(title) and not title.startswith(tag):
            title = f"{tag}{title}"

    tags = _LEADING_TAGS_RE.match(title).group(0)  # type: ignore[union-attr]
    body = title[len(tags) :]
    if not body.startswith(brand):
        body = f"{brand}{_BRAND_SEPARATOR}{body}"
    return f"{tags}{body}"


# ---------------------------------------------------------------------------
# Category classification
# ---------------------------------------------------------------------------

# Looser keyword checks used when neither the hints nor the vocabulary match.
_BROAD_CATEGORY_PATTERNS: list[tuple[re.Pattern[str], Category]] = [
    (re.compile(r"lip|リップ", re.IGNORECASE), Category.LIP),
    (re.compile(r"cheek|チーク", re.IGNORECASE), Category.CHEEK),
    (re.compile(r"skin|スキンケア", re.IGNORECASE), Category.SKINCARE),
    (
        re.compile(r"eye|アイシャドウ|アイライナー|マスカラ", re.IGNORECASE),
        Category.EYE_MAKEUP,
    ),
]


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    try:
        return re.compile(keyword, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(keyword), re.IGNORECASE)


def guess_category(brand_hints: list[str] | None, text: str | None) -> str:
    """Infer the product category of an entry.

    Brand hints are tried first, then the fixed vocabulary, in that order;
    the first keyword found in ``text`` wins. Hints and vocabulary words are
    treated as case-insensitive patterns. When nothing matches, a few broad
    cross-script keyword checks run before defaulting to skincare.

    Args:
        brand_hints: Category keywords configured for the brand.
        text: Text to classify (typically title plus description).

    Returns:
        The matched hint or vocabulary word; always a non-empty string.
    """
    haystack = str(text or "")
    hints = [hint for hint in brand_hints or [] if hint]
    keywords = dict.fromkeys([*hints, *Category])
    for keyword in keywords:
        if _keyword_pattern(keyword).search(haystack):
            return str(keyword)

    for pattern, category in _BROAD_CATEGORY_PATTERNS:
        if pattern.search(haystack):
            return str(category)
    return str(Category.SKINCARE)


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

_EMPTY_SUMMARY = "公式情報の要点をまとめました。"
_FULL_STOP = "。"
_MIN_SENTENCE_INDEX = 20
_MAX_SUMMARY_CHARS = 120


def summarize(text: str | None) -> str:
    """Return the first sentence of ``text``, or its first 120 characters.

    The first sentence is used only when the full stop sits beyond the
    20th character; shorter leads fall back to the character cut.
    """
    if not text:
        return _EMPTY_SUMMARY
    collapsed = _collapse(str(text))
    index = collapsed.find(_FULL_STOP)
    if index > _MIN_SENTENCE_INDEX:
        return collapsed[: index + 1]
    return collapsed[:_MAX_SUMMARY_CHARS] or _EMPTY_SUMMARY


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def parse_feed_date(value: str | None) -> datetime | None:
    """Parse an RFC 822 or ISO-8601 feed date into an aware UTC datetime.

    Naive timestamps are taken to be UTC. Returns ``None`` when the value
    cannot be parsed or falls outside the representable range once
    shifted to UTC.
    """
    if not value:
        return None
    raw = value.strip()
    parsed: datetime | None
    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is None:
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except (OverflowError, ValueError):
        return None


def to_utc(value: str | None, now: datetime) -> datetime:
    """Parse a feed date, substituting ``now`` when it is missing or invalid."""
    return parse_feed_date(value) or now
