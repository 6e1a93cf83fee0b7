"""Conversion of raw feed entries into published campaign items."""

from __future__ import annotations

import random
import time
import uuid
from typing import TYPE_CHECKING

from cosme_feed.models import CanonicalItem
from cosme_feed.parser import extract_link
from cosme_feed.text import guess_category, normalize_title, summarize, to_utc
from cosme_feed.urls import normalize_url, source_type_for

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from cosme_feed.models import RawEntry, Source


def generate_id() -> str:
    """Return a unique item identifier.

    Uses a random UUID4; if the OS randomness source is unavailable, falls
    back to a time-seeded best-effort token. Identifiers are never used for
    deduplication.
    """
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        return f"{random.getrandbits(64):x}{time.time_ns():x}"


def normalize_entry(
    entry: RawEntry,
    source: Source,
    now: datetime,
    id_factory: Callable[[], str] = generate_id,
) -> CanonicalItem | None:
    """Build a :class:`CanonicalItem` from a raw entry.

    Args:
        entry: Parsed feed entry.
        source: Brand the feed belongs to.
        now: Fallback publication time for entries with unusable dates.
        id_factory: Identifier generator.

    Returns:
        The normalized item, or ``None`` when the entry has no usable link.
    """
    link = extract_link(entry)
    if not link:
        return None

    url = normalize_url(link)
    return CanonicalItem(
        id=id_factory(),
        brand=source.brand,
        title=normalize_title(source.brand, entry.title),
        summary=summarize(entry.description or entry.title),
        published_at=to_utc(entry.published, now),
        category=guess_category(
            source.category_hints, f"{entry.title} {entry.description}"
        ),
        source_type=source_type_for(url),
        url=url,
    )
