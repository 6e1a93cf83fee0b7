"""Data models for brand sources, raw feed entries, and published items."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_serializer

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Category(StrEnum):
    """Fixed product category vocabulary, in classification order."""

    LIP = "リップ"
    CHEEK = "チーク"
    EYE_MAKEUP = "アイメイク"
    SKINCARE = "スキンケア"
    BASE_MAKEUP = "ベースメイク"
    NAIL = "ネイル"
    HAIRCARE = "ヘアケア"


class SourceType(StrEnum):
    """Where a published item is hosted."""

    YOUTUBE = "youtube"
    WEBSITE = "website"


# ---------------------------------------------------------------------------
# Configuration input
# ---------------------------------------------------------------------------


class Source(BaseModel):
    """A configured brand and the feeds it publishes through."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    brand: str = Field(min_length=1)
    category_hints: list[str] = Field(default_factory=list, alias="categoryHints")
    rss: list[str] = Field(default_factory=list)
    youtube: list[str] = Field(
        default_factory=list, description="YouTube channel IDs."
    )
    use_google_news_rss: bool = Field(default=True, alias="useGoogleNewsRSS")
    google_query: str | None = Field(default=None, alias="googleQuery")


# ---------------------------------------------------------------------------
# Parser output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LinkText:
    """A link given as element text (RSS ``<link>``)."""

    url: str


@dataclass(frozen=True, slots=True)
class LinkRef:
    """A link given as an ``href`` attribute (Atom ``<link>``)."""

    href: str
    rel: str = ""


@dataclass(frozen=True, slots=True)
class LinkRefs:
    """Several ``href`` links on one entry, distinguished by ``rel``."""

    refs: tuple[LinkRef, ...]


LinkField = LinkText | LinkRef | LinkRefs | None


@dataclass(slots=True)
class RawEntry:
    """Unnormalized entry extracted from an RSS or Atom document."""

    title: str = ""
    link: LinkField = None
    enclosure_url: str = ""
    description: str = ""
    published: str = ""


# ---------------------------------------------------------------------------
# Pipeline output
# ---------------------------------------------------------------------------


class CanonicalItem(BaseModel):
    """A normalized campaign item as written to the output artifact."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    brand: str
    title: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    published_at: datetime = Field(alias="publishedAt")
    category: str
    source_type: SourceType = Field(alias="sourceType")
    url: str
    thumbnail_url: str | None = Field(default=None, alias="thumbnailURL")

    @field_serializer("published_at")
    def serialize_published_at(self, value: datetime) -> str:
        return value.astimezone(UTC).isoformat(timespec="milliseconds").replace(
            "+00:00", "Z"
        )


# ---------------------------------------------------------------------------
# Per-endpoint results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EndpointSuccess:
    """A feed endpoint that was fetched and parsed."""

    url: str
    entries: list[RawEntry]


@dataclass(frozen=True, slots=True)
class EndpointFailure:
    """A feed endpoint whose fetch or parse step failed."""

    url: str
    error: Exception


EndpointResult = EndpointSuccess | EndpointFailure


@dataclass(slots=True)
class AggregationResult:
    """Items collected across all sources plus feed bookkeeping."""

    items: list[CanonicalItem] = field(default_factory=list)
    feeds_ok: int = 0
    feeds_total: int = 0
    failures: list[EndpointFailure] = field(default_factory=list)
