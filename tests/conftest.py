"""Shared pytest fixtures for the cosme-feed test suite."""

from __future__ import annotations

import json
import os
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import pytest

from cosme_feed.config import FetchSettings

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


@pytest.fixture()
def now() -> datetime:
    """A fixed, timezone-aware reference time."""
    return datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


def _rfc822(moment: datetime) -> str:
    """Format ``moment`` the way RSS ``pubDate`` fields do."""
    return moment.strftime("%a, %d %b %Y %H:%M:%S +0000")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture()
def fast_fetch_settings() -> FetchSettings:
    """Fetch settings with no backoff delay so retry tests run instantly."""
    return FetchSettings(attempts=2, backoff_seconds=0.0, timeout=5.0)


@pytest.fixture(autouse=True)
def _isolated_settings_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> None:
    """Keep a developer's COSME_FEED_* env and config files out of tests."""
    for key in list(os.environ):
        if key.startswith("COSME_FEED_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))


# ---------------------------------------------------------------------------
# Feed documents
# ---------------------------------------------------------------------------


def _rss_document(items: list[dict[str, str]]) -> str:
    """Render a minimal RSS 2.0 document from item dicts."""
    rendered = []
    for item in items:
        fields = "".join(f"<{key}>{value}</{key}>" for key, value in item.items())
        rendered.append(f"<item>{fields}</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Brand news</title>'
        f"{''.join(rendered)}</channel></rss>"
    )


@pytest.fixture()
def rss_feed(now: datetime) -> str:
    """A two-item RSS feed with recent publication dates."""
    return _rss_document(
        [
            {
                "title": "新作リップ発売のお知らせ",
                "link": "https://brand.example.com/news/lip/",
                "description": "春の新作リップが登場しました。全6色で展開します。",
                "pubDate": _rfc822(now - timedelta(days=2)),
            },
            {
                "title": "限定チークパレット",
                "link": "https://brand.example.com/news/cheek#top",
                "description": "数量限定のチークパレット。",
                "pubDate": _rfc822(now - timedelta(days=5)),
            },
        ]
    )


@pytest.fixture()
def atom_single_entry_feed(now: datetime) -> str:
    """An Atom feed (YouTube style) containing exactly one entry."""
    published = (now - timedelta(days=1)).isoformat()
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<feed xmlns="http://www.w3.org/2005/Atom">'
        "<title>Brand channel</title>"
        "<entry>"
        "<title>アイシャドウ新色レビュー</title>"
        '<link rel="self" href="https://www.youtube.com/feeds/self"/>'
        '<link rel="alternate" href="https://www.youtube.com/watch?v=abc123"/>'
        "<summary>新色アイシャドウを紹介。</summary>"
        f"<published>{published}</published>"
        "</entry>"
        "</feed>"
    )


# ---------------------------------------------------------------------------
# Brand source documents
# ---------------------------------------------------------------------------


@pytest.fixture()
def brands_payload() -> list[dict[str, Any]]:
    return [
        {
            "brand": "ABC",
            "categoryHints": ["リップ"],
            "rss": ["https://brand.example.com/feed.xml"],
        },
        {
            "brand": "XYZ",
            "youtube": ["UC123"],
        },
    ]


@pytest.fixture()
def brands_file(tmp_path: Path, brands_payload: list[dict[str, Any]]) -> Path:
    path = tmp_path / "brands.json"
    path.write_text(json.dumps(brands_payload, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture()
def make_rss() -> Callable[[list[dict[str, str]]], str]:
    """Factory rendering RSS documents from item dicts."""
    return _rss_document


@pytest.fixture()
def pub_date() -> Callable[[datetime], str]:
    """Formatter producing RSS ``pubDate`` strings."""
    return _rfc822
