"""Unit tests for cosme_feed.sources - brand document loading."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from cosme_feed.exceptions import ConfigError
from cosme_feed.sources import load_sources

if TYPE_CHECKING:
    from pathlib import Path


class TestLoadSources:
    """Valid and invalid brand documents."""

    def test_loads_json_with_camel_case_keys(self, brands_file: Path) -> None:
        sources = load_sources(brands_file)
        assert [source.brand for source in sources] == ["ABC", "XYZ"]
        assert sources[0].category_hints == ["リップ"]
        assert sources[0].use_google_news_rss is True
        assert sources[1].youtube == ["UC123"]

    def test_loads_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "brands.yaml"
        path.write_text(
            "- brand: ABC\n  useGoogleNewsRSS: false\n  googleQuery: ABC 限定\n",
            encoding="utf-8",
        )
        (source,) = load_sources(path)
        assert source.use_google_news_rss is False
        assert source.google_query == "ABC 限定"

    def test_unknown_keys_are_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "brands.json"
        path.write_text(json.dumps([{"brand": "ABC", "note": "x"}]), encoding="utf-8")
        assert load_sources(path)[0].brand == "ABC"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot read"):
            load_sources(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "brands.json"
        path.write_text("[{brand: ABC}", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid structured data"):
            load_sources(path)

    def test_not_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "brands.json"
        path.write_text(json.dumps({"brand": "ABC"}), encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid brand sources"):
            load_sources(path)

    def test_empty_brand_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "brands.json"
        path.write_text(json.dumps([{"brand": ""}]), encoding="utf-8")
        with pytest.raises(ConfigError, match="brand"):
            load_sources(path)

    def test_wrong_field_type_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "brands.json"
        path.write_text(json.dumps([{"brand": "ABC", "rss": "x"}]), encoding="utf-8")
        with pytest.raises(ConfigError) as exc_info:
            load_sources(path)
        assert "rss" in str(exc_info.value)
