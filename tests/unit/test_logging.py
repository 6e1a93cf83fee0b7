"""Unit tests for cosme_feed.logging - structured logging and endpoint context."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest
import structlog

from cosme_feed.logging import (
    _VALID_LEVELS,
    configure_logging,
    endpoint_logging_context,
    generate_run_id,
)

if TYPE_CHECKING:
    from pathlib import Path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Reset structlog state between tests."""
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# generate_run_id
# ---------------------------------------------------------------------------


class TestGenerateRunId:
    """generate_run_id produces unique UUID4 strings."""

    def test_uuid_format(self) -> None:
        rid = generate_run_id()
        assert len(rid) == 36
        assert rid.count("-") == 4

    def test_unique_across_calls(self) -> None:
        assert len({generate_run_id() for _ in range(10)}) == 10


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLoggingLevel:
    """configure_logging validates and applies log levels."""

    def test_case_insensitive(self) -> None:
        configure_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="TRACE")

    def test_all_valid_levels_accepted(self) -> None:
        for lvl in _VALID_LEVELS:
            configure_logging(level=lvl)
            assert logging.getLogger().level == getattr(logging, lvl)


class TestConfigureLoggingRunId:
    """configure_logging binds run_id to context vars."""

    def test_run_id_bound(self) -> None:
        configure_logging(run_id="run-123")
        assert structlog.contextvars.get_contextvars().get("run_id") == "run-123"

    def test_no_run_id(self) -> None:
        configure_logging()
        assert "run_id" not in structlog.contextvars.get_contextvars()


class TestConfigureLoggingFile:
    """configure_logging creates file handlers."""

    def test_json_lines_reach_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "build.log"
        configure_logging(level="INFO", fmt="json", log_file=log_file, run_id="r1")

        structlog.get_logger("test_file").info("feed_error", brand="ブランド")
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").strip())
        assert record["event"] == "feed_error"
        assert record["brand"] == "ブランド"
        assert record["run_id"] == "r1"
        assert record["level"] == "info"

    def test_level_filters_debug(self, tmp_path: Path) -> None:
        log_file = tmp_path / "build.log"
        configure_logging(level="INFO", fmt="json", log_file=log_file)
        structlog.get_logger("test_file").debug("fetch_retry")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert log_file.read_text(encoding="utf-8") == ""

    def test_reconfigure_clears_handlers(self, tmp_path: Path) -> None:
        configure_logging(log_file=tmp_path / "first.log")
        configure_logging(log_file=tmp_path / "second.log")
        file_handlers = [
            h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(file_handlers) == 1

    def test_handlers_share_level_and_formatter(self, tmp_path: Path) -> None:
        configure_logging(level="WARNING", log_file=tmp_path / "build.log")
        handlers = logging.getLogger().handlers
        assert len(handlers) == 2
        assert {h.level for h in handlers} == {logging.WARNING}
        assert handlers[0].formatter is handlers[1].formatter
        assert isinstance(handlers[0].formatter, structlog.stdlib.ProcessorFormatter)


# ---------------------------------------------------------------------------
# endpoint_logging_context
# ---------------------------------------------------------------------------


class TestEndpointLoggingContext:
    """Brand and endpoint are bound only while an endpoint is processed."""

    def test_binds_and_unbinds(self) -> None:
        with endpoint_logging_context("ABC", "https://a.example.com/feed") as log:
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["brand"] == "ABC"
            assert ctx["endpoint"] == "https://a.example.com/feed"
            assert log is not None
        ctx = structlog.contextvars.get_contextvars()
        assert "brand" not in ctx
        assert "endpoint" not in ctx

    def test_unbinds_on_error(self) -> None:
        with pytest.raises(RuntimeError):
            with endpoint_logging_context("ABC", "https://a.example.com/feed"):
                raise RuntimeError("boom")
        assert "brand" not in structlog.contextvars.get_contextvars()

    def test_keeps_run_id(self) -> None:
        structlog.contextvars.bind_contextvars(run_id="r1")
        with endpoint_logging_context("ABC", "https://a.example.com/feed"):
            pass
        assert structlog.contextvars.get_contextvars() == {"run_id": "r1"}
