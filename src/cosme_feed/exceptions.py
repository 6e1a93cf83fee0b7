"""Centralized exception hierarchy for the cosme-feed package.

All domain-specific exceptions inherit from ``CosmeFeedError`` so
callers can catch the entire family with a single ``except`` clause.
Feed-level errors are contained per endpoint by the aggregation driver;
configuration and output errors abort the run.
"""

from __future__ import annotations


class CosmeFeedError(Exception):
    """Base exception for all cosme-feed errors."""


# ---------------------------------------------------------------------------
# Per-endpoint errors (non-fatal)
# ---------------------------------------------------------------------------


class FeedError(CosmeFeedError):
    """Base exception for failures scoped to a single feed endpoint."""


class FetchError(FeedError):
    """Raised when a feed could not be retrieved after exhausting retries."""


class ParseError(FeedError):
    """Raised when a feed document is malformed or has no known shape."""


# ---------------------------------------------------------------------------
# Run-level errors (fatal)
# ---------------------------------------------------------------------------


class ConfigError(CosmeFeedError):
    """Raised when the brand source document is missing or invalid."""


class OutputError(CosmeFeedError):
    """Raised when the output artifact cannot be persisted."""
