"""Loading of the brand source document (JSON or YAML)."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog
import yaml
from pydantic import TypeAdapter, ValidationError

from cosme_feed.config import format_validation_error
from cosme_feed.exceptions import ConfigError
from cosme_feed.models import Source

if TYPE_CHECKING:
    from pathlib import Path

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_SOURCES_ADAPTER = TypeAdapter(list[Source])
_YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def load_sources(path: Path) -> list[Source]:
    """Read and validate the list of brand sources.

    Args:
        path: JSON (or ``.yaml`` / ``.yml``) document holding a list of
            source objects.

    Returns:
        Validated sources in document order.

    Raises:
        ConfigError: If the file is missing, unreadable, not valid
            JSON/YAML, or does not describe a list of sources.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"cannot read brand sources {path}: {exc}"
        raise ConfigError(msg) from exc

    payload: Any
    try:
        if path.suffix.lower() in _YAML_SUFFIXES:
            payload = yaml.safe_load(raw)
        else:
            payload = json.loads(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        msg = f"brand sources {path} are not valid structured data: {exc}"
        raise ConfigError(msg) from exc

    try:
        sources = _SOURCES_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise ConfigError(
            format_validation_error(exc, title=f"Invalid brand sources in {path}")
        ) from exc

    logger.debug("sources_loaded", path=str(path), count=len(sources))
    return sources
