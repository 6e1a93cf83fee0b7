"""Atomic persistence of the campaign items artifact."""

from __future__ import annotations

import json
import os
import tempfile
from typing import TYPE_CHECKING

import structlog

from cosme_feed.exceptions import OutputError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from cosme_feed.models import CanonicalItem

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def render_items(items: Sequence[CanonicalItem]) -> str:
    """Serialize items as pretty-printed JSON using their published field names."""
    payload = [item.model_dump(mode="json", by_alias=True) for item in items]
    return json.dumps(payload, ensure_ascii=False, indent=2)


def write_items(path: Path, items: Sequence[CanonicalItem]) -> None:
    """Write ``items`` to ``path`` atomically.

    Uses the temp-file -> fsync -> os.replace pattern so readers never see
    a partially written artifact. Parent directories are created.

    Raises:
        OutputError: If the artifact cannot be written.
    """
    data = render_items(items).encode("utf-8")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write(path, data)
    except OSError as exc:
        msg = f"cannot write {path}: {exc}"
        raise OutputError(msg) from exc
    logger.debug("artifact_written", path=str(path), items=len(items))


def _atomic_write(path: Path, data: bytes) -> None:
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, str(path))
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
