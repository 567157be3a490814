"""Persisting copies of generated reports."""

from __future__ import annotations

import logging
import os

from .errors import PersistenceError

logger = logging.getLogger(__name__)


def persist_report(output_dir: str, filename: str, data: bytes) -> str:
    """Write *data* to ``output_dir/filename``, creating the directory if needed.

    Same-second filenames overwrite each other.
    """
    path = os.path.join(output_dir, filename)
    try:
        os.makedirs(output_dir, exist_ok=True)
        with open(path, "wb") as handle:
            handle.write(data)
    except OSError as exc:
        raise PersistenceError(f"Could not write report to {path}: {exc.strerror or exc}") from exc
    logger.debug("stored report copy at %s (%d bytes)", path, len(data))
    return path
