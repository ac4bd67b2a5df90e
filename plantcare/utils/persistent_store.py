"""Persistent JSON file helpers for the station state files.

Files are replaced atomically (write to a sibling ``.tmp`` file, then
``os.replace``) and created with owner-only permissions, so a state file on
disk is always either absent or a complete snapshot.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any

from plantcare.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)

FILE_MODE = 0o600


def load_json(path: str) -> Any | None:
    """Return the decoded JSON document at *path*, or ``None`` if absent.

    Raises :class:`PersistenceError` when the file exists but cannot be read
    or decoded.
    """
    if not os.path.exists(path):
        logger.info("State file %s does not exist yet, using defaults", path)
        return None
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as exc:
        raise PersistenceError(f"Failed to load {path}: {exc}", detail={"path": path}) from exc


def save_json(path: str, data: Any, *, mode: int = FILE_MODE) -> None:
    """Atomically write *data* as JSON to *path* with permissions *mode*."""
    tmp = path + ".tmp"
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh)
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except (OSError, TypeError, ValueError) as exc:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise PersistenceError(f"Failed to save {path}: {exc}", detail={"path": path}) from exc
    logger.debug("Saved %s", path)
