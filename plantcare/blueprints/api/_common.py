"""
Blueprint Common Utilities
==========================

Shared helpers for the API blueprints: service container access, JSON body
parsing and query-string integer parsing.
"""
from __future__ import annotations

from typing import List, Optional

from flask import current_app, request

from plantcare.domain.exceptions import ValidationError


def get_container():
    """
    Get the service container from Flask app config.

    Raises:
        RuntimeError: If container is not configured
    """
    container = current_app.config.get("CONTAINER")
    if not container:
        raise RuntimeError("ServiceContainer not found in app config")
    return container


def get_station():
    return get_container().station


def get_json() -> dict:
    """Request JSON body; anything but a JSON object is a validation error."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _to_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid argument {name}={raw!r}: not an integer") from None


def query_int(name: str, default: Optional[int] = None) -> Optional[int]:
    """First value of query argument *name* as int, *default* if absent."""
    raw = request.args.get(name)
    if raw is None:
        return default
    return _to_int(name, raw)


def query_ints(name: str) -> List[int]:
    """All values of a repeated query argument as ints."""
    return [_to_int(name, raw) for raw in request.args.getlist(name)]
