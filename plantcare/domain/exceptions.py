"""Centralized exception hierarchy for the plant-care station.

All domain and service exceptions inherit from :class:`PlantCareError` so
that callers can catch a single base class when they need a broad safety
net, yet still match on specific subclasses where narrower handling is
appropriate.

Blueprint-level error handling (see ``plantcare/utils/http.safe_route``)
maps these to HTTP status codes automatically.

Hierarchy
---------
::

    PlantCareError (base, maps to 500)
    ├── ValidationError      (400, out-of-range argument or invalid edit)
    ├── DeviceError          (503, bus / sensor / motor / camera failure)
    ├── PersistenceError     (500, state file read or write failed)
    └── ConfigurationError   (500, unreadable server or plant config)
"""

from __future__ import annotations


class PlantCareError(Exception):
    """Base exception for all station errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, only surfaced to
        the HTTP client for 4xx errors).
    detail:
        Optional machine-readable context dict for structured logging.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


class ValidationError(PlantCareError):
    """Caller supplied an invalid or out-of-range argument (HTTP 400)."""

    http_status: int = 400


class DeviceError(PlantCareError):
    """Hardware communication or device-protocol failure (HTTP 503)."""

    http_status: int = 503


class PersistenceError(PlantCareError):
    """State file could not be read or written (HTTP 500)."""

    http_status: int = 500


class ConfigurationError(PlantCareError):
    """Missing or invalid configuration (HTTP 500)."""

    http_status: int = 500
