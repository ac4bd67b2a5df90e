from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from flask import Response, jsonify

from plantcare.utils.time import iso_now

_log = logging.getLogger(__name__)

# Generic user-facing messages, never leak internals
_GENERIC_MESSAGES: dict[int, str] = {
    400: "Invalid request",
    401: "Authentication required",
    404: "Resource not found",
    500: "An internal error occurred",
    503: "Device unavailable",
}


def safe_error(
    exc: BaseException,
    status: int = 500,
    *,
    context: str = "",
) -> Response:
    """Return a generic error response while logging the real exception.

    Parameters
    ----------
    exc:
        The caught exception, logged server-side and **never** sent to the
        client.
    status:
        HTTP status code for the response (determines the generic message).
    context:
        Optional human-readable context logged alongside *exc*, e.g.
        ``"rotating turntable"``.
    """
    _log.error("API error [%s] %s: %s", status, context, exc, exc_info=exc)
    message = _GENERIC_MESSAGES.get(status, _GENERIC_MESSAGES[500])
    return error_response(message, status)


def success_response(data: Any = None, status: int = 200) -> Response:
    response = jsonify({"ok": True, "data": data, "error": None})
    response.status_code = status
    return response


def error_response(
    message: str,
    status: int = 500,
    *,
    details: dict | None = None,
) -> Response:
    payload: dict[str, Any] = {"message": message, "timestamp": iso_now()}
    if details:
        payload.update(details)
    response = jsonify({"ok": False, "data": None, "error": payload})
    response.status_code = status
    return response


def safe_route(
    error_message: str = "An internal error occurred",
    *,
    error_status: int = 500,
) -> Callable:
    """Wrap a Flask route handler with standardized error handling.

    :class:`~plantcare.domain.exceptions.PlantCareError` subclasses map to
    ``exc.http_status``; 4xx messages are surfaced to the caller, 5xx are
    replaced by a generic message. Any other ``Exception`` is logged and
    returns *error_status*.

    Usage::

        @station_api.get("/weight")
        @safe_route("Failed to read weight")
        def get_weight():
            ...
    """
    from plantcare.domain.exceptions import PlantCareError

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Response:
            try:
                return fn(*args, **kwargs)
            except PlantCareError as exc:
                status = exc.http_status
                if status >= 500:
                    return safe_error(exc, status, context=error_message)
                return error_response(str(exc) or error_message, status)
            except Exception as exc:
                return safe_error(exc, error_status, context=error_message)

        return wrapper

    return decorator
