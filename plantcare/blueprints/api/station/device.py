"""
Station Device API
==================

Manual access to the watering micro controller and the camera.
"""

from __future__ import annotations

import logging
import os

from flask import Response

from plantcare.blueprints.api._common import get_station, query_int, query_ints
from plantcare.constants import DEFAULT_SHRINK
from plantcare.domain.exceptions import ValidationError
from plantcare.security.basic_auth import basic_auth_required
from plantcare.utils.http import safe_route, success_response

from . import station_api

logger = logging.getLogger("station_api")


@station_api.get("/weight")
@safe_route("Failed to read weight")
def get_weight() -> Response:
    return success_response({"weight": get_station().read_weight()})


@station_api.get("/limit")
@safe_route("Failed to read water limit")
def get_limit() -> Response:
    return success_response({"limit": get_station().read_water_limit()})


@station_api.get("/water")
@basic_auth_required
@safe_route("Failed to water plant")
def water() -> Response:
    """
    Manual watering.

    ``/water``                 last delivered watering time
    ``/water?t=ms``            water for ``ms`` with the configured start time
    ``/water?t=start&t=ms``    water with an explicit start time
    """
    station = get_station()
    times = query_ints("t")
    if not times:
        return success_response({"watering_ms": station.last_watering()})
    if len(times) > 2:
        raise ValidationError("At most two t arguments are allowed")
    if len(times) == 2:
        delivered = station.water(times[1], start_ms=times[0])
    else:
        delivered = station.water(times[0])
    logger.info("Manual watering requested (%s), delivered %s ms", times, delivered)
    return success_response({"watering_ms": delivered})


@station_api.get("/rotate")
@basic_auth_required
@safe_route("Failed to rotate plant")
def rotate() -> Response:
    angle = query_int("a")
    if angle is None:
        raise ValidationError("Missing argument 'a'")
    get_station().rotate(angle)
    logger.info("Manual rotation to %s degrees", angle)
    return success_response({"angle": angle})


@station_api.get("/pic")
@basic_auth_required
@safe_route("Failed to take picture")
def picture() -> Response:
    ev = query_int("ev", 0)
    shrink = query_int("s", DEFAULT_SHRINK)
    if shrink < 0:
        raise ValidationError("Shrink factor must not be negative")

    filename = get_station().take_picture(ev, shrink)
    try:
        with open(filename, "rb") as fh:
            data = fh.read()
    finally:
        os.unlink(filename)
    return Response(data, mimetype="image/jpeg")


@station_api.get("/echo")
@safe_route("Echo failed")
def echo() -> Response:
    values = query_ints("d")
    if any(not 0 <= v <= 255 for v in values):
        raise ValidationError("Echo bytes must be between 0 and 255")
    received = get_station().echo(bytes(values))
    return success_response({"sent": values, "received": list(received)})
