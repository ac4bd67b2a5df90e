"""
Station API Module
State endpoints (snapshot, plant config, estimator) and device endpoints
(weight, limit, watering, rotation, pictures, echo).
"""

from __future__ import annotations

from flask import Blueprint, Response

from plantcare.utils.http import error_response

# Create blueprint here to avoid circular imports
station_api = Blueprint("station_api", __name__)


@station_api.errorhandler(404)
def not_found(error) -> Response:
    return error_response("Resource not found", 404)


@station_api.errorhandler(405)
def method_not_allowed(error) -> Response:
    return error_response("Method not allowed", 405)


# Import route modules to register their endpoints (must be after blueprint creation)
from . import device, state

_ = (device, state)

__all__ = ["station_api"]
