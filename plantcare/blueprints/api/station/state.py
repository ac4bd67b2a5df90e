"""
Station State API
=================

Read-only views of the station state plus the plant config edit.
"""

from __future__ import annotations

from flask import Response

from plantcare.blueprints.api._common import get_json, get_station
from plantcare.schemas.plant import PlantConfigSchema
from plantcare.security.basic_auth import basic_auth_required
from plantcare.utils.http import safe_route, success_response

from . import station_api


@station_api.get("/data")
@safe_route("Failed to get station data")
def get_data() -> Response:
    """Full state snapshot: hourly data, minute data, plant config, pump model."""
    return success_response(get_station().snapshot())


@station_api.get("/config")
@safe_route("Failed to get plant config")
def get_config() -> Response:
    config = get_station().get_config()
    return success_response(PlantConfigSchema.from_domain(config).to_file())


@station_api.put("/config")
@basic_auth_required
@safe_route("Failed to save plant config")
def put_config() -> Response:
    """Merge the JSON body onto the current config, persist and apply it."""
    config = get_station().update_config(get_json())
    return success_response(PlantConfigSchema.from_domain(config).to_file())


@station_api.get("/calc")
@safe_route("Failed to calculate watering model")
def get_calc() -> Response:
    return success_response(get_station().calculate().to_dict())
