"""
Dashboard UI
============

Serves the station dashboard. The page itself is static; the charts are
drawn client-side from ``GET /data``.
"""

from __future__ import annotations

from flask import Blueprint, current_app, render_template

ui_bp = Blueprint("ui", __name__)


@ui_bp.get("/")
def index():
    container = current_app.config["CONTAINER"]
    config = container.station.get_config()
    return render_template("index.html", water_hour=config.water_hour, update_hour=config.update_hour)
