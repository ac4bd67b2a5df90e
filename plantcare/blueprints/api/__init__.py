from plantcare.blueprints.api.station import station_api

__all__ = ["station_api"]
