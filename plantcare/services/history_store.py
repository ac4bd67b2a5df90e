"""
History Store
=============

Holds the station state: minute and hourly measurement rings, the learned
pump model and the plant configuration, together with the reader/writer
lock protecting them.

Locking convention: the load/save/mutation helpers do not lock; the station
controller holds ``store.lock`` for writing around every tick or edit, and
readers use :meth:`HistoryStore.snapshot` or ``store.lock.read_locked()``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from plantcare.constants import DEFAULT_BACKLOG_DAYS
from plantcare.domain.exceptions import ConfigurationError, PersistenceError
from plantcare.domain.measurements import HourlySeries, MinuteSeries, PumpModel
from plantcare.domain.plant_config import PlantConfig
from plantcare.schemas.plant import MeasurementFileSchema, PlantConfigSchema, PumpModelFileSchema
from plantcare.utils.concurrency import ReadWriteLock
from plantcare.utils.persistent_store import load_json, save_json

logger = logging.getLogger(__name__)


class HistoryStore:
    """In-memory station state with JSON persistence."""

    def __init__(self, backlog_days: int = DEFAULT_BACKLOG_DAYS) -> None:
        self.lock = ReadWriteLock()
        self.minutes = MinuteSeries()
        self.hourly = HourlySeries(capacity=backlog_days * 24)
        self.pump_model = PumpModel()
        self.config = PlantConfig()

    # ------------------------------------------------------------------ #
    # Measurements
    # ------------------------------------------------------------------ #
    def load_measurements(self, path: str) -> None:
        data = load_json(path)
        if data is None:
            return
        try:
            parsed = MeasurementFileSchema.model_validate(data)
        except PydanticValidationError as exc:
            raise PersistenceError(f"Invalid measurement file {path}: {exc}") from exc
        self.hourly = HourlySeries(
            weights=list(parsed.weight),
            waterings=list(parsed.water),
            hour=parsed.time,
            capacity=self.hourly.capacity,
        )
        self.hourly.trim()
        logger.info("Loaded %s hourly measurements from %s", len(self.hourly.weights), path)

    def save_measurements(self, path: str) -> None:
        save_json(path, self.measurements_dict())

    def measurements_dict(self) -> Dict[str, Any]:
        return {
            "weight": list(self.hourly.weights),
            "water": list(self.hourly.waterings),
            "time": self.hourly.hour,
        }

    # ------------------------------------------------------------------ #
    # Pump model
    # ------------------------------------------------------------------ #
    def load_pump_model(self, path: str) -> None:
        data = load_json(path)
        if data is None:
            return
        try:
            parsed = PumpModelFileSchema.model_validate(data)
        except PydanticValidationError as exc:
            raise PersistenceError(f"Invalid pump model file {path}: {exc}") from exc
        self.pump_model = PumpModel(scale=parsed.scale, offset=parsed.offset)
        logger.info("Loaded pump model %s from %s", self.pump_model, path)

    def save_pump_model(self, path: str) -> None:
        save_json(path, {"scale": self.pump_model.scale, "offset": self.pump_model.offset})

    # ------------------------------------------------------------------ #
    # Plant config
    # ------------------------------------------------------------------ #
    def load_plant_config(self, path: str) -> None:
        try:
            data = load_json(path)
        except PersistenceError as exc:
            raise ConfigurationError(str(exc)) from exc
        if data is None:
            return
        try:
            self.config = PlantConfigSchema.model_validate(data).to_domain()
        except PydanticValidationError as exc:
            raise ConfigurationError(f"Invalid plant config {path}: {exc}") from exc
        logger.info("Loaded plant config from %s", path)

    def save_plant_config(self, path: str, config: PlantConfig | None = None) -> None:
        save_json(path, PlantConfigSchema.from_domain(config or self.config).to_file())

    # ------------------------------------------------------------------ #
    # Readers
    # ------------------------------------------------------------------ #
    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the whole state, taken under one read lock."""
        with self.lock.read_locked():
            return {
                "data": self.measurements_dict(),
                "mindata": {"weight": list(self.minutes.weights), "time": self.minutes.minute},
                "config": PlantConfigSchema.from_domain(self.config).to_file(),
                "watertime": {"scale": self.pump_model.scale, "offset": self.pump_model.offset},
            }
