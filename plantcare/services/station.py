"""
Plant Station Controller
========================

Composes the watering port, history store, estimator and watering rule.
Ticks from the clock scheduler are the only source of measurement
mutations; every tick runs under the store's write lock, so readers never
observe a half-applied tick.

Manual operations used by the HTTP API (weight, limit, watering, rotation,
pictures, echo) go straight to the ports, which serialise themselves.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from plantcare.config import FilesConfig
from plantcare.constants import (
    EXPOSURE_SWEEP,
    PICTURE_ANGLE_STEP,
    ROTATION_PER_DAY,
    WATER_TOPIC_SUFFIX,
    WATERING_MAX_UNITS,
    WATERING_UNIT_MS,
    WEIGHT_TOPIC_SUFFIX,
)
from plantcare.domain.estimator import Estimate, estimate
from plantcare.domain.exceptions import DeviceError, PersistenceError, ValidationError
from plantcare.domain.measurements import hour_median
from plantcare.domain.plant_config import PlantConfig
from plantcare.domain.watering import decide_watering
from plantcare.hardware.wuc.base import WateringPort
from plantcare.schemas.plant import PlantConfigSchema
from plantcare.services.history_store import HistoryStore
from plantcare.utils.time import epoch_day, local_now

logger = logging.getLogger(__name__)

PICTURE_SERIES = ("image", "image-b", "image-c")


class PlantStation:
    """Control loop of one plant."""

    def __init__(
        self,
        store: HistoryStore,
        port: WateringPort,
        files: FilesConfig,
        *,
        camera=None,
        publisher=None,
        uploader=None,
        topic: str = "plantcare",
        now_fn: Callable[[], datetime] = local_now,
    ) -> None:
        self.store = store
        self.port = port
        self.files = files
        self.camera = camera
        self.publisher = publisher
        self.uploader = uploader
        self.topic = topic
        self._now = now_fn

    # ------------------------------------------------------------------ #
    # State lifecycle
    # ------------------------------------------------------------------ #
    def load_state(self) -> None:
        """Load plant config, measurements and pump model; missing files mean defaults."""
        self.store.load_plant_config(self.files.config)
        self.store.load_measurements(self.files.data)
        self.store.load_pump_model(self.files.watertime)

    def save_state(self) -> None:
        """Persist measurements and pump model; raises :class:`PersistenceError`."""
        with self.store.lock.read_locked():
            self.store.save_measurements(self.files.data)
            self.store.save_pump_model(self.files.watertime)
        logger.info("Station state saved")

    # ------------------------------------------------------------------ #
    # Ticks
    # ------------------------------------------------------------------ #
    def minute_tick(self, minute: int) -> None:
        with self.store.lock.write_locked():
            minutes = self.store.minutes
            try:
                weight = self.port.read_weight()
            except DeviceError as exc:
                logger.warning("Failed to read weight: %s", exc)
                weight = minutes.last
                if weight is None:
                    logger.warning("No weight available for minute %s, skipping sample", minute)
                    return

            if not minutes.weights:
                count = 1
            else:
                count = (minute - minutes.minute + 60) % 60
                if count != 1:
                    logger.info("Missed %s minutes", count - 1)
            minutes.minute = minute
            for _ in range(count):
                minutes.append(weight)

            self._publish(WEIGHT_TOPIC_SUFFIX, weight, qos=0, retain=True)

    def hourly_tick(self, hour: int) -> None:
        with self.store.lock.write_locked():
            self._update_weight_and_watering(hour)

            now = self._now()
            if now.astimezone(timezone.utc).hour == self.store.config.update_hour:
                self._imaging_pass(now)

    def _representative_weight(self) -> int:
        if self.store.minutes.weights:
            return hour_median(self.store.minutes.weights)
        try:
            return self.port.read_weight()
        except DeviceError as exc:
            logger.warning("Failed to read weight: %s", exc)
            last = self.store.hourly.last_weight
            return last if last is not None else 0

    def _update_weight_and_watering(self, hour: int) -> None:
        store = self.store
        weight = self._representative_weight()
        watering = 0

        if hour == store.config.water_hour:
            result = estimate(store.hourly.weights, store.hourly.waterings, store.pump_model)
            store.pump_model = result.pump_model
            try:
                store.save_pump_model(self.files.watertime)
            except PersistenceError as exc:
                logger.error("Failed to save pump model: %s", exc)

            decision = decide_watering(weight, store.hourly.weights, store.hourly.waterings, store.config, result)
            logger.info(
                "Last watered %s hours ago at weight %s; dryout %s, scale %s, offset %s, delta weight %s",
                decision.dur_w,
                decision.prev_weight,
                result.dryout,
                result.scale,
                result.offset,
                decision.dw,
            )
            logger.info("Watering time %s ms, commanded %s ms", decision.raw_ms, decision.command_ms)

            if decision.command_ms > 0:
                watering = self.port.do_watering(store.pump_model.offset, decision.command_ms)
                if watering > 0:
                    self._publish(WATER_TOPIC_SUFFIX, watering, qos=2, retain=False)

        store.hourly.append(weight, watering, hour)

    def _imaging_pass(self, now: datetime) -> None:
        day = epoch_day(now)
        date = now.strftime("%Y-%m-%d")
        for i, prefix in enumerate(PICTURE_SERIES):
            self.take_pictures(day + i * PICTURE_ANGLE_STEP, f"{prefix}-{date}")

        if self.uploader is not None:
            self.uploader.request_upload()

        orientation = self.store.config.fixed_orientation
        if orientation is not None:
            angle = orientation
            logger.info("Fixed orientation: %s", angle)
        else:
            angle = day * ROTATION_PER_DAY
            logger.info("Day %s, angle %s", day, angle)
        try:
            self.port.rotate(angle)
        except DeviceError as exc:
            logger.error("Failed to rotate plant: %s", exc)

    def take_pictures(self, angle: int, base_name: str) -> None:
        """Rotate to *angle* and take the exposure sweep as ``<base_name>-<i>.jpg``."""
        try:
            self.port.rotate(angle)
        except DeviceError as exc:
            logger.error("Failed to rotate plant: %s", exc)
            return
        if self.camera is None:
            return

        folder = self.files.pictures
        for i, ev in enumerate(EXPOSURE_SWEEP):
            try:
                filename = self.camera.take_picture(folder, ev)
            except DeviceError as exc:
                logger.error("Failed to take picture: %s", exc)
                continue
            destination = os.path.join(folder, f"{base_name}-{i}.jpg")
            try:
                os.replace(filename, destination)
            except OSError as exc:
                logger.error("Failed to move %s to %s: %s", filename, destination, exc)
                continue
            logger.info("Image written to %s", destination)

    def _publish(self, suffix: str, payload: Any, *, qos: int, retain: bool) -> None:
        if self.publisher is None:
            return
        self.publisher.publish(self.topic + suffix, payload, qos=qos, retain=retain)

    # ------------------------------------------------------------------ #
    # Readers
    # ------------------------------------------------------------------ #
    def snapshot(self) -> Dict[str, Any]:
        return self.store.snapshot()

    def get_config(self) -> PlantConfig:
        with self.store.lock.read_locked():
            return self.store.config

    def calculate(self) -> Estimate:
        with self.store.lock.read_locked():
            return estimate(self.store.hourly.weights, self.store.hourly.waterings, self.store.pump_model)

    # ------------------------------------------------------------------ #
    # Edits
    # ------------------------------------------------------------------ #
    def update_config(self, payload: Dict[str, Any]) -> PlantConfig:
        """Merge *payload* onto the current config, persist it, then apply it."""
        if not isinstance(payload, dict):
            raise ValidationError("Plant config must be a JSON object")
        try:
            changes = PlantConfigSchema.file_keys(payload)
        except ValueError as exc:
            raise ValidationError(f"Invalid plant config: {exc}") from exc

        with self.store.lock.write_locked():
            merged = PlantConfigSchema.from_domain(self.store.config).to_file()
            merged.update(changes)
            try:
                config = PlantConfigSchema.model_validate(merged).to_domain()
            except PydanticValidationError as exc:
                errors = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in exc.errors()
                )
                raise ValidationError(f"Invalid plant config: {errors}") from exc

            self.store.save_plant_config(self.files.config, config)
            self.store.config = config
            logger.info("Plant config updated: %s", config)

            try:
                self.store.save_measurements(self.files.data)
                self.store.save_pump_model(self.files.watertime)
            except PersistenceError as exc:
                logger.error("Failed to save state after config edit: %s", exc)
            return config

    # ------------------------------------------------------------------ #
    # Manual operations
    # ------------------------------------------------------------------ #
    def read_weight(self) -> int:
        return self.port.read_weight()

    def read_water_limit(self) -> int:
        return self.port.read_water_limit()

    def last_watering(self) -> int:
        return self.port.read_last_watering()

    def water(self, duration_ms: int, start_ms: Optional[int] = None) -> int:
        """Manual pump burst; *start_ms* defaults to the configured minimum pump time."""
        if start_ms is None:
            start_ms = self.get_config().water_start
        limit = WATERING_MAX_UNITS * WATERING_UNIT_MS + WATERING_UNIT_MS // 2 - 1
        for name, value in (("start", start_ms), ("duration", duration_ms)):
            if not 0 <= value <= limit:
                raise ValidationError(f"Watering {name} must be between 0 and {limit} ms, got {value}")
        return self.port.do_watering(start_ms, duration_ms)

    def rotate(self, angle: int) -> None:
        if angle < 0:
            raise ValidationError("Negative angles are not allowed")
        self.port.rotate(angle)

    def take_picture(self, ev: int = 0, shrink: int = 0) -> str:
        if self.camera is None:
            raise DeviceError("No camera configured")
        return self.camera.take_picture(None, ev, shrink)

    def echo(self, data: bytes) -> bytes:
        return self.port.echo(data)
