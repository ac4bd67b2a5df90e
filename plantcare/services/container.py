from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from plantcare.config import ServerConfig
from plantcare.domain.exceptions import ConfigurationError
from plantcare.hardware.camera.picam import PiCamera
from plantcare.hardware.mqtt.publisher import MQTTPublisher
from plantcare.hardware.wuc.base import WateringPort
from plantcare.hardware.wuc.i2c_wuc import I2CConnection, Wuc
from plantcare.services.history_store import HistoryStore
from plantcare.services.picture_uploader import PictureUploader
from plantcare.services.station import PlantStation
from plantcare.utils.time import local_now
from plantcare.workers.clock_scheduler import ClockScheduler

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage the station services."""

    config: ServerConfig
    store: HistoryStore
    port: WateringPort
    station: PlantStation
    scheduler: ClockScheduler
    uploader: PictureUploader
    camera: Optional[PiCamera] = None
    publisher: Optional[MQTTPublisher] = None
    _shutdown_complete: bool = field(default=False, repr=False)

    @classmethod
    def build(
        cls,
        config: ServerConfig,
        *,
        port: Optional[WateringPort] = None,
        camera=None,
        publisher=None,
        start_workers: bool = False,
        now_fn: Callable[[], datetime] = local_now,
    ) -> "ServiceContainer":
        """Construct the container and load persisted state.

        Args:
            config: Server configuration
            port: Watering port, the I2C micro controller when omitted
            camera: Camera port, ``raspistill`` when omitted
            publisher: MQTT publisher, built from ``config.mqtt`` when omitted
            start_workers: Whether to start the clock scheduler and uploader
        """
        logger.info("Building ServiceContainer...")
        if port is None:
            port = Wuc(I2CConnection(config.device.bus, config.device.address))
        if camera is None:
            camera = PiCamera(config.camera.exe)
        if publisher is None and config.mqtt.enabled:
            try:
                publisher = MQTTPublisher(
                    config.mqtt.server,
                    client_id=config.mqtt.client_id,
                    user=config.mqtt.user,
                    password=config.mqtt.password,
                )
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc

        uploader = PictureUploader(config.files.pushscript, config.files.pictures)
        store = HistoryStore(backlog_days=config.station.backlog_days)
        station = PlantStation(
            store,
            port,
            config.files,
            camera=camera,
            publisher=publisher,
            uploader=uploader,
            topic=config.mqtt.topic,
            now_fn=now_fn,
        )
        station.load_state()
        scheduler = ClockScheduler(station.minute_tick, station.hourly_tick, now_fn=now_fn)

        container = cls(
            config=config,
            store=store,
            port=port,
            station=station,
            scheduler=scheduler,
            uploader=uploader,
            camera=camera,
            publisher=publisher,
        )
        if start_workers:
            container.start()
        logger.info("ServiceContainer built successfully.")
        return container

    def start(self) -> None:
        self.uploader.start()
        self.scheduler.start()

    def shutdown(self) -> None:
        """Stop the workers and persist state.

        A :class:`PersistenceError` from saving propagates; the caller exits
        non-zero since measurements would otherwise be lost silently.
        """
        if self._shutdown_complete:
            return
        self._shutdown_complete = True

        self.scheduler.stop()
        self.uploader.stop()
        try:
            self.station.save_state()
        finally:
            if self.publisher is not None:
                self.publisher.disconnect()
            self.port.close()
        logger.info("ServiceContainer shut down")
