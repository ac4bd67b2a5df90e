"""
I2C Watering Micro Controller
=============================

Implements :class:`WateringPort` on top of raw I2C messages. Every command
is a single write whose first byte is the command code; replies are read
with a separate read message.

Protocol summary:
    0x10  last watering          -> 1 byte, units of 250 ms, 0xFF = failure
    0x11  water limit            -> 1 byte, 0xFF = failure
    0x12  weight                 -> 2 bytes little endian, high 0xFF = failure
    0x13  rotate <lo> <hi>       -> motor status replies until stopped
    0x14  stop
    0x15  motor status           -> 2 bytes (feed, flags)
    0x1A  watering <start> <dur> -> 1 byte delivered units, 0 = motor busy
    0x29  echo <bytes...>        -> command byte followed by the payload
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from smbus2 import SMBus, i2c_msg

from plantcare.constants import (
    CMD_ECHO,
    CMD_GET_LAST_WATERING,
    CMD_GET_MOTOR_STATUS,
    CMD_GET_WATER_LIMIT,
    CMD_GET_WEIGHT,
    CMD_ROTATE,
    CMD_STOP,
    CMD_WATERING,
    CPR,
    MOTOR_TIMEOUT_S,
    SENSOR_FAILURE,
    WATERING_MAX_UNITS,
    WATERING_SETTLE_MS,
    WATERING_UNIT_MS,
    WEIGHT_SETTLE_S,
    WUC_ADDRESS,
    WUC_BUS,
)
from plantcare.domain.exceptions import DeviceError, ValidationError
from plantcare.hardware.wuc.base import WateringPort
from plantcare.utils.concurrency import synchronized

logger = logging.getLogger(__name__)


class I2CConnection:
    """Raw read/write access to one I2C slave."""

    def __init__(self, bus: int = WUC_BUS, address: int = WUC_ADDRESS) -> None:
        self.address = address
        try:
            self._bus = SMBus(bus)
        except OSError as exc:
            raise DeviceError(f"Cannot open I2C bus {bus}: {exc}", detail={"bus": bus}) from exc
        logger.info("Opened I2C bus %s, device 0x%02x", bus, address)

    def write(self, data: bytes) -> int:
        msg = i2c_msg.write(self.address, data)
        self._bus.i2c_rdwr(msg)
        return len(data)

    def read(self, length: int) -> bytes:
        msg = i2c_msg.read(self.address, length)
        self._bus.i2c_rdwr(msg)
        return bytes(list(msg))

    def close(self) -> None:
        self._bus.close()


@dataclass(frozen=True)
class MotorStatus:
    feed: int
    skip: int
    running: bool
    calibrated: bool

    @classmethod
    def decode(cls, reply: bytes) -> "MotorStatus":
        return cls(
            feed=reply[0],
            skip=reply[1] & 0x3F,
            running=bool(reply[1] & 0x80),
            calibrated=bool(reply[1] & 0x40),
        )


def quantise_ms(ms: int) -> int:
    """Round milliseconds half up to 250 ms units."""
    return (ms + WATERING_UNIT_MS // 2) // WATERING_UNIT_MS


def angle_to_counts(angle: int) -> int:
    return (angle * CPR // 360) % CPR


class Wuc(WateringPort):
    """Watering micro controller reached over I2C."""

    def __init__(self, connection, sleep: Callable[[float], None] = time.sleep) -> None:
        self._connection = connection
        self._sleep = sleep
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Transport helpers (caller holds the lock)
    # ------------------------------------------------------------------ #
    def _write(self, data: Iterable[int]) -> None:
        payload = bytes(data)
        try:
            written = self._connection.write(payload)
        except OSError as exc:
            raise DeviceError(f"I2C write failed: {exc}") from exc
        if written is not None and written < len(payload):
            raise DeviceError(f"Partial I2C write: {written}/{len(payload)} bytes")

    def _read(self, length: int) -> bytes:
        try:
            reply = self._connection.read(length)
        except OSError as exc:
            raise DeviceError(f"I2C read failed: {exc}") from exc
        if len(reply) != length:
            raise DeviceError(f"Short I2C read: {len(reply)}/{length} bytes")
        return reply

    def _read_byte_register(self, command: int, what: str) -> int:
        self._write([command])
        value = self._read(1)[0]
        if value == SENSOR_FAILURE:
            raise DeviceError(f"Failed to read {what}")
        return value

    def _wait_for_stop(self, timeout: int) -> MotorStatus:
        for _ in range(timeout):
            self._sleep(1)
            try:
                status = MotorStatus.decode(self._read(2))
            except DeviceError as exc:
                logger.warning("Failed to read motor status: %s", exc)
                continue
            logger.debug("Motor status: %s", status)
            if not status.running:
                return status

        try:
            self._write([CMD_STOP])
        except DeviceError as exc:
            logger.error("Failed to stop motor: %s", exc)
        raise DeviceError("Motor did not finish in time")

    # ------------------------------------------------------------------ #
    # WateringPort
    # ------------------------------------------------------------------ #
    @synchronized
    def read_weight(self) -> int:
        self._write([CMD_GET_WEIGHT])
        self._sleep(WEIGHT_SETTLE_S)
        reply = self._read(2)
        if reply[1] == SENSOR_FAILURE:
            raise DeviceError("Weight measurement failed")
        return reply[1] << 8 | reply[0]

    @synchronized
    def read_last_watering(self) -> int:
        return self._read_byte_register(CMD_GET_LAST_WATERING, "last watering") * WATERING_UNIT_MS

    @synchronized
    def read_water_limit(self) -> int:
        return self._read_byte_register(CMD_GET_WATER_LIMIT, "water limit")

    @synchronized
    def do_watering(self, start_ms: int, duration_ms: int) -> int:
        start_units = quantise_ms(start_ms)
        if not 0 <= start_units <= WATERING_MAX_UNITS:
            logger.warning("Watering start time out of range: %s (%s ms)", start_units, start_ms)
            return 0
        units = quantise_ms(duration_ms)
        if not 0 <= units <= WATERING_MAX_UNITS:
            logger.warning("Watering time out of range: %s (%s ms)", units, duration_ms)
            return 0

        logger.info("Watering %s+%s ms", start_units * WATERING_UNIT_MS, units * WATERING_UNIT_MS)
        try:
            self._write([CMD_WATERING, start_units, units])
            self._sleep((start_ms + duration_ms + WATERING_SETTLE_MS) / 1000.0)
            delivered = self._read(1)[0]
            if delivered == 0:
                # pump waits for the turntable, wait for the motor and ask again
                self._write([CMD_GET_MOTOR_STATUS])
                try:
                    self._wait_for_stop(MOTOR_TIMEOUT_S)
                except DeviceError as exc:
                    logger.warning("Motor still busy after watering: %s", exc)
                delivered = self._read_byte_register(CMD_GET_LAST_WATERING, "last watering")
        except DeviceError as exc:
            logger.error("Watering failed: %s", exc)
            return 0

        logger.info("Watering done, %s ms delivered", delivered * WATERING_UNIT_MS)
        return delivered * WATERING_UNIT_MS

    @synchronized
    def rotate(self, angle: int) -> None:
        if angle < 0:
            raise ValidationError(f"Rotation angle must not be negative: {angle}")
        counts = angle_to_counts(angle)
        logger.info("Rotating to %s degrees (%s counts)", angle % 360, counts)
        self._write([CMD_ROTATE, counts & 0xFF, (counts >> 8) & 0xFF])
        self._wait_for_stop(MOTOR_TIMEOUT_S)

    @synchronized
    def echo(self, data: bytes) -> bytes:
        self._write(bytes([CMD_ECHO]) + bytes(data))
        return self._read(len(data) + 1)

    def close(self) -> None:
        close = getattr(self._connection, "close", None)
        if close is not None:
            close()
