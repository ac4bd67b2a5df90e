"""
Shared test fixtures for the PlantCare test suite.

Provides:
- Fake I2C connection scripted with replies, for protocol tests
- Stub watering port, camera and MQTT publisher for controller tests
- State file paths under ``tmp_path``
- A station wired to the stubs

Usage:
    def test_example(station, stub_port):
        stub_port.weight = 1500
        station.minute_tick(0)
"""

from __future__ import annotations

import logging
import os
from collections import deque
from datetime import datetime, timezone
from typing import Iterable

import pytest

from plantcare.config import FilesConfig
from plantcare.domain.exceptions import DeviceError, ValidationError
from plantcare.hardware.wuc.base import WateringPort
from plantcare.services.history_store import HistoryStore
from plantcare.services.station import PlantStation

logging.getLogger("plantcare").setLevel(logging.WARNING)


# ============================== Fakes ======================================


class FakeConnection:
    """Scripted stand-in for :class:`I2CConnection`."""

    def __init__(self, replies: Iterable[bytes] = ()):
        self.writes: list[bytes] = []
        self.replies = deque(replies)
        self.short_write = False
        self.closed = False

    def write(self, data: bytes) -> int:
        self.writes.append(bytes(data))
        return len(data) - 1 if self.short_write else len(data)

    def read(self, length: int) -> bytes:
        if not self.replies:
            raise OSError("no reply scripted")
        reply = self.replies.popleft()
        if isinstance(reply, Exception):
            raise reply
        return reply

    def close(self) -> None:
        self.closed = True


class StubPort(WateringPort):
    """Watering port returning scripted weights and recording commands."""

    def __init__(self, weight: int | None = 1500):
        self.weight = weight
        self.watering_calls: list[tuple[int, int]] = []
        self.rotations: list[int] = []
        self.delivered: int | None = None
        self.rotate_error: Exception | None = None
        self.limit = 42
        self.last = 2500

    def read_weight(self) -> int:
        if self.weight is None:
            raise DeviceError("weight measurement failed")
        return self.weight

    def do_watering(self, start_ms: int, duration_ms: int) -> int:
        self.watering_calls.append((start_ms, duration_ms))
        return duration_ms if self.delivered is None else self.delivered

    def rotate(self, angle: int) -> None:
        if angle < 0:
            raise ValidationError("negative angle")
        self.rotations.append(angle)
        if self.rotate_error is not None:
            raise self.rotate_error

    def echo(self, data: bytes) -> bytes:
        return bytes([0x29]) + bytes(data)

    def read_last_watering(self) -> int:
        return self.last

    def read_water_limit(self) -> int:
        return self.limit


class FakeCamera:
    """Writes a tiny JPEG-like file instead of running raspistill."""

    def __init__(self, tmp_dir):
        self.tmp_dir = str(tmp_dir)
        self.calls: list[tuple[str | None, int, int]] = []

    def take_picture(self, folder, ev, shrink=0):
        self.calls.append((folder, ev, shrink))
        target = folder or self.tmp_dir
        os.makedirs(target, exist_ok=True)
        path = os.path.join(target, f"image-tmp{len(self.calls)}.jpg")
        with open(path, "wb") as fh:
            fh.write(b"\xff\xd8fake\xff\xd9")
        return path


class FakePublisher:
    def __init__(self):
        self.messages: list[tuple[str, str, int, bool]] = []

    def publish(self, topic, payload, qos=0, retain=False):
        self.messages.append((topic, str(payload), qos, retain))
        return True

    def disconnect(self):
        pass


# ============================== Fixtures ===================================


@pytest.fixture()
def files(tmp_path) -> FilesConfig:
    return FilesConfig(
        config=str(tmp_path / "plant.conf"),
        data=str(tmp_path / "data.json"),
        watertime=str(tmp_path / "watertime.json"),
        pictures=str(tmp_path / "pics"),
        pushscript=str(tmp_path / "push.sh"),
    )


@pytest.fixture()
def stub_port() -> StubPort:
    return StubPort()


@pytest.fixture()
def fake_camera(tmp_path) -> FakeCamera:
    return FakeCamera(tmp_path / "camtmp")


@pytest.fixture()
def fake_publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture()
def store() -> HistoryStore:
    return HistoryStore()


@pytest.fixture()
def clock():
    """Mutable clock; set ``clock.now`` to move time."""

    class _Clock:
        now = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

        def __call__(self):
            return self.now

    return _Clock()


@pytest.fixture()
def station(store, stub_port, files, fake_camera, fake_publisher, clock) -> PlantStation:
    return PlantStation(
        store,
        stub_port,
        files,
        camera=fake_camera,
        publisher=fake_publisher,
        topic="plant",
        now_fn=clock,
    )


@pytest.fixture()
def connection_factory():
    """Build a :class:`FakeConnection` scripted with replies."""

    def _make(replies=()):
        return FakeConnection(replies)

    return _make
