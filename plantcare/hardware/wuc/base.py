"""
Watering Port Interface
=======================

Abstract interface to the watering micro controller. The controller only
talks to this interface; the two-wire bus protocol stays in the concrete
implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class WateringPort(ABC):
    """
    Abstract base class for the watering micro controller.

    All operations are serialised by the implementation; at most one bus
    transaction is in flight at a time.
    """

    @abstractmethod
    def read_weight(self) -> int:
        """
        Read the scale.

        Returns:
            Non-negative weight in device units.

        Raises:
            DeviceError: On transport failure, short read or the sensor's
                failure sentinel.
        """

    @abstractmethod
    def do_watering(self, start_ms: int, duration_ms: int) -> int:
        """
        Run the pump for a pre-charge of ``start_ms`` followed by ``duration_ms``.

        Returns:
            Delivered milliseconds, 0 if the request was refused or failed.
        """

    @abstractmethod
    def rotate(self, angle: int) -> None:
        """
        Move the turntable to an absolute angle in degrees.

        Raises:
            ValidationError: If ``angle`` is negative.
            DeviceError: On transport failure or when the motor does not
                stop in time.
        """

    @abstractmethod
    def echo(self, data: bytes) -> bytes:
        """Round-trip diagnostic."""

    @abstractmethod
    def read_last_watering(self) -> int:
        """Duration of the most recent pump burst in milliseconds."""

    @abstractmethod
    def read_water_limit(self) -> int:
        """Raw reading of the reservoir limit sensor."""

    def close(self) -> None:
        """Release the underlying transport."""
