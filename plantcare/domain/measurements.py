"""Measurement ring buffers and the learned pump model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from plantcare.constants import DEFAULT_BACKLOG_DAYS, HOURLY_MEDIAN_WINDOW, MINUTE_BACKLOG


def push(buf: List[int], value: int, capacity: int) -> None:
    """Append *value* to *buf* in place, dropping the oldest entries beyond *capacity*."""
    overflow = len(buf) + 1 - capacity
    if overflow > 0:
        del buf[:overflow]
    buf.append(value)


def hour_median(minute_weights: List[int]) -> int:
    """Median of the last (up to) 60 minute samples.

    For an even window the upper median is returned, so the result is
    always one of the samples.
    """
    if not minute_weights:
        raise ValueError("hour_median requires at least one sample")
    window = sorted(minute_weights[-HOURLY_MEDIAN_WINDOW:])
    return window[len(window) // 2]


@dataclass
class MinuteSeries:
    """Per-minute weights, not persisted."""

    weights: List[int] = field(default_factory=list)
    minute: Optional[int] = None
    capacity: int = MINUTE_BACKLOG

    def append(self, value: int) -> None:
        push(self.weights, value, self.capacity)

    @property
    def last(self) -> Optional[int]:
        return self.weights[-1] if self.weights else None


@dataclass
class HourlySeries:
    """Element-aligned hourly weights and commanded watering durations."""

    weights: List[int] = field(default_factory=list)
    waterings: List[int] = field(default_factory=list)
    hour: int = 0
    capacity: int = DEFAULT_BACKLOG_DAYS * 24

    def append(self, weight: int, watering_ms: int, hour: int) -> None:
        push(self.weights, weight, self.capacity)
        push(self.waterings, watering_ms, self.capacity)
        self.hour = hour

    def trim(self) -> None:
        """Keep only the most recent *capacity* entries of each ring."""
        del self.weights[: max(0, len(self.weights) - self.capacity)]
        del self.waterings[: max(0, len(self.waterings) - self.capacity)]

    @property
    def last_weight(self) -> Optional[int]:
        return self.weights[-1] if self.weights else None


@dataclass(frozen=True)
class PumpModel:
    """Affine pump model: ``pump_ms(dw) = scale * dw + offset``."""

    scale: int = 0
    offset: int = 0

    def pump_ms(self, weight_gain: int) -> int:
        return self.scale * weight_gain + self.offset
