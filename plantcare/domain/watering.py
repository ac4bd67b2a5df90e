"""Per-hour watering decision.

Only the decision rule clamps pump durations; the device port refuses
out-of-range requests instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from plantcare.domain.estimator import Estimate
from plantcare.domain.plant_config import PlantConfig


@dataclass(frozen=True)
class WateringDecision:
    """Intermediate values of one decision, kept for logging and tests."""

    dur_w: int
    prev_weight: int
    dw: int
    raw_ms: int
    clamped_ms: int
    command_ms: int
    estimate: Estimate


def clamp(value: int, low: int, high: int) -> int:
    if value < low:
        return low
    if value > high:
        return high
    return value


def hours_since_watering(waterings: Sequence[int]) -> int:
    """Hours since the most recent non-zero watering, 1 if there was none."""
    n = len(waterings)
    for i in range(n - 1, -1, -1):
        if waterings[i] > 0:
            return n - i
    return 1


def reference_weight(weight: int, weights: Sequence[int], dur_w: int) -> int:
    """Weight recorded right after the last watering, else *weight*."""
    if dur_w > 1 and len(weights) >= dur_w:
        return weights[len(weights) - dur_w + 1]
    return weight


def desired_gain(weight: int, prev_weight: int, dryout: int, dur_w: int, config: PlantConfig) -> int:
    if weight > config.low_level:
        dw = prev_weight - int(dryout * dur_w / 24) + config.daily_refill - weight
        return min(dw, prev_weight - weight)
    return config.high_level - weight


def decide_watering(
    weight: int,
    weights: Sequence[int],
    waterings: Sequence[int],
    config: PlantConfig,
    estimate: Estimate,
) -> WateringDecision:
    """Compute the pump duration to command for the watering hour.

    The commanded duration is the clamped pump time minus the model offset,
    because the offset is sent to the port separately as pre-charge time.
    A non-positive ``command_ms`` means no watering.
    """
    dur_w = hours_since_watering(waterings)
    prev_weight = reference_weight(weight, weights, dur_w)
    dw = desired_gain(weight, prev_weight, estimate.dryout, dur_w, config)
    raw_ms = estimate.scale * dw + estimate.offset
    clamped_ms = clamp(raw_ms, config.water_start, config.max_water)
    return WateringDecision(
        dur_w=dur_w,
        prev_weight=prev_weight,
        dw=dw,
        raw_ms=raw_ms,
        clamped_ms=clamped_ms,
        command_ms=clamped_ms - estimate.offset,
        estimate=estimate,
    )
