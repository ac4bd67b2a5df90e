"""
Dryout and pump model estimation.

The estimator walks the hourly history once and splits it into two kinds of
samples:

* dryout samples: weight lost over an hour that followed an hour without
  watering,
* regression samples: ``(weight gain, pump ms)`` for an hour that followed
  a watering.

The hourly weight of entry ``i`` is taken before the pump runs in that hour,
so a watering at ``i - 1`` shows up as the weight gain between ``i - 1`` and
``i``. Both rings are aligned at their tails.

The dryout rate is a trimmed mean scaled to 24 h. The pump model is an
ordinary least-squares fit, stabilised by two anchor points taken from the
previous model, with clamping so that neither parameter ever turns negative.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from plantcare.domain.measurements import PumpModel

logger = logging.getLogger(__name__)

# Fraction of dryout samples dropped at each end (one per six hours)
OUTLIER_FRACTION = 6
# Anchor spread around the average gain
ANCHOR_SPREAD = 8


@dataclass(frozen=True)
class Estimate:
    dryout: int
    scale: int
    offset: int

    @property
    def pump_model(self) -> PumpModel:
        return PumpModel(scale=self.scale, offset=self.offset)

    def to_dict(self) -> dict:
        return {"dryout": self.dryout, "scale": self.scale, "offset": self.offset}


def collect_samples(weights: Sequence[int], waterings: Sequence[int]):
    """Return ``(dryout_samples, gains, pump_times)`` from the aligned history."""
    num_w = len(waterings)
    num_m = len(weights)
    dryout_samples: List[int] = []
    gains: List[int] = []
    pump_times: List[int] = []

    prev_m = 0
    prev_w = 0
    for i, w in enumerate(waterings):
        if num_w - i <= num_m:
            m = weights[num_m - num_w + i]
            if prev_m > 0:
                if prev_w > 0:
                    gains.append(m - prev_m)
                    pump_times.append(prev_w)
                else:
                    dryout_samples.append(prev_m - m)
            prev_m = m
        prev_w = w
    return dryout_samples, gains, pump_times


def trimmed_dryout(samples: Sequence[int]) -> int:
    """Trimmed mean of hourly losses, scaled to 24 h and rounded half up."""
    if not samples:
        logger.info("No dryout measured")
        return 0
    ordered = np.sort(np.asarray(samples, dtype=np.int64))
    n = len(ordered)
    bound = n // OUTLIER_FRACTION
    kept = ordered[bound : n - bound]
    count = len(kept)
    if count == 0:
        return 0
    total = int(kept.sum()) * 24
    return (2 * total + count) // (2 * count)


def estimate(weights: Sequence[int], waterings: Sequence[int], model: PumpModel) -> Estimate:
    """Estimate ``(dryout per 24 h, pump scale, pump offset)`` from history.

    Pure function: the inputs are not modified and no state is kept.
    """
    dryout_samples, gains, pump_times = collect_samples(weights, waterings)
    dryout = trimmed_dryout(dryout_samples)

    wg = np.asarray(gains, dtype=np.float64)
    wt = np.asarray(pump_times, dtype=np.float64)

    if model.scale > 0 and wg.size > 0:
        avg = float(wg.mean())
        anchors = np.array([avg - avg / ANCHOR_SPREAD, avg + avg / ANCHOR_SPREAD])
        wg = np.concatenate([wg, anchors])
        wt = np.concatenate([wt, anchors * model.scale + model.offset])

    wn = float(wg.size)
    wg_sum = float(wg.sum())
    wg_sq_sum = float(np.dot(wg, wg))
    wt_sum = float(wt.sum())
    dot = float(np.dot(wg, wt))

    spread = wg_sq_sum - wg_sum * wg_sum / wn if wn > 0 else 0.0
    if wn > 0 and wg_sum * wg_sum < wg_sq_sum * wn and spread > 0:
        fitted = (dot - wt_sum * wg_sum / wn) / spread
        offset = int(wt_sum / wn - fitted * wg_sum / wn)
        scale = int(fitted)
    else:
        logger.info(
            "Cannot fit pump model (n=%s, gain sum=%s, gain sq sum=%s), keeping %s",
            int(wn),
            wg_sum,
            wg_sq_sum,
            model,
        )
        scale, offset = model.scale, model.offset

    if offset < 0:
        logger.info("Clamping pump offset (scale=%s, offset=%s)", scale, offset)
        offset = 0
        if wg_sum > 0:
            scale = math.floor(wt_sum / wg_sum)
    elif scale < 0:
        logger.info("Clamping pump scale (scale=%s, offset=%s)", scale, offset)
        if wn > 0:
            offset = math.floor(0.5 * wt_sum / wn)
        scale = math.floor(0.5 * wt_sum / wg_sum) if wg_sum > 0 else 0

    return Estimate(dryout=dryout, scale=max(scale, 0), offset=max(offset, 0))
