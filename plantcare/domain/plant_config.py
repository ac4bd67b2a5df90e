from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PlantConfig:
    """User-editable plant settings.

    Attributes:
        water_hour: Local hour-of-day at which automatic watering may run.
        water_start: Lower clamp on the pump duration (ms).
        max_water: Upper clamp on the pump duration (ms).
        low_level: Weight below which a refill to ``high_level`` is forced.
        high_level: Target weight when refilling from below ``low_level``.
        daily_refill: Weight added on top of the predicted daily dryout.
        level_range: Admissible deadband, informational only.
        update_hour: UTC hour of the daily rotation and photo pass.
        fixed_orientation: Absolute angle overriding the daily precession.
    """

    water_hour: int = 20
    water_start: int = 2000
    max_water: int = 20000
    low_level: int = 1400
    high_level: int = 1500
    daily_refill: int = 10
    level_range: int = 100
    update_hour: int = 9
    fixed_orientation: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
