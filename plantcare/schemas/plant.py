"""
Plant Schemas
=============

Pydantic models for the persisted state files and plant config edits.
Field aliases are the on-disk / wire keys.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from plantcare.domain.plant_config import PlantConfig


class PlantConfigSchema(BaseModel):
    """Plant configuration as stored in the plant config file."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    water_hour: int = Field(default=20, alias="waterhour", ge=0, le=23, description="Local watering hour")
    water_start: int = Field(default=2000, alias="start", ge=0, description="Minimum pump time (ms)")
    max_water: int = Field(default=20000, alias="max", ge=0, description="Maximum pump time (ms)")
    low_level: int = Field(default=1400, alias="low", description="Critical low weight")
    high_level: int = Field(default=1500, alias="high", description="Refill target weight")
    daily_refill: int = Field(default=10, alias="refill", description="Extra weight per day")
    level_range: int = Field(default=100, alias="range", ge=0, description="Informational deadband")
    update_hour: int = Field(default=9, alias="updatehour", ge=0, le=23, description="UTC imaging hour")
    fixed_orientation: Optional[int] = Field(
        default=None, alias="orientation", ge=0, description="Fixed turntable angle"
    )

    @model_validator(mode="after")
    def check_pump_bounds(self):
        if self.max_water < self.water_start:
            raise ValueError("max must not be smaller than start")
        return self

    @classmethod
    def from_domain(cls, config: PlantConfig) -> "PlantConfigSchema":
        return cls.model_validate(config.to_dict())

    def to_domain(self) -> PlantConfig:
        return PlantConfig(**self.model_dump(by_alias=False))

    def to_file(self) -> dict:
        return self.model_dump(by_alias=True)

    @classmethod
    def file_keys(cls, payload: dict) -> dict:
        """Rename field-name keys in *payload* to their file aliases."""
        aliases = {name: field.alias for name, field in cls.model_fields.items() if field.alias}
        result: dict = {}
        for key, value in payload.items():
            alias = aliases.get(key, key)
            if alias in result:
                raise ValueError(f"{alias} given more than once")
            result[alias] = value
        return result


class MeasurementFileSchema(BaseModel):
    """Hourly rings and the hour-of-day stamp."""

    model_config = ConfigDict(extra="ignore")

    weight: List[int] = Field(default_factory=list)
    water: List[int] = Field(default_factory=list)
    time: int = Field(default=0, ge=0, le=23)

    @model_validator(mode="after")
    def check_aligned(self):
        if len(self.weight) != len(self.water):
            raise ValueError(f"weight has {len(self.weight)} entries but water has {len(self.water)}")
        return self


class PumpModelFileSchema(BaseModel):
    """Learned pump model."""

    model_config = ConfigDict(extra="ignore")

    scale: int = 0
    offset: int = 0
