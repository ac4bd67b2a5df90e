from plantcare.schemas.plant import MeasurementFileSchema, PlantConfigSchema, PumpModelFileSchema

__all__ = ["MeasurementFileSchema", "PlantConfigSchema", "PumpModelFileSchema"]
