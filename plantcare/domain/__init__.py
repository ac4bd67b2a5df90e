"""Pure domain logic: measurements, estimation and the watering rule."""
