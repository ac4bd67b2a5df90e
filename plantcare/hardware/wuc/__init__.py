from plantcare.hardware.wuc.base import WateringPort
from plantcare.hardware.wuc.i2c_wuc import I2CConnection, MotorStatus, Wuc

__all__ = ["I2CConnection", "MotorStatus", "WateringPort", "Wuc"]
