"""Protocol constants and defaults shared across the station."""

# Ring buffer sizes
MINUTE_BACKLOG = 480
DEFAULT_BACKLOG_DAYS = 12
HOURLY_MEDIAN_WINDOW = 60

# Watering micro controller (I2C)
WUC_BUS = 1
WUC_ADDRESS = 0x10

CMD_GET_LAST_WATERING = 0x10
CMD_GET_WATER_LIMIT = 0x11
CMD_GET_WEIGHT = 0x12
CMD_ROTATE = 0x13
CMD_STOP = 0x14
CMD_GET_MOTOR_STATUS = 0x15
CMD_WATERING = 0x1A
CMD_ECHO = 0x29

SENSOR_FAILURE = 0xFF

# Turntable encoder counts per revolution
CPR = 15808

WATERING_UNIT_MS = 250
WATERING_MAX_UNITS = 255
WATERING_SETTLE_MS = 500
WEIGHT_SETTLE_S = 0.7
MOTOR_TIMEOUT_S = 20

# Imaging pass
EXPOSURE_SWEEP = (-10, 0, 10)
PICTURE_ANGLE_STEP = 120
ROTATION_PER_DAY = 190
DEFAULT_SHRINK = 4

# Message bus
MQTT_TIMEOUT_S = 10.0
WATER_TOPIC_SUFFIX = "/water"
WEIGHT_TOPIC_SUFFIX = "/weight"

BASIC_AUTH_REALM = "plant"
