from plantcare.hardware.mqtt.client_factory import create_mqtt_client, parse_broker_url
from plantcare.hardware.mqtt.publisher import HealthStatus, MQTTPublisher

__all__ = ["HealthStatus", "MQTTPublisher", "create_mqtt_client", "parse_broker_url"]
