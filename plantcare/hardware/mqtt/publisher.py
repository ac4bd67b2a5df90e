"""
Optional MQTT publication of station events.

The publisher connects lazily on first use and never raises into the
control loop; failures are logged to the ``plantcare.mqtt`` logger and
counted in :class:`HealthStatus`.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime

import paho.mqtt.client as mqtt

from plantcare.constants import MQTT_TIMEOUT_S
from plantcare.hardware.mqtt.client_factory import create_mqtt_client, parse_broker_url
from plantcare.utils.time import utc_now

_mqtt_logger = logging.getLogger("plantcare.mqtt")


@dataclass
class HealthStatus:
    """Connection and publish counters of the MQTT publisher."""

    is_connected: bool = False
    last_error: str | None = None
    last_error_time: datetime | None = None
    connection_attempts: int = 0
    successful_publishes: int = 0
    failed_publishes: int = 0

    def mark_connected(self):
        self.is_connected = True
        self.last_error = None
        self.last_error_time = None

    def record_error(self, error):
        self.last_error = str(error)
        self.last_error_time = utc_now()


class MQTTPublisher:
    """
    Publishes station events to an MQTT broker.

    Args:
        server (str): Broker URL, e.g. ``tcp://broker:1883``.
        client_id (str): MQTT client id.
        user (str, optional): User name, empty for anonymous access.
        password (str, optional): Password for ``user``.
        timeout (float, optional): Seconds to wait for connect and publish.
        client (optional): Pre-built paho client, used by tests.
    """

    def __init__(self, server, client_id="", user="", password="", timeout=MQTT_TIMEOUT_S, client=None):
        self.address = parse_broker_url(server)
        self.timeout = timeout
        self.client = client or create_mqtt_client(client_id=client_id)
        if user:
            self.client.username_pw_set(user, password or None)
        if self.address.tls:
            self.client.tls_set()
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.health_status = HealthStatus()
        self._lock = threading.Lock()
        self._connected = threading.Event()
        self._loop_started = False

    def _on_connect(self, client, userdata, flags, rc):
        if rc == 0:
            self._connected.set()
            self.health_status.mark_connected()
            _mqtt_logger.info("Connected to MQTT broker %s:%s", self.address.host, self.address.port)
        else:
            self.health_status.record_error(f"connect refused, rc={rc}")
            _mqtt_logger.error("MQTT broker refused connection: rc=%s", rc)

    def _on_disconnect(self, client, userdata, rc):
        self._connected.clear()
        self.health_status.is_connected = False
        if rc != 0:
            _mqtt_logger.warning("Unexpected MQTT disconnect: rc=%s", rc)

    def _ensure_connected(self) -> bool:
        if self._connected.is_set():
            return True
        with self._lock:
            if not self._loop_started:
                self.health_status.connection_attempts += 1
                try:
                    self.client.connect(self.address.host, self.address.port, 60)
                except (OSError, ValueError) as exc:
                    self.health_status.record_error(exc)
                    _mqtt_logger.error("Error connecting to MQTT broker: %s", exc)
                    return False
                self.client.loop_start()
                self._loop_started = True
        if not self._connected.wait(self.timeout):
            _mqtt_logger.error("Timed out connecting to MQTT broker %s", self.address.host)
            return False
        return True

    def publish(self, topic: str, payload, qos: int = 0, retain: bool = False) -> bool:
        """Publish *payload* and wait until it is handed to the broker."""
        if not self._ensure_connected():
            self.health_status.failed_publishes += 1
            return False
        try:
            info = self.client.publish(topic, str(payload), qos=qos, retain=retain)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                raise RuntimeError(f"MQTT result code {info.rc}")
            info.wait_for_publish(timeout=self.timeout)
            if not info.is_published():
                raise TimeoutError(f"publish to {topic} not confirmed within {self.timeout}s")
        except (OSError, RuntimeError, ValueError) as exc:
            self.health_status.failed_publishes += 1
            self.health_status.record_error(exc)
            _mqtt_logger.error("Failed to publish to %s: %s", topic, exc)
            return False
        self.health_status.successful_publishes += 1
        _mqtt_logger.debug("Published to %s: %s", topic, payload)
        return True

    def disconnect(self):
        with self._lock:
            if not self._loop_started:
                return
            try:
                self.client.disconnect()
                self.client.loop_stop()
            except (OSError, RuntimeError) as exc:
                _mqtt_logger.error("Error disconnecting from MQTT broker: %s", exc)
            self._loop_started = False
            self._connected.clear()
            _mqtt_logger.info("Disconnected from MQTT broker")
