"""
Helpers for constructing MQTT clients that work across paho-mqtt 1.x and 2.x.

The 2.x releases add a callback API version flag; we pin the version 1
callback signatures used by the publisher while remaining compatible with
older installations that do not expose the enum.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

_TLS_SCHEMES = {"ssl", "tls", "mqtts"}


@dataclass(frozen=True)
class BrokerAddress:
    host: str
    port: int
    tls: bool


def parse_broker_url(url: str) -> BrokerAddress:
    """Split ``tcp://host:port`` (or ``ssl://``, or a bare ``host:port``) into parts."""
    parsed = urlparse(url if "://" in url else f"tcp://{url}")
    tls = parsed.scheme.lower() in _TLS_SCHEMES
    if not parsed.hostname:
        raise ValueError(f"Invalid MQTT server address: {url!r}")
    return BrokerAddress(host=parsed.hostname, port=parsed.port or (8883 if tls else 1883), tls=tls)


def create_mqtt_client(client_id: str = "", **kwargs: Any) -> mqtt.Client:
    """
    Build an MQTT client that is forward-compatible with paho-mqtt 2.x and
    gracefully degrades when running with 1.x.

    Args:
        client_id: Optional client identifier.
        kwargs: Extra keyword arguments forwarded to the client constructor.
    """
    client_kwargs: Dict[str, Any] = {"client_id": client_id or ""}
    client_kwargs["protocol"] = kwargs.pop("protocol", getattr(mqtt, "MQTTv311", 4))
    client_kwargs.update(kwargs)

    callback_api_version = getattr(mqtt, "CallbackAPIVersion", None)
    if callback_api_version is not None and hasattr(callback_api_version, "VERSION1"):
        client_kwargs["callback_api_version"] = callback_api_version.VERSION1

    try:
        return mqtt.Client(**client_kwargs)
    except TypeError:
        # paho 1.x has no callback_api_version argument
        client_kwargs.pop("callback_api_version", None)
        return mqtt.Client(**client_kwargs)
