"""
Configuration for the PlantCare station
=======================================
Server settings are read once at startup from a TOML file (HTTP listener,
basic-auth login, state file locations, MQTT broker, I2C device, camera).
A handful of environment variables override the file. Also sets up the
logging configuration.
"""

import logging
import os
import sys
import tomllib
from contextlib import suppress
from dataclasses import dataclass, field, fields
from logging.handlers import RotatingFileHandler
from typing import Any

from plantcare.constants import DEFAULT_BACKLOG_DAYS, WUC_ADDRESS, WUC_BUS
from plantcare.domain.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = "server.toml"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


@dataclass
class HTTPConfig:
    addr: str = ":80"
    cert: str = ""
    key: str = ""

    @property
    def host(self) -> str:
        host, _, _ = self.addr.rpartition(":")
        return host or "0.0.0.0"

    @property
    def port(self) -> int:
        _, _, port = self.addr.rpartition(":")
        try:
            return int(port)
        except ValueError:
            raise ConfigurationError(f"Invalid listen address: {self.addr!r}") from None

    @property
    def tls_enabled(self) -> bool:
        return bool(self.cert and self.key)


@dataclass
class LoginConfig:
    user: str = "user"
    # bcrypt hash, see plantcare-passhash
    password: str = field(default="", metadata={"key": "pass"})


@dataclass
class FilesConfig:
    config: str = "/var/opt/plantcare/plant.conf"
    data: str = "/var/opt/plantcare/data.json"
    watertime: str = "/var/opt/plantcare/watertime.json"
    pictures: str = "/var/opt/plantcare/pics"
    pushscript: str = "/opt/bin/plantcare-push-pics.sh"


@dataclass
class MQTTConfig:
    server: str = ""
    topic: str = "plantcare"
    client_id: str = field(default="plantcare", metadata={"key": "clientid"})
    user: str = ""
    password: str = field(default="", metadata={"key": "pass"})

    @property
    def enabled(self) -> bool:
        return bool(self.server)


@dataclass
class DeviceConfig:
    bus: int = WUC_BUS
    address: int = WUC_ADDRESS


@dataclass
class CameraConfig:
    exe: str = "/opt/vc/bin/raspistill"


@dataclass
class StationConfig:
    backlog_days: int = DEFAULT_BACKLOG_DAYS


@dataclass
class ServerConfig:
    """Runtime configuration loaded from the server TOML file."""

    http: HTTPConfig = field(default_factory=HTTPConfig)
    login: LoginConfig = field(default_factory=LoginConfig)
    files: FilesConfig = field(default_factory=FilesConfig)
    mqtt: MQTTConfig = field(default_factory=MQTTConfig)
    device: DeviceConfig = field(default_factory=DeviceConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    station: StationConfig = field(default_factory=StationConfig)
    debug: bool = field(default_factory=lambda: _env_bool("PLANTCARE_DEBUG", False))
    log_dir: str = field(default_factory=lambda: os.getenv("PLANTCARE_LOG_DIR", "logs"))


def _build_section(cls, name: str, raw: Any):
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigurationError(f"[{name}] must be a table")
    values = {str(k).lower(): v for k, v in raw.items()}
    kwargs = {}
    for f in fields(cls):
        key = f.metadata.get("key", f.name)
        if key not in values:
            continue
        value = values.pop(key)
        expected = type(f.default)
        if not isinstance(value, expected) or isinstance(value, bool) != (expected is bool):
            raise ConfigurationError(f"[{name}] {key} must be of type {expected.__name__}")
        kwargs[f.name] = value
    if values:
        logging.getLogger(__name__).warning("Ignoring unknown keys in [%s]: %s", name, ", ".join(sorted(values)))
    return cls(**kwargs)


def parse_config(data: dict) -> ServerConfig:
    sections = {str(k).lower(): v for k, v in data.items()}
    return ServerConfig(
        http=_build_section(HTTPConfig, "http", sections.get("http")),
        login=_build_section(LoginConfig, "login", sections.get("login")),
        files=_build_section(FilesConfig, "files", sections.get("files")),
        mqtt=_build_section(MQTTConfig, "mqtt", sections.get("mqtt")),
        device=_build_section(DeviceConfig, "device", sections.get("device")),
        camera=_build_section(CameraConfig, "camera", sections.get("camera")),
        station=_build_section(StationConfig, "station", sections.get("station")),
    )


def load_config(path: str | None = None) -> ServerConfig:
    """Read the server config; an unreadable file is a :class:`ConfigurationError`."""
    path = path or os.getenv("PLANTCARE_CONFIG", DEFAULT_CONFIG_PATH)
    try:
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(f"Failed to read server config {path}: {exc}") from exc
    config = parse_config(data)
    if config.station.backlog_days < 1:
        raise ConfigurationError("[station] backlog_days must be positive")
    return config


def setup_logging(debug: bool = False, log_dir: str = "logs") -> None:
    """Setup logging configuration."""
    log_level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid duplicate handlers when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "plantcare_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "plantcare_file" for h in root.handlers)

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "plantcare_console"
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if not has_file:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "plantcare.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "plantcare_file"
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"plantcare_console", "plantcare_file"}:
            handler.setLevel(log_level)

    # MQTT traffic goes to its own rotating file
    mqtt_logger = logging.getLogger("plantcare.mqtt")
    if not any(getattr(h, "name", "") == "plantcare_mqtt" for h in mqtt_logger.handlers):
        mqtt_handler = RotatingFileHandler(
            os.path.join(log_dir, "devices_mqtt.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        mqtt_handler.name = "plantcare_mqtt"
        mqtt_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
        mqtt_logger.addHandler(mqtt_handler)
        mqtt_logger.setLevel(logging.INFO)
        mqtt_logger.propagate = False

    if not debug:
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    root.info("Logging initialized at level: %s", logging.getLevelName(log_level))
