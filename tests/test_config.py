import pytest

from plantcare.config import HTTPConfig, ServerConfig, load_config, parse_config
from plantcare.domain.exceptions import ConfigurationError

SAMPLE = """
[HTTP]
Addr = "127.0.0.1:8080"
cert = "/etc/ssl/plant.crt"
key = "/etc/ssl/plant.key"

[login]
user = "gardener"
pass = "$2b$12$abcdefghijklmnopqrstuu"

[files]
data = "/tmp/plant/data.json"

[mqtt]
server = "tcp://broker:1883"
topic = "home/plant"
clientid = "plant-1"

[device]
bus = 0
address = 0x11

[station]
backlog_days = 3
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "server.toml"
    path.write_text(SAMPLE)
    return path


def test_load_config(config_file):
    config = load_config(str(config_file))
    assert config.http.host == "127.0.0.1"
    assert config.http.port == 8080
    assert config.http.tls_enabled
    assert config.login.user == "gardener"
    assert config.login.password.startswith("$2b$")
    assert config.files.data == "/tmp/plant/data.json"
    assert config.files.watertime == "/var/opt/plantcare/watertime.json"
    assert config.mqtt.enabled
    assert config.mqtt.client_id == "plant-1"
    assert (config.device.bus, config.device.address) == (0, 0x11)
    assert config.station.backlog_days == 3


def test_config_path_from_environment(config_file, monkeypatch):
    monkeypatch.setenv("PLANTCARE_CONFIG", str(config_file))
    assert load_config().login.user == "gardener"


def test_defaults_for_empty_file():
    config = parse_config({})
    assert config.http.port == 80
    assert config.http.host == "0.0.0.0"
    assert not config.http.tls_enabled
    assert not config.mqtt.enabled
    assert config.station.backlog_days == 12


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path / "absent.toml"))


def test_malformed_file(tmp_path):
    path = tmp_path / "server.toml"
    path.write_text("[http\naddr = ")
    with pytest.raises(ConfigurationError):
        load_config(str(path))


@pytest.mark.parametrize(
    "data",
    [
        {"device": {"bus": "one"}},
        {"device": {"bus": True}},
        {"login": {"user": 7}},
        {"http": "addr"},
    ],
)
def test_type_errors(data):
    with pytest.raises(ConfigurationError):
        parse_config(data)


def test_unknown_keys_are_ignored(caplog):
    config = parse_config({"camera": {"exe": "/usr/bin/libcamera-still", "quality": 90}})
    assert config.camera.exe == "/usr/bin/libcamera-still"
    assert "quality" in caplog.text


def test_non_positive_backlog(tmp_path):
    path = tmp_path / "server.toml"
    path.write_text("[station]\nbacklog_days = 0\n")
    with pytest.raises(ConfigurationError):
        load_config(str(path))


def test_invalid_listen_port():
    with pytest.raises(ConfigurationError):
        HTTPConfig(addr="localhost:http").port


def test_debug_from_environment(monkeypatch):
    monkeypatch.setenv("PLANTCARE_DEBUG", "true")
    monkeypatch.setenv("PLANTCARE_LOG_DIR", "/tmp/plant-logs")
    config = ServerConfig()
    assert config.debug is True
    assert config.log_dir == "/tmp/plant-logs"
