"""
History Store Tests
===================
State file round trips, permissions and error handling.
"""
import json
import os
import stat

import pytest

from plantcare.domain.exceptions import ConfigurationError, PersistenceError
from plantcare.domain.measurements import PumpModel
from plantcare.domain.plant_config import PlantConfig
from plantcare.services.history_store import HistoryStore
from plantcare.utils.persistent_store import load_json, save_json


class TestMeasurements:
    def test_round_trip(self, tmp_path):
        path = str(tmp_path / "data.json")
        store = HistoryStore()
        store.hourly.append(1500, 0, 10)
        store.hourly.append(1490, 2500, 11)
        store.save_measurements(path)

        loaded = HistoryStore()
        loaded.load_measurements(path)
        assert loaded.hourly.weights == [1500, 1490]
        assert loaded.hourly.waterings == [0, 2500]
        assert loaded.hourly.hour == 11

    def test_file_format(self, tmp_path):
        path = str(tmp_path / "data.json")
        store = HistoryStore()
        store.hourly.append(1500, 0, 7)
        store.save_measurements(path)
        with open(path) as fh:
            assert json.load(fh) == {"weight": [1500], "water": [0], "time": 7}

    def test_missing_file_keeps_defaults(self, tmp_path):
        store = HistoryStore()
        store.load_measurements(str(tmp_path / "absent.json"))
        assert store.hourly.weights == []
        assert store.hourly.hour == 0

    def test_loaded_rings_are_trimmed_to_backlog(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"weight": list(range(30)), "water": [0] * 30, "time": 3}))
        store = HistoryStore(backlog_days=1)
        store.load_measurements(str(path))
        assert store.hourly.weights == list(range(6, 30))
        assert len(store.hourly.waterings) == 24

    def test_unequal_ring_lengths_are_rejected(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"weight": [1000, 1010, 1020], "water": [0], "time": 3}))
        store = HistoryStore()
        with pytest.raises(PersistenceError, match="weight has 3 entries but water has 1"):
            store.load_measurements(str(path))
        assert store.hourly.weights == []
        assert store.hourly.waterings == []

    @pytest.mark.parametrize(
        "content",
        ["{not json", json.dumps({"weight": "heavy"}), json.dumps({"weight": [], "time": 31})],
    )
    def test_invalid_file_is_an_error(self, tmp_path, content):
        path = tmp_path / "data.json"
        path.write_text(content)
        with pytest.raises(PersistenceError):
            HistoryStore().load_measurements(str(path))


class TestPumpModel:
    def test_round_trip(self, tmp_path):
        path = str(tmp_path / "watertime.json")
        store = HistoryStore()
        store.pump_model = PumpModel(scale=6, offset=83)
        store.save_pump_model(path)

        loaded = HistoryStore()
        loaded.load_pump_model(path)
        assert loaded.pump_model == PumpModel(6, 83)

    def test_missing_file_is_zero_model(self, tmp_path):
        store = HistoryStore()
        store.load_pump_model(str(tmp_path / "absent.json"))
        assert store.pump_model == PumpModel(0, 0)


class TestPlantConfig:
    def test_round_trip_uses_file_keys(self, tmp_path):
        path = str(tmp_path / "plant.conf")
        store = HistoryStore()
        store.save_plant_config(path, PlantConfig(water_hour=6, fixed_orientation=90))
        with open(path) as fh:
            saved = json.load(fh)
        assert saved["waterhour"] == 6
        assert saved["orientation"] == 90

        store.load_plant_config(path)
        assert store.config.water_hour == 6
        assert store.config.fixed_orientation == 90

    def test_unknown_key_is_a_configuration_error(self, tmp_path):
        path = tmp_path / "plant.conf"
        path.write_text(json.dumps({"waterhour": 6, "colour": "green"}))
        with pytest.raises(ConfigurationError):
            HistoryStore().load_plant_config(str(path))

    def test_unreadable_file_is_a_configuration_error(self, tmp_path):
        path = tmp_path / "plant.conf"
        path.write_text("waterhour = 6")
        with pytest.raises(ConfigurationError):
            HistoryStore().load_plant_config(str(path))


def test_saved_files_are_owner_only(tmp_path):
    path = str(tmp_path / "state" / "data.json")
    save_json(path, {"weight": []})
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    assert not os.path.exists(path + ".tmp")
    assert load_json(path) == {"weight": []}


def test_unserialisable_data_leaves_no_temp_file(tmp_path):
    path = str(tmp_path / "data.json")
    with pytest.raises(PersistenceError):
        save_json(path, {"weight": object()})
    assert not os.path.exists(path)
    assert not os.path.exists(path + ".tmp")


def test_snapshot_is_a_copy():
    store = HistoryStore()
    store.hourly.append(1500, 0, 4)
    store.minutes.append(1501)
    store.minutes.minute = 17

    snap = store.snapshot()
    assert set(snap) == {"data", "mindata", "config", "watertime"}
    assert snap["mindata"] == {"weight": [1501], "time": 17}
    assert snap["config"]["waterhour"] == 20

    snap["data"]["weight"].append(1)
    assert store.hourly.weights == [1500]
