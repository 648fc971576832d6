"""Tests for the named configuration store.

Author: João Pedro Cunha
"""

import pytest

from pitstrategy.config import RaceConfig
from pitstrategy.errors import ConfigNotFound, ConfigStoreError, DuplicateConfigName
from pitstrategy.store import ConfigStore


@pytest.fixture
def store(tmp_path):
    return ConfigStore(tmp_path / "configs.db")


def create_payload(laps: int = 57):
    return RaceConfig(total_laps=laps, base_lap_time=92.0, fuel_load=110.0).to_dict()


class TestConfigStore:
    """Tests for save, list, get and delete."""

    def test_save_and_get(self, store):
        payload = create_payload()
        saved = store.save("bahrain", payload)

        loaded = store.get("bahrain")

        assert saved.name == "bahrain"
        assert saved.created_at > 0
        assert loaded.config == payload
        assert RaceConfig.from_dict(loaded.config).total_laps == 57

    def test_name_is_trimmed(self, store):
        store.save("  monza  ", create_payload(53))

        assert store.get("monza").config["totalLaps"] == 53

    def test_duplicate_name(self, store):
        store.save("bahrain", create_payload())

        with pytest.raises(DuplicateConfigName):
            store.save("bahrain", create_payload(50))

        assert store.get("bahrain").config["totalLaps"] == 57

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name(self, store, name):
        with pytest.raises(ConfigStoreError):
            store.save(name, create_payload())

    def test_missing_config(self, store):
        with pytest.raises(ConfigNotFound):
            store.get("nowhere")

    def test_list_most_recent_first(self, store):
        store.save("first", create_payload())
        store.save("second", create_payload())
        store.save("third", create_payload())

        names = [entry.name for entry in store.list()]

        assert names == ["third", "second", "first"]
        assert all(entry.config is None for entry in store.list())

    def test_delete(self, store):
        store.save("bahrain", create_payload())

        assert store.delete("bahrain") is True
        assert store.delete("bahrain") is False
        assert store.list() == []

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "configs.db"
        ConfigStore(path).save("spa", create_payload(44))

        assert ConfigStore(path).get("spa").config["totalLaps"] == 44
