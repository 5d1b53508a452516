import json
from pathlib import Path

import pytest

from tracking_core.exceptions import ConfigError
from tracking_core.plugin_config import PluginConfig


def test_load_writes_missing_defaults(tmp_path: Path):
    """
    A fresh install has no config file; loading should create one holding
    every registered default as nested JSON.
    """
    config = PluginConfig(tmp_path, "config")
    config.add_default("ga.enabled", True, "Whether Google Analytics tracking is enabled")
    config.add_default("ga.measurementId", "")
    config.load()

    on_disk = json.loads((tmp_path / "config.json").read_text())
    assert on_disk == {"ga": {"enabled": True, "measurementId": ""}}
    assert config.descriptions() == {"ga.enabled": "Whether Google Analytics tracking is enabled"}


def test_load_keeps_existing_values(tmp_path: Path):
    (tmp_path / "config.json").write_text(json.dumps({"ga": {"measurementId": "G-123"}}))

    config = PluginConfig(tmp_path, "config")
    config.add_default("ga.measurementId", "")
    config.add_default("ga.enabled", True)
    config.load()

    assert config.get_str("ga.measurementId") == "G-123"
    assert config.get_bool("ga.enabled") is True


def test_typed_getters_return_default_for_missing_keys(tmp_path: Path):
    config = PluginConfig(tmp_path, "config")
    config.load()

    assert config.get_bool("tracking.autoTrackPlayers", True) is True
    assert config.get_str("mods.other.measurementId", "") == ""
    assert config.get_int("rateLimit.maxRequestsPerMinute", 20) == 20


def test_get_int_rejects_booleans(tmp_path: Path):
    """bool is an int subclass in Python, but `true` is not a valid request budget."""
    config = PluginConfig(tmp_path, "config")
    config.set("rateLimit.maxRequestsPerMinute", True)

    with pytest.raises(ConfigError, match="must be int"):
        config.get_int("rateLimit.maxRequestsPerMinute", 20)


def test_get_str_rejects_wrong_type(tmp_path: Path):
    config = PluginConfig(tmp_path, "config")
    config.set("ga.measurementId", 42)

    with pytest.raises(ConfigError) as exc_info:
        config.get_str("ga.measurementId")
    assert exc_info.value.key == "ga.measurementId"


def test_invalid_json_raises_config_error(tmp_path: Path):
    (tmp_path / "config.json").write_text("{not json")

    with pytest.raises(ConfigError, match="not valid JSON"):
        PluginConfig(tmp_path, "config").load()


def test_non_object_json_raises_config_error(tmp_path: Path):
    (tmp_path / "config.json").write_text("[1, 2, 3]")

    with pytest.raises(ConfigError, match="JSON object"):
        PluginConfig(tmp_path, "config").load()


def test_set_replaces_scalar_with_nested_section(tmp_path: Path):
    config = PluginConfig(tmp_path, "config")
    config.set("mods", "oops")
    config.set("mods.mauth.apiKey", "phc_abc")

    assert config.get("mods") == {"mauth": {"apiKey": "phc_abc"}}


def test_save_creates_directory_and_round_trips(tmp_path: Path):
    directory = tmp_path / "nested" / "dir"
    config = PluginConfig(directory, "installations.json")
    config.set_bool("installed.mauth", True)
    config.save()

    reloaded = PluginConfig(directory, "installations")
    reloaded.load()
    assert reloaded.get_bool("installed.mauth") is True
    assert [p.name for p in directory.iterdir()] == ["installations.json"]
