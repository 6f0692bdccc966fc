"""
Unit tests for configuration loading.
"""

import json

import pytest
from core.config import (
    AutomationConfig,
    BrokerSettings,
    ConfigError,
    CraneXY,
    Topics,
    load_config,
)
from core.types import Device


class TestDefaults:

    def test_cycle_constants(self):
        config = AutomationConfig()
        assert config.cycle.presence_threshold == 150
        assert config.cycle.seek_distance == 1000
        assert config.cycle.pickup_offset == 4.0
        assert config.cycle.present_pickup_offset == 5.5
        assert config.color_cycle.pickup_offset == 4.5
        assert config.color_cycle.present_pickup_offset == 4.5
        assert config.lock_delay == 1.0

    def test_crane_layout(self):
        crane = AutomationConfig().crane
        assert crane.pickup == CraneXY(-35.0, 7.7)
        assert crane.pickup_z == 6.5
        assert crane.safe_z == 1.5
        assert crane.blue_dropoff == CraneXY(52.5, 12.0)
        assert crane.yellow_dropoff == CraneXY(-90.0, 10.0)

    def test_extended_legs_chain(self):
        """The second leg starts where the first one drops off."""
        legs = AutomationConfig().crane.extended_legs()
        assert len(legs) == 2
        assert legs[1].pickup == legs[0].dropoff

    def test_topic_routing(self):
        topics = Topics()
        assert topics.command_topic(Device.CONVEYOR1) == "assemblyline/conveyor/command"
        assert topics.command_topic(Device.CONVEYOR2) == "assemblyline/conveyor2/command"
        assert topics.command_topic(Device.CRANE) == "assemblyline/crane/command"
        assert "assemblyline/crane/motor_state" in topics.state_topics()


class TestFromDict:

    def test_partial_override(self):
        config = AutomationConfig.from_dict({"cycle": {"presence_threshold": 200}, "lock_delay": 2})
        assert config.cycle.presence_threshold == 200.0
        assert config.cycle.seek_distance == 1000.0
        assert config.lock_delay == 2.0

    def test_nested_coordinates(self):
        config = AutomationConfig.from_dict({"crane": {"pickup": {"axis0": -30}}})
        assert config.crane.pickup == CraneXY(-30.0, 7.7)

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigError, match="unknown keys"):
            AutomationConfig.from_dict({"cycle": {"speed": 3}})

    def test_type_mismatch_rejected(self):
        with pytest.raises(ConfigError, match="expected a number"):
            AutomationConfig.from_dict({"lock_delay": "fast"})

    def test_non_positive_lock_rejected(self):
        with pytest.raises(ConfigError, match="lock_delay"):
            AutomationConfig.from_dict({"lock_delay": 0})

    def test_round_trip_through_dict(self):
        config = AutomationConfig()
        assert AutomationConfig.from_dict(config.to_dict()) == config


class TestBrokerSettings:

    @pytest.mark.parametrize("address, host, port", [
        ("broker.local", "broker.local", 1883),
        ("10.0.0.5:1884", "10.0.0.5", 1884),
        ("mqtt://line:8883", "line", 8883),
    ])
    def test_parse(self, address, host, port):
        settings = BrokerSettings.parse(address)
        assert (settings.host, settings.port) == (host, port)

    def test_bad_port(self):
        with pytest.raises(ConfigError):
            BrokerSettings.parse("host:abc")

    def test_empty_host(self):
        with pytest.raises(ConfigError):
            BrokerSettings.parse(":1883")


class TestLoadConfig:

    def test_defaults_without_env(self, monkeypatch):
        monkeypatch.delenv("ASSEMBLYLINE_CONFIG", raising=False)
        monkeypatch.delenv("ASSEMBLYLINE_BROKER", raising=False)
        assert load_config() == AutomationConfig()

    def test_reads_file_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "line.json"
        path.write_text(json.dumps({"cycle": {"seek_distance": 500}}))
        monkeypatch.setenv("ASSEMBLYLINE_CONFIG", str(path))
        monkeypatch.delenv("ASSEMBLYLINE_BROKER", raising=False)

        assert load_config().cycle.seek_distance == 500.0

    def test_broker_env_override(self, monkeypatch):
        monkeypatch.delenv("ASSEMBLYLINE_CONFIG", raising=False)
        monkeypatch.setenv("ASSEMBLYLINE_BROKER", "plant:1999")

        broker = load_config().broker
        assert (broker.host, broker.port) == ("plant", 1999)

    def test_unreadable_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ASSEMBLYLINE_BROKER", raising=False)
        with pytest.raises(ConfigError, match="Cannot read config"):
            load_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ASSEMBLYLINE_BROKER", raising=False)
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            load_config(path)
