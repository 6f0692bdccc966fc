"""
Configuration - every threshold, offset and coordinate the sequencers use.

All values are plain constants measured on the line, not derived values.
Defaults can be overridden from a JSON file (partial dicts are merged
over the defaults) and the broker address from the environment.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Optional, Tuple

from .types import Device


CONFIG_ENV = "ASSEMBLYLINE_CONFIG"
BROKER_ENV = "ASSEMBLYLINE_BROKER"


class ConfigError(ValueError):
    """Raised when a configuration file or override is invalid"""
    pass


@dataclass(frozen=True)
class Topics:
    conveyor_state: str = "assemblyline/conveyor/state"
    conveyor_command: str = "assemblyline/conveyor/command"
    conveyor2_state: str = "assemblyline/conveyor2/state"
    conveyor2_command: str = "assemblyline/conveyor2/command"
    crane_motor_state: str = "assemblyline/crane/motor_state"
    crane_command: str = "assemblyline/crane/command"

    def command_topic(self, device: Device) -> str:
        return {
            Device.CONVEYOR1: self.conveyor_command,
            Device.CONVEYOR2: self.conveyor2_command,
            Device.CRANE: self.crane_command,
        }[device]

    def state_topics(self) -> Tuple[str, ...]:
        """Topics the engine subscribes to."""
        return (self.conveyor_state, self.conveyor2_state, self.crane_motor_state)


@dataclass(frozen=True)
class CycleSettings:
    """Conveyor-side constants (cm)"""
    presence_threshold: float = 150.0   # object present if color_c > this
    seek_distance: float = 1000.0       # MOVE_REL while waiting for an object
    pickup_offset: float = 4.0          # object detected while seeking
    present_pickup_offset: float = 5.5  # object already under the sensor
    conveyor2_offset: float = -9.0


@dataclass(frozen=True)
class CraneXY:
    """Target for the two horizontal axes (rotation, reach)"""
    axis0: float
    axis1: float


@dataclass(frozen=True)
class LegPlan:
    """One pickup/drop-off leg of the crane"""
    pickup: CraneXY
    pickup_z: float
    dropoff: CraneXY


@dataclass(frozen=True)
class CraneLayout:
    pickup: CraneXY = CraneXY(-35.0, 7.7)
    pickup_z: float = 6.5
    safe_z: float = 1.5
    blue_dropoff: CraneXY = CraneXY(52.5, 12.0)
    yellow_dropoff: CraneXY = CraneXY(-90.0, 10.0)
    # Extended cycle: staging area between the two legs
    staging: CraneXY = CraneXY(52.5, 12.0)
    staging_z: float = 6.5
    final_dropoff: CraneXY = CraneXY(88.0, 12.0)

    def single_leg(self) -> Tuple[LegPlan, ...]:
        return (LegPlan(self.pickup, self.pickup_z, self.blue_dropoff),)

    def extended_legs(self) -> Tuple[LegPlan, ...]:
        return (
            LegPlan(self.pickup, self.pickup_z, self.staging),
            LegPlan(self.staging, self.staging_z, self.final_dropoff),
        )


@dataclass(frozen=True)
class ColorThresholds:
    blue_b_min: float = 40.0
    blue_rg_max: float = 75.0
    yellow_rg_min: float = 50.0
    yellow_b_max: float = 45.0


@dataclass(frozen=True)
class BrokerSettings:
    host: str = "localhost"
    port: int = 1883
    client_id: str = "assemblyline_automation"
    keepalive: int = 60

    @classmethod
    def parse(cls, address: str, base: Optional["BrokerSettings"] = None) -> "BrokerSettings":
        """Parse 'host', 'host:port' or 'mqtt://host:port'."""
        base = base or cls()
        address = address.strip()
        if "://" in address:
            address = address.split("://", 1)[1]
        host, _, port = address.partition(":")
        if not host:
            raise ConfigError(f"Invalid broker address: {address!r}")
        try:
            return replace(base, host=host, port=int(port) if port else base.port)
        except ValueError:
            raise ConfigError(f"Invalid broker port in {address!r}")


@dataclass(frozen=True)
class AutomationConfig:
    topics: Topics = field(default_factory=Topics)
    cycle: CycleSettings = field(default_factory=CycleSettings)
    color_cycle: CycleSettings = field(
        default_factory=lambda: CycleSettings(pickup_offset=4.5, present_pickup_offset=4.5)
    )
    crane: CraneLayout = field(default_factory=CraneLayout)
    color: ColorThresholds = field(default_factory=ColorThresholds)
    broker: BrokerSettings = field(default_factory=BrokerSettings)
    lock_delay: float = 1.0          # settle window after each command batch (s)
    color_probe_delay: float = 0.5   # mid-move GET_STATE for the color reading (s)

    def __post_init__(self):
        if self.lock_delay <= 0:
            raise ConfigError("lock_delay must be positive")
        if self.color_probe_delay < 0:
            raise ConfigError("color_probe_delay must not be negative")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AutomationConfig":
        """Build a config by merging a (partial) dict over the defaults."""
        return _merge(cls(), data, "config")


def _merge(base: Any, data: Any, path: str) -> Any:
    if not is_dataclass(base):
        if isinstance(base, str):
            if not isinstance(data, str):
                raise ConfigError(f"{path}: expected a string, got {data!r}")
            return data
        if isinstance(base, bool) or not isinstance(base, (int, float)):
            return data
        if not isinstance(data, (int, float)) or isinstance(data, bool):
            raise ConfigError(f"{path}: expected a number, got {data!r}")
        return type(base)(data)

    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected an object, got {data!r}")

    known = {f.name for f in fields(base)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"{path}: unknown keys {sorted(unknown)}")

    changes = {
        key: _merge(getattr(base, key), value, f"{path}.{key}")
        for key, value in data.items()
    }
    return replace(base, **changes)


def load_config(path: Optional[Path] = None) -> AutomationConfig:
    """
    Load configuration.

    Reads JSON from `path`, or from $ASSEMBLYLINE_CONFIG when no path is
    given. Falls back to defaults when neither is set. $ASSEMBLYLINE_BROKER
    overrides the broker address.
    """
    if path is None and os.environ.get(CONFIG_ENV):
        path = Path(os.environ[CONFIG_ENV])

    config = AutomationConfig()
    if path is not None:
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read config {path}: {e}")
        config = AutomationConfig.from_dict(data)

    broker = os.environ.get(BROKER_ENV)
    if broker:
        config = replace(config, broker=BrokerSettings.parse(broker, config.broker))

    return config
