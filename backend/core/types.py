"""
Core immutable types for the assembly line automation engine.

All commands are frozen dataclasses so that a batch produced by a
sequencer can be logged, dispatched and audited without being mutated
along the way.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Protocol, Union


# =============================================================================
# Enums
# =============================================================================


class RunMode(Enum):
    """Supervisor run mode. Only start/stop requests change it."""
    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


class ProgramKind(Enum):
    """Selectable automation programs."""
    BASIC = "Basic"
    COLOR_SORTING = "ColorSorting"
    EXTENDED = "Extended"

    @classmethod
    def parse(cls, name: Union[str, "ProgramKind"]) -> Optional["ProgramKind"]:
        """
        Resolve a program from its value or member name, case-insensitive.

        Returns None for unknown names.
        """
        if isinstance(name, cls):
            return name
        wanted = str(name).strip().replace("-", "_").replace(" ", "_").lower()
        for kind in cls:
            if wanted in (kind.value.lower(), kind.name.lower(), kind.name.replace("_", "").lower()):
                return kind
        return None


class BlockColor(Enum):
    """Discrete label produced by the color classifier."""
    BLUE = "Blue"
    YELLOW = "Yellow"
    UNKNOWN = "Unknown"


class Device(Enum):
    """Command targets on the bus."""
    CONVEYOR1 = "conveyor1"
    CONVEYOR2 = "conveyor2"
    CRANE = "crane"


# Crane axis ids
AXIS_ROTATION = 0
AXIS_REACH = 1
AXIS_LIFT = 2
CRANE_AXES = (AXIS_ROTATION, AXIS_REACH, AXIS_LIFT)


# =============================================================================
# Sensor data
# =============================================================================


@dataclass(frozen=True)
class ColorSample:
    """One reading from the conveyor color sensor."""
    r: float
    g: float
    b: float
    c: float
    sensor_ok: bool = True

    def to_dict(self) -> dict:
        return {"r": self.r, "g": self.g, "b": self.b, "c": self.c, "sensor_ok": self.sensor_ok}


# =============================================================================
# Command Protocol & Types
# =============================================================================


class Command(Protocol):
    """Protocol for all outbound actuator commands."""

    @property
    def device(self) -> Device:
        ...

    def to_payload(self) -> Union[dict, str]:
        """Wire payload: a JSON object or a raw string."""
        ...


ConveyorAction = Literal["MOVE_REL", "MOVE_ABS", "STOP", "GET_STATE", "FEED_BLOCK"]


@dataclass(frozen=True)
class ConveyorCommand:
    """
    Conveyor command.

    MOVE_REL and MOVE_ABS carry a value (cm); the other actions must not.
    FEED_BLOCK is handled by the feeder attached to conveyor 1.
    """
    device: Device
    action: ConveyorAction
    value: Optional[float] = None

    def __post_init__(self):
        if self.device == Device.CRANE:
            raise ValueError("ConveyorCommand cannot target the crane")
        needs_value = self.action in ("MOVE_REL", "MOVE_ABS")
        if needs_value and self.value is None:
            raise ValueError(f"{self.action} requires a value")
        if not needs_value and self.value is not None:
            raise ValueError(f"{self.action} does not take a value")

    def to_payload(self) -> dict:
        payload: dict = {"command": self.action}
        if self.value is not None:
            payload["value"] = self.value
        return payload

    @classmethod
    def move_rel(cls, device: Device, distance: float) -> ConveyorCommand:
        return cls(device, "MOVE_REL", distance)

    @classmethod
    def move_abs(cls, device: Device, position: float) -> ConveyorCommand:
        return cls(device, "MOVE_ABS", position)

    @classmethod
    def stop(cls, device: Device) -> ConveyorCommand:
        return cls(device, "STOP")

    @classmethod
    def get_state(cls, device: Device) -> ConveyorCommand:
        return cls(device, "GET_STATE")

    @classmethod
    def feed_block(cls) -> ConveyorCommand:
        return cls(Device.CONVEYOR1, "FEED_BLOCK")


@dataclass(frozen=True)
class AxisMoveCommand:
    """Move a single crane axis to an absolute position."""
    axis: int
    pos: float

    def __post_init__(self):
        if self.axis not in CRANE_AXES:
            raise ValueError(f"Unknown crane axis {self.axis}")

    @property
    def device(self) -> Device:
        return Device.CRANE

    def to_payload(self) -> dict:
        return {"command": "move_all", "motors": [{"id": self.axis, "pos": self.pos}]}


@dataclass(frozen=True)
class MagnetCommand:
    """Switch the crane electromagnet."""
    enable: bool

    @property
    def device(self) -> Device:
        return Device.CRANE

    def to_payload(self) -> dict:
        return {"command": "set_magnet", "state": 1 if self.enable else 0}


@dataclass(frozen=True)
class AxisStopCommand:
    """Immediate stop for one crane axis. Sent as a raw string."""
    axis: int

    @property
    def device(self) -> Device:
        return Device.CRANE

    def to_payload(self) -> str:
        return f"STOP {self.axis}"


AnyCommand = Union[ConveyorCommand, AxisMoveCommand, MagnetCommand, AxisStopCommand]


def stop_all_commands() -> list:
    """Stop commands for every actuator on the line."""
    commands: list = [AxisStopCommand(axis) for axis in CRANE_AXES]
    commands.append(ConveyorCommand.stop(Device.CONVEYOR1))
    commands.append(ConveyorCommand.stop(Device.CONVEYOR2))
    return commands
