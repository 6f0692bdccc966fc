"""
Inbound messages - status events decoded once at the bus boundary.

Every payload becomes exactly one variant:
- ConveyorStatus: conveyor 1 / conveyor 2 state topic
- AxisStatus:     crane motor report {motor, state, pos}
- MagnetStatus:   crane magnet report {component: "magnet", state}
- RawMessage:     anything else, kept as opaque text (e.g. "STOP 0" echoes)

Decoding never raises.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from .config import Topics
from .types import ColorSample, Device


@dataclass(frozen=True)
class ConveyorStatus:
    conveyor: Device
    sensor_ok: bool
    status: Optional[str] = None
    position: Optional[float] = None
    color_r: Optional[float] = None
    color_g: Optional[float] = None
    color_b: Optional[float] = None
    color_c: Optional[float] = None

    @property
    def is_idle(self) -> bool:
        return self.status == "IDLE"

    @property
    def is_moving(self) -> bool:
        return self.status == "MOVING"

    @property
    def has_full_color(self) -> bool:
        return None not in (self.color_r, self.color_g, self.color_b, self.color_c)

    def color_sample(self) -> Optional[ColorSample]:
        """Full four-channel reading, or None if any channel is missing."""
        if not self.has_full_color:
            return None
        return ColorSample(self.color_r, self.color_g, self.color_b, self.color_c, self.sensor_ok)


@dataclass(frozen=True)
class AxisStatus:
    axis: int
    state: str
    pos: Optional[float] = None

    @property
    def is_settled(self) -> bool:
        """Axis reached its target (IDLE, or HOLDING torque at the target)."""
        return self.state in ("IDLE", "HOLDING")


@dataclass(frozen=True)
class MagnetStatus:
    enabled: bool


@dataclass(frozen=True)
class RawMessage:
    topic: str
    text: str


Message = Union[ConveyorStatus, AxisStatus, MagnetStatus, RawMessage]


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _text(raw: Union[str, bytes, bytearray]) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return raw.decode("utf-8", errors="replace")
    return str(raw)


def decode_message(topic: str, raw: Union[str, bytes, bytearray, dict], topics: Topics) -> Message:
    """
    Decode a raw bus payload into a typed message.

    Non-JSON payloads and JSON payloads of an unknown shape come back as
    RawMessage so literal-string transitions can still match them.
    """
    if isinstance(raw, dict):
        payload: Any = raw
        text = json.dumps(raw)
    else:
        text = _text(raw)
        try:
            payload = json.loads(text)
        except (json.JSONDecodeError, ValueError):
            return RawMessage(topic, text)

    if not isinstance(payload, dict):
        return RawMessage(topic, text)

    if topic in (topics.conveyor_state, topics.conveyor2_state):
        status = payload.get("status")
        return ConveyorStatus(
            conveyor=Device.CONVEYOR1 if topic == topics.conveyor_state else Device.CONVEYOR2,
            sensor_ok=payload.get("sensor_ok") is True,
            status=status if isinstance(status, str) else None,
            position=_number(payload.get("position")),
            color_r=_number(payload.get("color_r")),
            color_g=_number(payload.get("color_g")),
            color_b=_number(payload.get("color_b")),
            color_c=_number(payload.get("color_c")),
        )

    if topic == topics.crane_motor_state:
        if payload.get("component") == "magnet":
            state = payload.get("state")
            if state in (0, 1) and not isinstance(state, float):
                return MagnetStatus(enabled=bool(state))
            return RawMessage(topic, text)

        axis = payload.get("motor")
        state = payload.get("state")
        if isinstance(axis, int) and not isinstance(axis, bool) and isinstance(state, str):
            return AxisStatus(axis=axis, state=state, pos=_number(payload.get("pos")))

    return RawMessage(topic, text)
