"""
Session Context - per-session state handed to every state handler
"""

from dataclasses import dataclass, field
from typing import Optional

from core.motor_sync import MotorSyncTracker
from core.types import BlockColor, ColorSample

from .states import AutomationState


@dataclass
class SessionContext:
    """
    Everything a program needs across events within one run session.

    Handlers receive the context explicitly; nothing is shared through
    the controller. Rebuilt on every start() and stop().
    """
    state: AutomationState = AutomationState.IDLE
    motors: MotorSyncTracker = field(default_factory=MotorSyncTracker)

    # Per-cycle
    pickup_target: Optional[float] = None
    color_sample: Optional[ColorSample] = None
    block_color: Optional[BlockColor] = None
    leg_index: int = 0

    # Per-session
    cycles_completed: int = 0

    def end_cycle(self) -> None:
        """Clear per-cycle state once the object has left on conveyor 2."""
        self.pickup_target = None
        self.color_sample = None
        self.block_color = None
        self.leg_index = 0
        self.cycles_completed += 1
