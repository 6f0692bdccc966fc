"""
States - the automation sequence states shared by every program
"""

from enum import Enum


class AutomationState(Enum):
    """States in the pick-and-place sequence (in cycle order)."""
    FEEDER_ACTIVATING = "FEEDER_ACTIVATING"
    WAITING_FEEDER_COMPLETE = "WAITING_FEEDER_COMPLETE"
    IDLE = "IDLE"
    WAITING_FOR_OBJECT = "WAITING_FOR_OBJECT"
    CONVEYOR1_MOVING_WITH_OBJECT = "CONVEYOR1_MOVING_WITH_OBJECT"
    CONVEYOR1_MOVING_TO_PICKUP = "CONVEYOR1_MOVING_TO_PICKUP"
    CRANE_MOVING_TO_PICKUP_XY = "CRANE_MOVING_TO_PICKUP_XY"
    CRANE_MOVING_TO_PICKUP_Z = "CRANE_MOVING_TO_PICKUP_Z"
    ACTIVATING_MAGNET = "ACTIVATING_MAGNET"
    CRANE_RAISING_TO_SAFE_HEIGHT = "CRANE_RAISING_TO_SAFE_HEIGHT"
    CRANE_MOVING_TO_DROPOFF_XY = "CRANE_MOVING_TO_DROPOFF_XY"
    DEACTIVATING_MAGNET = "DEACTIVATING_MAGNET"
    CONVEYOR2_MOVING = "CONVEYOR2_MOVING"
