"""Workflow layer - program sequencers"""

from .states import AutomationState
from .context import SessionContext
from .state_machine import ProgramSequencer, Transition, DeferredCommand
from .programs import (
    PickPlaceCycle,
    BasicCycle,
    ColorSortingCycle,
    ExtendedCycle,
    create_program,
    create_programs,
)

__all__ = [
    'AutomationState', 'SessionContext',
    'ProgramSequencer', 'Transition', 'DeferredCommand',
    'PickPlaceCycle', 'BasicCycle', 'ColorSortingCycle', 'ExtendedCycle',
    'create_program', 'create_programs',
]
