"""
State Machine - program sequencer base

A sequencer is a table from AutomationState to a handler. A handler looks
at the triggering message and the session context and either returns a
Transition or None. None means "not the event this state waits for":
no state change, no command.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from core.config import AutomationConfig
from core.logger import log_state
from core.messages import Message
from core.types import AnyCommand, ProgramKind

from .context import SessionContext
from .states import AutomationState


@dataclass(frozen=True)
class DeferredCommand:
    """Command to publish after a delay, outside the settle lock"""
    delay: float
    command: AnyCommand


@dataclass(frozen=True)
class Transition:
    """Result of a matched handler"""
    next_state: AutomationState
    commands: Tuple[AnyCommand, ...] = ()
    deferred: Tuple[DeferredCommand, ...] = ()
    settle: Optional[bool] = None

    @property
    def holds_lock(self) -> bool:
        """Whether the controller opens a settle window after this transition"""
        if self.settle is not None:
            return self.settle
        return bool(self.commands)


Handler = Callable[[Message, SessionContext], Optional[Transition]]


class ProgramSequencer(ABC):
    """Base class for all automation programs"""

    kind: ProgramKind
    entry_state: AutomationState = AutomationState.FEEDER_ACTIVATING

    def __init__(self, config: Optional[AutomationConfig] = None):
        self.config = config or AutomationConfig()
        self._handlers: Dict[AutomationState, Handler] = self.build_handlers()

    @property
    def name(self) -> str:
        return self.kind.value

    @abstractmethod
    def build_handlers(self) -> Dict[AutomationState, Handler]:
        """Map each state this program uses to its handler"""
        pass

    @property
    def states(self) -> Tuple[AutomationState, ...]:
        return tuple(self._handlers)

    def begin(self, context: SessionContext) -> None:
        """Put a fresh session at the program's entry state"""
        context.state = self.entry_state

    def handle(self, message: Message, context: SessionContext) -> Optional[Transition]:
        """
        Run the handler for the current state.

        Applies the next state to the context when the handler matches.
        Fires at most one transition per call.
        """
        handler = self._handlers.get(context.state)
        if handler is None:
            return None

        transition = handler(message, context)
        if transition is None:
            return None

        previous = context.state
        context.state = transition.next_state
        log_state(
            f"[{self.name}] {previous.value} → {transition.next_state.value}",
            {"commands": len(transition.commands)} if transition.commands else None,
        )
        return transition
