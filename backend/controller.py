"""
Run Controller - Main facade for the automation engine.

Owns the run mode, the single-flight command lock, program selection and
the status projection. Every inbound bus event enters through on_event();
operator requests enter through start(), stop() and switch_program().
"""

from __future__ import annotations

import itertools
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Union, TYPE_CHECKING

from core.config import AutomationConfig
from core.executor import CommandDispatcher, DispatchResult
from core.lock import CommandLock
from core.logger import log_info, log_lock, log_ok, log_warn
from core.messages import decode_message
from core.scheduler import ScheduledTask, Scheduler, ThreadingScheduler
from core.types import ConveyorCommand, Device, ProgramKind, RunMode, stop_all_commands
from workflows.context import SessionContext
from workflows.programs import create_programs
from workflows.state_machine import DeferredCommand, ProgramSequencer, Transition
from workflows.states import AutomationState

if TYPE_CHECKING:
    from core.gateway import ActuatorGateway


StatusObserver = Callable[[Dict[str, Any]], None]


class RunController:
    """
    Top-level supervisor for the assembly line.

    Processing is single-flight: one event is gated, handled and
    dispatched to completion before the next is considered. After each
    command batch the controller stops listening for `lock_delay` seconds,
    because the line has no request/response correlation and status that
    arrives right after a command may predate it.

    stop() bypasses every gate and is always accepted.
    """

    def __init__(
        self,
        gateway: "ActuatorGateway",
        config: Optional[AutomationConfig] = None,
        scheduler: Optional[Scheduler] = None,
        programs: Optional[Dict[ProgramKind, ProgramSequencer]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._config = config or AutomationConfig()
        self._gateway = gateway
        self._scheduler = scheduler or ThreadingScheduler()
        self._dispatcher = CommandDispatcher(self._config.topics)
        self._programs = programs or create_programs(self._config)
        self._program = self._programs[ProgramKind.BASIC]
        self._lock = CommandLock(self._scheduler, self._config.lock_delay, clock=clock)

        self._mode = RunMode.STOPPED
        self._context = SessionContext()
        self._session = 0
        self._deferred: Dict[int, ScheduledTask] = {}
        self._deferred_ids = itertools.count(1)
        self._observers: List[StatusObserver] = []
        self._mutex = threading.RLock()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> AutomationConfig:
        return self._config

    @property
    def gateway(self) -> "ActuatorGateway":
        return self._gateway

    @property
    def run_mode(self) -> RunMode:
        return self._mode

    @property
    def program_kind(self) -> ProgramKind:
        return self._program.kind

    @property
    def automation_state(self) -> AutomationState:
        return self._context.state

    @property
    def context(self) -> SessionContext:
        """Current session context (read-only use)."""
        return self._context

    @property
    def is_locked(self) -> bool:
        return self._lock.held

    @property
    def programs(self) -> List[ProgramKind]:
        return list(self._programs)

    def attach(self) -> None:
        """Subscribe to every actuator state topic on the gateway."""
        self._gateway.subscribe(self._config.topics.state_topics(), self.on_event)

    # =========================================================================
    # Operator requests
    # =========================================================================

    def start(self) -> bool:
        """
        Enter RUNNING at the program's entry state.

        No-op if already running. Primes the line by asking conveyor 1 for
        its state instead of assuming a known starting position.
        """
        with self._mutex:
            if self._mode == RunMode.RUNNING:
                log_warn("System already RUNNING")
                return False

            self._new_session()
            self._mode = RunMode.RUNNING
            self._program.begin(self._context)
            log_ok(f"System START ({self._program.name}). Priming system by requesting conveyor state")
            self._project()

            self._dispatcher.dispatch(ConveyorCommand.get_state(Device.CONVEYOR1), self._gateway)
            return True

    def stop(self) -> None:
        """
        Halt everything.

        Always accepted, regardless of lock or mode. Cancels the pending
        unlock and any deferred command, then broadcasts STOP to every
        actuator without waiting for acknowledgement.
        """
        with self._mutex:
            self._new_session()
            self._mode = RunMode.STOPPED
            self._context.state = AutomationState.IDLE
            log_warn("System STOP command received. Halting all motors")
            self._project()

            self._dispatcher.dispatch_all(stop_all_commands(), self._gateway)

    def switch_program(self, kind: Union[ProgramKind, str]) -> bool:
        """Select another program. Rejected while RUNNING or for unknown names."""
        resolved = ProgramKind.parse(kind)
        with self._mutex:
            if self._mode == RunMode.RUNNING:
                log_warn(f"Cannot switch program to {kind} while RUNNING")
                return False
            if resolved is None or resolved not in self._programs:
                log_warn(f"Unknown program: {kind}")
                return False

            self._program = self._programs[resolved]
            self._context = SessionContext()
            log_ok(f"Program switched to {resolved.value}")
            self._project()
            return True

    # =========================================================================
    # Event entry point
    # =========================================================================

    def on_event(self, topic: str, raw: Union[str, bytes, dict]) -> bool:
        """
        Gate and handle one inbound event.

        Returns True if the event reached the active program (whether or
        not it matched), False if a gate discarded it.
        """
        with self._mutex:
            # GATEKEEPER 1: If system is stopped, do nothing.
            if self._mode != RunMode.RUNNING:
                log_info(f"STOPPED | State: {self._context.state.value}. Ignoring message on {topic}")
                self._project()
                return False

            # GATEKEEPER 2 (THE LOCK): a command was just sent
            if self._lock.held:
                log_lock(f"LOCKED | State: {self._context.state.value}. Ignoring message on {topic}")
                self._project()
                return False

            message = decode_message(topic, raw, self._config.topics)
            transition = self._program.handle(message, self._context)
            if transition is not None:
                self._apply(transition)

            self._project()
            return True

    # =========================================================================
    # Status & History
    # =========================================================================

    def get_status(self) -> Dict[str, Any]:
        """Status projection pushed to observers."""
        ctx = self._context
        return {
            "run_mode": self._mode.value,
            "program_kind": self._program.kind.value,
            "automation_state": ctx.state.value,
            "locked": self._lock.held,
            "block_color": ctx.block_color.value if ctx.block_color else None,
            "last_color_sample": ctx.color_sample.to_dict() if ctx.color_sample else None,
            "pickup_target": ctx.pickup_target,
            "leg": ctx.leg_index + 1,
            "cycles_completed": ctx.cycles_completed,
        }

    def add_observer(self, observer: StatusObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: StatusObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def get_command_history(self, limit: int | None = None) -> List[DispatchResult]:
        """Get command dispatch history."""
        return self._dispatcher.get_history(limit)

    # =========================================================================
    # Internals
    # =========================================================================

    def _apply(self, transition: Transition) -> None:
        # Lock BEFORE publishing so nothing sneaks in between
        if transition.holds_lock:
            self._lock.acquire(on_release=self._on_unlock)
        self._dispatcher.dispatch_all(transition.commands, self._gateway)
        for deferred in transition.deferred:
            self._schedule_deferred(deferred)

    def _new_session(self) -> None:
        """Forget everything from the previous session."""
        self._session += 1
        self._lock.release()
        for task in self._deferred.values():
            task.cancel()
        self._deferred.clear()
        self._context = SessionContext()

    def _schedule_deferred(self, deferred: DeferredCommand) -> None:
        task_id = next(self._deferred_ids)
        session = self._session
        self._deferred[task_id] = self._scheduler.schedule(
            deferred.delay, lambda: self._fire_deferred(task_id, session, deferred)
        )

    def _fire_deferred(self, task_id: int, session: int, deferred: DeferredCommand) -> None:
        with self._mutex:
            self._deferred.pop(task_id, None)
            if session != self._session or self._mode != RunMode.RUNNING:
                return
            self._dispatcher.dispatch(deferred.command, self._gateway)

    def _on_unlock(self) -> None:
        with self._mutex:
            self._project()

    def _project(self) -> None:
        """Push status to observers. Fire-and-forget: failures are logged only."""
        status = self.get_status()
        for observer in list(self._observers):
            try:
                observer(status)
            except Exception as e:
                log_warn(f"Status observer failed: {e}")
