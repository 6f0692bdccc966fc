"""
Integration tests for RunController.

Drives the controller through the mock gateway exactly as the broker
would, with time advanced explicitly by the manual scheduler.
"""

import pytest
from controller import RunController
from core.config import AutomationConfig
from core.types import ProgramKind, RunMode
from workflows.states import AutomationState as S


@pytest.fixture
def topics(config):
    return config.topics


def sensor_payload(c, position=0.0, status="MOVING", **extra):
    payload = {"sensor_ok": True, "color_r": 0, "color_g": 0, "color_b": 0,
               "color_c": c, "position": position, "status": status}
    payload.update(extra)
    return payload


class TestGates:
    """Stopped and locked controllers drop events."""

    def test_stopped_ignores_events(self, controller, gateway, topics):
        accepted = controller.on_event(topics.conveyor_state, '{"color_c": 50}')

        assert accepted is False
        assert gateway.command_count == 0
        assert controller.automation_state == S.IDLE

    def test_locked_ignores_events(self, running, gateway, topics, scheduler):
        gateway.inject(topics.conveyor_state, sensor_payload(50))  # triggers feed
        assert running.is_locked
        gateway.clear_history()

        accepted = running.on_event(topics.conveyor_state, '{"sensor_ok": true, "color_c": 50}')

        assert accepted is False
        assert gateway.command_count == 0
        assert running.automation_state == S.WAITING_FEEDER_COMPLETE

    def test_unlocks_after_delay(self, running, gateway, topics, scheduler, config):
        gateway.inject(topics.conveyor_state, sensor_payload(50))
        scheduler.advance(config.lock_delay)

        assert not running.is_locked
        assert running.on_event(topics.conveyor_state, sensor_payload(50)) is True

    def test_unmatched_event_keeps_state_and_lock_free(self, running, gateway, topics, scheduler):
        gateway.inject(topics.conveyor_state, sensor_payload(50))
        scheduler.advance(1.0)
        gateway.inject(topics.conveyor_state, sensor_payload(50))  # feeder complete → IDLE
        gateway.clear_history()

        gateway.inject(topics.crane_motor_state, {"motor": 0, "state": "IDLE"})

        assert running.automation_state == S.IDLE
        assert gateway.command_count == 0
        assert not running.is_locked


class TestStartStop:

    def test_start_primes_conveyor(self, controller, gateway, topics):
        assert controller.start() is True

        assert controller.run_mode == RunMode.RUNNING
        assert controller.automation_state == S.FEEDER_ACTIVATING
        assert gateway.published == [(topics.conveyor_command, {"command": "GET_STATE"})]
        assert not controller.is_locked

    def test_start_is_idempotent(self, running, gateway):
        assert running.start() is False
        assert gateway.command_count == 0
        assert running.automation_state == S.FEEDER_ACTIVATING

    def test_stop_broadcasts_to_every_actuator(self, running, gateway, topics):
        running.stop()

        assert running.run_mode == RunMode.STOPPED
        assert running.automation_state == S.IDLE
        assert sorted(gateway.published_to(topics.crane_command)) == ["STOP 0", "STOP 1", "STOP 2"]
        assert gateway.published_to(topics.conveyor_command) == [{"command": "STOP"}]
        assert gateway.published_to(topics.conveyor2_command) == [{"command": "STOP"}]

    def test_stop_accepted_while_locked(self, running, gateway, topics, scheduler):
        gateway.inject(topics.conveyor_state, sensor_payload(50))
        assert running.is_locked

        running.stop()

        assert not running.is_locked
        assert scheduler.pending == []

    def test_stop_when_already_stopped_still_broadcasts(self, controller, gateway):
        controller.stop()
        assert gateway.command_count == 5

    def test_restart_is_not_unlocked_by_old_timer(self, running, gateway, topics, scheduler):
        """A release scheduled in a previous session cannot affect the new one."""
        gateway.inject(topics.conveyor_state, sensor_payload(50))
        old_task = scheduler.tasks[-1]
        running.stop()
        running.start()
        gateway.inject(topics.conveyor_state, sensor_payload(50))
        assert running.is_locked

        old_task.callback()

        assert running.is_locked

    def test_restart_resets_context(self, running, gateway, topics, scheduler):
        gateway.inject(topics.conveyor_state, sensor_payload(50))
        scheduler.advance(1.0)
        gateway.inject(topics.conveyor_state, sensor_payload(50))
        assert running.automation_state == S.IDLE

        running.stop()
        running.start()

        assert running.automation_state == S.FEEDER_ACTIVATING
        assert running.context.cycles_completed == 0


class TestProgramSwitching:

    def test_switch_while_stopped(self, controller):
        assert controller.switch_program("ColorSorting") is True
        assert controller.program_kind == ProgramKind.COLOR_SORTING

    def test_switch_accepts_enum(self, controller):
        assert controller.switch_program(ProgramKind.EXTENDED) is True
        assert controller.program_kind == ProgramKind.EXTENDED

    def test_switch_rejected_while_running(self, running):
        assert running.switch_program("Extended") is False
        assert running.program_kind == ProgramKind.BASIC

    def test_unknown_program_rejected(self, controller):
        assert controller.switch_program("Turbo") is False
        assert controller.program_kind == ProgramKind.BASIC

    def test_programs_listed(self, controller):
        assert controller.programs == [ProgramKind.BASIC, ProgramKind.COLOR_SORTING, ProgramKind.EXTENDED]


class TestStatusProjection:

    def test_status_shape(self, controller):
        status = controller.get_status()
        assert status == {
            "run_mode": "STOPPED",
            "program_kind": "Basic",
            "automation_state": "IDLE",
            "locked": False,
            "block_color": None,
            "last_color_sample": None,
            "pickup_target": None,
            "leg": 1,
            "cycles_completed": 0,
        }

    def test_observers_see_every_event(self, controller, topics):
        """Gated events still project status."""
        seen = []
        controller.add_observer(seen.append)

        controller.on_event(topics.conveyor_state, "{}")
        controller.start()

        assert [s["run_mode"] for s in seen] == ["STOPPED", "RUNNING"]

    def test_unlock_projects_status(self, running, gateway, topics, scheduler):
        seen = []
        running.add_observer(seen.append)
        gateway.inject(topics.conveyor_state, sensor_payload(50))
        seen.clear()

        scheduler.advance(1.0)

        assert seen and seen[-1]["locked"] is False

    def test_failing_observer_does_not_break_controller(self, running, gateway, topics):
        def broken(status):
            raise RuntimeError("socket gone")

        running.add_observer(broken)
        gateway.inject(topics.conveyor_state, sensor_payload(50))

        assert running.automation_state == S.WAITING_FEEDER_COMPLETE

    def test_remove_observer(self, controller):
        seen = []
        controller.add_observer(seen.append)
        controller.remove_observer(seen.append)
        controller.start()
        assert seen == []


class TestPublishFailure:

    def test_failure_is_recorded_and_state_advances(self, running, gateway, topics):
        """Commands are fire-and-forget: a failed publish is not retried."""
        gateway.fail_publish = True

        gateway.inject(topics.conveyor_state, sensor_payload(50))

        assert running.automation_state == S.WAITING_FEEDER_COMPLETE
        assert running.is_locked
        last = running.get_command_history()[-1]
        assert last.success is False


class TestBasicCycle:
    """A complete block cycle from feeder to conveyor 2."""

    def _step(self, gateway, scheduler, topic, payload):
        gateway.inject(topic, payload)
        scheduler.advance(1.0)

    def test_full_cycle(self, running, gateway, topics, scheduler):
        step = lambda topic, payload: self._step(gateway, scheduler, topic, payload)

        step(topics.conveyor_state, sensor_payload(50, status="IDLE"))
        assert gateway.published_to(topics.conveyor_command) == [{"command": "FEED_BLOCK"}]

        step(topics.conveyor_state, sensor_payload(50, status="IDLE"))
        assert running.automation_state == S.IDLE

        step(topics.conveyor_state, sensor_payload(50, status="IDLE"))
        assert running.automation_state == S.WAITING_FOR_OBJECT
        assert gateway.published_to(topics.conveyor_command)[-1] == {"command": "MOVE_REL", "value": 1000.0}

        step(topics.conveyor_state, sensor_payload(200, position=30.0))
        assert running.automation_state == S.CONVEYOR1_MOVING_TO_PICKUP
        assert gateway.published_to(topics.conveyor_command)[-1] == {"command": "MOVE_ABS", "value": 34.0}

        step(topics.conveyor_state, sensor_payload(200, position=34.0, status="IDLE"))
        assert running.automation_state == S.CRANE_MOVING_TO_PICKUP_XY
        gateway.clear_history()

        gateway.inject(topics.crane_motor_state, {"motor": 0, "state": "IDLE"})
        assert gateway.command_count == 0
        step(topics.crane_motor_state, {"motor": 1, "state": "IDLE"})
        assert gateway.published_to(topics.crane_command) == [
            {"command": "move_all", "motors": [{"id": 2, "pos": 6.5}]}
        ]

        step(topics.crane_motor_state, {"motor": 2, "state": "IDLE"})
        assert gateway.published_to(topics.crane_command)[-1] == {"command": "set_magnet", "state": 1}

        step(topics.crane_motor_state, {"component": "magnet", "state": 1})
        assert running.automation_state == S.CRANE_RAISING_TO_SAFE_HEIGHT

        step(topics.crane_motor_state, {"motor": 2, "state": "IDLE"})
        assert running.automation_state == S.CRANE_MOVING_TO_DROPOFF_XY

        gateway.inject(topics.crane_motor_state, {"motor": 1, "state": "HOLDING"})
        step(topics.crane_motor_state, {"motor": 0, "state": "IDLE"})
        assert gateway.published_to(topics.crane_command)[-1] == {"command": "set_magnet", "state": 0}

        step(topics.crane_motor_state, {"component": "magnet", "state": 0})
        assert gateway.published_to(topics.conveyor2_command) == [{"command": "MOVE_REL", "value": -9.0}]

        gateway.inject(topics.conveyor2_state, {"status": "IDLE"})
        assert running.automation_state == S.FEEDER_ACTIVATING
        assert running.is_locked
        assert running.context.cycles_completed == 1

        scheduler.advance(1.0)
        gateway.inject(topics.conveyor_state, sensor_payload(50, status="IDLE"))
        assert gateway.published_to(topics.conveyor_command)[-1] == {"command": "FEED_BLOCK"}

    def test_every_command_batch_locks(self, running, gateway, topics):
        gateway.inject(topics.conveyor_state, sensor_payload(50))
        assert running.is_locked
        assert running.get_status()["locked"] is True


def test_controller_defaults_to_real_config(gateway, scheduler):
    ctrl = RunController(gateway, scheduler=scheduler)
    assert ctrl.config == AutomationConfig()
    assert ctrl.program_kind == ProgramKind.BASIC
