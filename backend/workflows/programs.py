"""
Programs - the selectable automation cycles

Every program runs the same choreography:
1. Feed one block onto conveyor 1
2. Seek until the sensor sees the block, then stop it at the pickup point
3. For each crane leg: XY to pickup, lower, magnet on, raise, XY to drop-off, magnet off
4. Move conveyor 2 by a fixed offset and loop

Programs differ only in constants and hooks:
- BasicCycle:        one leg, fixed drop-off
- ColorSortingCycle: one leg, drop-off chosen by the block color read mid-move
- ExtendedCycle:     two legs (conveyor 1 → staging → final drop-off)
"""

from typing import Dict, Optional, Tuple

from core.color import classify_sample
from core.config import AutomationConfig, CraneXY, CycleSettings, LegPlan
from core.logger import log_color, log_cycle, log_warn
from core.messages import AxisStatus, ConveyorStatus, MagnetStatus, Message
from core.types import (
    AXIS_LIFT,
    AXIS_REACH,
    AXIS_ROTATION,
    AxisMoveCommand,
    BlockColor,
    ConveyorCommand,
    Device,
    MagnetCommand,
    ProgramKind,
)

from .context import SessionContext
from .state_machine import DeferredCommand, Handler, ProgramSequencer, Transition
from .states import AutomationState as S


XY_AXES = (AXIS_ROTATION, AXIS_REACH)


class PickPlaceCycle(ProgramSequencer):
    """Shared feeder → conveyor → crane legs → conveyor 2 sub-machine"""

    detection_state = S.CONVEYOR1_MOVING_TO_PICKUP

    @property
    def cycle(self) -> CycleSettings:
        return self.config.cycle

    @property
    def legs(self) -> Tuple[LegPlan, ...]:
        return self.config.crane.single_leg()

    def build_handlers(self) -> Dict[S, Handler]:
        return {
            S.FEEDER_ACTIVATING: self._activate_feeder,
            S.WAITING_FEEDER_COMPLETE: self._feeder_complete,
            S.IDLE: self._check_sensor,
            S.WAITING_FOR_OBJECT: self._wait_for_object,
            S.CONVEYOR1_MOVING_TO_PICKUP: self._conveyor_at_pickup,
            S.CRANE_MOVING_TO_PICKUP_XY: self._crane_at_pickup_xy,
            S.CRANE_MOVING_TO_PICKUP_Z: self._crane_at_pickup_z,
            S.ACTIVATING_MAGNET: self._magnet_on,
            S.CRANE_RAISING_TO_SAFE_HEIGHT: self._crane_at_safe_height,
            S.CRANE_MOVING_TO_DROPOFF_XY: self._crane_at_dropoff_xy,
            S.DEACTIVATING_MAGNET: self._magnet_off,
            S.CONVEYOR2_MOVING: self._conveyor2_done,
        }

    # =========================================================================
    # Hooks
    # =========================================================================

    def detection_deferred(self) -> Tuple[DeferredCommand, ...]:
        """Commands to schedule once the block is on its way to the pickup point"""
        return ()

    def dropoff_for(self, context: SessionContext, leg: LegPlan) -> CraneXY:
        return leg.dropoff

    # =========================================================================
    # Feeder
    # =========================================================================

    def _activate_feeder(self, message: Message, context: SessionContext) -> Optional[Transition]:
        # Entry action: any event while here triggers the feed
        log_cycle("Activating feeder to move block onto conveyor")
        return Transition(S.WAITING_FEEDER_COMPLETE, (ConveyorCommand.feed_block(),))

    def _feeder_complete(self, message: Message, context: SessionContext) -> Optional[Transition]:
        # The feeder has no completion signal of its own
        return Transition(S.IDLE)

    # =========================================================================
    # Conveyor 1
    # =========================================================================

    def _check_sensor(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not self._is_sensor_reading(message):
            return None

        if message.color_c <= self.cycle.presence_threshold:
            log_cycle(f"Sensor is clear (c={message.color_c:g}). Starting conveyor 1")
            return Transition(
                S.WAITING_FOR_OBJECT,
                (ConveyorCommand.move_rel(Device.CONVEYOR1, self.cycle.seek_distance),),
            )

        if message.position is None:
            return None
        log_cycle(f"Object already present (c={message.color_c:g})")
        return self._move_to_pickup(context, message.position + self.cycle.present_pickup_offset)

    def _wait_for_object(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not self._is_sensor_reading(message) or message.position is None:
            return None
        if message.color_c <= self.cycle.presence_threshold:
            return None
        log_cycle(f"Object detected at {message.position:g}cm (c={message.color_c:g})")
        return self._move_to_pickup(context, message.position + self.cycle.pickup_offset)

    def _move_to_pickup(self, context: SessionContext, target: float) -> Transition:
        context.pickup_target = target
        log_cycle(f"Moving conveyor 1 to pickup position {target:g}cm")
        return Transition(
            self.detection_state,
            (ConveyorCommand.move_abs(Device.CONVEYOR1, target),),
            deferred=self.detection_deferred(),
        )

    def _conveyor_at_pickup(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not (isinstance(message, ConveyorStatus) and message.conveyor == Device.CONVEYOR1 and message.is_idle):
            return None
        log_cycle("Conveyor at pickup position. Starting crane sequence")
        return self._start_leg(context)

    # =========================================================================
    # Crane legs
    # =========================================================================

    def _start_leg(self, context: SessionContext) -> Transition:
        leg = self.legs[context.leg_index]
        return Transition(S.CRANE_MOVING_TO_PICKUP_XY, self._move_xy(context, leg.pickup))

    def _crane_at_pickup_xy(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not self._xy_settled(message, context):
            return None
        leg = self.legs[context.leg_index]
        log_cycle(f"Crane at pickup X/Y. Lowering to Z={leg.pickup_z:g}")
        return Transition(S.CRANE_MOVING_TO_PICKUP_Z, (AxisMoveCommand(AXIS_LIFT, leg.pickup_z),))

    def _crane_at_pickup_z(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not self._lift_idle(message):
            return None
        log_cycle("Crane at pickup Z. Activating magnet")
        return Transition(S.ACTIVATING_MAGNET, (MagnetCommand(True),))

    def _magnet_on(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not (isinstance(message, MagnetStatus) and message.enabled):
            return None
        safe_z = self.config.crane.safe_z
        log_cycle(f"Magnet ON. Raising to safe height Z={safe_z:g}")
        return Transition(S.CRANE_RAISING_TO_SAFE_HEIGHT, (AxisMoveCommand(AXIS_LIFT, safe_z),))

    def _crane_at_safe_height(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not self._lift_idle(message):
            return None
        target = self.dropoff_for(context, self.legs[context.leg_index])
        log_cycle(f"Crane at safe height. Moving to drop-off ({target.axis0:g}, {target.axis1:g})")
        return Transition(S.CRANE_MOVING_TO_DROPOFF_XY, self._move_xy(context, target))

    def _crane_at_dropoff_xy(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not self._xy_settled(message, context):
            return None
        log_cycle("Crane at drop-off X/Y. Deactivating magnet")
        return Transition(S.DEACTIVATING_MAGNET, (MagnetCommand(False),))

    def _magnet_off(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not (isinstance(message, MagnetStatus) and not message.enabled):
            return None

        if context.leg_index + 1 < len(self.legs):
            context.leg_index += 1
            log_cycle(f"Magnet OFF. Starting leg {context.leg_index + 1}/{len(self.legs)}")
            return self._start_leg(context)

        log_cycle("Magnet OFF. Moving conveyor 2")
        return Transition(
            S.CONVEYOR2_MOVING,
            (ConveyorCommand.move_rel(Device.CONVEYOR2, self.cycle.conveyor2_offset),),
        )

    # =========================================================================
    # Conveyor 2
    # =========================================================================

    def _conveyor2_done(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not (isinstance(message, ConveyorStatus) and message.conveyor == Device.CONVEYOR2 and message.is_idle):
            return None
        context.end_cycle()
        log_cycle(f"Cycle complete ({context.cycles_completed}). Resetting to feeder")
        # No command, but still wait out the settle window before the next feed
        return Transition(S.FEEDER_ACTIVATING, settle=True)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _is_sensor_reading(self, message: Message) -> bool:
        return (
            isinstance(message, ConveyorStatus)
            and message.conveyor == Device.CONVEYOR1
            and message.sensor_ok
            and message.color_c is not None
        )

    def _move_xy(self, context: SessionContext, target: CraneXY) -> Tuple[AxisMoveCommand, ...]:
        context.motors.reset(XY_AXES)
        return (
            AxisMoveCommand(AXIS_ROTATION, target.axis0),
            AxisMoveCommand(AXIS_REACH, target.axis1),
        )

    def _xy_settled(self, message: Message, context: SessionContext) -> bool:
        if not isinstance(message, AxisStatus):
            return False
        if message.axis in XY_AXES and message.is_settled:
            context.motors.mark_ready(message.axis)
        return context.motors.all_ready()

    def _lift_idle(self, message: Message) -> bool:
        return isinstance(message, AxisStatus) and message.axis == AXIS_LIFT and message.state == "IDLE"


class BasicCycle(PickPlaceCycle):
    """Plain linear cycle with a fixed drop-off"""
    kind = ProgramKind.BASIC


class ColorSortingCycle(PickPlaceCycle):
    """
    Sorts blocks by color.

    After detection the conveyor is asked for a fresh reading while it
    carries the block to the pickup point; that reading picks the
    drop-off (unknown colors go to the blue drop-off).
    """
    kind = ProgramKind.COLOR_SORTING
    detection_state = S.CONVEYOR1_MOVING_WITH_OBJECT

    @property
    def cycle(self) -> CycleSettings:
        return self.config.color_cycle

    def build_handlers(self) -> Dict[S, Handler]:
        handlers = super().build_handlers()
        handlers[S.CONVEYOR1_MOVING_WITH_OBJECT] = self._read_color
        return handlers

    def detection_deferred(self) -> Tuple[DeferredCommand, ...]:
        return (DeferredCommand(self.config.color_probe_delay, ConveyorCommand.get_state(Device.CONVEYOR1)),)

    def _read_color(self, message: Message, context: SessionContext) -> Optional[Transition]:
        if not (isinstance(message, ConveyorStatus) and message.conveyor == Device.CONVEYOR1 and message.is_moving):
            return None
        sample = message.color_sample()
        if sample is None:
            return None

        context.color_sample = sample
        context.block_color = classify_sample(sample, self.config.color)
        log_color(
            f"Detected: {context.block_color.value} block",
            {"r": sample.r, "g": sample.g, "b": sample.b, "c": sample.c},
        )
        return Transition(S.CONVEYOR1_MOVING_TO_PICKUP)

    def dropoff_for(self, context: SessionContext, leg: LegPlan) -> CraneXY:
        crane = self.config.crane
        if context.block_color == BlockColor.YELLOW:
            return crane.yellow_dropoff
        if context.block_color != BlockColor.BLUE:
            log_warn(f"Unknown block color ({context.block_color}). Defaulting to blue drop-off")
        return crane.blue_dropoff


class ExtendedCycle(PickPlaceCycle):
    """Two crane legs per block: conveyor 1 → staging area → final drop-off"""
    kind = ProgramKind.EXTENDED

    @property
    def legs(self) -> Tuple[LegPlan, ...]:
        return self.config.crane.extended_legs()


PROGRAMS = {
    ProgramKind.BASIC: BasicCycle,
    ProgramKind.COLOR_SORTING: ColorSortingCycle,
    ProgramKind.EXTENDED: ExtendedCycle,
}


# === Program factory ===

def create_program(kind: ProgramKind, config: Optional[AutomationConfig] = None) -> PickPlaceCycle:
    """Create the sequencer for a program kind"""
    return PROGRAMS[kind](config)


def create_programs(config: Optional[AutomationConfig] = None) -> Dict[ProgramKind, PickPlaceCycle]:
    """One sequencer per selectable program"""
    return {kind: create_program(kind, config) for kind in PROGRAMS}
