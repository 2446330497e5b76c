"""
Control layer: one physics step of robot motion and hazard interaction.

``execute_step`` is pure. It inspects the cell the robot is about to enter and
reports what would happen (collision, suppression, rescue or plain move) together
with the battery level afterwards. The scheduler commits the result (grid mutation,
counters, position) only after the step has been fully evaluated, so a fault can
never leave the world half-updated.

Energy model:
- Plain move: 0.5 × difficulty × speed_multiplier × battery_drain_rate
- Fire suppression: 5 × battery_drain_rate, robot stays in place for the tick
- Victim rescue: 10 × battery_drain_rate, robot moves onto the cell
- Battery is floored at 0
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rescuebot.environment import is_adjacent, movement_difficulty
from rescuebot.schemas import DEFAULT_ROBOT_PROFILE, CellType, Coordinates, RobotProfile

BASE_MOVE_DRAIN = 0.5
SUPPRESSION_DRAIN = 5.0
RESCUE_DRAIN = 10.0


class StepOutcome(str, Enum):
    MOVED = "MOVED"
    SUPPRESSED = "SUPPRESSED"
    RESCUED = "RESCUED"
    COLLISION = "COLLISION"
    INVALID_STEP = "INVALID_STEP"


@dataclass(frozen=True)
class StepResult:
    """What one control step did (or would do) to the robot."""

    success: bool
    new_battery: float
    outcome: StepOutcome
    advanced: bool = False
    message: str = ""


def movement_drain(cell_type: CellType, profile: RobotProfile) -> float:
    """Battery cost of a plain move onto ``cell_type``."""
    return (
        BASE_MOVE_DRAIN
        * movement_difficulty(cell_type)
        * profile.speed_multiplier
        * profile.battery_drain_rate
    )


def execute_step(
    pos: Coordinates,
    next_pos: Coordinates,
    battery: float,
    target_cell_type: CellType,
    profile: Optional[RobotProfile] = None,
) -> StepResult:
    """Evaluate one step from ``pos`` towards ``next_pos``.

    Args:
        pos: Current robot position
        next_pos: Next path cell (must be 4-adjacent)
        battery: Battery level before the step
        target_cell_type: Ground-truth type of ``next_pos``
        profile: Robot hardware profile (defaults to the standard responder)

    Returns:
        StepResult; ``success`` is False for collisions and invalid steps, in which
        case the battery is unchanged
    """
    profile = profile or DEFAULT_ROBOT_PROFILE

    if not is_adjacent(pos, next_pos):
        return StepResult(
            success=False,
            new_battery=battery,
            outcome=StepOutcome.INVALID_STEP,
            message=f"INVALID STEP {pos} -> {next_pos}: cells are not adjacent",
        )

    if target_cell_type is CellType.WALL:
        return StepResult(
            success=False,
            new_battery=battery,
            outcome=StepOutcome.COLLISION,
            message=f"COLLISION DETECTED at {next_pos}",
        )

    if target_cell_type is CellType.FIRE:
        return StepResult(
            success=True,
            new_battery=max(0.0, battery - SUPPRESSION_DRAIN * profile.battery_drain_rate),
            outcome=StepOutcome.SUPPRESSED,
            advanced=False,
            message=f"Activating suppression system at {next_pos}.",
        )

    if target_cell_type is CellType.VICTIM:
        return StepResult(
            success=True,
            new_battery=max(0.0, battery - RESCUE_DRAIN * profile.battery_drain_rate),
            outcome=StepOutcome.RESCUED,
            advanced=True,
            message=f"Victim secured at {next_pos}. Medical protocol initiated.",
        )

    return StepResult(
        success=True,
        new_battery=max(0.0, battery - movement_drain(target_cell_type, profile)),
        outcome=StepOutcome.MOVED,
        advanced=True,
    )
