"""
Perception layer: simulated range sensor plus fog-of-war belief maintenance.

The robot never sees the whole world. Each tick the sensor sweeps a square window
around the robot (|dx| <= R, |dy| <= R, clipped to the grid) and every cell in that
window becomes permanently revealed. Revealed cells form the belief grid that the
planner and the decision oracle reason over.

Perception rules:
- Revealing is monotonic: nothing ever becomes hidden again
- Scanning is idempotent: rescanning the same spot reveals nothing new
- When nothing new is revealed the input grid is returned untouched and
  ``ScanResult.updated`` is False. Callers must use that flag, never object identity,
  to detect change.

Usage:
    result = scan(grid, robot.position)
    if result.updated:
        ...  # belief grid grew; result.newly_revealed lists the cells
"""

from dataclasses import dataclass, field, replace
from typing import List

from rescuebot.config import Config
from rescuebot.environment import Cell, Grid
from rescuebot.schemas import Coordinates, OraclePerceptionCell, SensorReading


@dataclass
class ScanResult:
    """Outcome of one sensor sweep."""

    grid: Grid
    readings: List[SensorReading] = field(default_factory=list)
    updated: bool = False
    newly_revealed: List[Coordinates] = field(default_factory=list)


def scan(grid: Grid, robot_pos: Coordinates, radius: int = Config.SENSOR_RADIUS) -> ScanResult:
    """Sweep the sensor window around ``robot_pos`` and reveal what it covers.

    Args:
        grid: Scheduler-owned grid; reveal flags are updated in place
        robot_pos: Robot position at the start of the tick
        radius: Half-width of the square sensor window (default 2)

    Returns:
        ScanResult with one reading per visible cell (carrying its Manhattan distance)
        and the list of cells revealed by this sweep
    """
    radius = max(int(radius), 0)
    readings: List[SensorReading] = []
    newly_revealed: List[Coordinates] = []

    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            nx, ny = robot_pos.x + dx, robot_pos.y + dy
            if not grid.in_bounds(nx, ny):
                continue
            # Line of sight is not modelled; the window sees through walls.
            cell = grid.cells[grid.index(nx, ny)]
            coords = Coordinates(x=nx, y=ny)
            readings.append(
                SensorReading(coordinates=coords, type=cell.type, distance=abs(dx) + abs(dy))
            )
            if grid.reveal(nx, ny):
                newly_revealed.append(coords)

    return ScanResult(
        grid=grid,
        readings=readings,
        updated=bool(newly_revealed),
        newly_revealed=newly_revealed,
    )


def get_known_world(grid: Grid) -> List[Cell]:
    """Return copies of every revealed cell (the belief grid as a flat list)."""
    return [replace(cell) for cell in grid.revealed_cells()]


def build_oracle_perception(known_world: List[Cell], robot_pos: Coordinates) -> List[OraclePerceptionCell]:
    """Convert known cells into the oracle wire format with distances from the robot."""
    return [
        OraclePerceptionCell(
            x=cell.x,
            y=cell.y,
            type=cell.type,
            relative_distance=abs(cell.x - robot_pos.x) + abs(cell.y - robot_pos.y),
        )
        for cell in known_world
    ]
