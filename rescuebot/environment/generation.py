"""Procedural disaster-zone generation.

``generate`` lays out obstacles by per-cell coin flips and then drops victims and
fires by rejection sampling. Placement gives up after a fixed number of attempts per
hazard type, so a crowded scenario can silently end up with fewer hazards than it
asked for. Callers that care compare ``Grid.count`` against the scenario.
"""

from __future__ import annotations

import random
from typing import Optional

from rescuebot.schemas import CellType, ScenarioProfile

from .grid import Grid

MAX_PLACEMENT_ATTEMPTS = 1000
INITIAL_REVEAL_SPAN = 2  # cells with x < 2 and y < 2 start revealed
SAFE_ZONE_SPAN = 2  # hazards never land where x <= 2 and y <= 2


def _place_random(grid: Grid, cell_type: CellType, count: int, rng: random.Random) -> int:
    """Place up to ``count`` cells of ``cell_type`` onto EMPTY cells. Returns how many landed."""

    placed = 0
    attempts = 0
    while placed < count and attempts < MAX_PLACEMENT_ATTEMPTS:
        attempts += 1
        x = rng.randrange(grid.size)
        y = rng.randrange(grid.size)
        cell = grid.cells[grid.index(x, y)]
        # Keep the charge point neighbourhood clear so the first scans are safe.
        if cell.type is CellType.EMPTY and (x > SAFE_ZONE_SPAN or y > SAFE_ZONE_SPAN):
            cell.type = cell_type
            placed += 1
    return placed


def generate(
    scenario: ScenarioProfile,
    grid_size: int,
    rng: Optional[random.Random] = None,
) -> Grid:
    """Build a fresh ground-truth grid for ``scenario``.

    Args:
        scenario: Density and hazard counts (already clamped by the schema)
        grid_size: Edge length N of the square grid
        rng: Optional random source; defaults to ``random.Random(scenario.seed)``

    Returns:
        Grid with START at (0, 0) and the 2×2 corner patch revealed
    """
    if rng is None:
        rng = random.Random(scenario.seed)

    grid = Grid(size=grid_size)
    for cell in grid.cells:
        if cell.x == 0 and cell.y == 0:
            cell.type = CellType.START
        elif rng.random() < scenario.obstacle_density:
            cell.type = CellType.WALL if rng.random() > 0.5 else CellType.DEBRIS
        cell.revealed = cell.x < INITIAL_REVEAL_SPAN and cell.y < INITIAL_REVEAL_SPAN

    _place_random(grid, CellType.VICTIM, scenario.victim_count, rng)
    _place_random(grid, CellType.FIRE, scenario.fire_count, rng)

    # Generation is not a tick mutation; start the mission with a clean dirty list.
    grid.drain_dirty()
    return grid
