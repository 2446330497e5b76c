"""World model for RescueBot: grid arena, generation, and navigation helpers."""

from .grid import Cell, Grid, MOVEMENT_COST, movement_difficulty
from .generation import generate, MAX_PLACEMENT_ATTEMPTS
from .helpers import (
    choose_exploration_target,
    frontier_cells,
    grid_neighbors,
    is_adjacent,
    is_blocked,
    manhattan,
    path_cost,
    plan_path,
)

__all__ = [
    "Cell",
    "Grid",
    "MOVEMENT_COST",
    "movement_difficulty",
    "generate",
    "MAX_PLACEMENT_ATTEMPTS",
    "choose_exploration_target",
    "frontier_cells",
    "grid_neighbors",
    "is_adjacent",
    "is_blocked",
    "manhattan",
    "path_cost",
    "plan_path",
]
