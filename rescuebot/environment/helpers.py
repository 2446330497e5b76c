"""Utilities for grid navigation: A* path planning and frontier selection."""

from __future__ import annotations

import heapq
import random
from itertools import count
from typing import Dict, Iterable, List, Optional, Tuple

from rescuebot.schemas import CellType, Coordinates

from .grid import Grid

Point = Tuple[int, int]

# Four-directional movement (up, down, left, right). Diagonal movement not supported.
# Order fixes which equal-cost neighbour is discovered first.
DIRECTIONS: Tuple[Point, ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


def manhattan(a: Coordinates, b: Coordinates) -> int:
    return abs(a.x - b.x) + abs(a.y - b.y)


def is_adjacent(a: Coordinates, b: Coordinates) -> bool:
    return manhattan(a, b) == 1


def grid_neighbors(grid: Grid, x: int, y: int) -> Iterable[Point]:
    """Yield in-bounds 4-connected neighbours of (x, y)."""
    for dx, dy in DIRECTIONS:
        nx, ny = x + dx, y + dy
        if grid.in_bounds(nx, ny):
            yield nx, ny


def is_blocked(grid: Grid, x: int, y: int) -> bool:
    """A cell blocks planning only when it is a wall the robot has actually seen.

    Unrevealed cells are optimistically traversable so paths can run into the fog.
    """
    cell = grid.cells[grid.index(x, y)]
    return cell.type is CellType.WALL and cell.revealed


def plan_path(start: Coordinates, target: Coordinates, grid: Grid) -> List[Coordinates]:
    """Return the A* path from ``start`` to ``target`` over the belief grid.

    Edge cost is the difficulty of the cell being entered and the heuristic is
    Manhattan distance, which is admissible (and consistent) because every step costs
    at least 1 and there are no diagonal moves.

    Returns:
        Coordinates excluding ``start`` and including ``target``. Empty when the
        target is unreachable, out of bounds, or equal to ``start``.
    """
    if not (grid.in_bounds(start.x, start.y) and grid.in_bounds(target.x, target.y)):
        return []
    if start == target:
        return []

    goal: Point = target.as_tuple()
    origin: Point = start.as_tuple()

    def heuristic(point: Point) -> int:
        return abs(point[0] - goal[0]) + abs(point[1] - goal[1])

    # Heap entries are (f, discovery_order, g, point). The counter makes ties on f
    # resolve first-discovered-first and keeps ordering deterministic.
    order = count()
    open_heap: List[Tuple[int, int, int, Point]] = [(heuristic(origin), next(order), 0, origin)]
    best_g: Dict[Point, int] = {origin: 0}
    parents: Dict[Point, Optional[Point]] = {origin: None}
    closed: set[Point] = set()

    while open_heap:
        _, _, g, current = heapq.heappop(open_heap)
        if current in closed:
            continue  # stale entry superseded by a cheaper one
        if current == goal:
            return _reconstruct(parents, current)
        closed.add(current)

        for nx, ny in grid_neighbors(grid, *current):
            neighbor = (nx, ny)
            if neighbor in closed or is_blocked(grid, nx, ny):
                continue
            candidate_g = g + grid.cells[grid.index(nx, ny)].difficulty
            # Dominance: an already-queued node with g <= candidate wins.
            queued_g = best_g.get(neighbor)
            if queued_g is not None and queued_g <= candidate_g:
                continue
            best_g[neighbor] = candidate_g
            parents[neighbor] = current
            heapq.heappush(
                open_heap,
                (candidate_g + heuristic(neighbor), next(order), candidate_g, neighbor),
            )

    return []


def _reconstruct(parents: Dict[Point, Optional[Point]], end: Point) -> List[Coordinates]:
    path: List[Coordinates] = []
    node: Optional[Point] = end
    while node is not None:
        path.append(Coordinates(x=node[0], y=node[1]))
        node = parents[node]
    path.reverse()
    return path[1:]  # exclude start


def path_cost(path: List[Coordinates], grid: Grid) -> int:
    """Total difficulty of walking ``path`` (start excluded)."""
    return sum(grid.at(step).difficulty for step in path)


def frontier_cells(grid: Grid) -> List[Coordinates]:
    """Unrevealed cells that touch at least one revealed cell."""
    frontier: List[Coordinates] = []
    for cell in grid.cells:
        if cell.revealed:
            continue
        if any(grid.cells[grid.index(nx, ny)].revealed for nx, ny in grid_neighbors(grid, cell.x, cell.y)):
            frontier.append(Coordinates(x=cell.x, y=cell.y))
    return frontier


def choose_exploration_target(
    grid: Grid,
    origin: Coordinates,
    rng: Optional[random.Random] = None,
) -> Optional[Coordinates]:
    """Pick the closest reachable frontier cell to ``origin`` as the next exploration goal.

    Ties on distance are broken with ``rng``. Frontier cells sealed off by revealed
    walls are skipped. When no frontier exists (e.g. the revealed region is empty) any
    unrevealed cell is used. Returns None once nothing unrevealed can be reached.
    """
    rng = rng or random.Random()
    candidates = frontier_cells(grid)
    if not candidates:
        candidates = [cell.coordinates for cell in grid.cells if not cell.revealed]
    if not candidates:
        return None

    by_distance: Dict[int, List[Coordinates]] = {}
    for candidate in candidates:
        by_distance.setdefault(manhattan(origin, candidate), []).append(candidate)

    for distance in sorted(by_distance):
        ring = by_distance[distance]
        rng.shuffle(ring)
        for candidate in ring:
            if plan_path(origin, candidate, grid):
                return candidate
    return None
