"""Tests for grid navigation helpers (A* planner, frontier selection)."""

import random

from rescuebot.environment import (
    Grid,
    choose_exploration_target,
    frontier_cells,
    is_adjacent,
    path_cost,
    plan_path,
)
from rescuebot.schemas import CellType, Coordinates


def c(x: int, y: int) -> Coordinates:
    return Coordinates(x=x, y=y)


def assert_contiguous(start: Coordinates, path: list[Coordinates]) -> None:
    previous = start
    for step in path:
        assert is_adjacent(previous, step)
        previous = step


def test_plan_path_straight_line_on_open_grid():
    grid = Grid.empty(15)

    path = plan_path(c(0, 0), c(5, 0), grid)

    assert len(path) == 5
    assert path[-1] == c(5, 0)
    assert c(0, 0) not in path  # start excluded
    assert_contiguous(c(0, 0), path)


def test_plan_path_routes_around_revealed_walls():
    grid = Grid.from_rows(
        [
            "S....",
            ".###.",
            ".....",
            ".....",
            ".....",
        ]
    )

    path = plan_path(c(0, 0), c(2, 2), grid)

    assert path[-1] == c(2, 2)
    assert len(path) == 4
    assert all(grid.at(step).type is not CellType.WALL for step in path)
    assert_contiguous(c(0, 0), path)


def test_plan_path_prefers_cheaper_detour_over_fire():
    grid = Grid.from_rows(
        [
            "SF.",
            "...",
            "...",
        ]
    )

    path = plan_path(c(0, 0), c(2, 0), grid)

    # Through the fire costs 5 + 1; around it costs 4.
    assert c(1, 0) not in path
    assert path_cost(path, grid) == 4


def test_plan_path_cost_is_optimal_with_debris():
    grid = Grid.from_rows(
        [
            "S%%%.",
            ".#..%",
            ".#.#.",
            "...#.",
            "%....",
        ]
    )

    path = plan_path(c(0, 0), c(4, 0), grid)

    assert path[-1] == c(4, 0)
    # Straight along the top row: debris 3+3+3 plus the empty goal.
    assert path_cost(path, grid) == 10
    assert_contiguous(c(0, 0), path)


def test_unrevealed_walls_are_optimistically_traversable():
    grid = Grid.from_rows(["S#.", "###", "..."], revealed=False)

    path = plan_path(c(0, 0), c(2, 0), grid)
    assert path == [c(1, 0), c(2, 0)]

    grid.reveal(1, 0)
    grid.reveal(0, 1)
    grid.reveal(1, 1)
    grid.reveal(2, 1)
    assert plan_path(c(0, 0), c(2, 0), grid) == []


def test_plan_path_unreachable_out_of_bounds_and_same_cell():
    grid = Grid.from_rows(
        [
            "S.#.",
            "..#.",
            "###.",
            "....",
        ]
    )

    assert plan_path(c(0, 0), c(3, 0), grid) == []
    assert plan_path(c(0, 0), c(9, 9), grid) == []
    assert plan_path(c(1, 1), c(1, 1), grid) == []


def test_frontier_cells_border_the_revealed_region():
    grid = Grid.empty(5)
    grid.reveal(0, 0)

    frontier = frontier_cells(grid)

    assert sorted(frontier, key=lambda p: (p.x, p.y)) == [c(0, 1), c(1, 0)]


def test_choose_exploration_target_picks_nearest_frontier():
    grid = Grid.empty(5)
    for x in range(2):
        for y in range(2):
            grid.reveal(x, y)

    target = choose_exploration_target(grid, c(0, 0), random.Random(7))

    assert target in {c(2, 0), c(0, 2), c(2, 1), c(1, 2)}
    assert abs(target.x) + abs(target.y) == 2


def test_choose_exploration_target_none_when_fully_revealed():
    grid = Grid.from_rows(["S.", ".."], revealed=True)

    assert choose_exploration_target(grid, c(0, 0)) is None


def test_choose_exploration_target_skips_sealed_frontier():
    grid = Grid.from_rows(
        [
            "S..#.",
            "....#",
            ".....",
            ".....",
            ".....",
        ],
        revealed=False,
    )
    for cell in grid.cells:
        if (cell.x, cell.y) not in {(4, 0), (4, 4)}:
            grid.reveal(cell.x, cell.y)

    assert set(frontier_cells(grid)) == {c(4, 0), c(4, 4)}
    assert choose_exploration_target(grid, c(0, 0), random.Random(1)) == c(4, 4)


def test_choose_exploration_target_none_when_only_sealed_cells_remain():
    grid = Grid.from_rows(["S.#", "..#", "##."], revealed=False)
    for cell in grid.cells:
        if (cell.x, cell.y) != (2, 2):
            grid.reveal(cell.x, cell.y)

    assert choose_exploration_target(grid, c(0, 0)) is None
