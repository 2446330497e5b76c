"""Tests for the range sensor and fog-of-war bookkeeping."""

from rescuebot.environment import Grid
from rescuebot.perception import build_oracle_perception, get_known_world, scan
from rescuebot.schemas import CellType, Coordinates


def test_scan_reveals_square_window():
    grid = Grid.empty(15)

    result = scan(grid, Coordinates(x=7, y=7), radius=2)

    assert result.updated is True
    assert len(result.newly_revealed) == 25
    assert len(result.readings) == 25
    assert grid.explored_count() == 25
    corner = next(r for r in result.readings if r.coordinates == Coordinates(x=5, y=5))
    assert corner.distance == 4


def test_scan_clips_window_at_the_border():
    grid = Grid.empty(15)

    result = scan(grid, Coordinates(x=0, y=0), radius=2)

    assert len(result.newly_revealed) == 9
    assert all(grid.in_bounds(r.coordinates.x, r.coordinates.y) for r in result.readings)


def test_rescan_is_idempotent_and_reports_no_update():
    grid = Grid.empty(10)
    position = Coordinates(x=4, y=4)
    scan(grid, position)

    again = scan(grid, position)

    assert again.updated is False
    assert again.newly_revealed == []
    assert again.grid is grid


def test_reveal_is_monotonic_across_scans():
    grid = Grid.empty(10)
    explored = []
    for x in range(0, 10, 2):
        scan(grid, Coordinates(x=x, y=5))
        explored.append(grid.explored_count())

    assert explored == sorted(explored)
    scan(grid, Coordinates(x=0, y=5))
    assert grid.explored_count() == explored[-1]


def test_sensor_reports_ground_truth_inside_window():
    grid = Grid.from_rows(
        [
            "S....",
            "..V..",
            ".....",
            "....F",
            ".....",
        ],
        revealed=False,
    )

    result = scan(grid, Coordinates(x=0, y=0), radius=2)
    types = {r.coordinates.as_tuple(): r.type for r in result.readings}

    assert types[(2, 1)] is CellType.VICTIM
    assert (4, 3) not in types


def test_get_known_world_returns_copies_of_revealed_cells():
    grid = Grid.empty(5)
    scan(grid, Coordinates(x=0, y=0), radius=1)

    known = get_known_world(grid)
    assert len(known) == 4

    known[0].type = CellType.FIRE
    assert grid.cells[0].type is CellType.START


def test_build_oracle_perception_measures_from_robot():
    grid = Grid.from_rows(["S.V", "...", "..."])

    cells = build_oracle_perception(get_known_world(grid), Coordinates(x=1, y=1))
    victim = next(cell for cell in cells if cell.type is CellType.VICTIM)

    assert (victim.x, victim.y) == (2, 0)
    assert victim.relative_distance == 2
    assert len(cells) == 9
