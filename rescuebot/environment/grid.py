"""Grid world arena.

The ground-truth world is an N×N grid stored as a flat list addressed by
``y * N + x``. Perception flips ``revealed`` flags and the control layer clears
hazards in place. Every mutation is recorded in a dirty-cell list that the scheduler
drains once per tick, so consumers can react to changes without diffing whole grids.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional

from rescuebot.schemas import CellType, Coordinates


MOVEMENT_COST: Dict[CellType, int] = {
    CellType.EMPTY: 1,
    CellType.START: 1,
    CellType.DEBRIS: 3,
    CellType.WALL: 999,
    CellType.FIRE: 5,
    CellType.VICTIM: 1,
}

_missing_costs = set(CellType) - set(MOVEMENT_COST)
if _missing_costs:
    raise RuntimeError(
        "MOVEMENT_COST is missing cell types: "
        + ", ".join(sorted(cell_type.value for cell_type in _missing_costs))
    )


def movement_difficulty(cell_type: CellType) -> int:
    """Movement cost of entering a cell of ``cell_type``."""
    return MOVEMENT_COST[cell_type]


@dataclass
class Cell:
    """A single grid cell. ``difficulty`` is derived from the cell type."""

    x: int
    y: int
    type: CellType = CellType.EMPTY
    revealed: bool = False

    @property
    def difficulty(self) -> int:
        return MOVEMENT_COST[self.type]

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(x=self.x, y=self.y)


@dataclass
class Grid:
    """Square grid arena with dirty-cell tracking."""

    size: int
    cells: List[Cell] = field(default_factory=list)
    _dirty: List[Coordinates] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError("Grid size must be positive")
        if not self.cells:
            self.cells = [
                Cell(x=index % self.size, y=index // self.size)
                for index in range(self.size * self.size)
            ]
        elif len(self.cells) != self.size * self.size:
            raise ValueError(
                f"Grid of size {self.size} needs {self.size * self.size} cells, got {len(self.cells)}"
            )

    @classmethod
    def empty(cls, size: int) -> "Grid":
        """Build an all-EMPTY grid with the charge point at (0, 0) and nothing revealed."""
        grid = cls(size=size)
        grid.cells[0].type = CellType.START
        return grid

    @property
    def total_cells(self) -> int:
        return self.size * self.size

    def index(self, x: int, y: int) -> int:
        return y * self.size + x

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def get(self, x: int, y: int) -> Optional[Cell]:
        if not self.in_bounds(x, y):
            return None
        return self.cells[self.index(x, y)]

    def at(self, coords: Coordinates) -> Cell:
        """Return the cell at ``coords``; raises IndexError when out of bounds."""
        cell = self.get(coords.x, coords.y)
        if cell is None:
            raise IndexError(f"Coordinates {coords} outside {self.size}x{self.size} grid")
        return cell

    def set_type(self, coords: Coordinates, cell_type: CellType) -> None:
        cell = self.at(coords)
        if cell.type is not cell_type:
            cell.type = cell_type
            self._dirty.append(coords)

    def reveal(self, x: int, y: int) -> bool:
        """Reveal a cell. Returns True only when the cell was previously hidden."""
        cell = self.get(x, y)
        if cell is None or cell.revealed:
            return False
        cell.revealed = True
        self._dirty.append(Coordinates(x=x, y=y))
        return True

    def drain_dirty(self) -> List[Coordinates]:
        """Return and clear the coordinates mutated since the last drain."""
        dirty, self._dirty = self._dirty, []
        return dirty

    def revealed_cells(self) -> Iterator[Cell]:
        return (cell for cell in self.cells if cell.revealed)

    def explored_count(self) -> int:
        return sum(1 for cell in self.cells if cell.revealed)

    def count(self, cell_type: CellType) -> int:
        return sum(1 for cell in self.cells if cell.type is cell_type)

    def copy(self) -> "Grid":
        """Independent copy (cells are copied, dirty list starts empty)."""
        return Grid(size=self.size, cells=[replace(cell) for cell in self.cells])

    def rows(self) -> List[List[Cell]]:
        """Row-major nested view, mostly for debugging and tests."""
        return [self.cells[y * self.size:(y + 1) * self.size] for y in range(self.size)]

    @classmethod
    def from_rows(cls, rows: List[str], *, revealed: bool = True) -> "Grid":
        """Build a grid from text rows (row 0 is y=0).

        Symbols: ``.`` empty, ``#`` wall, ``%`` debris, ``F`` fire, ``V`` victim,
        ``S`` start. Handy for tests and hand-authored maps.
        """
        symbols: Dict[str, CellType] = {
            ".": CellType.EMPTY,
            "#": CellType.WALL,
            "%": CellType.DEBRIS,
            "F": CellType.FIRE,
            "V": CellType.VICTIM,
            "S": CellType.START,
        }
        size = len(rows)
        cells: List[Cell] = []
        for y, row in enumerate(rows):
            if len(row) != size:
                raise ValueError(f"Row {y} has length {len(row)}, expected {size}")
            for x, symbol in enumerate(row):
                try:
                    cell_type = symbols[symbol]
                except KeyError:
                    raise ValueError(f"Unknown map symbol {symbol!r} at ({x},{y})") from None
                cells.append(Cell(x=x, y=y, type=cell_type, revealed=revealed))
        return cls(size=size, cells=cells)
