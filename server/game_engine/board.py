"""
Board representation: a fixed square grid of cells.
"""
from dataclasses import dataclass, field
from typing import List

from shared.constants import BOARD_SIZE
from shared.enums import Cell


@dataclass
class Board:
    """
    19x19 Connect6 board.

    Cells are addressed by column ``x`` and row ``y``; the grid is stored
    row-major so ``grid[y][x]`` is the cell at (x, y).
    """

    size: int = BOARD_SIZE
    grid: List[List[Cell]] = field(default_factory=list)

    def __post_init__(self):
        if not self.grid:
            self.reset()
        elif len(self.grid) != self.size or any(len(row) != self.size for row in self.grid):
            raise ValueError(f"Board grid must be {self.size}x{self.size}")

    def in_bounds(self, x: int, y: int) -> bool:
        """Check if (x, y) lies on the board."""
        return 0 <= x < self.size and 0 <= y < self.size

    def get(self, x: int, y: int) -> Cell:
        return self.grid[y][x]

    def set(self, x: int, y: int, cell: Cell) -> None:
        self.grid[y][x] = cell

    def is_empty(self, x: int, y: int) -> bool:
        return self.grid[y][x] == Cell.EMPTY

    def count(self, cell: Cell) -> int:
        """Count cells holding the given value."""
        return sum(row.count(cell) for row in self.grid)

    def copy(self) -> "Board":
        """Return an independent deep copy."""
        return Board(size=self.size, grid=[list(row) for row in self.grid])

    def reset(self) -> None:
        """Clear every cell."""
        self.grid = [[Cell.EMPTY] * self.size for _ in range(self.size)]

    def to_rows(self) -> tuple[tuple[Cell, ...], ...]:
        """Immutable row snapshot, suitable for a board event."""
        return tuple(tuple(row) for row in self.grid)

    @classmethod
    def from_rows(cls, rows) -> "Board":
        """Build a board from rows of cells or cell markers."""
        grid = [[Cell(cell) for cell in row] for row in rows]
        return cls(size=len(grid), grid=grid)

