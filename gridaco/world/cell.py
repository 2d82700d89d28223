"""Cell — an integer coordinate on the obstacle grid.

Cells are plain values: two cells with the same ``(x, y)`` are the same
cell, so they can be used as dict keys and compared directly when
checking arrival or backtracking.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Cell:
    """A single grid coordinate.

    Attributes:
        x: Column index (0 at the left edge).
        y: Row index (0 at the bottom edge when rendered).
    """

    x: int
    y: int

    def offset(self, dx: int, dy: int) -> Cell:
        """Return the cell displaced by ``(dx, dy)``."""
        return Cell(self.x + dx, self.y + dy)


def manhattan(a: Cell, b: Cell) -> int:
    """Grid distance between two cells (no diagonal moves)."""
    return abs(a.x - b.x) + abs(a.y - b.y)


def euclidean(a: Cell, b: Cell) -> float:
    """Straight-line distance between two cells."""
    return math.hypot(a.x - b.x, a.y - b.y)
