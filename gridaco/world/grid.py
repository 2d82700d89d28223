"""GridMap — the static obstacle grid a run searches over.

The grid is a read-only occupancy oracle once a run starts: the engine
only ever asks whether a coordinate is in bounds and whether it is
blocked.  Obstacles are marked up front from the run configuration.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from gridaco.world.cell import Cell


@dataclass
class GridMap:
    """A 2D boolean obstacle map.

    Attributes:
        width: Number of columns in the grid.
        height: Number of rows in the grid.
        blocked: Obstacle flags indexed as ``blocked[y, x]``.
    """

    width: int
    height: int
    blocked: NDArray[np.bool_] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Start with a fully open grid."""
        self.blocked = np.zeros((self.height, self.width), dtype=np.bool_)

    def in_bounds(self, x: int, y: int) -> bool:
        """Return True if ``(x, y)`` lies inside the grid."""
        return 0 <= x < self.width and 0 <= y < self.height

    def is_obstacle(self, x: int, y: int) -> bool:
        """Return True if the cell at ``(x, y)`` is blocked.

        Callers are expected to bounds-check first with :meth:`in_bounds`.
        """
        return bool(self.blocked[y, x])

    def mark_obstacle(self, x: int, y: int) -> None:
        """Block a single cell.

        Args:
            x: Column index.
            y: Row index.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        if not self.in_bounds(x, y):
            msg = f"({x}, {y}) out of bounds for {self.width}x{self.height}"
            raise IndexError(msg)
        self.blocked[y, x] = True

    def mark_obstacles(self, cells: Iterable[Cell]) -> None:
        """Block every cell in ``cells``."""
        for cell in cells:
            self.mark_obstacle(cell.x, cell.y)

    def obstacles(self) -> list[Cell]:
        """Return all blocked cells in row-major order."""
        return [Cell(int(x), int(y)) for y, x in np.argwhere(self.blocked)]
