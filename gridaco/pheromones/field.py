"""PheromoneField — the shared trail intensity grid.

A single dense NumPy array holds one intensity per cell.  The field is
the only shared mutable state of a run, so all writes go through two
operations: :meth:`PheromoneField.deposit` (additive reinforcement along
completed paths) and :meth:`PheromoneField.evaporate` (uniform decay once
per iteration).  Neither can produce a negative value.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from gridaco.world.cell import Cell


@dataclass
class PheromoneField:
    """Trail intensities for every cell of the grid.

    Attributes:
        width: Grid columns (must match the GridMap).
        height: Grid rows (must match the GridMap).
        evaporation_rate: Fraction lost per :meth:`evaporate` call.
        initial_intensity: Uniform starting value for every cell.
        grid: Intensity values (>= 0) indexed as ``grid[y, x]``.
    """

    width: int
    height: int
    evaporation_rate: float = 0.3
    initial_intensity: float = 1.0
    grid: NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Fill the grid with the initial intensity."""
        _check_rate(self.evaporation_rate)
        self.grid = np.full(
            (self.height, self.width),
            self.initial_intensity,
            dtype=np.float64,
        )

    def evaporate(self, rate: float | None = None) -> None:
        """Scale every intensity by ``1 - rate`` in place.

        Args:
            rate: Decay fraction in ``(0, 1)``.  Defaults to the field's
                own ``evaporation_rate``.
        """
        if rate is None:
            rate = self.evaporation_rate
        else:
            _check_rate(rate)
        self.grid *= 1.0 - rate

    def deposit(self, cell: Cell, amount: float) -> None:
        """Add pheromone at a single cell.

        Args:
            cell: Target cell.
            amount: Quantity to add (finite, >= 0).

        Raises:
            ValueError: If ``amount`` is negative or not finite.
        """
        if not math.isfinite(amount) or amount < 0:
            msg = f"deposit amount must be finite and >= 0, got {amount}"
            raise ValueError(msg)
        self.grid[cell.y, cell.x] += amount

    def deposit_path(
        self,
        path: Sequence[Cell],
        path_length: int,
        strength: float,
    ) -> float:
        """Reinforce every cell of a completed path.

        Each cell receives ``strength / path_length``.  A cell listed twice
        in ``path`` is reinforced twice.

        Args:
            path: Cells visited, start to goal.
            path_length: Edge count of the path.
            strength: Deposit constant ``Q``.

        Returns:
            The per-cell amount deposited.

        Raises:
            ValueError: If ``path_length`` is not positive.
        """
        if path_length <= 0:
            msg = f"cannot deposit along a path of length {path_length}"
            raise ValueError(msg)
        amount = strength / float(path_length)
        for cell in path:
            self.deposit(cell, amount)
        return amount

    def intensity(self, cell: Cell) -> float:
        """Return the current intensity at ``cell``."""
        return float(self.grid[cell.y, cell.x])

    def snapshot(self) -> NDArray[np.float64]:
        """Return an independent copy of the intensity grid."""
        return self.grid.copy()


def _check_rate(rate: float) -> None:
    if not 0.0 < rate < 1.0:
        msg = f"evaporation rate must lie in (0, 1), got {rate}"
        raise ValueError(msg)
