"""Transition policy — how an ant picks its next cell.

Each step an ant looks at its four axis-aligned neighbours, drops the
ones it cannot enter, and scores the rest by

    desirability = pheromone ** alpha * (1 / euclidean_distance) ** beta

The next cell is drawn from the resulting categorical distribution with
a single roulette-wheel draw.  Candidates are always enumerated in
``NEIGHBOUR_OFFSETS`` order, which makes the draw reproducible for a
given random stream.

Euclidean rather than grid distance is used so the heuristic keeps
pulling toward the goal even when obstacles force a detour.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from gridaco.world.cell import Cell, euclidean

if TYPE_CHECKING:
    from numpy.random import Generator

    from gridaco.colony.ant import Ant
    from gridaco.pheromones.field import PheromoneField
    from gridaco.world.grid import GridMap

# +x, -x, +y, -y
NEIGHBOUR_OFFSETS: tuple[tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))


@dataclass(frozen=True)
class TransitionPolicy:
    """Pheromone/heuristic weighted move selection.

    Attributes:
        alpha: Exponent applied to the pheromone intensity.
        beta: Exponent applied to the distance heuristic.
    """

    alpha: float = 1.0
    beta: float = 3.0

    @staticmethod
    def feasible_neighbours(ant: Ant, grid: GridMap) -> list[Cell]:
        """Return the cells ``ant`` may step into next.

        A neighbour is feasible when it lies inside the grid, is not an
        obstacle and is not the cell the ant just came from.  Longer
        cycles are allowed.

        Args:
            ant: The moving ant.
            grid: Obstacle oracle.

        Returns:
            Feasible cells in ``NEIGHBOUR_OFFSETS`` order.
        """
        here = ant.position
        previous = ant.previous
        result: list[Cell] = []
        for dx, dy in NEIGHBOUR_OFFSETS:
            nx, ny = here.x + dx, here.y + dy
            if not grid.in_bounds(nx, ny) or grid.is_obstacle(nx, ny):
                continue
            cell = Cell(nx, ny)
            if cell == previous:
                continue
            result.append(cell)
        return result

    @staticmethod
    def heuristic(cell: Cell, goal: Cell) -> float:
        """Inverse straight-line distance to the goal (infinite on it)."""
        distance = euclidean(cell, goal)
        if distance == 0.0:
            return math.inf
        return 1.0 / distance

    def desirability(
        self,
        cell: Cell,
        pheromones: PheromoneField,
        goal: Cell,
    ) -> float:
        """Combined attractiveness of stepping into ``cell``.

        Overflow saturates to ``inf`` instead of raising.
        """
        return float(
            self._weights(
                np.array([pheromones.intensity(cell)]),
                np.array([self.heuristic(cell, goal)]),
            )[0],
        )

    def _weights(
        self,
        intensities: NDArray[np.float64],
        closeness: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        with np.errstate(over="ignore", invalid="ignore"):
            return np.power(intensities, self.alpha) * np.power(closeness, self.beta)

    def select_next(
        self,
        ant: Ant,
        pheromones: PheromoneField,
        grid: GridMap,
        goal: Cell,
        rng: Generator,
    ) -> Cell | None:
        """Draw the ant's next cell.

        Falls back to a uniform draw when the weights sum to zero or
        overflow.

        Args:
            ant: The moving ant.
            pheromones: Field to read intensities from.
            grid: Obstacle oracle.
            goal: Target cell.
            rng: Seeded random generator (one draw per call at most).

        Returns:
            The chosen cell, or None if the ant has nowhere to go.
        """
        candidates = self.feasible_neighbours(ant, grid)
        if not candidates:
            return None
        # The goal's heuristic is infinite, so it takes all the mass.
        if goal in candidates:
            return goal

        weights = self._weights(
            np.array([pheromones.intensity(c) for c in candidates]),
            np.array([self.heuristic(c, goal) for c in candidates]),
        ).tolist()
        if all(math.isfinite(w) for w in weights) and math.isfinite(sum(weights)):
            total = math.fsum(weights)
        else:
            total = math.inf
        if not math.isfinite(total) or total <= 0.0:
            weights = [1.0] * len(candidates)
            total = float(len(candidates))

        draw = float(rng.random()) * total
        cumulative = 0.0
        for cell, weight in zip(candidates, weights):
            cumulative += weight
            if cumulative >= draw:
                return cell
        return candidates[-1]
