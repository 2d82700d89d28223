"""Colony — the ant population of one iteration.

The colony is rebuilt from scratch at the start of every iteration.  Its
list order is the order in which the engine processes ants within a
step, so it doubles as the documented ordering contract for deposits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gridaco.colony.ant import Ant

if TYPE_CHECKING:
    from gridaco.world.cell import Cell


@dataclass
class Colony:
    """Population of ants for the current iteration.

    Attributes:
        ants: Ants in insertion (processing) order.
    """

    ants: list[Ant] = field(default_factory=list)

    def reset(self, start: Cell, count: int) -> None:
        """Replace the population with ``count`` fresh ants at ``start``.

        Args:
            start: Release cell for every ant.
            count: Population size.
        """
        self.ants = [Ant(start) for _ in range(count)]

    def traveling(self) -> list[Ant]:
        """Return ants that have not yet reached the goal."""
        return [ant for ant in self.ants if not ant.arrived]

    def arrived(self) -> list[Ant]:
        """Return ants that reached the goal this iteration."""
        return [ant for ant in self.ants if ant.arrived]

    def mean_arrived_length(self) -> float | None:
        """Average path length of arrived ants.

        Returns:
            The mean edge count, or ``None`` when no ant arrived.
        """
        arrived = self.arrived()
        if not arrived:
            return None
        return sum(ant.path_length for ant in arrived) / float(len(arrived))
