"""Ant -- one stochastic walker of a single iteration.

An ant starts at the run's start cell and extends its path one cell per
step until it stands on the goal.  At that point it switches to
``ARRIVED`` and stays parked for the rest of the iteration: it is never
sent back to the start, and the colony recreates fresh ants at the
beginning of the next iteration instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from gridaco.world.cell import Cell


class AntState(Enum):
    """Lifecycle state of an ant within one iteration."""

    TRAVELING = auto()
    ARRIVED = auto()


@dataclass
class Ant:
    """A single ant agent.

    Attributes:
        start: Cell the ant was released at.
        path: Cells visited so far, starting with ``start``.
        state: TRAVELING until the goal is reached, then ARRIVED.
    """

    start: Cell
    path: list[Cell] = field(init=False)
    state: AntState = AntState.TRAVELING

    def __post_init__(self) -> None:
        self.path = [self.start]

    @property
    def position(self) -> Cell:
        """Current cell (the last cell of the path)."""
        return self.path[-1]

    @property
    def previous(self) -> Cell | None:
        """Cell visited just before the current one, if any."""
        if len(self.path) < 2:
            return None
        return self.path[-2]

    @property
    def path_length(self) -> int:
        """Number of edges travelled so far."""
        return len(self.path) - 1

    @property
    def arrived(self) -> bool:
        """Return True once the ant has reached the goal."""
        return self.state is AntState.ARRIVED

    def move_to(self, cell: Cell) -> None:
        """Append ``cell`` to the path.

        Raises:
            RuntimeError: If the ant has already arrived.
        """
        if self.arrived:
            msg = f"ant parked at {self.position} cannot move"
            raise RuntimeError(msg)
        self.path.append(cell)

    def arrive(self) -> None:
        """Mark the ant as arrived.

        Raises:
            RuntimeError: If the ant had already arrived.
        """
        if self.arrived:
            msg = "ant has already arrived"
            raise RuntimeError(msg)
        self.state = AntState.ARRIVED
