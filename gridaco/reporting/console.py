"""Plain-text renderings of a run for terminal output.

Everything here turns engine data into strings; printing is left to
:class:`ConsoleReporter` (or the caller).  Grids are drawn with ``(0, 0)``
at the bottom-left, so the highest row is printed first.
"""

from __future__ import annotations

import sys
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

    from gridaco.simulation.engine import IterationReport
    from gridaco.world.cell import Cell
    from gridaco.world.grid import GridMap

_CELL_CAP = 999


def render_pheromones(pheromones: NDArray[np.float64]) -> str:
    """Draw the integer part of each intensity in a boxed grid.

    Values above 999 are shown as 999.

    Args:
        pheromones: Intensity grid indexed ``[y, x]``.

    Returns:
        Multi-line string, top row first.
    """
    height, width = pheromones.shape
    border = "+" + "---+" * width
    lines = [border]
    for y in range(height - 1, -1, -1):
        values = (min(int(v), _CELL_CAP) for v in pheromones[y])
        lines.append("|" + "".join(f"{v:>3}|" for v in values))
        lines.append(border)
    return "\n".join(lines)


def render_best_path(grid: GridMap, path: Sequence[Cell]) -> str:
    """Draw obstacles (``X``) and the path (``*``) in a boxed grid.

    Args:
        grid: Obstacle grid.
        path: Cells of the path, may be empty.

    Returns:
        Multi-line string, or ``"No path found."`` for an empty path.
    """
    if not path:
        return "No path found."

    on_path = {(c.x, c.y) for c in path}
    border = "+---" * grid.width + "+"
    lines = [border]
    for y in range(grid.height - 1, -1, -1):
        row = []
        for x in range(grid.width):
            if grid.is_obstacle(x, y):
                mark = "X"
            elif (x, y) in on_path:
                mark = "*"
            else:
                mark = " "
            row.append(f"| {mark} ")
        lines.append("".join(row) + "|")
        lines.append(border)
    return "\n".join(lines)


def render_ant_distribution(grid: GridMap, positions: Iterable[Cell]) -> str:
    """Draw how many ants stand on each cell.

    Obstacles are ``X``, occupied cells show their ant count (``+`` past
    nine), empty cells are blank.
    """
    counts = Counter((c.x, c.y) for c in positions)
    lines = []
    for y in range(grid.height - 1, -1, -1):
        row = []
        for x in range(grid.width):
            if grid.is_obstacle(x, y):
                row.append("X")
            elif counts[(x, y)]:
                n = counts[(x, y)]
                row.append(str(n) if n < 10 else "+")
            else:
                row.append(" ")
        lines.append("".join(row))
    return "\n".join(lines)


def progress_bar(current: int, total: int, prefix: str, width: int = 50) -> str:
    """Return a one-line text progress bar such as ``Iter [==>   ] 2/5``."""
    fraction = current / total if total > 0 else 1.0
    pos = int(width * fraction)
    bar = "".join(
        "=" if i < pos else ">" if i == pos else " " for i in range(width)
    )
    return f"{prefix} [{bar}] {current}/{total}"


@dataclass
class ConsoleReporter:
    """Engine listener that prints per-iteration progress.

    Attributes:
        total_iterations: Iteration count of the run, for the bar.
        show_pheromones: Also dump the pheromone grid each iteration.
        stream: Output stream (defaults to the current ``sys.stdout``).
    """

    total_iterations: int
    show_pheromones: bool = False
    stream: TextIO | None = None

    def __call__(self, report: IterationReport) -> None:
        out = sys.stdout if self.stream is None else self.stream
        done = report.iteration + 1
        print(
            progress_bar(done, self.total_iterations, "Iteration"),
            file=out,
        )
        best = report.best_path_length if report.found_path else "-"
        mean = (
            f"{report.average_path_length:.2f}"
            if report.average_path_length is not None
            else "-"
        )
        print(
            f"  best={best} arrived={report.arrived_count} mean={mean}",
            file=out,
        )
        if self.show_pheromones:
            print(render_pheromones(report.pheromones), file=out)
