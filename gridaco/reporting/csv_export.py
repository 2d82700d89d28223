"""CSV export of per-iteration run data.

Writes one ``pheromones_<iteration>.csv`` matrix per iteration (one line
per grid row, ``y = 0`` first) and appends one line per iteration to the
``BestPathLength.csv`` and ``AveragePathLength.csv`` series.  An
iteration in which no ant arrived leaves an empty line in the average
series rather than a NaN.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from gridaco.simulation.engine import IterationReport

logger = logging.getLogger(__name__)

BEST_LENGTH_FILE = "BestPathLength.csv"
AVERAGE_LENGTH_FILE = "AveragePathLength.csv"


@dataclass
class CsvExporter:
    """Engine listener writing CSV files into ``directory``.

    The series files are truncated when the exporter is created, so one
    exporter corresponds to one run.

    Attributes:
        directory: Output directory (created if missing).
    """

    directory: Path

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        for name in (BEST_LENGTH_FILE, AVERAGE_LENGTH_FILE):
            (self.directory / name).write_text("")

    def pheromone_path(self, iteration: int) -> Path:
        """Location of the pheromone matrix for ``iteration``."""
        return self.directory / f"pheromones_{iteration}.csv"

    def __call__(self, report: IterationReport) -> None:
        np.savetxt(
            self.pheromone_path(report.iteration),
            report.pheromones,
            delimiter=",",
            fmt="%.6g",
        )
        best = str(report.best_path_length) if report.found_path else ""
        average = (
            repr(report.average_path_length)
            if report.average_path_length is not None
            else ""
        )
        with (self.directory / BEST_LENGTH_FILE).open("a") as f:
            f.write(best + "\n")
        with (self.directory / AVERAGE_LENGTH_FILE).open("a") as f:
            f.write(average + "\n")
        logger.debug("Exported iteration %d to %s", report.iteration, self.directory)
