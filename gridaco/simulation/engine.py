"""ColonyEngine — the iteration/step loop of one search run.

Owns all run state and advances it in a fixed order:

1. Reset the colony to ``ant_count`` fresh ants at the start cell.
2. Run ``max_steps`` steps.  In each step every still-traveling ant, in
   population order, draws its next cell.  An ant that steps onto the
   goal arrives, reinforces its path and is checked against the best
   path found so far.
3. Evaporate the pheromone field once.
4. Publish an :class:`IterationReport` to registered listeners.

Deposit visibility within a step follows ``RunConfig.deposit_policy``:
with ``SEQUENTIAL`` an arrival is written to the field immediately and
ants processed later in the same step read it; with ``BATCHED`` the
step's arrivals are written only after every ant has moved.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray

from gridaco.colony.ant import Ant
from gridaco.colony.colony import Colony
from gridaco.colony.transition import TransitionPolicy
from gridaco.pheromones.field import PheromoneField
from gridaco.simulation.config import DepositPolicy, RunConfig
from gridaco.world.cell import Cell, manhattan
from gridaco.world.grid import GridMap

logger = logging.getLogger(__name__)

# Best-path length before any ant has arrived.
NO_PATH_LENGTH = sys.maxsize


@dataclass(frozen=True, eq=False)
class IterationReport:
    """Snapshot published after each iteration.

    Attributes:
        iteration: Zero-based iteration index.
        best_path_length: Shortest length found so far in the run
            (``NO_PATH_LENGTH`` while nothing has arrived).
        best_path: Cells of the best path so far (empty if none).
        pheromones: Copy of the field after evaporation, ``[y, x]``.
        average_path_length: Mean length of ants that arrived in this
            iteration, or None when none did.
        arrived_count: Number of ants that arrived in this iteration.
    """

    iteration: int
    best_path_length: int
    best_path: tuple[Cell, ...]
    pheromones: NDArray[np.float64]
    average_path_length: float | None
    arrived_count: int

    @property
    def found_path(self) -> bool:
        """Return True if a path to the goal is known."""
        return self.best_path_length != NO_PATH_LENGTH


@dataclass(frozen=True)
class RunResult:
    """Outcome of :meth:`ColonyEngine.run`.

    Attributes:
        best_path: Shortest path found (empty if none).
        best_path_length: Its length, or ``NO_PATH_LENGTH``.
        reports: One report per iteration run.
    """

    best_path: tuple[Cell, ...]
    best_path_length: int
    reports: tuple[IterationReport, ...]

    @property
    def found_path(self) -> bool:
        """Return True if a path to the goal was found."""
        return self.best_path_length != NO_PATH_LENGTH


ReportListener = Callable[[IterationReport], None]


@dataclass
class ColonyEngine:
    """Drives an ACO search forward iteration by iteration.

    Attributes:
        config: Validated run configuration.
        grid: Obstacle oracle built from the configuration.
        pheromone_field: Shared trail intensities, persistent across
            iterations.
        policy: Move-selection policy.
        colony: Ant population of the current iteration.
        rng: The single seeded generator every draw comes from.
        best_path: Shortest path found so far.
        best_path_length: Length of ``best_path`` or ``NO_PATH_LENGTH``.
        iteration: Number of completed iterations.
    """

    config: RunConfig
    grid: GridMap = field(init=False)
    pheromone_field: PheromoneField = field(init=False, repr=False)
    policy: TransitionPolicy = field(init=False)
    colony: Colony = field(init=False, repr=False)
    rng: Generator = field(init=False, repr=False)
    best_path: list[Cell] = field(init=False, default_factory=list)
    best_path_length: int = field(init=False, default=NO_PATH_LENGTH)
    iteration: int = field(init=False, default=0)
    _max_steps: int = field(init=False, default=0, repr=False)
    _listeners: list[ReportListener] = field(
        init=False,
        default_factory=list,
        repr=False,
    )

    def __post_init__(self) -> None:
        """Validate the config and build grid, field, policy and RNG.

        Raises:
            InvalidConfigurationError: If the configuration is unusable.
        """
        self.config.validate()
        self.rng = np.random.default_rng(self.config.seed)
        self.grid = self.config.build_grid()
        self.pheromone_field = PheromoneField(
            width=self.config.width,
            height=self.config.height,
            evaporation_rate=self.config.evaporation_rate,
            initial_intensity=self.config.initial_pheromone,
        )
        self.policy = TransitionPolicy(
            alpha=self.config.alpha,
            beta=self.config.beta,
        )
        self.colony = Colony()
        self._max_steps = self.config.step_cap_factor * manhattan(
            self.config.start,
            self.config.goal,
        )
        if self.is_degenerate:
            self.best_path = [self.config.start]
            self.best_path_length = 0

    @property
    def max_steps(self) -> int:
        """Step budget of every iteration."""
        return self._max_steps

    @property
    def is_degenerate(self) -> bool:
        """Return True when start and goal coincide."""
        return self.config.start == self.config.goal

    def add_listener(self, listener: ReportListener) -> None:
        """Register a callback receiving every IterationReport."""
        self._listeners.append(listener)

    def step(self) -> int:
        """Give every traveling ant one move opportunity.

        Returns:
            Number of ants that arrived during this step.
        """
        goal = self.config.goal
        batched = self.config.deposit_policy is DepositPolicy.BATCHED
        pending: list[Ant] = []
        arrivals = 0

        for ant in self.colony.ants:
            if ant.arrived:
                continue
            nxt = self.policy.select_next(
                ant,
                self.pheromone_field,
                self.grid,
                goal,
                self.rng,
            )
            if nxt is None:
                continue  # stalled
            ant.move_to(nxt)
            if nxt != goal:
                continue
            ant.arrive()
            arrivals += 1
            if batched:
                pending.append(ant)
            else:
                self._deposit(ant)
            self._update_best(ant)

        for ant in pending:
            self._deposit(ant)
        return arrivals

    def run_iteration(self) -> IterationReport:
        """Run one full iteration: reset, step loop, evaporation, report.

        Raises:
            RuntimeError: If start and goal coincide; such a run is
                already solved and never iterates.
        """
        if self.is_degenerate:
            msg = f"start and goal are both {self.config.start}; nothing to iterate"
            raise RuntimeError(msg)
        self.colony.reset(self.config.start, self.config.ant_count)
        for _ in range(self.max_steps):
            self.step()
            if not self.colony.traveling():
                break
        self.pheromone_field.evaporate()

        report = IterationReport(
            iteration=self.iteration,
            best_path_length=self.best_path_length,
            best_path=tuple(self.best_path),
            pheromones=self.pheromone_field.snapshot(),
            average_path_length=self.colony.mean_arrived_length(),
            arrived_count=len(self.colony.arrived()),
        )
        self.iteration += 1

        if report.arrived_count == 0:
            logger.debug("Iteration %d: no ant reached the goal", report.iteration)
        else:
            logger.debug(
                "Iteration %d: %d arrived, mean length %.2f, best %d",
                report.iteration,
                report.arrived_count,
                report.average_path_length,
                report.best_path_length,
            )
        for listener in self._listeners:
            listener(report)
        return report

    def run(self) -> RunResult:
        """Run ``max_iterations`` iterations and return the outcome.

        When start and goal coincide the run ends immediately with a
        zero-length path; no iteration, deposit or evaporation happens.
        """
        if self.is_degenerate:
            logger.warning(
                "Start and goal are both %s; returning the zero-length path",
                self.config.start,
            )
            return RunResult(
                best_path=tuple(self.best_path),
                best_path_length=self.best_path_length,
                reports=(),
            )

        logger.info(
            "Running %d iterations of %d ants from %s to %s (%d steps each)",
            self.config.max_iterations,
            self.config.ant_count,
            self.config.start,
            self.config.goal,
            self.max_steps,
        )
        reports = [self.run_iteration() for _ in range(self.config.max_iterations)]
        if self.best_path_length == NO_PATH_LENGTH:
            logger.info("No path found after %d iterations", len(reports))
        else:
            logger.info("Best path length: %d", self.best_path_length)
        return RunResult(
            best_path=tuple(self.best_path),
            best_path_length=self.best_path_length,
            reports=tuple(reports),
        )

    def _deposit(self, ant: Ant) -> None:
        """Fold an arrived ant's path into the pheromone field."""
        self.pheromone_field.deposit_path(
            ant.path,
            ant.path_length,
            self.config.deposit_strength,
        )

    def _update_best(self, ant: Ant) -> None:
        """Adopt ``ant``'s path if it is strictly shorter than the best."""
        if ant.path_length < self.best_path_length:
            self.best_path = list(ant.path)
            self.best_path_length = ant.path_length
            logger.info(
                "Iteration %d: new best path of length %d",
                self.iteration,
                self.best_path_length,
            )
