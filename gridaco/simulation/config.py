"""Config — load run parameters from YAML files.

All tunable constants (grid size, obstacles, colony size, ACO weights,
evaporation and deposit strength) live in YAML and are parsed into a
frozen dataclass here.  Nothing in the engine hard-codes them.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from gridaco.simulation.errors import InvalidConfigurationError
from gridaco.world.cell import Cell
from gridaco.world.grid import GridMap

_INTEGER_FIELDS = (
    "seed",
    "width",
    "height",
    "ant_count",
    "max_iterations",
    "step_cap_factor",
)
_REAL_FIELDS = (
    "alpha",
    "beta",
    "evaporation_rate",
    "deposit_strength",
    "initial_pheromone",
)


class DepositPolicy(Enum):
    """When an arriving ant's deposit becomes visible to other ants.

    SEQUENTIAL: deposits land immediately, so ants processed later in the
        same step already read them.
    BATCHED: deposits are buffered and applied once every ant has moved
        in that step.
    """

    SEQUENTIAL = "sequential"
    BATCHED = "batched"


@dataclass(frozen=True)
class RunConfig:
    """Immutable configuration of one search run.

    Attributes:
        seed: RNG seed; the same seed reproduces a run bit for bit.
        width: Number of grid columns.
        height: Number of grid rows.
        obstacles: Blocked cells.
        ant_count: Ants released per iteration.
        max_iterations: Number of iterations to run.
        start: Cell every ant starts from.
        goal: Target cell.
        alpha: Pheromone weight in the desirability score.
        beta: Heuristic weight in the desirability score.
        evaporation_rate: Fraction of pheromone lost per iteration.
        deposit_strength: Deposit constant ``Q``; each cell of an
            arriving path receives ``Q / path_length``.
        step_cap_factor: Multiplier on the start-goal Manhattan distance
            giving the per-iteration step budget.
        initial_pheromone: Uniform starting intensity.
        deposit_policy: Intra-step deposit ordering.
    """

    seed: int = 42
    width: int = 25
    height: int = 25
    obstacles: tuple[Cell, ...] = ()
    ant_count: int = 100
    max_iterations: int = 10
    start: Cell = field(default_factory=lambda: Cell(0, 0))
    goal: Cell = field(default_factory=lambda: Cell(24, 24))

    alpha: float = 1.0
    beta: float = 3.0
    evaporation_rate: float = 0.3
    deposit_strength: float = 100.0
    step_cap_factor: int = 6
    initial_pheromone: float = 1.0

    deposit_policy: DepositPolicy = DepositPolicy.SEQUENTIAL

    @classmethod
    def from_yaml(cls, path: str | Path, **overrides: Any) -> RunConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.
            **overrides: Field values that take precedence over the file
                (``None`` values are ignored).

        Returns:
            A populated RunConfig instance (not yet validated).

        Raises:
            FileNotFoundError: If the config file does not exist.
            InvalidConfigurationError: If a value has the wrong shape.
        """
        return cls.from_dict(load_yaml(path), **overrides)

    @classmethod
    def from_dict(cls, data: dict[str, Any], **overrides: Any) -> RunConfig:
        """Build a configuration from parsed YAML data.

        Missing keys fall back to the dataclass defaults.
        """
        defaults = cls()
        config = cls(
            seed=data.get("seed", defaults.seed),
            width=data.get("width", defaults.width),
            height=data.get("height", defaults.height),
            obstacles=tuple(
                _parse_cell(item, "obstacles") for item in data.get("obstacles") or []
            ),
            ant_count=data.get("ant_count", defaults.ant_count),
            max_iterations=data.get("max_iterations", defaults.max_iterations),
            start=_parse_cell(data["start"], "start")
            if "start" in data
            else defaults.start,
            goal=_parse_cell(data["goal"], "goal") if "goal" in data else defaults.goal,
            alpha=data.get("alpha", defaults.alpha),
            beta=data.get("beta", defaults.beta),
            evaporation_rate=data.get(
                "evaporation_rate",
                defaults.evaporation_rate,
            ),
            deposit_strength=data.get(
                "deposit_strength",
                defaults.deposit_strength,
            ),
            step_cap_factor=data.get(
                "step_cap_factor",
                defaults.step_cap_factor,
            ),
            initial_pheromone=data.get(
                "initial_pheromone",
                defaults.initial_pheromone,
            ),
            deposit_policy=_parse_policy(
                data.get("deposit_policy", defaults.deposit_policy.value),
            ),
        )
        return config.with_overrides(**overrides)

    def with_overrides(self, **overrides: Any) -> RunConfig:
        """Return a copy with the non-``None`` overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        for name in ("start", "goal"):
            if name in changes:
                changes[name] = _parse_cell(changes[name], name)
        if "deposit_policy" in changes:
            changes["deposit_policy"] = _parse_policy(changes["deposit_policy"])
        return replace(self, **changes)

    def validate(self) -> None:
        """Check the configuration describes a runnable search.

        Raises:
            InvalidConfigurationError: On the first problem found.
        """
        for name in _INTEGER_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                msg = f"{name} must be an integer, got {value!r}"
                raise InvalidConfigurationError(msg)
        for name in _REAL_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                msg = f"{name} must be a number, got {value!r}"
                raise InvalidConfigurationError(msg)
            if not math.isfinite(value):
                msg = f"{name} must be finite, got {value!r}"
                raise InvalidConfigurationError(msg)
        if self.seed < 0:
            msg = f"seed must be >= 0, got {self.seed}"
            raise InvalidConfigurationError(msg)
        if self.width < 1 or self.height < 1:
            msg = f"grid must be at least 1x1, got {self.width}x{self.height}"
            raise InvalidConfigurationError(msg)
        for cell in self.obstacles:
            if not self._in_bounds(cell):
                msg = f"obstacle {cell} out of bounds for {self.width}x{self.height}"
                raise InvalidConfigurationError(msg)
        blocked = set(self.obstacles)
        for name, cell in (("start", self.start), ("goal", self.goal)):
            if not self._in_bounds(cell):
                msg = f"{name} {cell} out of bounds for {self.width}x{self.height}"
                raise InvalidConfigurationError(msg)
            if cell in blocked:
                msg = f"{name} {cell} lies on an obstacle"
                raise InvalidConfigurationError(msg)
        if self.ant_count < 1:
            msg = f"ant_count must be >= 1, got {self.ant_count}"
            raise InvalidConfigurationError(msg)
        if self.max_iterations < 1:
            msg = f"max_iterations must be >= 1, got {self.max_iterations}"
            raise InvalidConfigurationError(msg)
        if not 0.0 < self.evaporation_rate < 1.0:
            msg = f"evaporation_rate must lie in (0, 1), got {self.evaporation_rate}"
            raise InvalidConfigurationError(msg)
        if self.step_cap_factor < 1:
            msg = f"step_cap_factor must be >= 1, got {self.step_cap_factor}"
            raise InvalidConfigurationError(msg)
        if self.deposit_strength < 0:
            msg = f"deposit_strength must be >= 0, got {self.deposit_strength}"
            raise InvalidConfigurationError(msg)
        if self.initial_pheromone <= 0:
            msg = f"initial_pheromone must be > 0, got {self.initial_pheromone}"
            raise InvalidConfigurationError(msg)

    def build_grid(self) -> GridMap:
        """Create the obstacle grid described by this configuration."""
        grid = GridMap(width=self.width, height=self.height)
        grid.mark_obstacles(self.obstacles)
        return grid

    def _in_bounds(self, cell: Cell) -> bool:
        return 0 <= cell.x < self.width and 0 <= cell.y < self.height


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Read a YAML mapping from ``path`` (an empty file yields ``{}``).

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidConfigurationError: If the document is not a mapping.
    """
    path = Path(path)
    with path.open("r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        msg = f"{path}: expected a mapping at the top level"
        raise InvalidConfigurationError(msg)
    return data


def _parse_cell(value: Any, name: str) -> Cell:
    """Convert a ``[x, y]`` pair (or an existing Cell) into a Cell."""
    if isinstance(value, Cell):
        return value
    try:
        x, y = value
        return Cell(int(x), int(y))
    except (TypeError, ValueError) as exc:
        msg = f"{name}: expected an [x, y] pair, got {value!r}"
        raise InvalidConfigurationError(msg) from exc


def _parse_policy(value: Any) -> DepositPolicy:
    if isinstance(value, DepositPolicy):
        return value
    try:
        return DepositPolicy(str(value).lower())
    except ValueError as exc:
        choices = ", ".join(p.value for p in DepositPolicy)
        msg = f"deposit_policy must be one of {choices}, got {value!r}"
        raise InvalidConfigurationError(msg) from exc
