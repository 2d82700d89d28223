"""Tests for gridaco.simulation — config loading and the colony engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import pytest

from gridaco.colony.transition import TransitionPolicy
from gridaco.simulation.config import DepositPolicy, RunConfig
from gridaco.simulation.engine import NO_PATH_LENGTH, ColonyEngine, IterationReport
from gridaco.simulation.errors import InvalidConfigurationError
from gridaco.world.cell import Cell, manhattan

if TYPE_CHECKING:
    from numpy.random import Generator

    from gridaco.colony.ant import Ant
    from gridaco.pheromones.field import PheromoneField
    from gridaco.world.grid import GridMap


def _assert_valid_path(engine: ColonyEngine, path: tuple[Cell, ...]) -> None:
    assert path[0] == engine.config.start
    assert path[-1] == engine.config.goal
    for a, b in zip(path, path[1:]):
        assert manhattan(a, b) == 1
        assert not engine.grid.is_obstacle(b.x, b.y)


@dataclass(frozen=True)
class RecordingPolicy(TransitionPolicy):
    """Records the intensity of one cell every time an ant chooses."""

    watched: Cell = Cell(0, 0)
    seen: list[float] = field(default_factory=list)

    def select_next(
        self,
        ant: Ant,
        pheromones: PheromoneField,
        grid: GridMap,
        goal: Cell,
        rng: Generator,
    ) -> Cell | None:
        self.seen.append(pheromones.intensity(self.watched))
        return super().select_next(ant, pheromones, grid, goal, rng)


class TestRunConfig:
    """Tests for configuration defaults, YAML loading and validation."""

    def test_defaults(self) -> None:
        cfg = RunConfig()
        assert cfg.alpha == 1.0
        assert cfg.beta == 3.0
        assert cfg.evaporation_rate == 0.3
        assert cfg.deposit_strength == 100.0
        assert cfg.step_cap_factor == 6
        assert cfg.deposit_policy is DepositPolicy.SEQUENTIAL
        cfg.validate()

    def test_from_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "run.yaml"
        yaml_file.write_text(
            "seed: 99\n"
            "width: 8\n"
            "height: 6\n"
            "start: [0, 5]\n"
            "goal: [7, 0]\n"
            "obstacles:\n"
            "  - [3, 3]\n"
            "  - [4, 3]\n"
            "deposit_policy: batched\n",
        )
        cfg = RunConfig.from_yaml(yaml_file)
        assert cfg.seed == 99
        assert cfg.width == 8
        assert cfg.start == Cell(0, 5)
        assert cfg.goal == Cell(7, 0)
        assert cfg.obstacles == (Cell(3, 3), Cell(4, 3))
        assert cfg.deposit_policy is DepositPolicy.BATCHED
        assert cfg.ant_count == RunConfig().ant_count

    def test_from_yaml_overrides(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "run.yaml"
        yaml_file.write_text("seed: 99\nant_count: 5\n")
        cfg = RunConfig.from_yaml(yaml_file, seed=1, ant_count=None, goal=(3, 3))
        assert cfg.seed == 1
        assert cfg.ant_count == 5
        assert cfg.goal == Cell(3, 3)

    def test_empty_yaml_uses_defaults(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert RunConfig.from_yaml(yaml_file) == RunConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            RunConfig.from_yaml(tmp_path / "nope.yaml")

    @pytest.mark.parametrize(
        "text",
        ["start: 3\n", "goal: [1, 2, 3]\n", "deposit_policy: random\n", "- 1\n"],
    )
    def test_malformed_yaml_values(self, tmp_path: Path, text: str) -> None:
        yaml_file = tmp_path / "bad.yaml"
        yaml_file.write_text(text)
        with pytest.raises(InvalidConfigurationError):
            RunConfig.from_yaml(yaml_file)

    @pytest.mark.parametrize(
        "text",
        [
            "ant_count: 2.5\n",
            "step_cap_factor: 1.5\n",
            "width: '5'\n",
            "alpha: .nan\n",
        ],
    )
    def test_mistyped_yaml_values_rejected_at_construction(
        self,
        tmp_path: Path,
        text: str,
    ) -> None:
        yaml_file = tmp_path / "typed.yaml"
        yaml_file.write_text(text)
        cfg = RunConfig.from_yaml(yaml_file, start=(0, 0), goal=(3, 3))
        with pytest.raises(InvalidConfigurationError):
            ColonyEngine(config=cfg)

    @pytest.mark.parametrize(
        "changes",
        [
            {"start": Cell(5, 0)},
            {"goal": Cell(0, -1)},
            {"obstacles": (Cell(4, 4),)},
            {"obstacles": (Cell(0, 0),)},
            {"obstacles": (Cell(9, 9),)},
            {"ant_count": 0},
            {"max_iterations": 0},
            {"evaporation_rate": 0.0},
            {"evaporation_rate": 1.0},
            {"step_cap_factor": 0},
            {"deposit_strength": -1.0},
            {"initial_pheromone": 0.0},
            {"width": 0},
            {"deposit_strength": math.inf},
            {"deposit_strength": math.nan},
            {"initial_pheromone": math.inf},
            {"alpha": math.nan},
            {"beta": -math.inf},
            {"evaporation_rate": math.nan},
            {"alpha": "high"},
            {"ant_count": 2.5},
            {"step_cap_factor": 1.5},
            {"max_iterations": True},
            {"width": "5"},
            {"seed": None},
            {"seed": -1},
        ],
    )
    def test_invalid_configuration(
        self,
        small_config: RunConfig,
        changes: dict[str, object],
    ) -> None:
        bad = replace(small_config, **changes)
        with pytest.raises(InvalidConfigurationError):
            bad.validate()
        with pytest.raises(InvalidConfigurationError):
            ColonyEngine(config=bad)

    def test_build_grid(self) -> None:
        cfg = RunConfig(width=4, height=3, obstacles=(Cell(1, 2),))
        grid = cfg.build_grid()
        assert (grid.width, grid.height) == (4, 3)
        assert grid.is_obstacle(1, 2)


class TestColonyEngine:
    """Tests for the iteration/step loop."""

    def test_engine_initialises(self, small_config: RunConfig) -> None:
        engine = ColonyEngine(config=small_config)
        assert engine.iteration == 0
        assert engine.best_path == []
        assert engine.best_path_length == NO_PATH_LENGTH
        assert np.all(engine.pheromone_field.grid == 1.0)

    def test_degenerate_goal_refuses_to_iterate(self) -> None:
        cfg = RunConfig(width=5, height=5, start=Cell(2, 2), goal=Cell(2, 2))
        engine = ColonyEngine(config=cfg)
        with pytest.raises(RuntimeError, match="nothing to iterate"):
            engine.run_iteration()
        assert engine.iteration == 0
        assert np.all(engine.pheromone_field.grid == 1.0)

    def test_huge_weights_do_not_abort_run(self, small_config: RunConfig) -> None:
        cfg = replace(small_config, alpha=2.0, deposit_strength=1e200)
        result = ColonyEngine(config=cfg).run()
        assert len(result.reports) == cfg.max_iterations
        assert result.found_path
        _assert_valid_path(ColonyEngine(config=cfg), result.best_path)

    def test_max_steps(self, small_config: RunConfig) -> None:
        engine = ColonyEngine(config=small_config)
        assert engine.max_steps == 6 * 8
        wider = ColonyEngine(config=replace(small_config, step_cap_factor=2))
        assert wider.max_steps == 16

    def test_finds_manhattan_path_on_open_grid(self, small_config: RunConfig) -> None:
        result = ColonyEngine(config=small_config).run()
        assert result.found_path
        assert result.best_path_length == 8
        assert len(result.best_path) == 9
        assert len(result.reports) == small_config.max_iterations

    @pytest.mark.parametrize(
        ("start", "goal"),
        [
            (Cell(0, 0), Cell(5, 0)),
            (Cell(5, 5), Cell(0, 1)),
            (Cell(2, 0), Cell(3, 5)),
        ],
    )
    def test_optimal_for_other_pairs(self, start: Cell, goal: Cell) -> None:
        cfg = RunConfig(
            seed=3,
            width=6,
            height=6,
            ant_count=30,
            max_iterations=10,
            start=start,
            goal=goal,
        )
        engine = ColonyEngine(config=cfg)
        result = engine.run()
        assert result.best_path_length == manhattan(start, goal)
        _assert_valid_path(engine, result.best_path)

    def test_converges_in_most_seeded_runs(self, small_config: RunConfig) -> None:
        """5x5, 20 ants, 5 iterations: optimal length 8 in >= 95% of runs."""
        optimal = 0
        for seed in range(100):
            result = ColonyEngine(config=replace(small_config, seed=seed)).run()
            if result.best_path_length == 8:
                optimal += 1
        assert optimal >= 95

    def test_detour_around_wall(self) -> None:
        cfg = RunConfig(
            seed=11,
            width=5,
            height=5,
            obstacles=tuple(Cell(2, y) for y in range(4)),
            ant_count=50,
            max_iterations=10,
            start=Cell(0, 0),
            goal=Cell(4, 0),
        )
        engine = ColonyEngine(config=cfg)
        result = engine.run()
        assert result.found_path
        assert result.best_path_length >= 12
        assert result.best_path_length == len(result.best_path) - 1
        _assert_valid_path(engine, result.best_path)

    def test_best_length_non_increasing(self, small_config: RunConfig) -> None:
        cfg = replace(small_config, width=8, height=8, goal=Cell(7, 6), ant_count=5)
        reports = ColonyEngine(config=cfg).run().reports
        lengths = [r.best_path_length for r in reports]
        assert lengths == sorted(lengths, reverse=True)

    def test_pheromones_stay_non_negative(self, small_config: RunConfig) -> None:
        cfg = replace(small_config, max_iterations=30, evaporation_rate=0.9)
        for report in ColonyEngine(config=cfg).run().reports:
            assert report.pheromones.min() >= 0.0

    def test_determinism(self, small_config: RunConfig) -> None:
        """Same seed must produce bit-identical paths and pheromones."""
        a = ColonyEngine(config=small_config).run()
        b = ColonyEngine(config=small_config).run()
        assert a.best_path == b.best_path
        for ra, rb in zip(a.reports, b.reports, strict=True):
            assert ra.best_path == rb.best_path
            assert ra.average_path_length == rb.average_path_length
            assert np.array_equal(ra.pheromones, rb.pheromones)

    def test_enclosed_goal(self) -> None:
        cfg = RunConfig(
            seed=5,
            width=5,
            height=5,
            obstacles=(Cell(3, 4), Cell(4, 3)),
            ant_count=10,
            max_iterations=3,
            start=Cell(0, 0),
            goal=Cell(4, 4),
        )
        result = ColonyEngine(config=cfg).run()
        assert not result.found_path
        assert result.best_path_length == NO_PATH_LENGTH
        assert result.best_path == ()
        for report in result.reports:
            assert report.arrived_count == 0
            assert report.average_path_length is None
        assert np.allclose(result.reports[-1].pheromones, 0.7**3)

    def test_degenerate_goal_returns_zero_length(self) -> None:
        cfg = RunConfig(width=5, height=5, start=Cell(2, 2), goal=Cell(2, 2))
        engine = ColonyEngine(config=cfg)
        result = engine.run()
        assert result.found_path
        assert result.best_path_length == 0
        assert result.best_path == (Cell(2, 2),)
        assert result.reports == ()
        assert engine.iteration == 0
        assert np.all(engine.pheromone_field.grid == 1.0)

    def test_stalled_ants_hold_position(self) -> None:
        cfg = RunConfig(
            width=5,
            height=5,
            obstacles=(Cell(1, 0), Cell(0, 1)),
            ant_count=4,
            max_iterations=2,
            start=Cell(0, 0),
            goal=Cell(4, 4),
        )
        engine = ColonyEngine(config=cfg)
        report = engine.run_iteration()
        assert all(ant.path == [Cell(0, 0)] for ant in engine.colony.ants)
        assert report.arrived_count == 0
        assert report.average_path_length is None

    def test_arrived_ants_stay_parked(self) -> None:
        cfg = RunConfig(
            width=2,
            height=1,
            ant_count=3,
            max_iterations=1,
            start=Cell(0, 0),
            goal=Cell(1, 0),
        )
        engine = ColonyEngine(config=cfg)
        engine.colony.reset(cfg.start, cfg.ant_count)
        assert engine.step() == 3
        assert engine.step() == 0
        assert all(ant.path == [Cell(0, 0), Cell(1, 0)] for ant in engine.colony.ants)
        assert engine.best_path_length == 1

    def test_deposit_is_q_over_length(self) -> None:
        cfg = RunConfig(
            width=3,
            height=1,
            ant_count=1,
            max_iterations=1,
            start=Cell(0, 0),
            goal=Cell(2, 0),
        )
        engine = ColonyEngine(config=cfg)
        report = engine.run_iteration()
        assert report.arrived_count == 1
        assert report.average_path_length == 2.0
        assert np.allclose(report.pheromones, (1.0 + 100.0 / 2) * 0.7)

    def test_listeners_receive_reports(self, small_config: RunConfig) -> None:
        engine = ColonyEngine(config=small_config)
        received: list[IterationReport] = []
        engine.add_listener(received.append)
        result = engine.run()
        assert [r.iteration for r in received] == list(range(5))
        assert all(a is b for a, b in zip(received, result.reports, strict=True))


class TestDepositPolicy:
    """Pins what later ants see of deposits made earlier in the same step."""

    def _corridor_engine(self, policy: DepositPolicy) -> ColonyEngine:
        cfg = RunConfig(
            width=3,
            height=1,
            ant_count=2,
            max_iterations=1,
            start=Cell(0, 0),
            goal=Cell(2, 0),
            deposit_policy=policy,
        )
        engine = ColonyEngine(config=cfg)
        engine.policy = RecordingPolicy()
        engine.colony.reset(cfg.start, cfg.ant_count)
        return engine

    def test_sequential_deposit_visible_within_step(self) -> None:
        engine = self._corridor_engine(DepositPolicy.SEQUENTIAL)
        engine.step()
        engine.step()
        seen = engine.policy.seen  # type: ignore[attr-defined]
        assert seen == [1.0, 1.0, 1.0, 51.0]
        assert engine.pheromone_field.intensity(Cell(0, 0)) == 101.0

    def test_batched_deposit_applied_after_step(self) -> None:
        engine = self._corridor_engine(DepositPolicy.BATCHED)
        engine.step()
        engine.step()
        seen = engine.policy.seen  # type: ignore[attr-defined]
        assert seen == [1.0, 1.0, 1.0, 1.0]
        assert engine.pheromone_field.intensity(Cell(0, 0)) == 101.0

    def test_policies_share_best_path(self) -> None:
        sequential = self._corridor_engine(DepositPolicy.SEQUENTIAL)
        batched = self._corridor_engine(DepositPolicy.BATCHED)
        for engine in (sequential, batched):
            engine.step()
            engine.step()
        assert sequential.best_path == batched.best_path == [
            Cell(0, 0),
            Cell(1, 0),
            Cell(2, 0),
        ]
