"""Shared fixtures for the gridaco test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator

from gridaco.pheromones.field import PheromoneField
from gridaco.simulation.config import RunConfig
from gridaco.world.cell import Cell
from gridaco.world.grid import GridMap


class FixedDraws:
    """Stand-in for a Generator that replays preset ``random()`` values."""

    def __init__(self, *values: float) -> None:
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def fixed_draws() -> type[FixedDraws]:
    """Factory for generators with scripted draws."""
    return FixedDraws


@pytest.fixture
def small_grid() -> GridMap:
    """An open 5x5 grid for fast tests."""
    return GridMap(width=5, height=5)


@pytest.fixture
def small_pheromone_field() -> PheromoneField:
    """A 5x5 pheromone field at the default initial intensity."""
    return PheromoneField(width=5, height=5)


@pytest.fixture
def small_config() -> RunConfig:
    """Open 5x5 corner-to-corner search with 20 ants and 5 iterations."""
    return RunConfig(
        seed=7,
        width=5,
        height=5,
        ant_count=20,
        max_iterations=5,
        start=Cell(0, 0),
        goal=Cell(4, 4),
    )
