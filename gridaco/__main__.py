"""Entry point for ``python -m gridaco``.

Loads the default YAML config, asks for start/goal coordinates when they
are not given on the command line, runs the search and prints the best
path.  ``--gui`` opens a Pygame window instead of running headless.
"""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys

from gridaco.reporting.console import (
    ConsoleReporter,
    render_ant_distribution,
    render_best_path,
)
from gridaco.reporting.csv_export import CsvExporter
from gridaco.simulation.config import DepositPolicy, RunConfig, load_yaml
from gridaco.simulation.engine import ColonyEngine
from gridaco.simulation.errors import InvalidConfigurationError
from gridaco.world.cell import Cell

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)


def _prompt_cell(label: str) -> Cell:
    """Read an ``x y`` pair from stdin."""
    try:
        raw = input(f"input {label} coordinates (divide via space): ")
    except EOFError as exc:
        msg = f"{label}: no coordinates given (end of input)"
        raise InvalidConfigurationError(msg) from exc
    parts = raw.split()
    if len(parts) != 2:
        msg = f"{label}: expected two integers, got {raw!r}"
        raise InvalidConfigurationError(msg)
    try:
        return Cell(int(parts[0]), int(parts[1]))
    except ValueError as exc:
        msg = f"{label}: expected two integers, got {raw!r}"
        raise InvalidConfigurationError(msg) from exc


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="gridaco",
        description="gridaco - ant colony shortest path search on a grid",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--start",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        help="Start cell (prompted if missing from config and CLI)",
    )
    parser.add_argument(
        "--goal",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        help="Goal cell (prompted if missing from config and CLI)",
    )
    parser.add_argument("--seed", type=int, help="RNG seed")
    parser.add_argument("--ants", type=int, help="Ants per iteration")
    parser.add_argument("--iterations", type=int, help="Number of iterations")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in DepositPolicy],
        help="Intra-step deposit policy (default: sequential)",
    )
    parser.add_argument(
        "--export-dir",
        type=pathlib.Path,
        help="Write pheromone and path-length CSV files here",
    )
    parser.add_argument(
        "--show-pheromones",
        action="store_true",
        help="Print the pheromone grid after every iteration",
    )
    parser.add_argument(
        "--show-ants",
        action="store_true",
        help="Print where the last iteration's ants ended up",
    )
    parser.add_argument(
        "--gui",
        action="store_true",
        help="Watch the search in a Pygame window",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    return parser


def _load_config(args: argparse.Namespace) -> RunConfig:
    """Merge the YAML file, CLI flags and prompts into one RunConfig."""
    data = load_yaml(args.config)
    start = Cell(*args.start) if args.start else None
    goal = Cell(*args.goal) if args.goal else None
    if start is None and "start" not in data:
        start = _prompt_cell("start")
    if goal is None and "goal" not in data:
        goal = _prompt_cell("ending")
    return RunConfig.from_dict(
        data,
        seed=args.seed,
        ant_count=args.ants,
        max_iterations=args.iterations,
        deposit_policy=args.policy,
        start=start,
        goal=goal,
    )


def main(argv: list[str] | None = None) -> int:
    """Parse CLI args, run the search, print the result.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)
    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _load_config(args)
        engine = ColonyEngine(config=config)
    except FileNotFoundError as exc:
        print(f"gridaco: config file not found: {exc.filename}", file=sys.stderr)
        return 2
    except InvalidConfigurationError as exc:
        print(f"gridaco: invalid configuration: {exc}", file=sys.stderr)
        return 2

    if args.export_dir is not None:
        engine.add_listener(CsvExporter(args.export_dir))

    if args.gui:
        from gridaco.ui.pygame_client import PygameRenderer

        PygameRenderer(engine=engine).run()
    else:
        engine.add_listener(
            ConsoleReporter(
                total_iterations=config.max_iterations,
                show_pheromones=args.show_pheromones,
            ),
        )
        engine.run()

    if engine.best_path:
        print(f"Best path length: {engine.best_path_length}")
        print("Best path visual representation with (0,0) at bottom left:")
    print(render_best_path(engine.grid, engine.best_path))
    if args.show_ants:
        positions = [ant.position for ant in engine.colony.ants]
        print("Ant distribution after the last iteration:")
        print(render_ant_distribution(engine.grid, positions))
    return 0


if __name__ == "__main__":
    sys.exit(main())
