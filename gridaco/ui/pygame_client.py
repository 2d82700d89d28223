"""Pygame 2D visualization of a running search.

Renders the obstacle grid, the pheromone field and the best path found so
far in a window.  The engine advances whole iterations at a configurable
rate while the display refreshes at the Pygame frame rate.  Row ``y = 0``
is drawn at the bottom of the window.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

import numpy as np
import pygame
from numpy.typing import NDArray

if TYPE_CHECKING:
    from gridaco.simulation.engine import ColonyEngine, IterationReport

# Colour palette
_BG = (30, 20, 10)
_OBSTACLE = (90, 90, 90)
_START = (100, 200, 100)
_GOAL = (255, 80, 80)
_PATH = (255, 200, 50)

# Trail pheromone colour (cyan glow)
_TRAIL_COLOUR = (0, 180, 255)


def pheromone_alpha(
    pheromones: NDArray[np.float64],
    max_alpha: int = 160,
) -> NDArray[np.int_]:
    """Map intensities to overlay alpha values in ``[0, max_alpha]``.

    The strongest cell gets ``max_alpha``; an all-zero field maps to all
    zeros.

    Args:
        pheromones: Intensity grid indexed ``[y, x]``.
        max_alpha: Alpha assigned to the maximum intensity.

    Returns:
        Integer array of the same shape.
    """
    peak = float(pheromones.max()) if pheromones.size else 0.0
    if peak <= 0.0:
        return np.zeros(pheromones.shape, dtype=np.int_)
    scaled = np.clip(pheromones / peak, 0.0, 1.0) * max_alpha
    return scaled.astype(np.int_)


class PygameRenderer:
    """Renders a ColonyEngine run into a Pygame window.

    Attributes:
        engine: The engine to visualise.
        cell_size: Pixel size of each grid cell.
        screen: The Pygame display surface.
    """

    # Speed presets: iterations per second
    _SPEED_STEPS: ClassVar[list[float]] = [
        0.25,
        0.5,
        1.0,
        2.0,
        5.0,
        10.0,
        30.0,
    ]

    def __init__(
        self,
        engine: ColonyEngine,
        cell_size: int = 24,
        iterations_per_second: float = 1.0,
    ) -> None:
        """Initialise the renderer.

        Args:
            engine: The engine to render.
            cell_size: Pixel width/height per grid cell.
            iterations_per_second: Iterations run per real-time second.
        """
        self.engine = engine
        self.cell_size = cell_size
        self.iterations_per_second = iterations_per_second
        self._speed_index = self._nearest_speed(iterations_per_second)
        self._accumulator = 0.0
        self.last_report: IterationReport | None = None

        w = engine.grid.width * cell_size
        h = engine.grid.height * cell_size
        self._panel_width = 220
        self._win_w = w + self._panel_width
        self._win_h = max(h, 260)

        pygame.init()
        self.screen = pygame.display.set_mode((self._win_w, self._win_h))
        pygame.display.set_caption("gridaco")
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)
        self.running = True
        self.paused = False

    @property
    def finished(self) -> bool:
        """Return True once every configured iteration has run."""
        return (
            self.engine.is_degenerate
            or self.engine.iteration >= self.engine.config.max_iterations
        )

    def _nearest_speed(self, ips: float) -> int:
        """Return the index of the closest speed preset."""
        diffs = [abs(s - ips) for s in self._SPEED_STEPS]
        return diffs.index(min(diffs))

    def run(self, fps: int = 30) -> None:
        """Main loop: handle events, advance iterations, render.

        Args:
            fps: Target frames per second.
        """
        while self.running:
            dt = self.clock.tick(fps) / 1000.0
            self._handle_events()
            if not self.paused and not self.finished:
                self._accumulator += self.iterations_per_second * dt
                steps = int(self._accumulator)
                self._accumulator -= steps
                for _ in range(steps):
                    if self.finished:
                        break
                    self.last_report = self.engine.run_iteration()
            self._draw()

        pygame.quit()

    def _handle_events(self) -> None:
        """Process Pygame input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_SPACE:
                    self.paused = not self.paused
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    self._speed_index = min(
                        len(self._SPEED_STEPS) - 1,
                        self._speed_index + 1,
                    )
                    self.iterations_per_second = self._SPEED_STEPS[self._speed_index]
                elif event.key == pygame.K_MINUS:
                    self._speed_index = max(0, self._speed_index - 1)
                    self.iterations_per_second = self._SPEED_STEPS[self._speed_index]

    def _rect(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Screen rectangle of grid cell ``(x, y)`` with y pointing up."""
        cs = self.cell_size
        top = (self.engine.grid.height - 1 - y) * cs
        return (x * cs, top, cs, cs)

    def _draw(self) -> None:
        """Render one frame."""
        self.screen.fill(_BG)
        self._draw_trail_overlay()
        self._draw_obstacles()
        self._draw_best_path()
        self._draw_endpoints()
        self._draw_info_panel()
        pygame.display.flip()

    def _draw_obstacles(self) -> None:
        """Draw blocked cells."""
        for cell in self.engine.grid.obstacles():
            pygame.draw.rect(self.screen, _OBSTACLE, self._rect(cell.x, cell.y))

    def _draw_trail_overlay(self) -> None:
        """Draw pheromone intensity as a translucent cyan overlay."""
        alphas = pheromone_alpha(self.engine.pheromone_field.grid)
        grid = self.engine.grid
        overlay = pygame.Surface(
            (grid.width * self.cell_size, grid.height * self.cell_size),
            pygame.SRCALPHA,
        )
        for y in range(alphas.shape[0]):
            for x in range(alphas.shape[1]):
                alpha = int(alphas[y, x])
                if alpha > 0:
                    pygame.draw.rect(overlay, (*_TRAIL_COLOUR, alpha), self._rect(x, y))
        self.screen.blit(overlay, (0, 0))

    def _draw_best_path(self) -> None:
        """Draw the best path as a polyline through cell centres."""
        path = self.engine.best_path
        if len(path) < 2:
            return
        half = self.cell_size // 2
        points = []
        for cell in path:
            left, top, _, _ = self._rect(cell.x, cell.y)
            points.append((left + half, top + half))
        pygame.draw.lines(self.screen, _PATH, False, points, max(2, self.cell_size // 6))

    def _draw_endpoints(self) -> None:
        """Mark the start and goal cells."""
        radius = max(3, self.cell_size // 3)
        half = self.cell_size // 2
        for cell, colour in (
            (self.engine.config.start, _START),
            (self.engine.config.goal, _GOAL),
        ):
            left, top, _, _ = self._rect(cell.x, cell.y)
            pygame.draw.circle(self.screen, colour, (left + half, top + half), radius)

    def _draw_info_panel(self) -> None:
        """Draw a stats panel on the right side of the window."""
        panel_x = self.engine.grid.width * self.cell_size + 10
        y = 10

        engine = self.engine
        best = engine.best_path_length if engine.best_path else "-"
        status = "DONE" if self.finished else "PAUSED" if self.paused else "RUNNING"
        lines = [
            f"Iteration: {engine.iteration}/{engine.config.max_iterations}",
            f"Speed: {self.iterations_per_second:.2f} it/s",
            status,
            "",
            "--- Search ---",
            f"Ants: {engine.config.ant_count}",
            f"Steps/iter: {engine.max_steps}",
            f"Best length: {best}",
        ]
        report = self.last_report
        if report is not None:
            mean = (
                f"{report.average_path_length:.2f}"
                if report.average_path_length is not None
                else "-"
            )
            lines += [
                f"Arrived: {report.arrived_count}",
                f"Mean length: {mean}",
            ]

        lines += [
            "",
            "--- Controls ---",
            "SPACE: pause",
            "+/-: speed",
            "ESC: quit",
        ]

        for line in lines:
            surf = self.font.render(line, True, (200, 200, 200))
            self.screen.blit(surf, (panel_x, y))
            y += 18
