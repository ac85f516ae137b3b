"""
Scene and Population Visualization

Offline matplotlib snapshots of an evolved population inside its scene,
with the per-generation fitness history next to it.
"""

import matplotlib.pyplot as plt
import numpy as np
from typing import List, Optional, Tuple

from path_ga.data_models import GenerationStats, PathIndividual
from path_ga.visualization_utils import DEFAULT_INVALID_COLOR, color_to_matplotlib

from .scene import Scene, SphereObstacle, BoxObstacle, FlatTerrain


# Edge pairs of a box given its 8 corners in binary xyz order
BOX_EDGES = [
    (0, 1), (0, 2), (0, 4), (1, 3), (1, 5), (2, 3),
    (2, 6), (3, 7), (4, 5), (4, 6), (5, 7), (6, 7),
]


class ScenePlotter:
    """Plots evolved paths, obstacles and terrain of one scene"""

    def __init__(self, scene: Scene):
        self.scene = scene
        self.obstacle_color = "dimgray"

    def plot_population(self,
                        population: List[PathIndividual],
                        history: Optional[List[GenerationStats]] = None,
                        figsize: Tuple[int, int] = (14, 6),
                        save_path: Optional[str] = None):
        """
        Create a two-panel figure: paths in 3D and the fitness history

        Args:
            population: Color-coded population to draw
            history: GenerationStats to plot (panel skipped when empty)
            figsize: Figure size (width, height)
            save_path: Optional path to save the figure; shown interactively otherwise

        Returns:
            The matplotlib figure
        """
        fig = plt.figure(figsize=figsize)

        if history:
            ax_paths = fig.add_subplot(1, 2, 1, projection="3d")
            ax_history = fig.add_subplot(1, 2, 2)
            self.plot_fitness_history(history, ax_history)
        else:
            ax_paths = fig.add_subplot(1, 1, 1, projection="3d")

        self.plot_paths(population, ax_paths)

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')
            plt.close(fig)
        else:
            plt.show()

        return fig

    def plot_paths(self, population: List[PathIndividual], ax):
        """Draw scene geometry and every path, best path last so it stays on top"""
        self.plot_terrain(ax)
        for obstacle in self.scene.obstacles:
            if isinstance(obstacle, SphereObstacle):
                self._plot_sphere(obstacle, ax)
            elif isinstance(obstacle, BoxObstacle):
                self._plot_box(obstacle, ax)

        for individual in sorted(population, key=lambda ind: ind.fitness):
            color = color_to_matplotlib(individual.color_code or DEFAULT_INVALID_COLOR)
            xs, ys, zs = individual.waypoints.T
            ax.plot(xs, ys, zs, color=color, linewidth=1.2, alpha=0.8)
            ax.scatter(xs[-1:], ys[-1:], zs[-1:], color=color, s=12)

        if self.scene.start is not None:
            ax.scatter(*self.scene.start, c="blue", s=80, marker="o", label="start")
        if self.scene.target is not None:
            ax.scatter(*self.scene.target, c="gold", s=160, marker="*",
                       edgecolors="black", label="target")

        ax.set_xlabel("X")
        ax.set_ylabel("Y")
        ax.set_zlabel("Z")
        ax.set_title(f"Population ({len(population)} paths)")
        ax.legend(loc="upper left")

    def plot_terrain(self, ax, resolution: int = 20):
        """Draw the terrain surface over the extent of the anchors"""
        terrain = self.scene.terrain
        if terrain is None:
            return

        anchors = [p for p in (self.scene.start, self.scene.target) if p is not None]
        if not anchors:
            return
        anchors = np.array(anchors)
        margin = max(float(np.ptp(anchors[:, :2])) * 0.25, 10.0)
        x_range = np.linspace(anchors[:, 0].min() - margin, anchors[:, 0].max() + margin, resolution)
        y_range = np.linspace(anchors[:, 1].min() - margin, anchors[:, 1].max() + margin, resolution)
        grid_x, grid_y = np.meshgrid(x_range, y_range)

        if isinstance(terrain, FlatTerrain):
            grid_z = np.full_like(grid_x, terrain.height)
        else:
            grid_z = np.vectorize(terrain.height_at)(grid_x, grid_y)

        ax.plot_surface(grid_x, grid_y, grid_z, color="tan", alpha=0.25, linewidth=0)

    def _plot_sphere(self, obstacle: SphereObstacle, ax):
        u, v = np.mgrid[0:2 * np.pi:16j, 0:np.pi:8j]
        xs = obstacle.center[0] + obstacle.radius * np.cos(u) * np.sin(v)
        ys = obstacle.center[1] + obstacle.radius * np.sin(u) * np.sin(v)
        zs = obstacle.center[2] + obstacle.radius * np.cos(v)
        ax.plot_wireframe(xs, ys, zs, color=self.obstacle_color, linewidth=0.5, alpha=0.5)

    def _plot_box(self, obstacle: BoxObstacle, ax):
        lo, hi = obstacle.min_corner, obstacle.max_corner
        corners = np.array([
            [hi[0] if i & 4 else lo[0], hi[1] if i & 2 else lo[1], hi[2] if i & 1 else lo[2]]
            for i in range(8)
        ])
        for a, b in BOX_EDGES:
            ax.plot(*zip(corners[a], corners[b]), color=self.obstacle_color, linewidth=1.0)

    def plot_fitness_history(self, history: List[GenerationStats], ax: plt.Axes = None):
        """Plot average and best fitness per generation against the theoretical maximum"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(8, 5))

        generations = [stats.generation for stats in history]
        ax.plot(generations, [stats.average_fitness for stats in history],
                label="average", color="steelblue", linewidth=2)
        ax.plot(generations, [stats.best_fitness for stats in history],
                label="best", color="green", linewidth=1.5)
        ax.axhline(history[-1].maximum_fitness, color="gray", linestyle="--",
                   alpha=0.7, label="theoretical maximum")

        ax.set_xlabel("Generation")
        ax.set_ylabel("Fitness")
        ax.set_title("Fitness History")
        ax.grid(True, alpha=0.3)
        ax.legend()

        return ax
