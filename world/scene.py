"""
In-memory 3D scene for path evolution.

Implements the geometry query provider with sphere and box obstacles and
an optional flat or heightfield terrain. Obstacle and terrain queries work
on line segments; terrain segments are sampled at a fixed step.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Union

import numpy as np

from path_ga.engine_interface import GeometryQueryProvider


def _point(value) -> np.ndarray:
    point = np.asarray(value, dtype=float)
    if point.shape != (3,):
        raise ValueError(f"Expected a 3D point, got shape {point.shape}")
    return point


@dataclass
class SphereObstacle:
    """Solid sphere"""
    center: np.ndarray
    radius: float
    name: str = "sphere"

    def __post_init__(self):
        self.center = _point(self.center)
        if self.radius <= 0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")

    def intersects_segment(self, start: np.ndarray, end: np.ndarray) -> bool:
        """True if any point of the segment lies inside or on the sphere."""
        direction = end - start
        length_sq = float(np.dot(direction, direction))
        if length_sq == 0.0:
            closest = start
        else:
            t = float(np.clip(np.dot(self.center - start, direction) / length_sq, 0.0, 1.0))
            closest = start + t * direction
        return float(np.linalg.norm(self.center - closest)) <= self.radius


@dataclass
class BoxObstacle:
    """Axis-aligned box"""
    min_corner: np.ndarray
    max_corner: np.ndarray
    name: str = "box"

    def __post_init__(self):
        self.min_corner = _point(self.min_corner)
        self.max_corner = _point(self.max_corner)
        if np.any(self.max_corner < self.min_corner):
            raise ValueError(f"Box {self.name}: max_corner must be >= min_corner on every axis")

    def intersects_segment(self, start: np.ndarray, end: np.ndarray) -> bool:
        """True if the segment touches the box (slab method, t clipped to [0, 1])."""
        direction = end - start
        t_enter, t_exit = 0.0, 1.0

        for axis in range(3):
            if direction[axis] == 0.0:
                if not self.min_corner[axis] <= start[axis] <= self.max_corner[axis]:
                    return False
                continue

            t0 = (self.min_corner[axis] - start[axis]) / direction[axis]
            t1 = (self.max_corner[axis] - start[axis]) / direction[axis]
            if t0 > t1:
                t0, t1 = t1, t0
            t_enter = max(t_enter, t0)
            t_exit = min(t_exit, t1)
            if t_enter > t_exit:
                return False

        return True


Obstacle = Union[SphereObstacle, BoxObstacle]


@dataclass
class FlatTerrain:
    """Horizontal ground plane at a constant height"""
    height: float = 0.0

    def height_at(self, x: float, y: float) -> float:
        return self.height


@dataclass
class HeightfieldTerrain:
    """
    Regular grid of ground heights with bilinear interpolation.

    heights[i, j] is the ground height at (origin_x + j * cell_size,
    origin_y + i * cell_size). Points outside the grid use the nearest
    edge height.
    """
    heights: np.ndarray
    cell_size: float = 1.0
    origin_x: float = 0.0
    origin_y: float = 0.0

    def __post_init__(self):
        self.heights = np.asarray(self.heights, dtype=float)
        if self.heights.ndim != 2 or min(self.heights.shape) < 2:
            raise ValueError(f"Heightfield needs a 2D grid of at least 2x2, got {self.heights.shape}")
        if self.cell_size <= 0:
            raise ValueError(f"Heightfield cell_size must be positive, got {self.cell_size}")

    def height_at(self, x: float, y: float) -> float:
        rows, cols = self.heights.shape
        gx = float(np.clip((x - self.origin_x) / self.cell_size, 0.0, cols - 1))
        gy = float(np.clip((y - self.origin_y) / self.cell_size, 0.0, rows - 1))

        j0 = min(int(math.floor(gx)), cols - 2)
        i0 = min(int(math.floor(gy)), rows - 2)
        fx = gx - j0
        fy = gy - i0

        h00 = self.heights[i0, j0]
        h01 = self.heights[i0, j0 + 1]
        h10 = self.heights[i0 + 1, j0]
        h11 = self.heights[i0 + 1, j0 + 1]

        top = h00 + (h01 - h00) * fx
        bottom = h10 + (h11 - h10) * fx
        return float(top + (bottom - top) * fy)


Terrain = Union[FlatTerrain, HeightfieldTerrain]


@dataclass
class Scene(GeometryQueryProvider):
    """
    Static world the paths evolve in.

    Attributes:
        start: Start anchor (x, y, z); None if unavailable
        target: Target anchor (x, y, z); None if unavailable
        obstacles: Sphere and box obstacles
        terrain: Optional ground surface
        terrain_sample_step: Distance between terrain samples along a segment
        terrain_tolerance: How far below the surface a point may lie before it counts
    """
    start: Optional[np.ndarray] = None
    target: Optional[np.ndarray] = None
    obstacles: List[Obstacle] = field(default_factory=list)
    terrain: Optional[Terrain] = None
    terrain_sample_step: float = 5.0
    terrain_tolerance: float = 1e-6

    def __post_init__(self):
        if self.start is not None:
            self.start = _point(self.start)
        if self.target is not None:
            self.target = _point(self.target)
        if self.terrain_sample_step <= 0:
            raise ValueError(f"terrain_sample_step must be positive, got {self.terrain_sample_step}")

    def segment_blocked(self, start: np.ndarray, end: np.ndarray) -> bool:
        start, end = _point(start), _point(end)
        return any(obstacle.intersects_segment(start, end) for obstacle in self.obstacles)

    def _below_surface(self, point: np.ndarray) -> bool:
        return point[2] < self.terrain.height_at(point[0], point[1]) - self.terrain_tolerance

    def segment_in_terrain(self, start: np.ndarray, end: np.ndarray) -> bool:
        if self.terrain is None:
            return False
        start, end = _point(start), _point(end)

        if isinstance(self.terrain, FlatTerrain):
            return min(start[2], end[2]) < self.terrain.height - self.terrain_tolerance

        length = float(np.linalg.norm(end - start))
        samples = max(int(math.ceil(length / self.terrain_sample_step)), 1)
        for t in np.linspace(0.0, 1.0, samples + 1):
            if self._below_surface(start + t * (end - start)):
                return True
        return False

    def has_line_of_sight(self, point: np.ndarray, target: np.ndarray) -> bool:
        return not (self.segment_blocked(point, target) or self.segment_in_terrain(point, target))

    def project_to_surface(self, point: np.ndarray) -> np.ndarray:
        """Move the point vertically onto the terrain; unchanged without terrain."""
        point = _point(point).copy()
        if self.terrain is not None:
            point[2] = self.terrain.height_at(point[0], point[1])
        return point
