"""
Engine interface for path evolution.

Abstract contracts for the host world the GA runs in: the geometry query
provider that answers obstacle, terrain and line-of-sight questions, and the
path factory that creates and releases path individuals.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional, Any

import numpy as np

from .data_models import PathIndividual, as_waypoints


class GeometryQueryError(Exception):
    """Raised by a geometry provider when a query cannot be answered."""
    pass


class GeometryQueryProvider(ABC):
    """
    Spatial queries consumed by the fitness evaluator.

    Implementations hold no per-query state and block until answered.
    """

    @abstractmethod
    def segment_blocked(self, start: np.ndarray, end: np.ndarray) -> bool:
        """True if the segment intersects an obstacle."""

    @abstractmethod
    def segment_in_terrain(self, start: np.ndarray, end: np.ndarray) -> bool:
        """True if the segment passes below the terrain surface."""

    @abstractmethod
    def has_line_of_sight(self, point: np.ndarray, target: np.ndarray) -> bool:
        """True if nothing blocks the view from point to target."""

    def project_to_surface(self, point: np.ndarray) -> np.ndarray:
        """
        Snap a point onto the walkable surface.

        Providers without terrain return the point unchanged.
        """
        return np.asarray(point, dtype=float)


class PathFactory:
    """
    Creates and releases path individuals.

    Every individual gets a unique id from a per-factory counter. The
    factory also tracks how many individuals are alive so callers can
    verify that discarded generations are released.
    """

    def __init__(self, id_prefix: str = "path"):
        """
        Args:
            id_prefix: Prefix for generated individual ids
        """
        self.id_prefix = id_prefix
        self._counter = 0
        self.live_count = 0

    def _next_id(self) -> str:
        self._counter += 1
        return f"{self.id_prefix}_{self._counter:06d}"

    def create_from_waypoints(
        self,
        waypoints,
        metadata: Optional[Dict[str, Any]] = None
    ) -> PathIndividual:
        """
        Create an individual with an explicit genome.

        Args:
            waypoints: Sequence of (x, y, z) points, at least one
            metadata: Lineage metadata to attach

        Returns:
            New PathIndividual
        """
        individual = PathIndividual(
            id=self._next_id(),
            waypoints=as_waypoints(waypoints),
            metadata=dict(metadata or {}),
        )
        self.live_count += 1
        return individual

    def create_random(
        self,
        start: np.ndarray,
        min_nodes: int,
        max_nodes: int,
        max_variation: float,
        rng: np.random.Generator
    ) -> PathIndividual:
        """
        Create an individual by a bounded random walk from the start location.

        The first waypoint is the start location; each following waypoint is
        offset from the previous one by a uniform draw in
        [-max_variation, max_variation] on every axis.

        Args:
            start: Start location (x, y, z)
            min_nodes: Minimum genome length (inclusive)
            max_nodes: Maximum genome length (inclusive)
            max_variation: Maximum per-axis offset between waypoints
            rng: Random number generator

        Returns:
            New PathIndividual
        """
        node_count = int(rng.integers(min_nodes, max_nodes + 1))
        steps = rng.uniform(-max_variation, max_variation, size=(node_count - 1, 3))
        waypoints = np.vstack([
            np.asarray(start, dtype=float),
            np.asarray(start, dtype=float) + np.cumsum(steps, axis=0),
        ])
        return self.create_from_waypoints(waypoints, {'creation_method': 'initial'})

    def release(self, individuals: Iterable[PathIndividual]) -> int:
        """
        Release individuals that are no longer referenced by any population.

        Args:
            individuals: Individuals to release

        Returns:
            Number of individuals released
        """
        released = {individual.id for individual in individuals}
        self.live_count -= len(released)
        return len(released)
