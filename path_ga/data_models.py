"""
Data models for path evolution.

Core data structures representing path individuals, their per-pass
evaluation snapshots, population aggregates and generation statistics.
"""

from dataclasses import dataclass, field, replace, asdict
from datetime import datetime
from typing import Optional, Any, Tuple

import numpy as np


RGBA = Tuple[int, int, int, int]


def as_waypoints(points) -> np.ndarray:
    """
    Convert a sequence of 3D points to a float waypoint array.

    Args:
        points: Sequence of (x, y, z) points or an (n, 3) array

    Returns:
        New (n, 3) float array

    Raises:
        ValueError: If the points are empty or not three-dimensional
    """
    waypoints = np.array(points, dtype=float)
    if waypoints.ndim != 2 or waypoints.shape[1] != 3:
        raise ValueError(f"Waypoints must have shape (n, 3), got {waypoints.shape}")
    if len(waypoints) == 0:
        raise ValueError("A path genome needs at least one waypoint")
    return waypoints


@dataclass(frozen=True)
class PathEvaluation:
    """
    Result of scoring one path during a single evaluation pass.

    A fresh instance is built every pass so flags never leak from one
    generation into the next.
    """
    fitness: float
    raw_score: float
    node_blend: float
    proximity_blend: float
    length_blend: float
    node_count: int
    distance_to_target: float
    path_length: float
    is_in_obstacle: bool = False
    traveling_through_terrain: bool = False
    slope_too_intense: bool = False
    can_see_target: bool = False
    has_reached_target: bool = False

    @property
    def is_penalized(self) -> bool:
        """True when any penalty multiplier applies to this path."""
        return self.is_in_obstacle or self.slope_too_intense or self.traveling_through_terrain


@dataclass
class PathIndividual:
    """
    Represents a single candidate path (individual in GA population).

    Attributes:
        id: Unique identifier for this individual
        waypoints: (n, 3) array of waypoints in traversal order, n >= 1
        evaluation: Snapshot from the latest evaluation pass (None until scored)
        color_code: RGBA display color, written only by the visualization step
        metadata: Lineage information (creation_method, parent_ids, mutation_ops, ...)
    """
    id: str
    waypoints: np.ndarray
    evaluation: Optional[PathEvaluation] = None
    color_code: Optional[RGBA] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Ensure waypoints form a valid genome."""
        self.waypoints = as_waypoints(self.waypoints)

    def copy(self) -> "PathIndividual":
        """
        Create a deep copy of this individual.

        Returns:
            New PathIndividual with copied waypoints and metadata
        """
        return PathIndividual(
            id=self.id,
            waypoints=self.waypoints.copy(),
            evaluation=self.evaluation,
            color_code=self.color_code,
            metadata={
                key: list(value) if isinstance(value, list) else value
                for key, value in self.metadata.items()
            },
        )

    def with_evaluation(self, evaluation: PathEvaluation) -> "PathIndividual":
        """Copy of this individual carrying a new evaluation."""
        return replace(self, evaluation=evaluation)

    @property
    def node_count(self) -> int:
        return len(self.waypoints)

    @property
    def fitness(self) -> float:
        """Fitness from the latest evaluation, 0.0 if never evaluated."""
        if self.evaluation is None:
            return 0.0
        return self.evaluation.fitness

    def _flag(self, name: str) -> bool:
        return bool(self.evaluation is not None and getattr(self.evaluation, name))

    @property
    def is_in_obstacle(self) -> bool:
        return self._flag('is_in_obstacle')

    @property
    def traveling_through_terrain(self) -> bool:
        return self._flag('traveling_through_terrain')

    @property
    def slope_too_intense(self) -> bool:
        return self._flag('slope_too_intense')

    @property
    def can_see_target(self) -> bool:
        return self._flag('can_see_target')

    @property
    def has_reached_target(self) -> bool:
        """Flags read False until the path has been evaluated."""
        return self._flag('has_reached_target')

    @property
    def final_waypoint(self) -> np.ndarray:
        return self.waypoints[-1]

    def segment_lengths(self) -> np.ndarray:
        """Length of each segment between consecutive waypoints."""
        return np.linalg.norm(np.diff(self.waypoints, axis=0), axis=1)

    def total_length(self) -> float:
        """Sum of all segment lengths."""
        return float(self.segment_lengths().sum())

    def segments(self):
        """Iterate over consecutive (start, end) waypoint pairs."""
        for index in range(1, len(self.waypoints)):
            yield self.waypoints[index - 1], self.waypoints[index]


@dataclass(frozen=True)
class PopulationAggregates:
    """
    Population-wide values computed by one evaluation pass.

    Attributes:
        total_fitness: Sum of all fitness values
        average_fitness: Mean fitness
        average_node_count: Mean genome length
        maximum_fitness: Theoretical maximum (sum of all weights)
        fitness_factor: average_fitness / maximum_fitness
        best_fitness: Highest fitness in the population
        worst_fitness: Lowest fitness in the population
    """
    total_fitness: float
    average_fitness: float
    average_node_count: float
    maximum_fitness: float
    fitness_factor: float
    best_fitness: float
    worst_fitness: float


@dataclass(frozen=True)
class MutationCounts:
    """Number of individuals on which each mutation operator fired."""
    translation: int = 0
    insertion: int = 0
    deletion: int = 0

    @property
    def total(self) -> int:
        return self.translation + self.insertion + self.deletion


@dataclass(frozen=True)
class GenerationStats:
    """
    Summary of one completed generation.

    Produced once per generation by the orchestrator and handed to the
    stats sinks. Fitness values come from the final evaluation pass.
    """
    generation: int
    average_fitness: float
    maximum_fitness: float
    fitness_factor: float
    average_node_count: float
    best_fitness: float
    crossover_count: int
    translation_mutations: int
    insertion_mutations: int
    deletion_mutations: int
    distinct_parents: int = 0
    top_parent_share: float = 0.0
    junk_dna_carried: int = 0
    mutation_node_delta: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @classmethod
    def from_generation(
        cls,
        generation: int,
        aggregates: PopulationAggregates,
        crossover_count: int,
        mutation_counts: MutationCounts,
        diagnostics: Optional[dict[str, Any]] = None
    ) -> "GenerationStats":
        """
        Build stats from the final aggregates and step counters.

        Args:
            generation: Generation index
            aggregates: Aggregates from the final evaluation pass
            crossover_count: Number of pairs that underwent crossover
            mutation_counts: Per-operator mutation counts
            diagnostics: Optional selection, crossover and mutation diagnostics

        Returns:
            GenerationStats instance
        """
        return cls(
            generation=generation,
            average_fitness=aggregates.average_fitness,
            maximum_fitness=aggregates.maximum_fitness,
            fitness_factor=aggregates.fitness_factor,
            average_node_count=aggregates.average_node_count,
            best_fitness=aggregates.best_fitness,
            crossover_count=crossover_count,
            translation_mutations=mutation_counts.translation,
            insertion_mutations=mutation_counts.insertion,
            deletion_mutations=mutation_counts.deletion,
            **(diagnostics or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a flat dictionary for CSV export."""
        return asdict(self)
