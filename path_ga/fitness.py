"""
Fitness evaluation for path evolution.

Scores a population in two passes. The first pass queries the geometry
provider for every path and records the population-wide minimum and maximum
of node count, distance to target and path length. The second pass turns
those bounds into normalized blend values, adds the flat bonuses and applies
the penalty multipliers.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .data_models import PathEvaluation, PathIndividual, PopulationAggregates
from .engine_interface import GeometryQueryError, GeometryQueryProvider

logger = logging.getLogger(__name__)


@dataclass
class _PathInspection:
    """Per-path measurements and flags gathered in the first pass."""
    node_count: int
    distance_to_target: float
    path_length: float
    is_in_obstacle: bool = False
    traveling_through_terrain: bool = False
    slope_too_intense: bool = False
    can_see_target: bool = False
    has_reached_target: bool = False


@dataclass
class _Bounds:
    """Running minimum and maximum of one criterion."""
    minimum: float = math.inf
    maximum: float = -math.inf

    def update(self, value: float) -> None:
        self.minimum = min(self.minimum, value)
        self.maximum = max(self.maximum, value)

    def blend(self, value: float, epsilon: float) -> float:
        """
        Normalize value so that the minimum maps to 1 and the maximum to 0.

        Y = (X - X1) / (X0 - X1) with X0 the minimum and X1 the maximum.
        Returns 0 when the spread is not larger than epsilon.
        """
        if abs(self.minimum - self.maximum) <= epsilon:
            return 0.0
        return (value - self.maximum) / (self.minimum - self.maximum)


def segment_slope_degrees(start: np.ndarray, end: np.ndarray) -> float:
    """
    Angle between a segment and its projection on the horizontal plane.

    Computed from the normalized dot product of the segment direction and
    its collapsed (z = 0) direction. Vertical segments are 90 degrees and
    zero-length segments 0 degrees.

    Args:
        start: Segment start (x, y, z)
        end: Segment end (x, y, z)

    Returns:
        Slope angle in degrees, in [0, 90]
    """
    direction = np.asarray(end, dtype=float) - np.asarray(start, dtype=float)
    collapsed = direction.copy()
    collapsed[2] = 0.0

    direction_norm = np.linalg.norm(direction)
    if direction_norm == 0.0:
        return 0.0
    collapsed_norm = np.linalg.norm(collapsed)
    if collapsed_norm == 0.0:
        return 90.0

    dot_product = np.dot(direction / direction_norm, collapsed / collapsed_norm)
    return math.degrees(math.acos(float(np.clip(dot_product, -1.0, 1.0))))


def _query(query, default: bool, *points) -> bool:
    """Run a provider query, treating provider failures as no intersection."""
    try:
        return bool(query(*points))
    except GeometryQueryError as e:
        logger.warning("Geometry query %s failed, assuming no intersection: %s",
                       getattr(query, '__name__', query), e)
        return default


def inspect_path(
    individual: PathIndividual,
    target_location: np.ndarray,
    provider: GeometryQueryProvider,
    config: Dict
) -> _PathInspection:
    """
    First evaluation pass for a single path.

    Queries the provider once per segment for obstacles and terrain, once
    from the final waypoint to the target for line of sight, checks every
    segment's slope and whether the head lies inside the capture radius.

    Args:
        individual: Path to inspect
        target_location: Target (x, y, z)
        provider: Geometry query provider
        config: GA configuration

    Returns:
        Measurements and flags for this path
    """
    fitness_config = config.get('fitness', {})
    max_slope = fitness_config.get('max_slope_angle', 45.0)
    capture_radius = fitness_config.get('capture_radius', 100.0)

    distance = float(np.linalg.norm(target_location - individual.final_waypoint))
    inspection = _PathInspection(
        node_count=individual.node_count,
        distance_to_target=distance,
        path_length=individual.total_length(),
    )

    for start, end in individual.segments():
        if _query(provider.segment_blocked, False, start, end):
            inspection.is_in_obstacle = True

        if _query(provider.segment_in_terrain, False, start, end):
            inspection.traveling_through_terrain = True

        if segment_slope_degrees(start, end) > max_slope:
            inspection.slope_too_intense = True

    inspection.can_see_target = _query(
        provider.has_line_of_sight, True, individual.final_waypoint, target_location
    )

    # Strictly inside the capture sphere
    inspection.has_reached_target = distance < capture_radius

    return inspection


def theoretical_maximum_fitness(config: Dict) -> float:
    """Sum of all weights: every bonus earned and no penalty applied."""
    weights = config.get('fitness', {}).get('weights', {})
    return float(sum(weights.values()))


def score_path(
    inspection: _PathInspection,
    node_bounds: _Bounds,
    distance_bounds: _Bounds,
    length_bounds: _Bounds,
    config: Dict
) -> PathEvaluation:
    """
    Second evaluation pass for a single path.

    Args:
        inspection: First-pass measurements for this path
        node_bounds: Population bounds of node count
        distance_bounds: Population bounds of distance to target
        length_bounds: Population bounds of path length
        config: GA configuration

    Returns:
        Fresh PathEvaluation snapshot
    """
    fitness_config = config.get('fitness', {})
    weights = fitness_config.get('weights', {})
    multipliers = fitness_config.get('multipliers', {})
    epsilon = fitness_config.get('normalization_epsilon', 0.1)

    node_blend = node_bounds.blend(inspection.node_count, epsilon)
    proximity_blend = distance_bounds.blend(inspection.distance_to_target, epsilon)
    length_blend = length_bounds.blend(inspection.path_length, epsilon)

    sight_bonus = weights.get('line_of_sight', 0.0) if inspection.can_see_target else 0.0
    reached_bonus = weights.get('target_reached', 0.0) if inspection.has_reached_target else 0.0

    raw_score = (
        weights.get('node_count', 0.0) * node_blend
        + weights.get('proximity', 0.0) * proximity_blend
        + weights.get('length', 0.0) * length_blend
        + sight_bonus
        + reached_bonus
        + weights.get('slope', 0.0)
    )

    fitness = raw_score
    if inspection.is_in_obstacle:
        fitness *= multipliers.get('obstacle_hit', 1.0)
    if inspection.slope_too_intense:
        fitness *= multipliers.get('slope_too_intense', 1.0)
    if inspection.traveling_through_terrain:
        fitness *= multipliers.get('pierces_terrain', 1.0)

    return PathEvaluation(
        fitness=fitness,
        raw_score=raw_score,
        node_blend=node_blend,
        proximity_blend=proximity_blend,
        length_blend=length_blend,
        node_count=inspection.node_count,
        distance_to_target=inspection.distance_to_target,
        path_length=inspection.path_length,
        is_in_obstacle=inspection.is_in_obstacle,
        traveling_through_terrain=inspection.traveling_through_terrain,
        slope_too_intense=inspection.slope_too_intense,
        can_see_target=inspection.can_see_target,
        has_reached_target=inspection.has_reached_target,
    )


def evaluate_population(
    population: List[PathIndividual],
    target_location,
    provider: GeometryQueryProvider,
    config: Dict
) -> Tuple[List[PathIndividual], Optional[PopulationAggregates]]:
    """
    Score every path and compute population aggregates.

    The input list and its individuals are left untouched. The returned
    list holds copies carrying their fresh evaluation, sorted by fitness
    in descending order.

    Args:
        population: Paths to evaluate
        target_location: Target (x, y, z)
        provider: Geometry query provider
        config: GA configuration

    Returns:
        Tuple of (scored_population, aggregates); aggregates is None for an
        empty population
    """
    if not population:
        return [], None

    target_location = np.asarray(target_location, dtype=float)

    # 1. Measurements, flags and population bounds
    node_bounds, distance_bounds, length_bounds = _Bounds(), _Bounds(), _Bounds()
    inspections = []
    for individual in population:
        inspection = inspect_path(individual, target_location, provider, config)
        node_bounds.update(inspection.node_count)
        distance_bounds.update(inspection.distance_to_target)
        length_bounds.update(inspection.path_length)
        inspections.append(inspection)

    # 2. Fitness per path
    scored = []
    total_fitness = 0.0
    total_nodes = 0
    for individual, inspection in zip(population, inspections):
        evaluation = score_path(inspection, node_bounds, distance_bounds, length_bounds, config)
        scored.append(individual.with_evaluation(evaluation))
        total_fitness += evaluation.fitness
        total_nodes += evaluation.node_count

    # 3. Sort descending
    scored.sort(key=lambda individual: individual.fitness, reverse=True)

    count = len(scored)
    average_fitness = total_fitness / count
    maximum_fitness = theoretical_maximum_fitness(config)
    aggregates = PopulationAggregates(
        total_fitness=total_fitness,
        average_fitness=average_fitness,
        average_node_count=total_nodes / count,
        maximum_fitness=maximum_fitness,
        fitness_factor=average_fitness / maximum_fitness if maximum_fitness > 0 else 0.0,
        best_fitness=scored[0].fitness,
        worst_fitness=scored[-1].fitness,
    )

    logger.debug(
        "Evaluated %d paths: average fitness %.3f, best %.3f",
        count, average_fitness, aggregates.best_fitness
    )

    return scored, aggregates
