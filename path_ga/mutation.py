"""
Mutation operators for path evolution.

Implements waypoint translation, insertion and deletion. By default every
eligible path tests the three operators independently; an aggregate mode
picks at most one operator, weighted by the operator probabilities.
"""

import logging
from typing import Dict, List, Tuple, Optional

import numpy as np

from .data_models import PathIndividual, MutationCounts

logger = logging.getLogger(__name__)

OPERATOR_NAMES = ('translate', 'insert', 'delete')


def random_offset(
    mode: str,
    max_offset: float,
    rng: np.random.Generator
) -> np.ndarray:
    """
    Draw a bounded random 3D offset.

    Args:
        mode: "box" for a uniform draw per axis in [-max_offset, max_offset],
            "direction" for a random unit vector scaled by a uniform
            magnitude in [0, max_offset]
        max_offset: Bound of the offset
        rng: Random number generator

    Returns:
        Offset vector (x, y, z)

    Raises:
        ValueError: If mode is unknown
    """
    if mode == 'box':
        return rng.uniform(-max_offset, max_offset, size=3)
    if mode == 'direction':
        direction = rng.normal(size=3)
        norm = np.linalg.norm(direction)
        if norm == 0.0:
            direction = np.array([1.0, 0.0, 0.0])
        else:
            direction = direction / norm
        return direction * rng.uniform(0.0, max_offset)
    raise ValueError(f"Unknown translation type: {mode}")


def _with_waypoints(
    individual: PathIndividual,
    waypoints: np.ndarray,
    op_log: str
) -> PathIndividual:
    mutated = individual.copy()
    mutated.waypoints = waypoints
    mutated.evaluation = None
    mutated.metadata.setdefault('mutation_ops', []).append(op_log)
    return mutated


def translate_waypoint(
    individual: PathIndividual,
    config: Dict,
    rng: np.random.Generator
) -> Tuple[PathIndividual, bool]:
    """
    Displace one waypoint by a bounded random offset.

    The waypoint is picked by mutation.translation_target ("random" index
    or the "last" waypoint) and moved according to
    mutation.translation_type up to mutation.max_translation_offset.

    Args:
        individual: Individual to mutate
        config: GA configuration
        rng: Random number generator

    Returns:
        Tuple of (mutated_individual, applied)
    """
    mutation_config = config.get('mutation', {})
    target = mutation_config.get('translation_target', 'random')
    mode = mutation_config.get('translation_type', 'box')
    max_offset = mutation_config.get('max_translation_offset', 50.0)

    if target == 'last':
        index = individual.node_count - 1
    else:
        index = int(rng.integers(0, individual.node_count))

    waypoints = individual.waypoints.copy()
    offset = random_offset(mode, max_offset, rng)
    waypoints[index] += offset

    return _with_waypoints(individual, waypoints, f"translate(node={index})"), True


def insert_waypoint(
    individual: PathIndividual,
    config: Dict,
    rng: np.random.Generator
) -> Tuple[PathIndividual, bool]:
    """
    Insert one new waypoint.

    The new waypoint is the midpoint of a random adjacent pair plus a
    uniform jitter of mutation.insertion_jitter per axis. A single-waypoint
    path gets a new final waypoint at a random direction offset.

    Args:
        individual: Individual to mutate
        config: GA configuration
        rng: Random number generator

    Returns:
        Tuple of (mutated_individual, applied)
    """
    mutation_config = config.get('mutation', {})
    jitter = mutation_config.get('insertion_jitter', 10.0)

    if individual.node_count == 1:
        max_offset = mutation_config.get('max_translation_offset', 50.0)
        new_point = individual.waypoints[0] + random_offset('direction', max_offset, rng)
        waypoints = np.vstack([individual.waypoints, new_point])
        return _with_waypoints(individual, waypoints, "insert(node=1)"), True

    pair_index = int(rng.integers(0, individual.node_count - 1))
    midpoint = (individual.waypoints[pair_index] + individual.waypoints[pair_index + 1]) / 2.0
    new_point = midpoint + rng.uniform(-jitter, jitter, size=3)
    waypoints = np.insert(individual.waypoints, pair_index + 1, new_point, axis=0)

    return _with_waypoints(individual, waypoints, f"insert(node={pair_index + 1})"), True


def delete_waypoint(
    individual: PathIndividual,
    config: Dict,
    rng: np.random.Generator
) -> Tuple[PathIndividual, bool]:
    """
    Remove one random waypoint.

    Rejected (individual returned unchanged) when the path has a single
    waypoint, so a genome never becomes empty.

    Args:
        individual: Individual to mutate
        config: GA configuration
        rng: Random number generator

    Returns:
        Tuple of (mutated_individual, applied)
    """
    if individual.node_count <= 1:
        logger.debug("delete rejected for %s: single waypoint", individual.id)
        return individual, False

    index = int(rng.integers(0, individual.node_count))
    waypoints = np.delete(individual.waypoints, index, axis=0)

    return _with_waypoints(individual, waypoints, f"delete(node={index})"), True


OPERATORS = {
    'translate': translate_waypoint,
    'insert': insert_waypoint,
    'delete': delete_waypoint,
}


def _operator_probabilities(config: Dict) -> Dict[str, float]:
    mutation_config = config.get('mutation', {})
    return {
        'translate': mutation_config.get('translate_probability', 33.333),
        'insert': mutation_config.get('insert_probability', 33.333),
        'delete': mutation_config.get('delete_probability', 33.333),
    }


def choose_operators(config: Dict, rng: np.random.Generator) -> List[str]:
    """
    Decide which operators run on an eligible individual.

    Independent mode tests each operator with its own draw in [0, 100), so
    zero to three operators may run. Aggregate mode picks exactly one,
    weighted by the operator probabilities (none if they sum to zero).

    Args:
        config: GA configuration
        rng: Random number generator

    Returns:
        Names of the operators to apply, in translate/insert/delete order
    """
    probabilities = _operator_probabilities(config)

    if config.get('mutation', {}).get('aggregate_select_one', False):
        aggregated_probability = sum(probabilities.values())
        if aggregated_probability <= 0.0:
            return []
        choice = rng.uniform(0.0, aggregated_probability)
        cumulative = 0.0
        for name in OPERATOR_NAMES:
            cumulative += probabilities[name]
            if choice < cumulative:
                return [name]
        return [OPERATOR_NAMES[-1]]

    return [name for name in OPERATOR_NAMES if rng.uniform(0.0, 100.0) < probabilities[name]]


def mutate(
    individual: PathIndividual,
    config: Dict,
    rng: np.random.Generator
) -> Tuple[PathIndividual, List[str]]:
    """
    Apply mutation operators according to configuration.

    1. Decides whether the individual is eligible (mutation.probability)
    2. Chooses the operators (independent or aggregate mode)
    3. Applies them in translate, insert, delete order

    Args:
        individual: Individual to mutate
        config: GA configuration
        rng: Random number generator

    Returns:
        Tuple of (mutated_individual, applied_operator_names)
    """
    mutation_probability = config.get('mutation', {}).get('probability', 5.0)

    if rng.uniform(0.0, 100.0) >= mutation_probability:
        return individual, []

    mutated = individual
    applied = []
    for name in choose_operators(config, rng):
        mutated, fired = OPERATORS[name](mutated, config, rng)
        if fired:
            applied.append(name)

    return mutated, applied


def mutate_population(
    population: List[PathIndividual],
    config: Dict,
    rng: np.random.Generator
) -> MutationCounts:
    """
    Mutate a freshly recombined population in place.

    Args:
        population: Population to mutate; entries are replaced in place
        config: GA configuration
        rng: Random number generator

    Returns:
        Number of individuals on which each operator fired
    """
    counts = {name: 0 for name in OPERATOR_NAMES}

    for index, individual in enumerate(population):
        mutated, applied = mutate(individual, config, rng)
        population[index] = mutated
        for name in applied:
            counts[name] += 1

    return MutationCounts(
        translation=counts['translate'],
        insertion=counts['insert'],
        deletion=counts['delete'],
    )


def mutation_statistics(original: PathIndividual, mutated: PathIndividual) -> Dict:
    """
    Calculate statistics about mutation operations.

    Args:
        original: Individual before mutation
        mutated: Individual after mutation

    Returns:
        Dictionary with mutation statistics
    """
    stats = {
        'original_nodes': original.node_count,
        'mutated_nodes': mutated.node_count,
        'node_delta': mutated.node_count - original.node_count,
        'operations': list(mutated.metadata.get('mutation_ops', [])),
    }

    shared = min(original.node_count, mutated.node_count)
    displacement: Optional[float] = None
    if shared:
        displacement = float(np.linalg.norm(
            mutated.waypoints[:shared] - original.waypoints[:shared], axis=1
        ).max())
    stats['max_shared_displacement'] = displacement

    return stats
