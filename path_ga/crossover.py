"""
Crossover operators for path evolution.

Implements single-point and uniform crossover for genomes of unequal
length. Positions shared by both parents are exchanged; the tail that only
the longer parent has ("junk DNA") is carried into each offspring waypoint
by waypoint with a configured probability.
"""

from typing import Dict, List, Tuple, Optional

import numpy as np

from .data_models import PathIndividual
from .engine_interface import PathFactory


def order_by_length(
    parent_a: PathIndividual,
    parent_b: PathIndividual
) -> Tuple[PathIndividual, PathIndividual]:
    """
    Return (shorter, longer); the first parent wins ties.

    Args:
        parent_a: First parent
        parent_b: Second parent

    Returns:
        Tuple of (shorter_parent, longer_parent)
    """
    if parent_a.node_count > parent_b.node_count:
        return parent_b, parent_a
    return parent_a, parent_b


def _carry_junk_dna(
    longer: PathIndividual,
    start_index: int,
    junk_dna_probability: float,
    rng: np.random.Generator
) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    """
    Decide per tail waypoint, independently for each offspring, whether it is kept.

    Returns:
        Tuple of (tail_for_offspring_0, tail_for_offspring_1)
    """
    tail_0, tail_1 = [], []
    for index in range(start_index, longer.node_count):
        if rng.uniform(0.0, 100.0) < junk_dna_probability:
            tail_0.append(longer.waypoints[index])
        if rng.uniform(0.0, 100.0) < junk_dna_probability:
            tail_1.append(longer.waypoints[index])
    return tail_0, tail_1


def _build_offspring(
    factory: PathFactory,
    genes: List[np.ndarray],
    shorter: PathIndividual,
    longer: PathIndividual,
    strategy: str,
    extra: Optional[Dict] = None
) -> PathIndividual:
    metadata = {
        'creation_method': strategy,
        'parent_ids': [shorter.id, longer.id],
    }
    metadata.update(extra or {})
    return factory.create_from_waypoints(np.vstack(genes), metadata)


def single_point_crossover(
    parent_a: PathIndividual,
    parent_b: PathIndividual,
    config: Dict,
    rng: np.random.Generator,
    factory: PathFactory
) -> Tuple[PathIndividual, PathIndividual, int]:
    """
    Combine two parents around one crossover point.

    A point p is drawn uniformly in [0, len(shorter)]. Before p offspring 0
    copies the shorter parent and offspring 1 the longer one; from p on the
    roles swap. Waypoints beyond the shorter parent's length are junk DNA.

    Args:
        parent_a: First parent
        parent_b: Second parent
        config: GA configuration
        rng: Random number generator
        factory: Path factory creating the offspring

    Returns:
        Tuple of (offspring_0, offspring_1, crossover_point)
    """
    junk_dna_probability = config.get('crossover', {}).get('junk_dna_probability', 50.0)
    shorter, longer = order_by_length(parent_a, parent_b)

    crossover_point = int(rng.integers(0, shorter.node_count + 1))

    genes_0, genes_1 = [], []
    for index in range(shorter.node_count):
        if index < crossover_point:
            genes_0.append(shorter.waypoints[index])
            genes_1.append(longer.waypoints[index])
        else:
            genes_0.append(longer.waypoints[index])
            genes_1.append(shorter.waypoints[index])

    tail_0, tail_1 = _carry_junk_dna(longer, shorter.node_count, junk_dna_probability, rng)

    extra = {'crossover_point': crossover_point}
    offspring_0 = _build_offspring(factory, genes_0 + tail_0, shorter, longer, 'single_point', extra)
    offspring_1 = _build_offspring(factory, genes_1 + tail_1, shorter, longer, 'single_point', extra)

    return offspring_0, offspring_1, crossover_point


def uniform_crossover(
    parent_a: PathIndividual,
    parent_b: PathIndividual,
    config: Dict,
    rng: np.random.Generator,
    factory: PathFactory
) -> Tuple[PathIndividual, PathIndividual, List[str]]:
    """
    Combine two parents position by position.

    For each index shared by both parents a 50/50 draw decides whether
    offspring 0 takes the shorter parent's waypoint (and offspring 1 the
    longer's) or the reverse. Junk DNA is handled as in single-point
    crossover.

    Args:
        parent_a: First parent
        parent_b: Second parent
        config: GA configuration
        rng: Random number generator
        factory: Path factory creating the offspring

    Returns:
        Tuple of (offspring_0, offspring_1, mask) where mask[i] is "S" when
        offspring 0 inherited index i from the shorter parent and "L" otherwise
    """
    junk_dna_probability = config.get('crossover', {}).get('junk_dna_probability', 50.0)
    shorter, longer = order_by_length(parent_a, parent_b)

    genes_0, genes_1, mask = [], [], []
    for index in range(shorter.node_count):
        if rng.uniform(0.0, 100.0) < 50.0:
            genes_0.append(shorter.waypoints[index])
            genes_1.append(longer.waypoints[index])
            mask.append("S")
        else:
            genes_0.append(longer.waypoints[index])
            genes_1.append(shorter.waypoints[index])
            mask.append("L")

    tail_0, tail_1 = _carry_junk_dna(longer, shorter.node_count, junk_dna_probability, rng)

    extra = {'crossover_mask': "".join(mask)}
    offspring_0 = _build_offspring(factory, genes_0 + tail_0, shorter, longer, 'uniform', extra)
    offspring_1 = _build_offspring(factory, genes_1 + tail_1, shorter, longer, 'uniform', extra)

    return offspring_0, offspring_1, mask


def apply_crossover(
    parent_a: PathIndividual,
    parent_b: PathIndividual,
    config: Dict,
    rng: np.random.Generator,
    factory: PathFactory
) -> Tuple[PathIndividual, PathIndividual]:
    """
    Apply crossover using the configured operator.

    Args:
        parent_a: First parent
        parent_b: Second parent
        config: GA configuration
        rng: Random number generator
        factory: Path factory creating the offspring

    Returns:
        Tuple of (offspring_0, offspring_1)

    Raises:
        ValueError: If the operator is unknown
    """
    operator = config.get('crossover', {}).get('operator', 'single_point')

    if operator == 'single_point':
        offspring_0, offspring_1, _ = single_point_crossover(parent_a, parent_b, config, rng, factory)
    elif operator == 'uniform':
        offspring_0, offspring_1, _ = uniform_crossover(parent_a, parent_b, config, rng, factory)
    else:
        raise ValueError(f"Unknown crossover operator: {operator}")

    return offspring_0, offspring_1


def clone_parent(parent: PathIndividual, factory: PathFactory) -> PathIndividual:
    """Duplicate a parent into the next generation with an unchanged genome."""
    return factory.create_from_waypoints(
        parent.waypoints.copy(),
        {'creation_method': 'clone', 'parent_ids': [parent.id]}
    )


def recombine(
    mating_pool: List[PathIndividual],
    config: Dict,
    rng: np.random.Generator,
    factory: Optional[PathFactory] = None
) -> Tuple[List[PathIndividual], int]:
    """
    Produce the next generation from a mating pool.

    Pairs are consumed two at a time. For each pair R is drawn in [0, 100);
    when R < crossover.probability the pair is recombined, otherwise both
    parents are cloned unchanged. A trailing individual of an odd-sized
    pool is cloned forward unmodified.

    Args:
        mating_pool: Selected parents
        config: GA configuration
        rng: Random number generator
        factory: Path factory creating the offspring

    Returns:
        Tuple of (new_population, crossover_count); the new population has
        the same size as the mating pool
    """
    if factory is None:
        factory = PathFactory()

    crossover_probability = config.get('crossover', {}).get('probability', 70.0)

    new_population = []
    crossover_count = 0

    for index in range(0, len(mating_pool) - 1, 2):
        parent_a = mating_pool[index]
        parent_b = mating_pool[index + 1]

        if rng.uniform(0.0, 100.0) < crossover_probability:
            new_population.extend(apply_crossover(parent_a, parent_b, config, rng, factory))
            crossover_count += 1
        else:
            new_population.append(clone_parent(parent_a, factory))
            new_population.append(clone_parent(parent_b, factory))

    if len(mating_pool) % 2:
        new_population.append(clone_parent(mating_pool[-1], factory))

    return new_population, crossover_count


def crossover_statistics(
    offspring: PathIndividual,
    parent_a: PathIndividual,
    parent_b: PathIndividual
) -> Dict:
    """
    Calculate statistics about one crossover result.

    Args:
        offspring: Offspring individual
        parent_a: First parent
        parent_b: Second parent

    Returns:
        Dictionary with crossover statistics
    """
    shorter, longer = order_by_length(parent_a, parent_b)
    junk_tail = max(offspring.node_count - shorter.node_count, 0)
    return {
        'offspring_nodes': offspring.node_count,
        'shorter_parent_nodes': shorter.node_count,
        'longer_parent_nodes': longer.node_count,
        'junk_dna_carried': junk_tail,
        'junk_dna_available': longer.node_count - shorter.node_count,
    }
