"""
Selection operators for path evolution.

Fitness-proportionate (roulette wheel) sampling of the mating pool.
"""

from collections import Counter
from typing import Dict, List

import numpy as np

from .data_models import PathIndividual


class SelectionError(ValueError):
    """Raised when the selection preconditions are not met."""
    pass


def roulette_wheel_selection(
    population: List[PathIndividual],
    total_fitness: float,
    count: int,
    rng: np.random.Generator
) -> List[PathIndividual]:
    """
    Build a mating pool by fitness-proportionate sampling with replacement.

    For every draw R in [0, 1) the population is walked in its current
    (fitness-sorted) order while accumulating fitness / total_fitness; the
    first individual where the running sum reaches R is selected.

    Args:
        population: Evaluated population
        total_fitness: Sum of all fitness values, must be positive
        count: Number of individuals to draw
        rng: Random number generator

    Returns:
        Mating pool of exactly `count` references into the population

    Raises:
        SelectionError: If the population is empty, total_fitness is not
            positive or count is negative
    """
    if not population:
        raise SelectionError("Cannot select from an empty population")
    if total_fitness <= 0.0:
        raise SelectionError(f"Total fitness must be positive, got {total_fitness}")
    if count < 0:
        raise SelectionError(f"Selection count must be non-negative, got {count}")

    shares = [individual.fitness / total_fitness for individual in population]

    # Rounding can leave the final running sum just below R
    fallback = next(
        (individual for individual in reversed(population) if individual.fitness > 0.0),
        population[-1]
    )

    mating_pool = []
    for _ in range(count):
        r = rng.random()
        accumulated = 0.0
        selected = fallback
        for individual, share in zip(population, shares):
            accumulated += share
            if accumulated >= r:
                selected = individual
                break
        mating_pool.append(selected)

    return mating_pool


def selection_frequencies(mating_pool: List[PathIndividual]) -> Dict[str, float]:
    """
    Empirical selection frequency per individual id.

    Args:
        mating_pool: Result of a selection step

    Returns:
        Dictionary mapping individual id to its share of the pool
    """
    if not mating_pool:
        return {}
    counts = Counter(individual.id for individual in mating_pool)
    return {individual_id: n / len(mating_pool) for individual_id, n in counts.items()}
