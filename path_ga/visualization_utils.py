"""
Visualization utilities for path evolution.

Derives display colors from fitness rank and penalty flags. Colors are
written to PathIndividual.color_code and never read back by the GA.
"""

from typing import List, Sequence, Tuple

from .data_models import PathIndividual, RGBA

RED: RGBA = (255, 0, 0, 255)
GREEN: RGBA = (0, 255, 0, 255)
DEFAULT_INVALID_COLOR: RGBA = (128, 128, 128, 255)


def lerp_color(start: RGBA, end: RGBA, t: float) -> RGBA:
    """Linear interpolation between two RGBA colors, t clamped to [0, 1]."""
    t = min(max(t, 0.0), 1.0)
    return tuple(int(round(a + (b - a) * t)) for a, b in zip(start, end))


def fitness_range(population: List[PathIndividual]) -> Tuple[float, float]:
    """Lowest and highest fitness in the population."""
    fitness_values = [individual.fitness for individual in population]
    return min(fitness_values), max(fitness_values)


def color_code_population(
    population: List[PathIndividual],
    invalid_color: Sequence[int] = DEFAULT_INVALID_COLOR
) -> None:
    """
    Assign a display color to every individual.

    Paths that hit an obstacle, climb too steeply or pierce the terrain get
    the invalid color. All others are blended from red (lowest fitness) to
    green (highest fitness).

    Args:
        population: Evaluated population
        invalid_color: RGBA color for penalized paths
    """
    if not population:
        return

    lowest, highest = fitness_range(population)
    spread = highest - lowest
    invalid_color = tuple(int(c) for c in invalid_color)

    for individual in population:
        evaluation = individual.evaluation
        if evaluation is not None and evaluation.is_penalized:
            individual.color_code = invalid_color
            continue

        t = (individual.fitness - lowest) / spread if spread > 0 else 1.0
        individual.color_code = lerp_color(RED, GREEN, t)


def color_to_matplotlib(color: RGBA) -> Tuple[float, float, float, float]:
    """Convert an 8-bit RGBA color to matplotlib's [0, 1] floats."""
    return tuple(c / 255.0 for c in color)
