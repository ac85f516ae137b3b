"""
Genetic path evolution toward a 3D target.

This package evolves a population of candidate paths (polylines through 3D
space) toward a target location, re-evaluating and re-breeding the
population once per fixed time interval.

Key Features:
- Two-pass fitness evaluation with population-normalized blends
- Roulette wheel selection
- Single-point and uniform crossover with junk DNA for unequal genomes
- Translate, insert and delete mutation operators
- Time-interval scheduling with stats and visualization sinks

Modules:
- data_models: Core data structures (PathIndividual, PathEvaluation, GenerationStats)
- config: GA defaults, YAML loading and validation
- engine_interface: Geometry query provider contract and path factory
- fitness: Two-pass population scoring
- selection: Roulette wheel selection
- crossover: Single-point and uniform crossover operators
- mutation: Waypoint translation, insertion and deletion
- orchestration: Generation scheduler and command-line evolution run
- io_utils: CSV and YAML export
- visualization_utils: Fitness color coding
- cli: Run configuration loading and validation
"""

__version__ = "0.1.0"
__author__ = "Path Evolution Team"

from .data_models import PathIndividual, PathEvaluation, GenerationStats
from .engine_interface import GeometryQueryProvider, PathFactory
from .orchestration import GenerationOrchestrator

__all__ = [
    "PathIndividual",
    "PathEvaluation",
    "GenerationStats",
    "GeometryQueryProvider",
    "PathFactory",
    "GenerationOrchestrator",
]
