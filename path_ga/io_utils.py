"""
I/O utilities for path evolution.

Handles CSV export of populations and generation logs and the YAML run
summary sidecar. Populations are exported for analysis only; nothing here
reads them back into a run.
"""

import csv
from dataclasses import fields
from pathlib import Path
from typing import List, Union

import yaml

from .data_models import GenerationStats, PathIndividual

POPULATION_COLUMNS = [
    'path_id', 'node_index', 'x', 'y', 'z', 'fitness',
    'is_in_obstacle', 'traveling_through_terrain', 'slope_too_intense',
    'can_see_target', 'has_reached_target', 'creation_method',
]

GENERATION_LOG_COLUMNS = [f.name for f in fields(GenerationStats)]


def _prepare_output(output_path: Union[str, Path], overwrite: bool, label: str) -> Path:
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"{label} already exists: {output_path}")

    # Create parent directory if needed
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return output_path


def save_population_to_csv(
    population: List[PathIndividual],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save a population to CSV, one row per waypoint.

    CSV format:
        path_id,node_index,x,y,z,fitness,is_in_obstacle,...,creation_method
        path_000041,0,0.0,0.0,0.0,312.5,False,...,single_point
        path_000041,1,12.3,-4.0,7.9,312.5,False,...,single_point
        ...

    Args:
        population: Population to save (evaluated or not)
        output_path: Path for output CSV
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved CSV file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = _prepare_output(output_path, overwrite, "Output file")

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(POPULATION_COLUMNS)

        for individual in population:
            evaluation = individual.evaluation
            flags = [
                evaluation.is_in_obstacle,
                evaluation.traveling_through_terrain,
                evaluation.slope_too_intense,
                evaluation.can_see_target,
                evaluation.has_reached_target,
            ] if evaluation is not None else [''] * 5
            creation_method = individual.metadata.get('creation_method', '')

            for node_index, (x, y, z) in enumerate(individual.waypoints):
                writer.writerow(
                    [individual.id, node_index, float(x), float(y), float(z), individual.fitness]
                    + flags
                    + [creation_method]
                )

    return output_path


def save_generation_log(
    history: List[GenerationStats],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save per-generation statistics to CSV file.

    Args:
        history: GenerationStats in generation order
        output_path: Path for output CSV
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved generation log

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = _prepare_output(output_path, overwrite, "Generation log")

    with open(output_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=GENERATION_LOG_COLUMNS)
        writer.writeheader()

        for stats in history:
            writer.writerow(stats.to_dict())

    return output_path


def save_metadata(
    metadata: dict,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save metadata to YAML sidecar file.

    Args:
        metadata: Metadata dictionary (plain Python types only)
        output_path: Path for output YAML
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved metadata file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = _prepare_output(output_path, overwrite, "Metadata file")

    with open(output_path, 'w') as f:
        yaml.safe_dump(metadata, f, default_flow_style=False, sort_keys=False)

    return output_path
