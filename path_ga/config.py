"""
GA configuration handling.

Defaults for every tunable, merging of user YAML over the defaults, and
validation of the merged configuration.
"""

import copy
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

import yaml


class ConfigValidationError(Exception):
    """Raised when a GA or run configuration is invalid."""
    pass


DEFAULT_GA_CONFIG: Dict[str, Any] = {
    'random_seed': None,
    'population': {
        'size': 20,
        'min_nodes': 5,
        'max_nodes': 5,
        'max_initial_variation': 40.0,
    },
    'generation_interval': 1.0,
    'fitness': {
        'weights': {
            'node_count': 100.0,
            'proximity': 100.0,
            'length': 100.0,
            'line_of_sight': 100.0,
            'target_reached': 100.0,
            'slope': 0.0,
        },
        'multipliers': {
            'obstacle_hit': 1.0,
            'slope_too_intense': 1.0,
            'pierces_terrain': 1.0,
        },
        'max_slope_angle': 45.0,
        'capture_radius': 100.0,
        'normalization_epsilon': 0.1,
        'snap_to_terrain': False,
    },
    'crossover': {
        'probability': 70.0,
        'operator': 'single_point',
        'junk_dna_probability': 50.0,
    },
    'mutation': {
        'probability': 5.0,
        'aggregate_select_one': False,
        'translate_probability': 33.333,
        'insert_probability': 33.333,
        'delete_probability': 33.333,
        'translation_type': 'box',
        'translation_target': 'random',
        'max_translation_offset': 50.0,
        'insertion_jitter': 10.0,
    },
    'visualization': {
        'invalid_color': [128, 128, 128, 255],
    },
}

CROSSOVER_OPERATORS = ('single_point', 'uniform')
TRANSLATION_TYPES = ('box', 'direction')
TRANSLATION_TARGETS = ('random', 'last')


def merge_config(base: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Recursively merge overrides into a copy of base.

    Args:
        base: Base configuration (left untouched)
        overrides: Values to apply on top (may be None)

    Returns:
        New merged configuration dictionary
    """
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def build_ga_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build a complete, validated GA configuration.

    Args:
        overrides: Partial configuration to merge over the defaults

    Returns:
        Complete configuration dictionary

    Raises:
        ConfigValidationError: If the merged configuration is invalid
    """
    config = merge_config(DEFAULT_GA_CONFIG, overrides)
    issues = validate_ga_config(config)
    if issues:
        raise ConfigValidationError("Invalid GA configuration:\n  - " + "\n  - ".join(issues))
    return config


def load_ga_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load GA configuration from a YAML file and merge it over the defaults.

    Args:
        config_path: Path to GA config YAML file

    Returns:
        Complete configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If YAML is invalid or values are out of range
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"GA config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            overrides = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in GA config file: {e}")

    if overrides is not None and not isinstance(overrides, dict):
        raise ConfigValidationError("GA config file must contain a mapping")

    return build_ga_config(overrides)


def _check_percentage(issues: List[str], section: Dict[str, Any], key: str, prefix: str) -> None:
    value = section.get(key)
    if not isinstance(value, (int, float)) or not 0.0 <= value <= 100.0:
        issues.append(f"{prefix}.{key} must be a percentage in [0, 100], got {value!r}")


def validate_ga_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate a merged GA configuration and return list of issues.

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    population = config.get('population', {})
    size = population.get('size')
    if not isinstance(size, int) or size <= 0:
        issues.append(f"population.size must be a positive integer, got {size!r}")
    elif size % 2:
        issues.append(f"population.size must be even so every mating pair is complete, got {size}")

    min_nodes = population.get('min_nodes')
    max_nodes = population.get('max_nodes')
    if not isinstance(min_nodes, int) or min_nodes < 1:
        issues.append(f"population.min_nodes must be an integer >= 1, got {min_nodes!r}")
    if not isinstance(max_nodes, int) or max_nodes < 1:
        issues.append(f"population.max_nodes must be an integer >= 1, got {max_nodes!r}")
    elif isinstance(min_nodes, int) and max_nodes < min_nodes:
        issues.append("population.max_nodes must be >= population.min_nodes")

    if population.get('max_initial_variation', 0) < 0:
        issues.append("population.max_initial_variation must be non-negative")

    interval = config.get('generation_interval')
    if not isinstance(interval, (int, float)) or interval <= 0:
        issues.append(f"generation_interval must be positive, got {interval!r}")

    fitness = config.get('fitness', {})
    for name, weight in fitness.get('weights', {}).items():
        if not isinstance(weight, (int, float)) or weight < 0:
            issues.append(f"fitness.weights.{name} must be non-negative, got {weight!r}")
    for name, multiplier in fitness.get('multipliers', {}).items():
        if not isinstance(multiplier, (int, float)) or not 0.0 <= multiplier <= 1.0:
            issues.append(f"fitness.multipliers.{name} must be in [0, 1], got {multiplier!r}")
    if not 0.0 <= fitness.get('max_slope_angle', 0.0) <= 90.0:
        issues.append("fitness.max_slope_angle must be in [0, 90] degrees")
    if fitness.get('capture_radius', 0.0) < 0:
        issues.append("fitness.capture_radius must be non-negative")
    if fitness.get('normalization_epsilon', 0.0) < 0:
        issues.append("fitness.normalization_epsilon must be non-negative")

    crossover = config.get('crossover', {})
    _check_percentage(issues, crossover, 'probability', 'crossover')
    _check_percentage(issues, crossover, 'junk_dna_probability', 'crossover')
    if crossover.get('operator') not in CROSSOVER_OPERATORS:
        issues.append(
            f"crossover.operator must be one of {CROSSOVER_OPERATORS}, got {crossover.get('operator')!r}"
        )

    mutation = config.get('mutation', {})
    for key in ('probability', 'translate_probability', 'insert_probability', 'delete_probability'):
        _check_percentage(issues, mutation, key, 'mutation')
    if mutation.get('translation_type') not in TRANSLATION_TYPES:
        issues.append(
            f"mutation.translation_type must be one of {TRANSLATION_TYPES}, "
            f"got {mutation.get('translation_type')!r}"
        )
    if mutation.get('translation_target') not in TRANSLATION_TARGETS:
        issues.append(
            f"mutation.translation_target must be one of {TRANSLATION_TARGETS}, "
            f"got {mutation.get('translation_target')!r}"
        )
    if mutation.get('max_translation_offset', 0) < 0:
        issues.append("mutation.max_translation_offset must be non-negative")
    if mutation.get('insertion_jitter', 0) < 0:
        issues.append("mutation.insertion_jitter must be non-negative")

    invalid_color = config.get('visualization', {}).get('invalid_color', [])
    if len(invalid_color) != 4 or not all(isinstance(c, int) and 0 <= c <= 255 for c in invalid_color):
        issues.append("visualization.invalid_color must be four integers in [0, 255]")

    return issues
