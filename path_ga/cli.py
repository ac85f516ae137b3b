"""
CLI module for path evolution.

Handles run configuration loading, validation, and dispatch to the
evolution run.
"""

from typing import Dict, Any
from pathlib import Path
import yaml

from .config import ConfigValidationError


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigValidationError("Configuration file is empty")

    if not isinstance(config, dict):
        raise ConfigValidationError("Configuration file must contain a mapping")

    return config


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate run configuration structure.

    Args:
        config: Run configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    # Check required sections
    for field in ['output', 'generation']:
        if field not in config:
            raise ConfigValidationError(f"Missing required field: '{field}'")

    # Validate referenced config files
    for field in ['scene_config', 'ga_config']:
        if field in config and not Path(config[field]).exists():
            raise ConfigValidationError(f"Referenced {field} not found: {config[field]}")

    # Validate output section
    if not isinstance(config['output'], dict):
        raise ConfigValidationError("'output' must be a dictionary")

    if 'root' not in config['output']:
        raise ConfigValidationError("Missing required field: 'output.root'")

    # Validate generation section
    if not isinstance(config['generation'], dict):
        raise ConfigValidationError("'generation' must be a dictionary")

    if 'count' not in config['generation']:
        raise ConfigValidationError("Missing required field: 'generation.count'")

    count = config['generation']['count']
    if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
        raise ConfigValidationError(
            f"'generation.count' must be a positive integer, got: {count}"
        )

    if 'tick' in config['generation']:
        tick = config['generation']['tick']
        if not isinstance(tick, (int, float)) or tick <= 0:
            raise ConfigValidationError(
                f"'generation.tick' must be a positive number, got: {tick}"
            )

    seed = config.get('random_seed')
    if seed is not None and (not isinstance(seed, int) or seed < 0):
        raise ConfigValidationError(
            f"'random_seed' must be a non-negative integer, got: {seed}"
        )


def run_from_config(config_path: str) -> None:
    """
    Load run configuration and execute the evolution run.

    This is the main entry point called by ga_cli.py.

    Args:
        config_path: Path to run configuration YAML file

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
        Various exceptions from the evolution run
    """
    # Load and validate config
    print(f"Loading configuration from: {config_path}")
    config = load_run_config(config_path)

    print(f"Validating configuration...")
    validate_run_config(config)

    from .orchestration import run_evolution
    run_evolution(config)

    print("\nRun completed successfully!")
