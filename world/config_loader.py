"""
Scene Configuration Loading

Loads YAML scene files and converts them to the Scene used as geometry
query provider by the path evolution.
"""

import yaml
from typing import Dict, List, Any, Optional

from .scene import (
    Scene, SphereObstacle, BoxObstacle, FlatTerrain, HeightfieldTerrain,
    Obstacle, Terrain
)


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


OBSTACLE_TYPES = ("sphere", "box")
TERRAIN_TYPES = ("flat", "heightfield")


def load_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """Load configuration from YAML file"""
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")
    return config


def _is_point(value) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 3
        and all(isinstance(c, (int, float)) for c in value)
    )


def parse_obstacle(obstacle_config: Dict[str, Any], index: int = 0) -> Obstacle:
    """
    Parse one obstacle entry

    Args:
        obstacle_config: Obstacle dictionary with a 'type' key
        index: Position in the obstacle list, used for default names

    Returns:
        SphereObstacle or BoxObstacle
    """
    obstacle_type = obstacle_config.get("type")
    name = obstacle_config.get("name", f"{obstacle_type}_{index}")

    try:
        if obstacle_type == "sphere":
            return SphereObstacle(
                center=obstacle_config["center"],
                radius=obstacle_config["radius"],
                name=name
            )
        if obstacle_type == "box":
            return BoxObstacle(
                min_corner=obstacle_config["min"],
                max_corner=obstacle_config["max"],
                name=name
            )
    except KeyError as e:
        raise ConfigurationError(f"Obstacle {name} is missing field {e}")
    except ValueError as e:
        raise ConfigurationError(f"Obstacle {name}: {e}")

    raise ConfigurationError(f"Unknown obstacle type: {obstacle_type}")


def parse_terrain(terrain_config: Optional[Dict[str, Any]]) -> Optional[Terrain]:
    """Parse terrain section; None when the scene has no ground"""
    if not terrain_config:
        return None

    terrain_type = terrain_config.get("type", "flat")

    if terrain_type == "flat":
        return FlatTerrain(height=terrain_config.get("height", 0.0))

    if terrain_type == "heightfield":
        if "heights" not in terrain_config:
            raise ConfigurationError("Heightfield terrain requires 'heights'")
        origin = terrain_config.get("origin", [0.0, 0.0])
        try:
            return HeightfieldTerrain(
                heights=terrain_config["heights"],
                cell_size=terrain_config.get("cell_size", 1.0),
                origin_x=origin[0],
                origin_y=origin[1]
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid heightfield terrain: {e}")

    raise ConfigurationError(f"Unknown terrain type: {terrain_type}")


def create_scene_from_config(config: Dict[str, Any]) -> Scene:
    """
    Create a Scene from a loaded configuration

    Args:
        config: Scene configuration dictionary

    Returns:
        Configured Scene instance

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    issues = validate_scene_config(config)
    if issues:
        raise ConfigurationError("Invalid scene configuration: " + "; ".join(issues))

    scene_config = config.get("scene", {})
    terrain_config = config.get("terrain") or {}

    obstacles = [
        parse_obstacle(obstacle_config, index)
        for index, obstacle_config in enumerate(config.get("obstacles") or [])
    ]

    return Scene(
        start=scene_config.get("start"),
        target=scene_config.get("target"),
        obstacles=obstacles,
        terrain=parse_terrain(terrain_config),
        terrain_sample_step=terrain_config.get("sample_step", 5.0)
    )


def validate_scene_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate scene configuration and return list of issues

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    if "scene" not in config:
        issues.append("Missing required section: scene")
    else:
        scene_config = config["scene"] or {}
        for anchor in ("start", "target"):
            if anchor not in scene_config:
                issues.append(f"Missing scene.{anchor}")
            elif not _is_point(scene_config[anchor]):
                issues.append(f"scene.{anchor} must be a list of three numbers")

    terrain_config = config.get("terrain")
    if terrain_config:
        terrain_type = terrain_config.get("type", "flat")
        if terrain_type not in TERRAIN_TYPES:
            issues.append(f"Unknown terrain type: {terrain_type}")
        if terrain_config.get("sample_step", 5.0) <= 0:
            issues.append("terrain.sample_step must be positive")
        if terrain_type == "heightfield" and terrain_config.get("cell_size", 1.0) <= 0:
            issues.append("terrain.cell_size must be positive")

    for index, obstacle in enumerate(config.get("obstacles") or []):
        obstacle_type = obstacle.get("type")
        name = obstacle.get("name", f"{obstacle_type}_{index}")
        if obstacle_type not in OBSTACLE_TYPES:
            issues.append(f"Unknown obstacle type: {obstacle_type}")
        elif obstacle_type == "sphere":
            if not _is_point(obstacle.get("center")):
                issues.append(f"Obstacle {name} center must be a list of three numbers")
            if obstacle.get("radius", 0) <= 0:
                issues.append(f"Obstacle {name} radius must be positive")
        elif obstacle_type == "box":
            if not (_is_point(obstacle.get("min")) and _is_point(obstacle.get("max"))):
                issues.append(f"Obstacle {name} min and max must be lists of three numbers")
            elif any(lo > hi for lo, hi in zip(obstacle["min"], obstacle["max"])):
                issues.append(f"Obstacle {name} min must be <= max on every axis")

    return issues


def print_config_summary(config_path: str = "config.yaml"):
    """Print a summary of the configuration"""
    try:
        config = load_config(config_path)

        print("=" * 50)
        print("SCENE SUMMARY")
        print("=" * 50)

        scene_config = config.get("scene") or {}
        print(f"Start: {scene_config.get('start', 'N/A')}")
        print(f"Target: {scene_config.get('target', 'N/A')}")

        terrain_config = config.get("terrain")
        if terrain_config:
            print(f"Terrain: {terrain_config.get('type', 'flat')}")
        else:
            print("Terrain: none")

        obstacles = config.get("obstacles") or []
        print(f"\nObstacles ({len(obstacles)}):")
        for index, obstacle in enumerate(obstacles):
            obstacle_type = obstacle.get("type")
            print(f"  {obstacle.get('name', f'{obstacle_type}_{index}')}: {obstacle_type}")

        issues = validate_scene_config(config)
        if issues:
            print(f"\nValidation Issues ({len(issues)}):")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print("\nConfiguration is valid")

        print("=" * 50)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}")
