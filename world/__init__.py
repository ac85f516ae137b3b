"""
Path Evolution - Scene World

In-memory 3D scene answering the geometry queries of the path evolution.
"""

__version__ = "0.1.0"
__author__ = "Path Evolution Team"

# Export main classes for easy importing
from .scene import (
    Scene,
    SphereObstacle,
    BoxObstacle,
    FlatTerrain,
    HeightfieldTerrain
)

from .config_loader import create_scene_from_config, load_config, ConfigurationError

__all__ = [
    'Scene',
    'SphereObstacle',
    'BoxObstacle',
    'FlatTerrain',
    'HeightfieldTerrain',
    'create_scene_from_config',
    'load_config',
    'ConfigurationError'
]
