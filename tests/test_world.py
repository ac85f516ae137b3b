"""
Test suite for the scene world: geometry queries, scene configuration
and plotting.
"""

import shutil
import tempfile
import unittest
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import numpy as np
import yaml

from world.scene import (
    Scene, SphereObstacle, BoxObstacle, FlatTerrain, HeightfieldTerrain
)
from world.config_loader import (
    ConfigurationError, load_config, create_scene_from_config, validate_scene_config
)
from world.visualization import ScenePlotter
from path_ga.config import build_ga_config
from path_ga.engine_interface import PathFactory
from path_ga.orchestration import GenerationOrchestrator


def p(*coords):
    return np.array(coords, dtype=float)


class TestObstacles(unittest.TestCase):
    """Test segment intersection of obstacles"""

    def setUp(self):
        self.sphere = SphereObstacle(center=[0, 0, 0], radius=5.0)
        self.box = BoxObstacle(min_corner=[0, 0, 0], max_corner=[10, 10, 10])

    def test_sphere_hit(self):
        self.assertTrue(self.sphere.intersects_segment(p(-10, 4, 0), p(10, 4, 0)))

    def test_sphere_miss(self):
        self.assertFalse(self.sphere.intersects_segment(p(-10, 6, 0), p(10, 6, 0)))

    def test_sphere_segment_pointing_away(self):
        self.assertFalse(self.sphere.intersects_segment(p(10, 0, 0), p(20, 0, 0)))

    def test_sphere_zero_length_segment(self):
        self.assertTrue(self.sphere.intersects_segment(p(1, 1, 1), p(1, 1, 1)))

    def test_box_crossing(self):
        self.assertTrue(self.box.intersects_segment(p(-5, 5, 5), p(15, 5, 5)))

    def test_box_parallel_outside(self):
        self.assertFalse(self.box.intersects_segment(p(-5, 20, 5), p(15, 20, 5)))

    def test_box_segment_stops_short(self):
        self.assertFalse(self.box.intersects_segment(p(-10, 5, 5), p(-1, 5, 5)))

    def test_box_diagonal_miss(self):
        self.assertFalse(self.box.intersects_segment(p(-5, 12, 5), p(5, 22, 5)))

    def test_box_segment_inside(self):
        self.assertTrue(self.box.intersects_segment(p(2, 2, 2), p(3, 3, 3)))

    def test_invalid_obstacles(self):
        with self.assertRaises(ValueError):
            SphereObstacle(center=[0, 0, 0], radius=0.0)
        with self.assertRaises(ValueError):
            BoxObstacle(min_corner=[0, 0, 0], max_corner=[1, -1, 1])


class TestTerrain(unittest.TestCase):
    """Test terrain heights and terrain queries"""

    def test_heightfield_bilinear(self):
        terrain = HeightfieldTerrain(heights=[[0, 0], [10, 10]], cell_size=10.0)

        self.assertAlmostEqual(terrain.height_at(5.0, 5.0), 5.0)
        self.assertAlmostEqual(terrain.height_at(0.0, 10.0), 10.0)
        self.assertAlmostEqual(terrain.height_at(100.0, 100.0), 10.0)
        self.assertAlmostEqual(terrain.height_at(-50.0, -50.0), 0.0)

    def test_heightfield_requires_grid(self):
        with self.assertRaises(ValueError):
            HeightfieldTerrain(heights=[[1, 2, 3]])

    def test_flat_terrain_segments(self):
        scene = Scene(terrain=FlatTerrain(height=0.0))

        self.assertTrue(scene.segment_in_terrain(p(0, 0, 1), p(10, 0, -1)))
        self.assertFalse(scene.segment_in_terrain(p(0, 0, 0), p(10, 0, 0)))

    def test_segment_through_hill(self):
        """Sampling along the segment finds a hill between two clear endpoints."""
        terrain = HeightfieldTerrain(heights=[[0, 0, 0], [0, 50, 0], [0, 0, 0]], cell_size=10.0)
        scene = Scene(terrain=terrain, terrain_sample_step=5.0)

        self.assertTrue(scene.segment_in_terrain(p(0, 10, 20), p(20, 10, 20)))
        self.assertFalse(scene.segment_in_terrain(p(0, 10, 60), p(20, 10, 60)))

    def test_no_terrain(self):
        self.assertFalse(Scene().segment_in_terrain(p(0, 0, -100), p(1, 1, -100)))

    def test_project_to_surface(self):
        terrain = HeightfieldTerrain(heights=[[0, 0], [10, 10]], cell_size=10.0)

        projected = Scene(terrain=terrain).project_to_surface(p(5, 5, 99))

        np.testing.assert_array_almost_equal(projected, [5, 5, 5])
        np.testing.assert_array_equal(Scene().project_to_surface(p(1, 2, 3)), [1, 2, 3])


class TestSceneQueries(unittest.TestCase):
    """Test the scene as geometry query provider"""

    def setUp(self):
        self.scene = Scene(
            start=[0, 0, 0],
            target=[100, 0, 0],
            obstacles=[SphereObstacle(center=[50, 0, 0], radius=10.0)],
            terrain=FlatTerrain(height=-5.0),
        )

    def test_segment_blocked(self):
        self.assertTrue(self.scene.segment_blocked(p(0, 0, 0), p(100, 0, 0)))
        self.assertFalse(self.scene.segment_blocked(p(0, 30, 0), p(100, 30, 0)))

    def test_line_of_sight(self):
        self.assertFalse(self.scene.has_line_of_sight(p(0, 0, 0), p(100, 0, 0)))
        self.assertTrue(self.scene.has_line_of_sight(p(80, 0, 0), p(100, 0, 0)))
        self.assertFalse(self.scene.has_line_of_sight(p(80, 0, -20), p(100, 0, 0)))

    def test_rejects_non_3d_points(self):
        with self.assertRaises(ValueError):
            self.scene.segment_blocked(p(0, 0), p(1, 1))


class TestSceneConfig(unittest.TestCase):
    """Test scene configuration loading and validation"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config = {
            'scene': {'start': [0, 0, 0], 'target': [300, 200, 0]},
            'terrain': {
                'type': 'heightfield',
                'heights': [[0, 0], [5, 5]],
                'cell_size': 100.0,
                'origin': [-50.0, -50.0],
                'sample_step': 2.0,
            },
            'obstacles': [
                {'type': 'sphere', 'name': 'rock', 'center': [100, 100, 0], 'radius': 20},
                {'type': 'box', 'min': [150, 0, 0], 'max': [160, 50, 40]},
            ],
        }

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_create_scene(self):
        scene = create_scene_from_config(self.config)

        np.testing.assert_array_equal(scene.start, [0, 0, 0])
        np.testing.assert_array_equal(scene.target, [300, 200, 0])
        self.assertEqual(len(scene.obstacles), 2)
        self.assertEqual(scene.obstacles[0].name, 'rock')
        self.assertEqual(scene.obstacles[1].name, 'box_1')
        self.assertIsInstance(scene.terrain, HeightfieldTerrain)
        self.assertEqual(scene.terrain.origin_x, -50.0)
        self.assertEqual(scene.terrain_sample_step, 2.0)

    def test_scene_without_terrain(self):
        del self.config['terrain']

        scene = create_scene_from_config(self.config)

        self.assertIsNone(scene.terrain)

    def test_validation_issues(self):
        self.config['scene'].pop('target')
        self.config['obstacles'].append({'type': 'cone'})
        self.config['obstacles'][0]['radius'] = -1

        issues = validate_scene_config(self.config)

        self.assertEqual(len(issues), 3)
        with self.assertRaises(ConfigurationError):
            create_scene_from_config(self.config)

    def test_load_config(self):
        path = Path(self.temp_dir) / "scene.yaml"
        with open(path, 'w') as f:
            yaml.safe_dump(self.config, f)

        self.assertEqual(load_config(str(path)), self.config)

    def test_load_missing_config(self):
        with self.assertRaises(ConfigurationError):
            load_config(str(Path(self.temp_dir) / "missing.yaml"))

    def test_repository_scene_is_valid(self):
        config = load_config(str(Path(__file__).parents[1] / "config.yaml"))

        self.assertEqual(validate_scene_config(config), [])


class TestScenePlotter(unittest.TestCase):
    """Test offline snapshots"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_plot_evolved_population(self):
        scene = Scene(
            start=[0, 0, 0],
            target=[150, 100, 0],
            obstacles=[
                SphereObstacle(center=[60, 40, 0], radius=15.0),
                BoxObstacle(min_corner=[90, 0, -5], max_corner=[100, 60, 30]),
            ],
            terrain=HeightfieldTerrain(heights=[[-5, -5], [0, 5]], cell_size=200.0, origin_x=-20, origin_y=-20),
        )
        orchestrator = GenerationOrchestrator(
            build_ga_config({'population': {'size': 6}}),
            scene,
            start_location=scene.start,
            target_location=scene.target,
            factory=PathFactory(),
            rng=np.random.default_rng(2),
            stats_sinks=[],
        )
        orchestrator.initialize_population()
        orchestrator.run(2)

        save_path = Path(self.temp_dir) / "population.png"
        ScenePlotter(scene).plot_population(orchestrator.population, orchestrator.history, save_path=str(save_path))

        self.assertTrue(save_path.exists())
        self.assertGreater(save_path.stat().st_size, 0)

    def test_plot_without_history(self):
        scene = Scene(start=[0, 0, 0], target=[10, 10, 10])
        population = [PathFactory().create_random(scene.start, 2, 3, 5.0, np.random.default_rng(0))]

        save_path = Path(self.temp_dir) / "paths.png"
        ScenePlotter(scene).plot_population(population, save_path=str(save_path))

        self.assertTrue(save_path.exists())


if __name__ == "__main__":
    unittest.main()
