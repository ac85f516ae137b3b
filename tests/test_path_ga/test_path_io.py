"""
Tests for export utilities, GA and run configuration, and a full CLI run.
"""

import csv
import shutil
import tempfile
import unittest
from pathlib import Path

import numpy as np
import yaml

from path_ga.cli import load_run_config, validate_run_config, run_from_config
from path_ga.config import (
    ConfigValidationError,
    DEFAULT_GA_CONFIG,
    build_ga_config,
    load_ga_config,
    merge_config,
    validate_ga_config,
)
from path_ga.data_models import GenerationStats
from path_ga.fitness import evaluate_population
from path_ga.io_utils import save_generation_log, save_metadata, save_population_to_csv

from stub_provider import StubProvider, straight_path


class TestExport(unittest.TestCase):
    """Test CSV and YAML export."""

    def setUp(self):
        """Create temporary directory and an evaluated population."""
        self.temp_dir = tempfile.mkdtemp()
        population = [straight_path("a", 3), straight_path("b", 4, step=2.0)]
        self.population, _ = evaluate_population(
            population, np.array([50.0, 0.0, 0.0]), StubProvider(), build_ga_config()
        )

    def tearDown(self):
        """Clean up temporary directory."""
        shutil.rmtree(self.temp_dir)

    def test_population_csv(self):
        output = save_population_to_csv(self.population, Path(self.temp_dir) / "pop.csv")

        with open(output, newline='') as f:
            rows = list(csv.DictReader(f))

        self.assertEqual(len(rows), 7)
        self.assertEqual({row['path_id'] for row in rows}, {"a", "b"})
        b_rows = [row for row in rows if row['path_id'] == "b"]
        self.assertEqual([int(row['node_index']) for row in b_rows], [0, 1, 2, 3])
        self.assertEqual(float(b_rows[-1]['x']), 6.0)
        self.assertEqual(b_rows[0]['can_see_target'], 'True')

    def test_unevaluated_population_csv(self):
        output = save_population_to_csv([straight_path("raw", 2)], Path(self.temp_dir) / "raw.csv")

        with open(output, newline='') as f:
            rows = list(csv.DictReader(f))

        self.assertEqual(float(rows[0]['fitness']), 0.0)
        self.assertEqual(rows[0]['is_in_obstacle'], '')

    def test_no_silent_overwrite(self):
        output = Path(self.temp_dir) / "pop.csv"
        save_population_to_csv(self.population, output)

        with self.assertRaises(FileExistsError):
            save_population_to_csv(self.population, output)

        save_population_to_csv(self.population[:1], output, overwrite=True)
        with open(output, newline='') as f:
            self.assertEqual(len(list(csv.DictReader(f))), self.population[0].node_count)

    def test_generation_log(self):
        history = [
            GenerationStats(
                generation=i, average_fitness=100.0 + i, maximum_fitness=500.0,
                fitness_factor=(100.0 + i) / 500.0, average_node_count=5.0,
                best_fitness=200.0, crossover_count=7, translation_mutations=1,
                insertion_mutations=0, deletion_mutations=2,
            )
            for i in range(3)
        ]

        output = save_generation_log(history, Path(self.temp_dir) / "logs" / "generation_log.csv")

        with open(output, newline='') as f:
            rows = list(csv.DictReader(f))
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[2]['generation'], '2')
        self.assertEqual(float(rows[1]['average_fitness']), 101.0)
        self.assertEqual(rows[0]['deletion_mutations'], '2')

    def test_metadata_yaml(self):
        output = save_metadata({'random_seed': 3, 'best_path': {'id': 'a'}}, Path(self.temp_dir) / "summary.yaml")

        with open(output) as f:
            self.assertEqual(yaml.safe_load(f), {'random_seed': 3, 'best_path': {'id': 'a'}})


class TestGAConfig(unittest.TestCase):
    """Test GA configuration merging and validation."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_defaults_are_valid(self):
        self.assertEqual(validate_ga_config(DEFAULT_GA_CONFIG), [])

    def test_merge_keeps_base(self):
        merged = merge_config(DEFAULT_GA_CONFIG, {'crossover': {'operator': 'uniform'}})

        self.assertEqual(merged['crossover']['operator'], 'uniform')
        self.assertEqual(merged['crossover']['probability'], 70.0)
        self.assertEqual(DEFAULT_GA_CONFIG['crossover']['operator'], 'single_point')

    def test_odd_population_rejected(self):
        with self.assertRaises(ConfigValidationError):
            build_ga_config({'population': {'size': 7}})

    def test_issues_are_listed(self):
        config = merge_config(DEFAULT_GA_CONFIG, {
            'population': {'min_nodes': 6, 'max_nodes': 3},
            'fitness': {'multipliers': {'obstacle_hit': 1.5}},
            'crossover': {'operator': 'two_point'},
            'mutation': {'probability': 150.0, 'translation_type': 'ball'},
            'visualization': {'invalid_color': [0, 0, 300, 255]},
        })

        issues = validate_ga_config(config)

        self.assertEqual(len(issues), 6)
        self.assertTrue(any('max_nodes' in issue for issue in issues))
        self.assertTrue(any('obstacle_hit' in issue for issue in issues))

    def test_load_from_yaml(self):
        path = Path(self.temp_dir) / "ga.yaml"
        with open(path, 'w') as f:
            yaml.safe_dump({'population': {'size': 8}, 'mutation': {'probability': 10.0}}, f)

        config = load_ga_config(path)

        self.assertEqual(config['population']['size'], 8)
        self.assertEqual(config['population']['min_nodes'], 5)
        self.assertEqual(config['mutation']['probability'], 10.0)

    def test_load_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_ga_config(Path(self.temp_dir) / "missing.yaml")

    def test_load_invalid_yaml(self):
        path = Path(self.temp_dir) / "broken.yaml"
        path.write_text("population: [size: 8\n")

        with self.assertRaises(ConfigValidationError):
            load_ga_config(path)

    def test_packaged_defaults_load(self):
        config = load_ga_config(Path(__file__).parents[2] / "path_ga" / "ga_config.yaml")

        self.assertEqual(config['population']['size'], 20)
        self.assertEqual(config['fitness']['multipliers']['obstacle_hit'], 0.25)


class TestRunConfig(unittest.TestCase):
    """Test run configuration handling and a complete CLI run."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, name, data):
        path = self.temp_dir / name
        with open(path, 'w') as f:
            yaml.safe_dump(data, f)
        return path

    def _run_config(self, **overrides):
        scene_path = self._write("scene.yaml", {
            'scene': {'start': [0.0, 0.0, 0.0], 'target': [200.0, 0.0, 0.0]},
            'terrain': {'type': 'flat', 'height': -50.0},
            'obstacles': [{'type': 'sphere', 'center': [100.0, 50.0, 0.0], 'radius': 20.0}],
        })
        ga_path = self._write("ga.yaml", {'population': {'size': 8}})
        config = {
            'scene_config': str(scene_path),
            'ga_config': str(ga_path),
            'random_seed': 5,
            'generation': {'count': 4, 'tick': 0.5},
            'output': {'root': str(self.temp_dir / "run"), 'overwrite': False, 'plot': False},
        }
        config.update(overrides)
        return config

    def test_load_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_run_config(str(self.temp_dir / "missing.yaml"))

    def test_load_empty_file(self):
        path = self.temp_dir / "empty.yaml"
        path.write_text("")

        with self.assertRaises(ConfigValidationError):
            load_run_config(str(path))

    def test_validate_accepts_complete_config(self):
        validate_run_config(self._run_config())

    def test_validate_rejects_missing_output_root(self):
        with self.assertRaises(ConfigValidationError):
            validate_run_config(self._run_config(output={'overwrite': True}))

    def test_validate_rejects_bad_generation_count(self):
        with self.assertRaises(ConfigValidationError):
            validate_run_config(self._run_config(generation={'count': 0}))

    def test_validate_rejects_missing_scene(self):
        with self.assertRaises(ConfigValidationError):
            validate_run_config(self._run_config(scene_config=str(self.temp_dir / "nope.yaml")))

    def test_full_run_writes_outputs(self):
        run_path = self._write("run.yaml", self._run_config())

        run_from_config(str(run_path))

        output_root = self.temp_dir / "run"
        for name in ("generation_log.csv", "final_population.csv", "run_summary.yaml"):
            self.assertTrue((output_root / name).exists(), name)

        with open(output_root / "generation_log.csv", newline='') as f:
            log_rows = list(csv.DictReader(f))
        self.assertEqual(len(log_rows), 4)
        self.assertTrue(all(int(row['distinct_parents']) >= 1 for row in log_rows))
        with open(output_root / "run_summary.yaml") as f:
            summary = yaml.safe_load(f)
        self.assertEqual(summary['random_seed'], 5)
        self.assertEqual(summary['generations'], 4)
        self.assertEqual(summary['population_size'], 8)

    def test_existing_output_not_overwritten(self):
        (self.temp_dir / "run").mkdir()
        run_path = self._write("run.yaml", self._run_config())

        with self.assertRaises(FileExistsError):
            run_from_config(str(run_path))


if __name__ == '__main__':
    unittest.main()
