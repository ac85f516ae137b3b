"""
Tests for the generation orchestrator.
"""

import unittest
import numpy as np

from path_ga.config import build_ga_config
from path_ga.data_models import GenerationStats, PathIndividual
from path_ga.engine_interface import PathFactory
from path_ga.orchestration import (
    GenerationOrchestrator,
    OrchestratorState,
    generation_diagnostics,
    log_generation_stats,
)

from stub_provider import StubProvider, straight_path


class TestGenerationOrchestrator(unittest.TestCase):
    """Test scheduling, guards and generation bookkeeping."""

    def setUp(self):
        """Set up an orchestrator with recording sinks."""
        self.config = build_ga_config({
            'random_seed': 1,
            'population': {'size': 10, 'min_nodes': 3, 'max_nodes': 6},
            'mutation': {'probability': 50.0},
        })
        self.stats_received = []
        self.populations_received = []
        self.factory = PathFactory()
        self.orchestrator = GenerationOrchestrator(
            self.config,
            StubProvider(),
            start_location=[0.0, 0.0, 0.0],
            target_location=[300.0, 100.0, 0.0],
            factory=self.factory,
            stats_sinks=[self.stats_received.append],
            visualization_sinks=[self.populations_received.append],
        )
        self.orchestrator.initialize_population()

    def test_initial_population(self):
        population = self.orchestrator.population

        self.assertEqual(len(population), 10)
        self.assertEqual(self.factory.live_count, 10)
        for individual in population:
            self.assertTrue(3 <= individual.node_count <= 6)
            np.testing.assert_array_equal(individual.waypoints[0], [0.0, 0.0, 0.0])

    def test_waits_for_interval(self):
        """No generation runs until the accumulated time reaches the interval."""
        self.assertIsNone(self.orchestrator.maybe_run_generation(0.4))
        self.assertIsNone(self.orchestrator.maybe_run_generation(0.4))
        self.assertEqual(self.orchestrator.generation_count, 0)

        stats = self.orchestrator.maybe_run_generation(0.4)

        self.assertIsInstance(stats, GenerationStats)
        self.assertEqual(self.orchestrator.generation_count, 1)
        self.assertEqual(self.orchestrator.elapsed, 0.0)
        self.assertEqual(self.orchestrator.state, OrchestratorState.IDLE)

    def test_generation_commits_scored_population(self):
        stats = self.orchestrator.run_generation()
        population = self.orchestrator.population

        self.assertEqual(len(population), 10)
        fitness_values = [individual.fitness for individual in population]
        self.assertEqual(fitness_values, sorted(fitness_values, reverse=True))
        self.assertTrue(all(individual.evaluation is not None for individual in population))
        self.assertEqual(stats.generation, 0)
        self.assertEqual(stats.best_fitness, fitness_values[0])
        self.assertAlmostEqual(stats.average_fitness, np.mean(fitness_values))
        self.assertEqual(stats.maximum_fitness, 500.0)

    def test_sinks_receive_committed_results(self):
        stats = self.orchestrator.run_generation()

        self.assertEqual(self.stats_received, [stats])
        self.assertEqual(len(self.populations_received), 1)
        self.assertIs(self.populations_received[0], self.orchestrator.population)
        self.assertEqual(self.orchestrator.history, [stats])

    def test_previous_generation_released(self):
        """Only the committed population stays alive in the factory."""
        for _ in range(3):
            self.orchestrator.run_generation()

        self.assertEqual(self.factory.live_count, 10)

    def test_default_visualization_sink_colors_population(self):
        orchestrator = GenerationOrchestrator(
            self.config,
            StubProvider(),
            start_location=[0.0, 0.0, 0.0],
            target_location=[300.0, 100.0, 0.0],
            stats_sinks=[],
        )
        orchestrator.initialize_population()
        orchestrator.run_generation()

        self.assertTrue(all(individual.color_code is not None for individual in orchestrator.population))

    def test_missing_target_skips_generation(self):
        before = list(self.orchestrator.population)
        self.orchestrator.set_anchors(start_location=[0.0, 0.0, 0.0], target_location=None)

        with self.assertLogs('path_ga.orchestration', level='WARNING'):
            result = self.orchestrator.run_generation()

        self.assertIsNone(result)
        self.assertEqual(len(self.orchestrator.population), len(before))
        self.assertTrue(all(a is b for a, b in zip(self.orchestrator.population, before)))
        self.assertEqual(self.orchestrator.generation_count, 0)
        self.assertEqual(self.stats_received, [])

    def test_empty_population_skips_generation(self):
        self.orchestrator.population = []

        with self.assertLogs('path_ga.orchestration', level='WARNING'):
            self.assertIsNone(self.orchestrator.run_generation())

    def test_zero_total_fitness_skips_generation(self):
        config = build_ga_config({
            'population': {'size': 4},
            'fitness': {'weights': {
                'node_count': 0.0, 'proximity': 0.0, 'length': 0.0,
                'line_of_sight': 0.0, 'target_reached': 0.0, 'slope': 0.0,
            }},
        })
        orchestrator = GenerationOrchestrator(
            config, StubProvider(),
            start_location=[0.0, 0.0, 0.0], target_location=[10.0, 0.0, 0.0],
            rng=np.random.default_rng(0), stats_sinks=[],
        )
        orchestrator.initialize_population()
        before = list(orchestrator.population)

        with self.assertLogs('path_ga.orchestration', level='WARNING'):
            self.assertIsNone(orchestrator.run_generation())

        self.assertEqual(len(orchestrator.population), len(before))
        self.assertTrue(all(a is b for a, b in zip(orchestrator.population, before)))
        self.assertEqual(orchestrator.state, OrchestratorState.IDLE)

    def test_run_fixed_tick(self):
        completed = self.orchestrator.run(3, tick=0.5)

        self.assertEqual([stats.generation for stats in completed], [0, 1, 2])
        self.assertEqual(len(self.orchestrator.history), 3)

    def test_run_raises_when_generation_skipped(self):
        self.orchestrator.set_anchors(start_location=[0.0, 0.0, 0.0], target_location=None)

        with self.assertLogs('path_ga.orchestration', level='WARNING'):
            with self.assertRaises(RuntimeError):
                self.orchestrator.run(1)

    def test_initialize_requires_start(self):
        self.orchestrator.set_anchors(start_location=None, target_location=[1.0, 0.0, 0.0])

        with self.assertRaises(ValueError):
            self.orchestrator.initialize_population()

    def test_best_individual(self):
        self.orchestrator.run_generation()

        best = self.orchestrator.best_individual
        self.assertEqual(best.fitness, max(individual.fitness for individual in self.orchestrator.population))

    def test_snap_to_terrain(self):
        """Snapped genomes stay on the surface when nothing mutates them."""
        config = build_ga_config({
            'population': {'size': 6},
            'fitness': {'snap_to_terrain': True},
            'mutation': {'probability': 0.0},
        })
        orchestrator = GenerationOrchestrator(
            config, StubProvider(surface_height=0.0),
            start_location=[0.0, 0.0, 0.0], target_location=[200.0, 0.0, 0.0],
            rng=np.random.default_rng(4), stats_sinks=[],
        )
        orchestrator.initialize_population()
        orchestrator.run_generation()

        for individual in orchestrator.population:
            np.testing.assert_array_equal(individual.waypoints[:, 2], 0.0)

    def test_snap_to_terrain_after_mutation(self):
        """Mutated waypoints are snapped back before the final evaluation."""
        config = build_ga_config({
            'population': {'size': 20},
            'fitness': {'snap_to_terrain': True},
            'mutation': {
                'probability': 100.0,
                'translate_probability': 100.0,
                'insert_probability': 100.0,
                'delete_probability': 0.0,
            },
        })
        provider = StubProvider(
            surface_height=0.0,
            in_terrain=lambda start, end: min(start[2], end[2]) < 0.0,
        )
        orchestrator = GenerationOrchestrator(
            config, provider,
            start_location=[0.0, 0.0, 0.0], target_location=[200.0, 0.0, 0.0],
            rng=np.random.default_rng(4), stats_sinks=[],
        )
        orchestrator.initialize_population()
        stats = orchestrator.run_generation()

        self.assertIsNotNone(stats)
        self.assertGreater(stats.translation_mutations, 0)
        for individual in orchestrator.population:
            np.testing.assert_array_equal(individual.waypoints[:, 2], 0.0)
            self.assertFalse(individual.evaluation.traveling_through_terrain)

    def test_log_generation_stats(self):
        stats = self.orchestrator.run_generation()

        with self.assertLogs('path_ga.orchestration', level='INFO') as captured:
            log_generation_stats(stats)

        self.assertIn("Generation #0", captured.output[0])


class TestGenerationDiagnostics(unittest.TestCase):
    """Test the per-generation selection, crossover and mutation summary."""

    def test_diagnostics_from_steps(self):
        short_parent = straight_path("a", 2)
        long_parent = straight_path("b", 4)
        mating_pool = [short_parent, long_parent, short_parent, short_parent]
        child = PathIndividual(id="c", waypoints=long_parent.waypoints[:3],
                               metadata={'parent_ids': ["a", "b"]})
        clone = PathIndividual(id="d", waypoints=short_parent.waypoints,
                               metadata={'parent_ids': ["a"]})
        mutated_child = PathIndividual(id="c", waypoints=long_parent.waypoints,
                                       metadata={'parent_ids': ["a", "b"]})

        diagnostics = generation_diagnostics(mating_pool, [child, clone], [mutated_child, clone])

        self.assertEqual(diagnostics['distinct_parents'], 2)
        self.assertAlmostEqual(diagnostics['top_parent_share'], 0.75)
        self.assertEqual(diagnostics['junk_dna_carried'], 1)
        self.assertEqual(diagnostics['mutation_node_delta'], 1)

    def test_stats_carry_diagnostics(self):
        orchestrator = GenerationOrchestrator(
            build_ga_config({'population': {'size': 10}}),
            StubProvider(),
            start_location=[0.0, 0.0, 0.0], target_location=[300.0, 100.0, 0.0],
            rng=np.random.default_rng(3), stats_sinks=[],
        )
        orchestrator.initialize_population()

        stats = orchestrator.run_generation()

        self.assertTrue(1 <= stats.distinct_parents <= 10)
        self.assertTrue(0.1 <= stats.top_parent_share <= 1.0)
        self.assertGreaterEqual(stats.junk_dna_carried, 0)
        self.assertIn('distinct_parents', stats.to_dict())


if __name__ == '__main__':
    unittest.main()
