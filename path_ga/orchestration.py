"""
Orchestration module for path evolution.

Drives one generation per interval (evaluate, select, recombine, mutate,
evaluate) and the command-line evolution run built on top of it.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .data_models import GenerationStats, PathIndividual
from .engine_interface import GeometryQueryProvider, PathFactory
from .fitness import evaluate_population
from .selection import roulette_wheel_selection, selection_frequencies
from .crossover import crossover_statistics, recombine
from .mutation import mutate_population, mutation_statistics
from .visualization_utils import color_code_population

logger = logging.getLogger(__name__)

StatsSink = Callable[[GenerationStats], None]
VisualizationSink = Callable[[List[PathIndividual]], None]


class OrchestratorState(Enum):
    """Scheduler state of the orchestrator."""
    IDLE = "idle"
    RUNNING = "running"


def log_generation_stats(stats: GenerationStats) -> None:
    """Default stats sink: one info line per completed generation."""
    logger.info(
        "Generation #%d: average fitness %.3f / %.3f (factor %.3f), best %.3f, "
        "average nodes %.2f, crossovers %d, mutations t/i/d %d/%d/%d",
        stats.generation,
        stats.average_fitness,
        stats.maximum_fitness,
        stats.fitness_factor,
        stats.best_fitness,
        stats.average_node_count,
        stats.crossover_count,
        stats.translation_mutations,
        stats.insertion_mutations,
        stats.deletion_mutations,
    )


def generation_diagnostics(
    mating_pool: List[PathIndividual],
    recombined: List[PathIndividual],
    mutated: List[PathIndividual]
) -> Dict:
    """
    Summarize the selection, crossover and mutation steps of one generation.

    Args:
        mating_pool: Output of roulette wheel selection
        recombined: Population right after recombination
        mutated: The same population after mutation, index for index

    Returns:
        Dictionary with distinct_parents, top_parent_share, junk_dna_carried
        and mutation_node_delta
    """
    frequencies = selection_frequencies(mating_pool)
    parents = {individual.id: individual for individual in mating_pool}

    junk_dna_carried = 0
    for child in recombined:
        parent_ids = child.metadata.get('parent_ids', [])
        if len(parent_ids) == 2:
            stats = crossover_statistics(child, parents[parent_ids[0]], parents[parent_ids[1]])
            junk_dna_carried += stats['junk_dna_carried']

    mutation_node_delta = sum(
        mutation_statistics(before, after)['node_delta']
        for before, after in zip(recombined, mutated)
        if before is not after
    )

    return {
        'distinct_parents': len(frequencies),
        'top_parent_share': max(frequencies.values(), default=0.0),
        'junk_dna_carried': junk_dna_carried,
        'mutation_node_delta': mutation_node_delta,
    }


class GenerationOrchestrator:
    """
    Owns the population and runs one generation per configured interval.

    The orchestrator is idle between generations, accumulating elapsed time
    handed to maybe_run_generation(). Once the accumulated time reaches the
    generation interval it runs a full generation synchronously, commits the
    new population, notifies the sinks and goes back to idle.
    """

    def __init__(
        self,
        config: Dict,
        provider: GeometryQueryProvider,
        start_location=None,
        target_location=None,
        factory: Optional[PathFactory] = None,
        rng: Optional[np.random.Generator] = None,
        stats_sinks: Sequence[StatsSink] = (log_generation_stats,),
        visualization_sinks: Optional[Sequence[VisualizationSink]] = None
    ):
        """
        Args:
            config: Complete GA configuration
            provider: Geometry query provider
            start_location: Anchor the initial paths grow from
            target_location: Location the paths evolve toward
            factory: Path factory (a new one if omitted)
            rng: Random number generator (seeded from config['random_seed'] if omitted)
            stats_sinks: Callables receiving each GenerationStats
            visualization_sinks: Callables receiving each committed population;
                defaults to fitness color coding
        """
        self.config = config
        self.provider = provider
        self.start_location = None
        self.target_location = None
        self.set_anchors(start_location, target_location)

        self.factory = factory or PathFactory()
        self.rng = rng if rng is not None else np.random.default_rng(config.get('random_seed'))
        self.stats_sinks = list(stats_sinks)
        if visualization_sinks is None:
            invalid_color = config.get('visualization', {}).get('invalid_color', (128, 128, 128, 255))
            visualization_sinks = [lambda population: color_code_population(population, invalid_color)]
        self.visualization_sinks = list(visualization_sinks)

        self.state = OrchestratorState.IDLE
        self.elapsed = 0.0
        self.generation_count = 0
        self.population: List[PathIndividual] = []
        self.history: List[GenerationStats] = []

    def set_anchors(self, start_location=None, target_location=None) -> None:
        """Update the start and target anchors; None marks an anchor as unavailable."""
        self.start_location = None if start_location is None else np.asarray(start_location, dtype=float)
        self.target_location = None if target_location is None else np.asarray(target_location, dtype=float)

    @property
    def generation_interval(self) -> float:
        return float(self.config.get('generation_interval', 1.0))

    def initialize_population(self) -> List[PathIndividual]:
        """
        Create the first population by random walks from the start anchor.

        Returns:
            The new population

        Raises:
            ValueError: If the start anchor is not available
        """
        if self.start_location is None:
            raise ValueError("Cannot initialize population without a start location")

        population_config = self.config.get('population', {})
        size = population_config.get('size', 20)

        if self.population:
            self.factory.release(self.population)

        self.population = [
            self.factory.create_random(
                self.start_location,
                population_config.get('min_nodes', 5),
                population_config.get('max_nodes', 5),
                population_config.get('max_initial_variation', 40.0),
                self.rng,
            )
            for _ in range(size)
        ]
        logger.debug("Initialized population of %d paths", size)
        return self.population

    def maybe_run_generation(self, delta_time: float) -> Optional[GenerationStats]:
        """
        Advance the scheduler by delta_time.

        Args:
            delta_time: Time elapsed since the previous call

        Returns:
            GenerationStats if a generation completed, otherwise None
        """
        self.elapsed += delta_time
        if self.elapsed < self.generation_interval:
            return None

        self.elapsed = 0.0
        return self.run_generation()

    def _snap_to_terrain(self, population: List[PathIndividual]) -> List[PathIndividual]:
        snapped = []
        for individual in population:
            copy = individual.copy()
            copy.waypoints = np.array([self.provider.project_to_surface(p) for p in individual.waypoints])
            snapped.append(copy)
        return snapped

    def run_generation(self) -> Optional[GenerationStats]:
        """
        Run one full generation synchronously.

        Skips the generation with a warning, leaving the current population
        canonical, when an anchor is missing, the population is empty or the
        population has no positive fitness to select from.

        Returns:
            GenerationStats for the completed generation, or None if skipped
        """
        if self.start_location is None or self.target_location is None:
            logger.warning("Generation skipped: start or target location is not available")
            return None

        if not self.population:
            logger.warning("Generation skipped: population is empty")
            return None

        self.state = OrchestratorState.RUNNING
        try:
            population = self.population
            snap = self.config.get('fitness', {}).get('snap_to_terrain', False)
            if snap:
                population = self._snap_to_terrain(population)

            scored, aggregates = evaluate_population(
                population, self.target_location, self.provider, self.config
            )
            if aggregates.total_fitness <= 0.0:
                logger.warning(
                    "Generation skipped: total fitness is %.3f, nothing to select from",
                    aggregates.total_fitness
                )
                return None

            mating_pool = roulette_wheel_selection(
                scored, aggregates.total_fitness, len(scored), self.rng
            )
            offspring, crossover_count = recombine(mating_pool, self.config, self.rng, self.factory)
            recombined = list(offspring)
            mutation_counts = mutate_population(offspring, self.config, self.rng)
            diagnostics = generation_diagnostics(mating_pool, recombined, offspring)
            if snap:
                offspring = self._snap_to_terrain(offspring)

            final_population, final_aggregates = evaluate_population(
                offspring, self.target_location, self.provider, self.config
            )

            self.factory.release(self.population)
            self.population = final_population

            stats = GenerationStats.from_generation(
                self.generation_count, final_aggregates, crossover_count, mutation_counts, diagnostics
            )
            self.generation_count += 1
            self.history.append(stats)
        finally:
            self.state = OrchestratorState.IDLE

        for sink in self.visualization_sinks:
            sink(self.population)
        for sink in self.stats_sinks:
            sink(stats)

        return stats

    def run(self, generations: int, tick: Optional[float] = None) -> List[GenerationStats]:
        """
        Drive the scheduler with a fixed frame delta until `generations` complete.

        Args:
            generations: Number of generations to complete
            tick: Simulated frame delta (defaults to the generation interval)

        Returns:
            Stats of the generations completed by this call

        Raises:
            RuntimeError: If a generation is skipped, since the loop could not progress
        """
        tick = self.generation_interval if tick is None else tick
        if tick <= 0:
            raise ValueError(f"tick must be positive, got {tick}")

        completed = []
        while len(completed) < generations:
            self.elapsed += tick
            if self.elapsed < self.generation_interval:
                continue
            self.elapsed = 0.0
            stats = self.run_generation()
            if stats is None:
                raise RuntimeError(
                    f"Generation {self.generation_count} was skipped; see warnings above"
                )
            completed.append(stats)
        return completed

    @property
    def best_individual(self) -> Optional[PathIndividual]:
        """Highest-fitness individual of the committed population."""
        if not self.population:
            return None
        return max(self.population, key=lambda individual: individual.fitness)


def run_evolution(run_config: Dict) -> GenerationOrchestrator:
    """
    Evolve paths through a scene as described by a run configuration.

    Args:
        run_config: Run configuration dict from YAML

    Algorithm:
        1. Load GA config and scene config (from run_config references)
        2. Setup RNG (run_config['random_seed'] overrides the GA config seed)
        3. Build the scene and the orchestrator, initialize the population
        4. Run run_config['generation']['count'] generations at the simulated tick
        5. Write generation log, final population and run summary to output.root
        6. Optionally plot the final population
        7. Print summary report

    Returns:
        The orchestrator after the run
    """
    from world.config_loader import load_config, create_scene_from_config, print_config_summary
    from .config import load_ga_config
    from .io_utils import save_generation_log, save_population_to_csv, save_metadata

    print("=" * 70)
    print("PATH EVOLUTION")
    print("=" * 70)

    ga_config_path = run_config.get('ga_config', 'path_ga/ga_config.yaml')
    print(f"Loading GA config from: {ga_config_path}")
    ga_config = load_ga_config(ga_config_path)

    scene_config_path = run_config.get('scene_config', 'config.yaml')
    print(f"Loading scene config from: {scene_config_path}")
    print_config_summary(scene_config_path)
    scene = create_scene_from_config(load_config(scene_config_path))

    seed = run_config.get('random_seed', ga_config.get('random_seed'))
    if seed is None:
        seed = int(np.random.default_rng().integers(0, 2**31))
    ga_config['random_seed'] = seed
    print(f"Random seed: {seed}")

    output_root = Path(run_config['output']['root'])
    overwrite = run_config['output'].get('overwrite', False)
    if output_root.exists() and not overwrite:
        raise FileExistsError(
            f"Output directory already exists: {output_root}\n"
            f"Set 'output.overwrite: true' in config to overwrite"
        )
    output_root.mkdir(parents=True, exist_ok=overwrite)
    print(f"Output directory: {output_root}\n")

    orchestrator = GenerationOrchestrator(
        ga_config,
        scene,
        start_location=scene.start,
        target_location=scene.target,
        rng=np.random.default_rng(seed),
    )
    orchestrator.initialize_population()

    generations = run_config['generation']['count']
    tick = run_config['generation'].get('tick', ga_config['generation_interval'])
    print(f"Running {generations} generations "
          f"(interval {orchestrator.generation_interval}s, tick {tick}s)...")

    for stats in orchestrator.run(generations, tick):
        if (stats.generation + 1) % 10 == 0 or stats.generation == generations - 1:
            print(f"  Generation {stats.generation + 1}/{generations}: "
                  f"average {stats.average_fitness:.2f}, best {stats.best_fitness:.2f}")

    log_path = save_generation_log(orchestrator.history, output_root / 'generation_log.csv', overwrite)
    population_path = save_population_to_csv(
        orchestrator.population, output_root / 'final_population.csv', overwrite
    )

    best = orchestrator.best_individual
    summary = {
        'random_seed': seed,
        'generations': orchestrator.generation_count,
        'population_size': len(orchestrator.population),
        'final_average_fitness': orchestrator.history[-1].average_fitness if orchestrator.history else None,
        'best_path': {
            'id': best.id,
            'fitness': best.fitness,
            'nodes': best.node_count,
            'has_reached_target': best.evaluation.has_reached_target,
        } if best is not None and best.evaluation is not None else None,
    }
    summary_path = save_metadata(summary, output_root / 'run_summary.yaml', overwrite)

    if run_config['output'].get('plot', False):
        from world.visualization import ScenePlotter
        plot_path = output_root / 'population.png'
        ScenePlotter(scene).plot_population(orchestrator.population, orchestrator.history, save_path=plot_path)
        print(f"Plot: {plot_path}")

    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Generations: {orchestrator.generation_count}")
    if summary['best_path']:
        print(f"Best path: {best.id} (fitness {best.fitness:.2f}, {best.node_count} nodes)")
    print(f"Generation log: {log_path}")
    print(f"Final population: {population_path}")
    print(f"Run summary: {summary_path}")

    return orchestrator
