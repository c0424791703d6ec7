"""
Controller for EvoGoL - evolutionary search for Game of Life seed patterns.

This module drives a Simulator through a complete experiment:
- Populating each species from its phenotype program
- Simulating and scoring every generation against a fitness goal
- Breeding the next generation through selection and reproduction
- Tracking parameters, per-generation metrics and the best organisms in MLflow
"""

import json
import logging
import tempfile
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import mlflow
import numpy as np

from ..entities import FitnessGoal, Genotype, PhenotypeProgram
from ..phenotype.programs import program_to_dict
from .simulator import Simulator, SimulatorConfig


logger = logging.getLogger(__name__)


@dataclass
class EvolutionConfig:
    """Configuration for the evolutionary process."""
    goal: FitnessGoal = FitnessGoal.EXPLODE
    num_generations: int = 100
    early_stopping_generations: int = 0  # Stop if no improvement for N generations (0 disables)
    verbose: bool = True
    num_best_organisms: int = 5

    # MLflow configuration
    experiment_name: str = "evogol_evolution"
    log_artifacts: bool = True
    tracking_uri: Optional[str] = None  # Use default local tracking if None


class EvolutionController:
    """
    Main controller for an evolutionary experiment.

    Each generation follows the simulator's core loop:
    1. initial frames = render(program, genotype) for every organism
    2. trajectories = simulate(frames)
    3. fitness = score(trajectories, goal)
    4. parents, mates = select(fitness) per (species, trial)
    5. genotypes = breed_population(genotypes, parents, mates)
    """

    def __init__(self,
                 simulator: Simulator,
                 programs: Sequence[PhenotypeProgram],
                 config: Optional[EvolutionConfig] = None):
        self.simulator = simulator
        self.programs = list(programs)
        self.config = config or EvolutionConfig()
        self.config.goal = simulator.check_goal(self.config.goal)

        # Track evolution statistics
        self.stats = {
            'generations_run': 0,
            'best_fitness_seen': 0,
            'best_generation': -1,
            'generations_without_improvement': 0,
            'early_stopped': False,
        }

        # Population snapshot from the generation that produced best_fitness_seen
        self._best_genotypes: Optional[np.ndarray] = None
        self._best_fitness: Optional[np.ndarray] = None
        self._current_generation = 0

        # Initialize MLflow tracking
        self._setup_mlflow()

    def _setup_mlflow(self):
        """Set up MLflow experiment."""
        if self.config.tracking_uri:
            mlflow.set_tracking_uri(self.config.tracking_uri)

        experiment = mlflow.get_experiment_by_name(self.config.experiment_name)
        if experiment is None:
            experiment_id = mlflow.create_experiment(self.config.experiment_name)
            logger.info(f"Created new MLflow experiment: {self.config.experiment_name}")
        else:
            experiment_id = experiment.experiment_id
            logger.info(f"Using existing MLflow experiment: {self.config.experiment_name}")

        mlflow.set_experiment(experiment_id=experiment_id)

    def run_evolution(self) -> Dict[str, Any]:
        """
        Run the complete evolutionary experiment.

        Returns:
            Dictionary containing evolution results and statistics
        """
        logger.info(f"Starting evolution for {self.config.num_generations} generations "
                    f"towards {self.config.goal.name}")

        with mlflow.start_run():
            return self._run_evolution_loop()

    def _log_params(self):
        params = asdict(self.config)
        params['goal'] = self.config.goal.name
        params.update({f"simulator_{key}": value
                       for key, value in asdict(self.simulator.config).items()})
        params.update({
            'num_species': self.simulator.num_species,
            'num_trials': self.simulator.num_trials,
            'num_organisms': self.simulator.num_organisms,
        })
        for key, value in params.items():
            if value is not None:
                mlflow.log_param(key, value)

    def _run_evolution_loop(self) -> Dict[str, Any]:
        """Run evolution loop with MLflow tracking."""
        self._log_params()

        if self.config.verbose:
            self._print_initial_stats()

        self._current_generation = 0
        try:
            self.simulator.evolve(self.programs, self.config.goal,
                                  self.config.num_generations, callback=self._on_generation)
        except Exception as e:
            logger.error(f"Error in generation {self._current_generation}: {e}")
            mlflow.log_metric("generation_errors", 1, step=self._current_generation)
            raise

        final_results = self._get_final_results()
        self._log_final_results(final_results)

        return final_results

    def _on_generation(self, generation: int, fitness: np.ndarray) -> bool:
        """Track a scored generation; returning True stops the simulator early."""
        result = self._record_generation(generation, fitness)
        self.stats['generations_run'] = generation + 1
        self._current_generation = generation + 1

        if self.config.verbose:
            self._print_generation_results(generation, result)

        mlflow.log_metrics({
            "generation_best_fitness": result['best_fitness'],
            "generation_mean_fitness": result['mean_fitness'],
            "generation_worst_fitness": result['worst_fitness'],
            "generations_without_improvement": self.stats['generations_without_improvement'],
        }, step=generation)

        if result['improved']:
            mlflow.log_metric("best_fitness", result['best_fitness'], step=generation)

        # Early stopping check
        if (self.config.early_stopping_generations > 0 and
                self.stats['generations_without_improvement'] >=
                self.config.early_stopping_generations):
            logger.info(f"Early stopping after {generation + 1} generations "
                        f"(no improvement for {self.config.early_stopping_generations})")
            self.stats['early_stopped'] = True
            mlflow.log_param("early_stopped", True)
            mlflow.log_param("early_stop_generation", generation + 1)
            return True
        return False

    def run_single_generation(self, generation: int) -> Dict[str, Any]:
        """
        Score the current population, record it, then breed the next one.

        Returns:
            Dictionary containing generation results
        """
        self.simulator.simulate_and_record(self.config.goal)
        result = self._record_generation(generation, self.simulator.get_fitness_scores())
        self.simulator.propagate()
        return result

    def _record_generation(self, generation: int, fitness: np.ndarray) -> Dict[str, Any]:
        """Update improvement statistics from a scored generation, before it is bred."""
        best = int(fitness.max())

        improved = best > self.stats['best_fitness_seen'] or self._best_fitness is None
        if improved:
            self.stats['best_fitness_seen'] = best
            self.stats['best_generation'] = generation
            self.stats['generations_without_improvement'] = 0
            self._best_genotypes = self.simulator.get_genotypes()
            self._best_fitness = fitness
        else:
            self.stats['generations_without_improvement'] += 1

        return {
            'generation': generation,
            'best_fitness': best,
            'mean_fitness': float(fitness.mean()),
            'worst_fitness': int(fitness.min()),
            'species_best_fitness': [int(v) for v in fitness.max(axis=(1, 2))],
            'improved': improved,
        }

    def _print_initial_stats(self):
        """Print initial population statistics."""
        print(f"\n=== Initial Population ===")
        print(f"Species: {self.simulator.num_species}")
        print(f"Trials per species: {self.simulator.num_trials}")
        print(f"Organisms per trial: {self.simulator.num_organisms}")
        print(f"Goal: {self.config.goal.name}")
        print()

    def _print_generation_results(self, generation: int, result: Dict[str, Any]):
        """Print results for a single generation."""
        status = "✓" if result['improved'] else " "
        species = ", ".join(f"{v}" for v in result['species_best_fitness'])

        print(f"Gen {generation + 1:3d}: {status} "
              f"Best: {result['best_fitness']:6d}  "
              f"Mean: {result['mean_fitness']:9.1f}  "
              f"Species best: [{species}]")

    def get_best_organisms(self, n: int) -> List[Dict[str, Any]]:
        """Get the top n organisms from the best generation seen."""
        if self._best_fitness is None:
            return []

        flat = self._best_fitness.ravel()
        order = np.argsort(flat, kind="stable")[::-1][:n]
        best = []
        for position in order:
            index = np.unravel_index(position, self._best_fitness.shape)
            record = self._best_genotypes[index]
            best.append({
                'species': int(index[0]),
                'trial': int(index[1]),
                'organism': int(index[2]),
                'fitness': int(flat[position]),
                'generation': self.stats['best_generation'],
                'scalar_genes': [int(v) for v in record['scalar_genes']],
                'stamp_genes': record['stamp_genes'].tolist(),
            })
        return best

    def get_best_organism(self) -> Tuple[Tuple[int, int, int], Genotype, int]:
        """
        Get the best organism seen during the run.

        Returns:
            Tuple of ((species, trial, organism), genotype, fitness)
        """
        if self._best_fitness is None:
            raise ValueError("No generations have been scored")

        index = np.unravel_index(np.argmax(self._best_fitness), self._best_fitness.shape)
        index = tuple(int(i) for i in index)
        genotype = Genotype.from_record(self._best_genotypes[index])
        return index, genotype, int(self._best_fitness[index])

    def _get_final_results(self) -> Dict[str, Any]:
        """Get final evolution results and statistics."""
        return {
            'evolution_stats': dict(self.stats),
            'population_stats': self.simulator.get_statistics(),
            'best_organisms': self.get_best_organisms(self.config.num_best_organisms),
        }

    def _log_final_results(self, results: Dict[str, Any]):
        """Log final evolution results to MLflow."""
        evolution_stats = results['evolution_stats']
        population_stats = results['population_stats']

        mlflow.log_metrics({
            "final_generations_run": evolution_stats['generations_run'],
            "final_best_fitness": evolution_stats['best_fitness_seen'],
            "final_population_count": population_stats['count'],
        })

        if self.config.log_artifacts and results.get('best_organisms'):
            with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
                json.dump(results['best_organisms'], f, indent=2)
            mlflow.log_artifact(f.name, "best_organisms")

            with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
                json.dump([program_to_dict(p) for p in self.programs], f, indent=2)
            mlflow.log_artifact(f.name, "programs")


# Factory function for easy controller creation
def create_evolution_controller(programs: Sequence[PhenotypeProgram],
                                num_trials: int = 1,
                                num_organisms: int = 32,
                                simulator_config: Optional[SimulatorConfig] = None,
                                config: Optional[EvolutionConfig] = None,
                                experiment_name: str = "evogol_evolution",
                                mlflow_tracking_uri: Optional[str] = None) -> EvolutionController:
    """
    Factory function to create a simulator and controller for the given programs.

    Args:
        programs: One PhenotypeProgram per species
        num_trials: Independent replicates per species
        num_organisms: Organisms per trial
        simulator_config: Simulator configuration (defaults if None)
        config: Evolution configuration (if None, will create with MLflow settings)
        experiment_name: Name for MLflow experiment
        mlflow_tracking_uri: MLflow tracking URI (if None, uses local tracking)

    Returns:
        Configured EvolutionController ready to run
    """
    programs = list(programs)

    if config is None:
        config = EvolutionConfig(
            experiment_name=experiment_name,
            tracking_uri=mlflow_tracking_uri
        )
    else:
        if experiment_name != "evogol_evolution":
            config.experiment_name = experiment_name
        if mlflow_tracking_uri is not None:
            config.tracking_uri = mlflow_tracking_uri

    simulator = Simulator(len(programs), num_trials, num_organisms, simulator_config)

    return EvolutionController(simulator=simulator, programs=programs, config=config)
