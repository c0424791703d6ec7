"""
Population controller for evolving Game of Life phenotypes.

The Simulator owns a [species, trial, organism] population of genotypes, one
phenotype program per species and the fitness of every organism. Species
share a program, trials are independent replicates and organisms are the
unit of selection: breeding never mixes organisms across (species, trial)
groups.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..entities import (
    CELL_DTYPE,
    CROSSOVER_RATE,
    DEFAULT_SEED,
    FITNESS_DTYPE,
    GENOTYPE_DTYPE,
    MUTATION_RATE,
    NUM_STEPS,
    WORLD_SIZE,
    FitnessGoal,
    PhenotypeProgram,
    ShapeError,
)
from ..gol.fitness import minimum_steps, score
from ..gol.simulation import LifeKernel, simulate_phenotype
from ..phenotype.interpreter import render, validate_program
from .reproduction import breed_population, random_population
from .rng import RandomStream
from .selection import create_selection_strategy, select


logger = logging.getLogger(__name__)

# Called after each generation is scored; returning True stops evolution
GenerationCallback = Callable[[int, np.ndarray], Optional[bool]]


@dataclass
class SimulatorConfig:
    """Configuration for the population controller."""
    crossover_rate: float = CROSSOVER_RATE
    mutation_rate: float = MUTATION_RATE
    selection_strategy: str = "fitness"
    selection_params: Dict[str, Any] = field(default_factory=dict)
    num_steps: int = NUM_STEPS
    num_workers: int = 1
    seed: int = DEFAULT_SEED


class Simulator:
    """
    Runs the populate -> render -> simulate -> score -> select -> breed loop.

    All stochastic work draws from a RandomStream owned by the simulator, with
    one sub-stream per (species, trial) group, so a fixed seed reproduces a
    run exactly. Accessors hand out copies; the population is only written by
    the simulator's own methods.
    """

    def __init__(self, num_species: int, num_trials: int, num_organisms: int,
                 config: Optional[SimulatorConfig] = None):
        for name, value in (("num_species", num_species),
                            ("num_trials", num_trials),
                            ("num_organisms", num_organisms)):
            if int(value) <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        self._num_species = int(num_species)
        self._num_trials = int(num_trials)
        self._num_organisms = int(num_organisms)
        self.config = config or SimulatorConfig()
        if self.config.num_steps < 0:
            raise ValueError(f"num_steps must be non-negative, got {self.config.num_steps}")

        self.selection_strategy = create_selection_strategy(
            self.config.selection_strategy, **self.config.selection_params)
        self._stream = RandomStream(self.config.seed)

        self._programs: Optional[List[PhenotypeProgram]] = None
        self._genotypes = np.zeros(self.shape, dtype=GENOTYPE_DTYPE)
        self._fitness = np.zeros(self.shape, dtype=FITNESS_DTYPE)
        self.generation = 0

    @property
    def num_species(self) -> int:
        return self._num_species

    @property
    def num_trials(self) -> int:
        return self._num_trials

    @property
    def num_organisms(self) -> int:
        return self._num_organisms

    @property
    def size(self) -> int:
        return WORLD_SIZE

    @property
    def shape(self) -> Tuple[int, int, int]:
        return (self._num_species, self._num_trials, self._num_organisms)

    @property
    def programs(self) -> Optional[List[PhenotypeProgram]]:
        return list(self._programs) if self._programs is not None else None

    def seed(self, value: int):
        """Reseed the random stream used by every later stochastic operation."""
        self._stream.reseed(value)
        logger.debug(f"Simulator reseeded with {value}")

    def _groups(self):
        return np.ndindex(self._num_species, self._num_trials)

    def _require_population(self, action: str):
        if self._programs is None:
            raise ValueError(f"Cannot {action} before populate")

    def populate(self, programs: Sequence[PhenotypeProgram]):
        """
        Install one program per species and draw a fresh random population.

        Args:
            programs: Sequence of num_species PhenotypeProgram objects

        Raises:
            ShapeError: If the number of programs does not match num_species
            ConfigError: If any program is malformed
        """
        programs = list(programs)
        if len(programs) != self._num_species:
            raise ShapeError(f"Expected {self._num_species} programs, got {len(programs)}")
        validated = [validate_program(program) for program in programs]

        self._stream.advance()
        genotypes = np.empty(self.shape, dtype=GENOTYPE_DTYPE)
        for species, trial in self._groups():
            rng = self._stream.generator(species, trial)
            genotypes[species, trial] = random_population((self._num_organisms,), rng)

        self._programs = validated
        self._genotypes = genotypes
        self._fitness = np.zeros(self.shape, dtype=FITNESS_DTYPE)
        self.generation = 0
        logger.info(f"Populated {self.shape} organisms across {self._num_species} species")

    def propagate(self):
        """Select and breed every (species, trial) group from the current fitness."""
        self._require_population("propagate")

        self._stream.advance()
        next_generation = np.empty_like(self._genotypes)
        for species, trial in self._groups():
            rng = self._stream.generator(species, trial)
            parents, mates = select(
                self._fitness[species, trial], rng=rng, strategy=self.selection_strategy)
            next_generation[species, trial] = breed_population(
                self._genotypes[species, trial], parents, mates, rng=rng,
                crossover_rate=self.config.crossover_rate,
                mutation_rate=self.config.mutation_rate)

        self._genotypes = next_generation
        self.generation += 1
        logger.debug(f"Propagated to generation {self.generation}")

    def check_goal(self, goal: FitnessGoal) -> FitnessGoal:
        """
        Check that the configured horizon is long enough to score a goal.

        Raises:
            ValueError: If num_steps is shorter than the goal reads
        """
        goal = FitnessGoal(goal)
        needed = minimum_steps(goal)
        if self.config.num_steps < needed:
            raise ValueError(f"num_steps={self.config.num_steps} is too short for {goal.name}, "
                             f"which needs at least {needed}")
        return goal

    def render_all(self) -> np.ndarray:
        """Render every organism's initial frame."""
        self._require_population("render")
        frames = np.empty(self.shape + (WORLD_SIZE, WORLD_SIZE), dtype=CELL_DTYPE)

        def render_one(index):
            frames[index] = render(self._programs[index[0]], self._genotypes[index])

        indices = list(np.ndindex(*self.shape))
        if self.config.num_workers > 1:
            # Each task writes only its own slot, so results do not depend on scheduling
            with ThreadPoolExecutor(max_workers=self.config.num_workers) as pool:
                list(pool.map(render_one, indices))
        else:
            for index in indices:
                render_one(index)
        return frames

    def simulate(self) -> np.ndarray:
        """Render and step every organism, keeping only the final frames."""
        frames = self.render_all()
        kernel = LifeKernel(self.shape, WORLD_SIZE)
        return kernel.run(frames, self.config.num_steps, record=False)

    def simulate_and_record(self, goal: FitnessGoal) -> np.ndarray:
        """
        Render, step and score every organism, keeping full trajectories.

        Args:
            goal: FitnessGoal used to score the trajectories

        Returns:
            Array of shape [species, trials, organisms, steps + 1, size, size]
        """
        goal = self.check_goal(goal)
        frames = self.render_all()
        kernel = LifeKernel(self.shape, WORLD_SIZE)
        trajectories = kernel.run(frames, self.config.num_steps, record=True)
        self._fitness = score(trajectories, goal)
        logger.debug(f"Generation {self.generation} scored for {goal.name}: "
                     f"best={int(self._fitness.max())}")
        return trajectories

    def evolve(self, programs: Sequence[PhenotypeProgram], goal: FitnessGoal,
               num_generations: int, callback: Optional[GenerationCallback] = None):
        """
        Run a complete evolutionary experiment.

        Populates from `programs`, then repeats simulate_and_record(goal) and
        propagate() num_generations times.

        Args:
            programs: One PhenotypeProgram per species
            goal: FitnessGoal to optimise
            num_generations: Number of generations to run
            callback: Optional hook called with (generation, fitness) after
                each generation is scored; returning True stops the run before
                that generation is bred, leaving genotypes and fitness aligned
        """
        if num_generations < 0:
            raise ValueError(f"num_generations must be non-negative, got {num_generations}")
        goal = self.check_goal(goal)
        self.populate(programs)
        logger.info(f"Evolving for {num_generations} generations towards {goal.name}")

        for generation in range(num_generations):
            self.simulate_and_record(goal)
            if callback is not None and callback(generation, self.get_fitness_scores()):
                logger.info(f"Evolution stopped by callback after generation {generation}")
                return
            self.propagate()

    def get_fitness_scores(self) -> np.ndarray:
        """Snapshot of fitness shaped [species, trials, organisms]."""
        return self._fitness.copy()

    def get_genotypes(self) -> np.ndarray:
        """Snapshot of genotypes shaped [species, trials, organisms]."""
        return self._genotypes.copy()

    def get_statistics(self) -> Dict[str, Any]:
        """Get population statistics."""
        if self._programs is None:
            return {"count": 0, "generation": self.generation}

        return {
            "count": int(self._fitness.size),
            "generation": self.generation,
            "best_fitness": int(self._fitness.max()),
            "avg_fitness": float(self._fitness.mean()),
            "worst_fitness": int(self._fitness.min()),
        }


def simulate_organism(program: PhenotypeProgram, genotype, num_steps: int = NUM_STEPS) -> np.ndarray:
    """
    Render one genotype through a program and return its trajectory.

    Args:
        program: PhenotypeProgram to interpret the genotype with
        genotype: Genotype or GENOTYPE_DTYPE record
        num_steps: Number of generations to simulate

    Returns:
        Trajectory of shape (num_steps + 1, WORLD_SIZE, WORLD_SIZE)
    """
    validate_program(program)
    return simulate_phenotype(render(program, genotype), num_steps)
