"""
EvoGoL - evolutionary search for Game of Life seed patterns.

Genotypes are rendered into initial frames by per-species phenotype programs,
simulated on a toroidal grid, scored against a fitness goal and bred into the
next generation.
"""

from .entities import (
    WORLD_SIZE,
    NUM_STEPS,
    NUM_GENES,
    STAMP_SIZE,
    CELLS_PER_STAMP,
    MAX_DRAWS,
    MAX_TRANSFORMS,
    MAX_ARGUMENTS,
    CROSSOVER_RATE,
    MUTATION_RATE,
    DEFAULT_SEED,
    GENOTYPE_DTYPE,
    Cell,
    FitnessGoal,
    TransformType,
    BiasMode,
    ComposeMode,
    ConfigError,
    ShapeError,
    Genotype,
    ScalarArgument,
    StampArgument,
    TransformOperation,
    DrawOperation,
    PhenotypeProgram,
)
from .gol import simulate_phenotype
from .phenotype import render_phenotype
from .core import Simulator, SimulatorConfig, breed_population, select, simulate_organism

__all__ = [
    "WORLD_SIZE",
    "NUM_STEPS",
    "NUM_GENES",
    "STAMP_SIZE",
    "CELLS_PER_STAMP",
    "MAX_DRAWS",
    "MAX_TRANSFORMS",
    "MAX_ARGUMENTS",
    "CROSSOVER_RATE",
    "MUTATION_RATE",
    "DEFAULT_SEED",
    "GENOTYPE_DTYPE",
    "Cell",
    "FitnessGoal",
    "TransformType",
    "BiasMode",
    "ComposeMode",
    "ConfigError",
    "ShapeError",
    "Genotype",
    "ScalarArgument",
    "StampArgument",
    "TransformOperation",
    "DrawOperation",
    "PhenotypeProgram",
    "Simulator",
    "SimulatorConfig",
    "simulate_phenotype",
    "render_phenotype",
    "simulate_organism",
    "breed_population",
    "select",
]
