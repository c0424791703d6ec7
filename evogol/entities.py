"""
Entity definitions for the EvoGoL evolutionary system.

This module contains the core data structures shared by the phenotype
interpreter, the Life kernel and the evolutionary loop: fixed capacities,
enumerations, phenotype program operations and genotypes.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Tuple

import numpy as np


# World and genome geometry
WORLD_SIZE = 64
NUM_STEPS = 100
NUM_GENES = 4
STAMP_SIZE = 8
CELLS_PER_STAMP = STAMP_SIZE * STAMP_SIZE

# Phenotype program capacities
MAX_DRAWS = 4
MAX_TRANSFORMS = 4
MAX_ARGUMENTS = 4

# Reproduction
CROSSOVER_RATE = 0.6
MUTATION_RATE = 0.001

DEFAULT_SEED = 42

CELL_DTYPE = np.uint8
GENE_DTYPE = np.uint32
FITNESS_DTYPE = np.uint32
MAX_GENE_VALUE = np.iinfo(GENE_DTYPE).max

GENOTYPE_DTYPE = np.dtype([
    ("scalar_genes", GENE_DTYPE, (NUM_GENES,)),
    ("stamp_genes", CELL_DTYPE, (NUM_GENES, STAMP_SIZE, STAMP_SIZE)),
])


class ConfigError(ValueError):
    """Raised when a phenotype program is malformed."""
    pass


class ShapeError(ValueError):
    """Raised when an array does not have the expected shape."""
    pass


class Cell(IntEnum):
    DEAD = 0
    ALIVE = 1


class FitnessGoal(IntEnum):
    EXPLODE = 0
    GLIDERS = 1
    LEFT_TO_RIGHT = 2
    STILL_LIFE = 3
    SYMMETRY = 4
    THREE_CYCLE = 5
    TWO_CYCLE = 6


class TransformType(IntEnum):
    NONE = 0
    ARRAY_1D = 1
    ARRAY_2D = 2
    COPY = 3
    CROP = 4
    DRAW = 5
    FLIP = 6
    MIRROR = 7
    QUARTER = 8
    ROTATE = 9
    SCALE = 10
    TEST = 11
    TILE = 12
    TRANSLATE = 13


class BiasMode(IntEnum):
    NONE = 0
    FIXED_VALUE = 1


class ComposeMode(IntEnum):
    NONE = 0
    OR = 1
    XOR = 2
    AND = 3


@dataclass(frozen=True)
class ScalarArgument:
    """A numeric operand read from a scalar gene or fixed by the program."""
    gene_index: int = 0
    bias: int = 0
    bias_mode: BiasMode = BiasMode.NONE

    @classmethod
    def gene(cls, gene_index: int) -> "ScalarArgument":
        return cls(gene_index=gene_index)

    @classmethod
    def fixed(cls, value: int) -> "ScalarArgument":
        return cls(bias=value, bias_mode=BiasMode.FIXED_VALUE)


@dataclass(frozen=True)
class StampArgument:
    """
    A stamp operand read from a stamp gene or fixed by the program.

    A literal stamp is kept as a tuple of row tuples so the argument stays
    hashable and comparable like the rest of the program.
    """
    gene_index: int = 0
    bias: Tuple[Tuple[int, ...], ...] = ()
    bias_mode: BiasMode = BiasMode.NONE

    def __post_init__(self):
        rows = tuple(tuple(int(cell) for cell in row) for row in self.bias)
        object.__setattr__(self, "bias", rows)

    @classmethod
    def gene(cls, gene_index: int) -> "StampArgument":
        return cls(gene_index=gene_index)

    @classmethod
    def fixed(cls, pattern: Any) -> "StampArgument":
        return cls(bias=pattern, bias_mode=BiasMode.FIXED_VALUE)


@dataclass(frozen=True)
class TransformOperation:
    """One step of a transform pipeline."""
    type: TransformType = TransformType.NONE
    args: Tuple[ScalarArgument, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class DrawOperation:
    """One compositional layer of a phenotype program."""
    compose_mode: ComposeMode = ComposeMode.OR
    stamp: StampArgument = field(default_factory=StampArgument)
    global_transforms: Tuple[TransformOperation, ...] = ()
    stamp_transforms: Tuple[TransformOperation, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "global_transforms", tuple(self.global_transforms))
        object.__setattr__(self, "stamp_transforms", tuple(self.stamp_transforms))


@dataclass(frozen=True)
class PhenotypeProgram:
    """Species-level recipe for interpreting any Genotype into a Frame."""
    draw_ops: Tuple[DrawOperation, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "draw_ops", tuple(self.draw_ops))


@dataclass(frozen=True, eq=False)
class Genotype:
    """
    Fixed-layout gene container for a single organism.

    The gene arrays are copied on construction and marked read-only, so a
    Genotype never changes after it is created.
    """
    scalar_genes: np.ndarray
    stamp_genes: np.ndarray

    def __post_init__(self):
        scalar_genes = np.array(self.scalar_genes, dtype=GENE_DTYPE)
        stamp_genes = np.array(self.stamp_genes, dtype=CELL_DTYPE)
        if scalar_genes.shape != (NUM_GENES,):
            raise ShapeError(
                f"Expected {NUM_GENES} scalar genes, got shape {scalar_genes.shape}")
        if stamp_genes.shape != (NUM_GENES, STAMP_SIZE, STAMP_SIZE):
            raise ShapeError(
                f"Expected stamp genes of shape {(NUM_GENES, STAMP_SIZE, STAMP_SIZE)}, "
                f"got {stamp_genes.shape}")
        scalar_genes.flags.writeable = False
        stamp_genes.flags.writeable = False
        object.__setattr__(self, "scalar_genes", scalar_genes)
        object.__setattr__(self, "stamp_genes", stamp_genes)

    @classmethod
    def zeros(cls) -> "Genotype":
        return cls(
            scalar_genes=np.zeros(NUM_GENES, dtype=GENE_DTYPE),
            stamp_genes=np.zeros((NUM_GENES, STAMP_SIZE, STAMP_SIZE), dtype=CELL_DTYPE))

    @classmethod
    def from_record(cls, record: Any) -> "Genotype":
        """Build a Genotype from one element of a GENOTYPE_DTYPE array."""
        return cls(scalar_genes=record["scalar_genes"], stamp_genes=record["stamp_genes"])

    def to_record(self) -> np.ndarray:
        """Return this Genotype as a 0-d GENOTYPE_DTYPE array."""
        record = np.zeros((), dtype=GENOTYPE_DTYPE)
        record["scalar_genes"] = self.scalar_genes
        record["stamp_genes"] = self.stamp_genes
        return record

    def __eq__(self, other):
        if not isinstance(other, Genotype):
            return NotImplemented
        return (np.array_equal(self.scalar_genes, other.scalar_genes) and
                np.array_equal(self.stamp_genes, other.stamp_genes))

    __hash__ = None


def as_genotype(genotype: Any) -> Genotype:
    """Accept a Genotype or a GENOTYPE_DTYPE record and return a Genotype."""
    if isinstance(genotype, Genotype):
        return genotype
    return Genotype.from_record(genotype)
