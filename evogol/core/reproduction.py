"""
Reproduction operators: random initialisation, uniform crossover and mutation.

Populations are GENOTYPE_DTYPE arrays whose last axis is the organism axis.
Every operator draws its random numbers in a fixed order from the generator
it is given, whatever the rates, so a seeded run replays exactly.
"""

from typing import Optional, Tuple

import numpy as np

from ..entities import (
    CELL_DTYPE,
    CROSSOVER_RATE,
    GENE_DTYPE,
    GENOTYPE_DTYPE,
    MAX_GENE_VALUE,
    MUTATION_RATE,
    NUM_GENES,
    STAMP_SIZE,
    ShapeError,
)
from .rng import default_generator


def random_population(shape: Tuple[int, ...], rng: np.random.Generator) -> np.ndarray:
    """Draw genotypes with uniform scalar genes and coin-flip stamp cells."""
    genotypes = np.empty(shape, dtype=GENOTYPE_DTYPE)
    genotypes["scalar_genes"] = rng.integers(
        0, MAX_GENE_VALUE, size=shape + (NUM_GENES,), dtype=GENE_DTYPE, endpoint=True)
    genotypes["stamp_genes"] = rng.integers(
        0, 2, size=shape + (NUM_GENES, STAMP_SIZE, STAMP_SIZE), dtype=CELL_DTYPE)
    return genotypes


def _check_rate(name: str, rate: float):
    if not 0.0 <= rate <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {rate}")


def _selection_array(selections, genotypes: np.ndarray, name: str) -> np.ndarray:
    selections = np.asarray(selections)
    if selections.size != genotypes.size:
        raise ShapeError(
            f"{name} has {selections.size} entries for a population of {genotypes.size}")
    if selections.size and not np.issubdtype(selections.dtype, np.integer):
        raise ShapeError(f"{name} must hold integer indices, got {selections.dtype}")
    selections = selections.astype(np.int64).reshape(genotypes.shape)

    num_organisms = genotypes.shape[-1]
    if np.any((selections < 0) | (selections >= num_organisms)):
        raise ValueError(f"{name} must index organisms in [0, {num_organisms})")
    return selections


def crossover(children: np.ndarray, mates: np.ndarray, rng: np.random.Generator, rate: float):
    """Replace each scalar and stamp gene of children with the mate's, in place."""
    gene_shape = children.shape + (NUM_GENES,)
    take_scalar = rng.random(gene_shape) < rate
    take_stamp = rng.random(gene_shape) < rate

    np.copyto(children["scalar_genes"], mates["scalar_genes"], where=take_scalar)
    np.copyto(children["stamp_genes"], mates["stamp_genes"], where=take_stamp[..., None, None])


def mutate(children: np.ndarray, rng: np.random.Generator, rate: float):
    """Redraw scalar genes and flip stamp cells of children, in place."""
    gene_shape = children.shape + (NUM_GENES,)
    redraw = rng.random(gene_shape) < rate
    fresh = rng.integers(0, MAX_GENE_VALUE, size=gene_shape, dtype=GENE_DTYPE, endpoint=True)
    np.copyto(children["scalar_genes"], fresh, where=redraw)

    flips = rng.random(gene_shape + (STAMP_SIZE, STAMP_SIZE)) < rate
    stamps = children["stamp_genes"]
    np.bitwise_xor(stamps, flips.astype(CELL_DTYPE), out=stamps)


def breed_population(genotypes,
                     parent_selections,
                     mate_selections,
                     rng: Optional[np.random.Generator] = None,
                     crossover_rate: float = CROSSOVER_RATE,
                     mutation_rate: float = MUTATION_RATE) -> np.ndarray:
    """
    Produce the next generation from selected parents and mates.

    Slot i of the result starts as a copy of genotypes[parent_selections[i]];
    each gene is independently swapped for the mate's with probability
    `crossover_rate`, then mutated with probability `mutation_rate`.

    Args:
        genotypes: GENOTYPE_DTYPE array; the last axis holds organisms
        parent_selections: Organism indices, shaped like genotypes or flat
        mate_selections: Organism indices, shaped like genotypes or flat
        rng: Generator to draw from (a fixed-seed generator if omitted)
        crossover_rate: Per-gene probability of inheriting from the mate
        mutation_rate: Per-gene (per-cell for stamps) mutation probability

    Returns:
        New GENOTYPE_DTYPE array with the same shape as genotypes
    """
    genotypes = np.asarray(genotypes)
    if genotypes.dtype != GENOTYPE_DTYPE:
        raise ShapeError(f"Expected genotypes of dtype {GENOTYPE_DTYPE}, got {genotypes.dtype}")
    if genotypes.ndim < 1 or genotypes.shape[-1] == 0:
        raise ShapeError(f"Expected at least one organism, got shape {genotypes.shape}")
    _check_rate("crossover_rate", crossover_rate)
    _check_rate("mutation_rate", mutation_rate)

    parents = _selection_array(parent_selections, genotypes, "parent_selections")
    mates = _selection_array(mate_selections, genotypes, "mate_selections")
    rng = rng if rng is not None else default_generator()

    children = np.take_along_axis(genotypes, parents, axis=-1)
    alternates = np.take_along_axis(genotypes, mates, axis=-1)
    crossover(children, alternates, rng, crossover_rate)
    mutate(children, rng, mutation_rate)
    return children
