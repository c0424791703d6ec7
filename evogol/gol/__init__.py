"""
Game of Life engine for EvoGoL: toroidal grids, the batched Life kernel,
reference patterns and fitness scoring.
"""

from .grid import count_live, count_neighbors, empty_frame, validate_frame
from .simulation import LifeKernel, simulate_frames, simulate_phenotype
from .fitness import minimum_steps, required_frames, score

__all__ = [
    "count_live",
    "count_neighbors",
    "empty_frame",
    "validate_frame",
    "LifeKernel",
    "simulate_frames",
    "simulate_phenotype",
    "minimum_steps",
    "required_frames",
    "score",
]
