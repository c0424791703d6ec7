"""
Seeded random streams for the evolutionary loop.

Every stochastic phase of a run (populating, breeding) opens a new epoch, and
every (species, trial) group inside that phase draws from its own generator
derived from (seed, epoch, *index). Results therefore depend only on the seed
and the sequence of phases, never on the order in which groups are processed.
"""

from typing import Tuple

import numpy as np

from ..entities import DEFAULT_SEED


class RandomStream:
    """Index-addressable source of independent numpy generators."""

    def __init__(self, seed: int = DEFAULT_SEED):
        self.reseed(seed)

    def reseed(self, seed: int):
        """Restart the stream from a new seed."""
        seed = int(seed)
        if seed < 0:
            raise ValueError(f"Seed must be non-negative, got {seed}")
        self.seed = seed
        self.epoch = 0

    def advance(self) -> int:
        """Open the next epoch and return its number."""
        self.epoch += 1
        return self.epoch

    def spawn_key(self, *index: int) -> Tuple[int, ...]:
        return (self.epoch,) + tuple(int(i) for i in index)

    def generator(self, *index: int) -> np.random.Generator:
        """Return the generator for `index` within the current epoch."""
        sequence = np.random.SeedSequence(entropy=self.seed, spawn_key=self.spawn_key(*index))
        return np.random.default_rng(sequence)


def default_generator() -> np.random.Generator:
    """Generator used by the free operators when no stream is supplied."""
    return np.random.default_rng(DEFAULT_SEED)
