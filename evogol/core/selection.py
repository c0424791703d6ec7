"""
Selection strategies for choosing parents and mates in the evolutionary process.

This module contains concrete implementations of different selection
strategies. Each strategy turns one trial's fitness scores into organism
indices, drawing only from the generator it is handed.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from ..entities import ShapeError
from .rng import default_generator


class SelectionStrategy(ABC):
    """Abstract base class for different selection strategies."""

    @abstractmethod
    def sample(self, fitness: np.ndarray, size: int, rng: np.random.Generator) -> np.ndarray:
        """Draw `size` organism indices biased towards high fitness."""
        pass


class FitnessProportionateSelection(SelectionStrategy):
    """
    Select organisms with probability proportional to their fitness.

    `smoothing` is added to every score so that weak organisms keep a nonzero
    chance of being chosen.
    """

    def __init__(self, smoothing: float = 1.0):
        if smoothing < 0:
            raise ValueError(f"smoothing must be non-negative, got {smoothing}")
        self.smoothing = smoothing

    def sample(self, fitness: np.ndarray, size: int, rng: np.random.Generator) -> np.ndarray:
        weights = np.maximum(fitness.astype(np.float64), 0) + self.smoothing
        total = weights.sum()

        # Handle case where all scores are equal or all weights are 0
        if total <= 0 or not np.isfinite(total) or np.all(weights == weights[0]):
            return rng.integers(0, len(fitness), size=size)

        return rng.choice(len(fitness), size=size, p=weights / total)


class TournamentSelection(SelectionStrategy):
    """Tournament selection for balanced exploration/exploitation."""

    def __init__(self, tournament_size: int = 3):
        if tournament_size < 1:
            raise ValueError(f"tournament_size must be at least 1, got {tournament_size}")
        self.tournament_size = tournament_size

    def sample(self, fitness: np.ndarray, size: int, rng: np.random.Generator) -> np.ndarray:
        # Contestants are drawn with replacement, so any organism can win
        contestants = rng.integers(0, len(fitness), size=(size, self.tournament_size))
        winners = np.argmax(fitness[contestants], axis=1)
        return contestants[np.arange(size), winners]


def create_selection_strategy(strategy_name: str = "fitness", **kwargs) -> SelectionStrategy:
    """
    Create a selection strategy by name.

    Args:
        strategy_name: One of "fitness", "tournament"
        **kwargs: Additional arguments for the strategy

    Returns:
        Configured SelectionStrategy
    """
    strategies = {
        "fitness": FitnessProportionateSelection,
        "tournament": TournamentSelection,
    }

    if strategy_name not in strategies:
        raise ValueError(f"Unknown strategy: {strategy_name}. Available: {list(strategies.keys())}")

    return strategies[strategy_name](**kwargs)


def select(fitness,
           rng: Optional[np.random.Generator] = None,
           strategy: Optional[SelectionStrategy] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Choose a parent and a mate for every slot of one trial's population.

    Args:
        fitness: 1D array of fitness scores, one per organism
        rng: Generator to draw from (a fixed-seed generator if omitted)
        strategy: Selection strategy (fitness-proportionate if omitted)

    Returns:
        Tuple of (parent_selections, mate_selections), each an int64 array
        with one organism index per population slot
    """
    fitness = np.asarray(fitness)
    if fitness.ndim != 1:
        raise ShapeError(f"Expected a 1D fitness array, got shape {fitness.shape}")
    if len(fitness) == 0:
        raise ValueError("Cannot select from empty population")

    rng = rng if rng is not None else default_generator()
    strategy = strategy or FitnessProportionateSelection()

    size = len(fitness)
    parent_selections = strategy.sample(fitness, size, rng).astype(np.int64)
    mate_selections = strategy.sample(fitness, size, rng).astype(np.int64)
    return parent_selections, mate_selections
