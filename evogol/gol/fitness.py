"""
Fitness evaluation for recorded Game of Life trajectories.

Every goal maps a batch of trajectories shaped (..., steps + 1, rows, cols) to
a uint32 score per trajectory. Scores are only comparable within one goal.
A trajectory that is dead throughout always scores 0, the lowest value any
goal produces.
"""

from typing import Callable, Dict, NamedTuple

import numpy as np

from ..entities import FITNESS_DTYPE, FitnessGoal, ShapeError
from .grid import count_live


GLIDER_PERIOD = 4
MAX_GLIDER_SHIFT = 2


class FrameRequirement(NamedTuple):
    """How much of a trajectory a goal reads."""
    trailing_frames: int
    needs_initial: bool


def _frame(trajectories: np.ndarray, index: int) -> np.ndarray:
    return trajectories[..., index, :, :]


def _frames_equal(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.all(a == b, axis=(-2, -1))


def _explode(trajectories: np.ndarray) -> np.ndarray:
    return count_live(_frame(trajectories, -1)) - count_live(_frame(trajectories, 0))


def _still_life(trajectories: np.ndarray) -> np.ndarray:
    last, previous = _frame(trajectories, -1), _frame(trajectories, -2)
    stable = count_live(np.logical_and(last, previous))
    changed = count_live(last != previous)
    return stable - changed


def _two_cycle(trajectories: np.ndarray) -> np.ndarray:
    f1, f2, f3, f4 = (_frame(trajectories, -k) for k in range(1, 5))
    periodic = _frames_equal(f1, f3) & _frames_equal(f2, f4)
    # A still life is periodic too, but has no toggling cells
    toggling = count_live(f1 != f2)
    return np.where(periodic, toggling, 0)


def _three_cycle(trajectories: np.ndarray) -> np.ndarray:
    f1, f2, f3, f4, f5, f6 = (_frame(trajectories, -k) for k in range(1, 7))
    periodic = _frames_equal(f1, f4) & _frames_equal(f2, f5) & _frames_equal(f3, f6)
    varying = count_live((f1 != f2) | (f2 != f3))
    return np.where(periodic, varying, 0)


def _gliders(trajectories: np.ndarray) -> np.ndarray:
    last = _frame(trajectories, -1)
    one_period = _frame(trajectories, -1 - GLIDER_PERIOD)
    two_periods = _frame(trajectories, -1 - 2 * GLIDER_PERIOD)

    # Patterns that repeat in place are not moving, whatever shift they match
    moved = ~_frames_equal(one_period, last)
    translated = np.zeros(last.shape[:-2], dtype=bool)
    shifts = range(-MAX_GLIDER_SHIFT, MAX_GLIDER_SHIFT + 1)
    for row in shifts:
        for col in shifts:
            if row == 0 and col == 0:
                continue
            once = np.roll(one_period, (row, col), axis=(-2, -1))
            twice = np.roll(two_periods, (2 * row, 2 * col), axis=(-2, -1))
            translated |= _frames_equal(once, last) & _frames_equal(twice, last)
    return np.where(translated & moved, count_live(last), 0)


def _left_to_right(trajectories: np.ndarray) -> np.ndarray:
    half = trajectories.shape[-1] // 2

    def balance(frames):
        return count_live(frames[..., :, half:]) - count_live(frames[..., :, :half])

    return balance(_frame(trajectories, -1)) - balance(_frame(trajectories, 0))


def _symmetry(trajectories: np.ndarray) -> np.ndarray:
    last = _frame(trajectories, -1).astype(bool)
    mirrored = last[..., :, ::-1]
    matched = count_live(last & mirrored)
    unmatched = count_live(last & ~mirrored)
    return matched - unmatched


SCORERS: Dict[FitnessGoal, Callable[[np.ndarray], np.ndarray]] = {
    FitnessGoal.EXPLODE: _explode,
    FitnessGoal.GLIDERS: _gliders,
    FitnessGoal.LEFT_TO_RIGHT: _left_to_right,
    FitnessGoal.STILL_LIFE: _still_life,
    FitnessGoal.SYMMETRY: _symmetry,
    FitnessGoal.THREE_CYCLE: _three_cycle,
    FitnessGoal.TWO_CYCLE: _two_cycle,
}

REQUIREMENTS: Dict[FitnessGoal, FrameRequirement] = {
    FitnessGoal.EXPLODE: FrameRequirement(1, True),
    FitnessGoal.GLIDERS: FrameRequirement(2 * GLIDER_PERIOD + 1, False),
    FitnessGoal.LEFT_TO_RIGHT: FrameRequirement(1, True),
    FitnessGoal.STILL_LIFE: FrameRequirement(2, False),
    FitnessGoal.SYMMETRY: FrameRequirement(1, False),
    FitnessGoal.THREE_CYCLE: FrameRequirement(6, False),
    FitnessGoal.TWO_CYCLE: FrameRequirement(4, False),
}


def required_frames(goal: FitnessGoal) -> FrameRequirement:
    """Report which frames of a trajectory the given goal reads."""
    return REQUIREMENTS[FitnessGoal(goal)]


def minimum_steps(goal: FitnessGoal) -> int:
    """Fewest simulation steps whose trajectory the given goal can score."""
    requirement = REQUIREMENTS[FitnessGoal(goal)]
    return requirement.trailing_frames + int(requirement.needs_initial) - 1


def score(trajectories, goal: FitnessGoal) -> np.ndarray:
    """
    Score a batch of trajectories against a fitness goal.

    Args:
        trajectories: Array of shape (..., steps + 1, rows, cols)
        goal: The FitnessGoal to evaluate

    Returns:
        uint32 scores shaped like the leading batch axes
    """
    goal = FitnessGoal(goal)
    trajectories = np.asarray(trajectories)
    if trajectories.ndim < 3:
        raise ShapeError(f"Expected trajectories of at least 3 dimensions, got {trajectories.shape}")

    requirement = REQUIREMENTS[goal]
    minimum = requirement.trailing_frames + (1 if requirement.needs_initial else 0)
    if trajectories.shape[-3] < minimum:
        raise ShapeError(
            f"{goal.name} needs at least {minimum} frames, got {trajectories.shape[-3]}")

    raw = np.asarray(SCORERS[goal](trajectories), dtype=np.int64)
    return np.clip(raw, 0, np.iinfo(FITNESS_DTYPE).max).astype(FITNESS_DTYPE)
