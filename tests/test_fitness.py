"""
Tests for trajectory scoring.
"""

import numpy as np
import pytest

from evogol.entities import WORLD_SIZE, FitnessGoal, ShapeError
from evogol.gol import patterns
from evogol.gol.fitness import minimum_steps, required_frames, score
from evogol.gol.simulation import simulate_phenotype


def trajectory_of(pattern, row=28, col=28, num_steps=12):
    return simulate_phenotype(patterns.place(pattern, row, col), num_steps)


def dead_trajectory(num_steps=12):
    return np.zeros((num_steps + 1, WORLD_SIZE, WORLD_SIZE), dtype=np.uint8)


class TestScoreShape:
    """Test score output shape and validation."""

    def test_batch_shape(self):
        trajectories = np.zeros((2, 3, 4, 10, WORLD_SIZE, WORLD_SIZE), dtype=np.uint8)
        scores = score(trajectories, FitnessGoal.EXPLODE)

        assert scores.shape == (2, 3, 4)
        assert scores.dtype == np.uint32

    @pytest.mark.parametrize("goal", list(FitnessGoal))
    def test_dead_trajectory_scores_zero(self, goal):
        assert score(dead_trajectory(), goal) == 0

    @pytest.mark.parametrize("goal", list(FitnessGoal))
    def test_too_few_frames(self, goal):
        requirement = required_frames(goal)
        minimum = requirement.trailing_frames + int(requirement.needs_initial)
        too_short = np.zeros((minimum - 1, WORLD_SIZE, WORLD_SIZE), dtype=np.uint8)

        with pytest.raises(ShapeError):
            score(too_short, goal)

    @pytest.mark.parametrize("goal", list(FitnessGoal))
    def test_minimum_steps_is_enough(self, goal):
        steps = minimum_steps(goal)

        assert score(dead_trajectory(steps), goal) == 0
        with pytest.raises(ShapeError):
            score(dead_trajectory(steps - 1), goal)

    def test_minimum_steps_values(self):
        assert minimum_steps(FitnessGoal.EXPLODE) == 1
        assert minimum_steps(FitnessGoal.SYMMETRY) == 0
        assert minimum_steps(FitnessGoal.GLIDERS) == 8

    def test_rejects_single_frame(self):
        with pytest.raises(ShapeError):
            score(np.zeros((WORLD_SIZE, WORLD_SIZE), dtype=np.uint8), FitnessGoal.SYMMETRY)

    def test_accepts_goal_numbers(self):
        assert score(dead_trajectory(), 0) == score(dead_trajectory(), FitnessGoal.EXPLODE)


class TestGoals:
    """Test each goal on patterns with known behaviour."""

    def test_explode_rewards_growth(self):
        assert score(trajectory_of(patterns.R_PENTOMINO, num_steps=30), FitnessGoal.EXPLODE) > 0

    def test_explode_clips_shrinking_patterns(self):
        frame = patterns.place(patterns.BLOCK, 10, 10) | patterns.place(patterns.BLINKER, 40, 40)
        frame[0, 0] = 1  # dies immediately
        trajectory = simulate_phenotype(frame, 5)

        assert score(trajectory, FitnessGoal.EXPLODE) == 0

    def test_explode_is_monotonic_in_final_population(self):
        trajectories = np.zeros((3, 2, WORLD_SIZE, WORLD_SIZE), dtype=np.uint8)
        trajectories[:, -1, 0, :10] = 1
        trajectories[1, -1, 1, :5] = 1
        trajectories[2, -1, 1, :20] = 1
        scores = score(trajectories, FitnessGoal.EXPLODE)

        assert scores[0] < scores[1] < scores[2]

    def test_still_life(self):
        assert score(trajectory_of(patterns.BLOCK), FitnessGoal.STILL_LIFE) == 4
        assert score(trajectory_of(patterns.BEEHIVE), FitnessGoal.STILL_LIFE) == 6
        assert score(trajectory_of(patterns.BLINKER), FitnessGoal.STILL_LIFE) == 0

    def test_two_cycle(self):
        assert score(trajectory_of(patterns.BLINKER), FitnessGoal.TWO_CYCLE) == 4
        assert score(trajectory_of(patterns.TOAD), FitnessGoal.TWO_CYCLE) > 0
        assert score(trajectory_of(patterns.BLOCK), FitnessGoal.TWO_CYCLE) == 0

    def test_three_cycle(self):
        assert score(trajectory_of(patterns.PULSAR, 20, 20), FitnessGoal.THREE_CYCLE) > 0
        assert score(trajectory_of(patterns.BLINKER), FitnessGoal.THREE_CYCLE) == 0

    def test_gliders(self):
        assert score(trajectory_of(patterns.GLIDER), FitnessGoal.GLIDERS) == 5
        assert score(trajectory_of(patterns.BLOCK), FitnessGoal.GLIDERS) == 0
        assert score(trajectory_of(patterns.BLINKER), FitnessGoal.GLIDERS) == 0

    def test_gliders_ignores_shift_invariant_still_life(self):
        """Full-row stripes look the same after any horizontal shift but never move."""
        frame = np.zeros((WORLD_SIZE, WORLD_SIZE), dtype=np.uint8)
        frame[::2, :] = 1
        trajectory = simulate_phenotype(frame, 20)

        np.testing.assert_array_equal(trajectory[-1], frame)
        assert score(trajectory, FitnessGoal.GLIDERS) == 0
        assert score(trajectory_of(patterns.GLIDER), FitnessGoal.GLIDERS) == 5

    def test_lightweight_spaceship_counts_as_glider(self):
        trajectory = trajectory_of(patterns.LIGHTWEIGHT_SPACESHIP, num_steps=16)

        assert score(trajectory, FitnessGoal.GLIDERS) == 9

    def test_left_to_right(self):
        half = WORLD_SIZE // 2
        trajectory = np.zeros((2, WORLD_SIZE, WORLD_SIZE), dtype=np.uint8)
        trajectory[0, 0, :3] = 1
        trajectory[1, 0, half:half + 3] = 1

        assert score(trajectory, FitnessGoal.LEFT_TO_RIGHT) == 6
        assert score(trajectory[::-1], FitnessGoal.LEFT_TO_RIGHT) == 0

    def test_symmetry(self):
        half = WORLD_SIZE // 2
        symmetric = np.zeros((1, WORLD_SIZE, WORLD_SIZE), dtype=np.uint8)
        symmetric[0, 10:12, half - 1:half + 1] = 1
        lopsided = np.zeros((1, WORLD_SIZE, WORLD_SIZE), dtype=np.uint8)
        lopsided[0, 10, 0] = 1

        assert score(symmetric, FitnessGoal.SYMMETRY) == 4
        assert score(lopsided, FitnessGoal.SYMMETRY) == 0
