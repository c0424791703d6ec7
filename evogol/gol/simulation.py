"""
Batched Game of Life kernel.

The kernel advances a whole population of frames at once. Each frame is an
independent toroidal world; the batch axes only exist so that neighbour
counting and the update rule run as single vectorised operations.
"""

import logging
from typing import Tuple

import numpy as np

from ..entities import CELL_DTYPE, NUM_STEPS, WORLD_SIZE, ShapeError
from .grid import count_neighbors, validate_frame


logger = logging.getLogger(__name__)


class LifeKernel:
    """
    Steps batches of frames under the B3/S23 rule.

    All scratch buffers are allocated once per kernel, so repeated steps do
    not allocate. A kernel is bound to one batch shape.
    """

    def __init__(self, batch_shape: Tuple[int, ...] = (), size: int = WORLD_SIZE):
        self.batch_shape = tuple(int(dim) for dim in batch_shape)
        self.size = size
        frame_shape = self.batch_shape + (size, size)
        self._neighbors = np.empty(frame_shape, dtype=CELL_DTYPE)
        self._padded = np.empty(self.batch_shape + (size + 2, size + 2), dtype=CELL_DTYPE)
        self._born = np.empty(frame_shape, dtype=bool)
        self._survived = np.empty(frame_shape, dtype=bool)

    @property
    def frame_shape(self) -> Tuple[int, ...]:
        return self.batch_shape + (self.size, self.size)

    def step(self, frames: np.ndarray, out: np.ndarray) -> np.ndarray:
        """
        Write the next generation of `frames` into `out`.

        `out` must not alias `frames`; the update reads the complete previous
        generation before any cell of the next one is written.
        """
        count_neighbors(frames, out=self._neighbors, padded=self._padded)
        np.equal(self._neighbors, 3, out=self._born)
        np.equal(self._neighbors, 2, out=self._survived)
        np.logical_and(self._survived, frames, out=self._survived)
        np.logical_or(self._born, self._survived, out=self._born)
        np.copyto(out, self._born)
        return out

    def run(self, frames, num_steps: int = NUM_STEPS, record: bool = False) -> np.ndarray:
        """
        Advance frames for a fixed number of steps.

        Args:
            frames: Initial frames shaped batch_shape + (size, size)
            num_steps: Number of generations to simulate
            record: Keep every intermediate frame instead of just the last

        Returns:
            Final frames, or a trajectory shaped
            batch_shape + (num_steps + 1, size, size) when recording
        """
        frames = validate_frame(frames, self.size)
        if frames.shape != self.frame_shape:
            raise ShapeError(f"Kernel expects frames of shape {self.frame_shape}, got {frames.shape}")
        if num_steps < 0:
            raise ValueError(f"num_steps must be non-negative, got {num_steps}")

        if record:
            trajectory = np.empty(
                self.batch_shape + (num_steps + 1, self.size, self.size), dtype=CELL_DTYPE)
            trajectory[..., 0, :, :] = frames
            for t in range(num_steps):
                self.step(trajectory[..., t, :, :], out=trajectory[..., t + 1, :, :])
            return trajectory

        current = frames.copy()
        following = np.empty_like(current)
        for _ in range(num_steps):
            self.step(current, out=following)
            current, following = following, current
        return current


def simulate_frames(frames, num_steps: int = NUM_STEPS, record: bool = False) -> np.ndarray:
    """Simulate a batch of frames of any leading shape."""
    frames = np.asarray(frames)
    if frames.ndim < 2:
        raise ShapeError(f"Expected at least a 2D frame, got shape {frames.shape}")
    kernel = LifeKernel(frames.shape[:-2], frames.shape[-1])
    logger.debug(f"Simulating {frames.shape[:-2]} frames for {num_steps} steps (record={record})")
    return kernel.run(frames, num_steps, record=record)


def simulate_phenotype(frame, num_steps: int = NUM_STEPS) -> np.ndarray:
    """
    Simulate a single phenotype and return its full trajectory.

    Args:
        frame: A (WORLD_SIZE, WORLD_SIZE) frame
        num_steps: Number of generations to simulate

    Returns:
        Trajectory of shape (num_steps + 1, WORLD_SIZE, WORLD_SIZE)
    """
    frame = np.asarray(frame)
    if frame.shape != (WORLD_SIZE, WORLD_SIZE):
        raise ShapeError(f"Expected a ({WORLD_SIZE}, {WORLD_SIZE}) frame, got {frame.shape}")
    return LifeKernel().run(frame, num_steps, record=True)
