"""
Grid primitives for toroidal Game of Life worlds.

Frames are uint8 arrays whose trailing two axes form a square grid of Cell
values. Every helper here accepts a whole batch of frames with any number of
leading axes, so the kernel can treat a population as a single array.
"""

from typing import Optional, Tuple

import numpy as np

from ..entities import CELL_DTYPE, STAMP_SIZE, WORLD_SIZE, Cell, ShapeError


# (row, col) offsets into a one-cell wrap-padded buffer, centre excluded
NEIGHBOR_OFFSETS: Tuple[Tuple[int, int], ...] = tuple(
    (row, col) for row in range(3) for col in range(3) if (row, col) != (1, 1)
)


def empty_frame(size: int = WORLD_SIZE) -> np.ndarray:
    """Return an all-DEAD frame."""
    return np.full((size, size), Cell.DEAD, dtype=CELL_DTYPE)


def empty_stamp() -> np.ndarray:
    """Return an all-DEAD stamp."""
    return empty_frame(STAMP_SIZE)


def validate_frame(frames, size: int = WORLD_SIZE) -> np.ndarray:
    """
    Check that frames form a batch of size x size grids of Cell values.

    Args:
        frames: Array-like whose trailing two axes are the grid
        size: Required grid edge length

    Returns:
        The frames as a CELL_DTYPE array (no copy when already uint8)
    """
    frames = np.asarray(frames)
    if frames.ndim < 2 or frames.shape[-2:] != (size, size):
        raise ShapeError(f"Expected frames ending in ({size}, {size}), got {frames.shape}")
    if frames.size and not np.isin(frames, (Cell.DEAD, Cell.ALIVE)).all():
        raise ShapeError("Frames may only contain Cell.DEAD or Cell.ALIVE")
    return frames.astype(CELL_DTYPE, copy=False)


def wrap_pad(frames: np.ndarray, padded: Optional[np.ndarray] = None) -> np.ndarray:
    """Copy frames into a buffer one cell larger on every side, wrapping edges."""
    if padded is None:
        rows, cols = frames.shape[-2:]
        padded = np.empty(frames.shape[:-2] + (rows + 2, cols + 2), dtype=frames.dtype)
    padded[..., 1:-1, 1:-1] = frames
    padded[..., 0, 1:-1] = frames[..., -1, :]
    padded[..., -1, 1:-1] = frames[..., 0, :]
    # Columns last, so the corners pick up the already-wrapped rows
    padded[..., :, 0] = padded[..., :, -2]
    padded[..., :, -1] = padded[..., :, 1]
    return padded


def count_neighbors(frames: np.ndarray,
                    out: Optional[np.ndarray] = None,
                    padded: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Count live toroidal neighbours of every cell in a batch of frames.

    The count is a sum of eight shifted windows over a wrap-padded copy of the
    frames. Passing preallocated `out` and `padded` buffers makes the call
    allocation-free.

    Args:
        frames: Array of shape (..., rows, cols) holding Cell values
        out: Optional uint8 buffer shaped like frames
        padded: Optional buffer of shape (..., rows + 2, cols + 2)

    Returns:
        Neighbour counts in the range 0-8, shaped like frames
    """
    rows, cols = frames.shape[-2:]
    padded = wrap_pad(frames, padded)
    if out is None:
        out = np.empty(frames.shape, dtype=CELL_DTYPE)

    first_row, first_col = NEIGHBOR_OFFSETS[0]
    np.copyto(out, padded[..., first_row:first_row + rows, first_col:first_col + cols])
    for row, col in NEIGHBOR_OFFSETS[1:]:
        np.add(out, padded[..., row:row + rows, col:col + cols], out=out)
    return out


def count_live(frames: np.ndarray) -> np.ndarray:
    """Number of live cells in each frame of a batch."""
    return np.count_nonzero(frames, axis=(-2, -1))
