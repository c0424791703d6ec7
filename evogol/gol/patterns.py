"""
Well-known Game of Life patterns used as seeds, literal stamps and test fixtures.
"""

import numpy as np

from ..entities import CELL_DTYPE, STAMP_SIZE, WORLD_SIZE, ShapeError


def _pattern(rows):
    return np.array(rows, dtype=CELL_DTYPE)


# Travels one cell down and one cell right every 4 generations
GLIDER = _pattern([
    [0, 1, 0],
    [0, 0, 1],
    [1, 1, 1],
])

BLOCK = _pattern([
    [1, 1],
    [1, 1],
])

BEEHIVE = _pattern([
    [0, 1, 1, 0],
    [1, 0, 0, 1],
    [0, 1, 1, 0],
])

BLINKER = _pattern([
    [1, 1, 1],
])

TOAD = _pattern([
    [0, 1, 1, 1],
    [1, 1, 1, 0],
])

# Period 3 oscillator
_PULSAR_EDGE = [0, 0, 1, 1, 1, 0, 0, 0, 1, 1, 1, 0, 0]
_PULSAR_ARMS = [1, 0, 0, 0, 0, 1, 0, 1, 0, 0, 0, 0, 1]
_PULSAR_GAP = [0] * 13
PULSAR = _pattern(
    [_PULSAR_EDGE, _PULSAR_GAP] + [_PULSAR_ARMS] * 3 + [_PULSAR_EDGE, _PULSAR_GAP, _PULSAR_EDGE]
    + [_PULSAR_ARMS] * 3 + [_PULSAR_GAP, _PULSAR_EDGE]
)

LIGHTWEIGHT_SPACESHIP = _pattern([
    [0, 1, 0, 0, 1],
    [1, 0, 0, 0, 0],
    [1, 0, 0, 0, 1],
    [1, 1, 1, 1, 0],
])

R_PENTOMINO = _pattern([
    [0, 1, 1],
    [1, 1, 0],
    [0, 1, 0],
])

PATTERNS = {
    "glider": GLIDER,
    "block": BLOCK,
    "beehive": BEEHIVE,
    "blinker": BLINKER,
    "pulsar": PULSAR,
    "toad": TOAD,
    "lightweight_spaceship": LIGHTWEIGHT_SPACESHIP,
    "r_pentomino": R_PENTOMINO,
}


def place(pattern, row: int = 0, col: int = 0, size: int = WORLD_SIZE) -> np.ndarray:
    """
    Draw a pattern onto an empty size x size frame.

    The pattern's top-left corner lands at (row, col); cells past the edge
    wrap around like everything else on the torus.
    """
    pattern = np.asarray(pattern, dtype=CELL_DTYPE)
    if pattern.ndim != 2 or pattern.shape[0] > size or pattern.shape[1] > size:
        raise ShapeError(f"Pattern of shape {pattern.shape} does not fit a {size}x{size} frame")
    frame = np.zeros((size, size), dtype=CELL_DTYPE)
    frame[:pattern.shape[0], :pattern.shape[1]] = pattern
    return np.roll(frame, (row, col), axis=(0, 1))


def to_stamp(pattern) -> np.ndarray:
    """Pad a pattern with dead cells to a full STAMP_SIZE x STAMP_SIZE stamp."""
    return place(pattern, size=STAMP_SIZE)
