"""
Transform dispatch table for phenotype programs.

A transform maps a square boolean canvas to a new canvas of the same extent.
The same functions serve both pipelines of a draw operation: stamp transforms
run on a STAMP_SIZE canvas and global transforms on the WORLD_SIZE canvas, so
"extent" below always means the edge length of the canvas being transformed.

Arguments arrive as resolved unsigned integers and are folded into each
transform's domain, which lets any gene value drive any transform.
"""

from typing import Callable, Dict, NamedTuple, Sequence

import numpy as np

from ..entities import TransformType


MAX_SCALE = 4
MAX_REPLICAS = 8
DRAW_ROWS = 4
DRAW_COLS = 8

TransformFunction = Callable[[np.ndarray, Sequence[int]], np.ndarray]


class TransformSpec(NamedTuple):
    arity: int
    apply: TransformFunction


def _extent_arg(value: int, extent: int) -> int:
    """Fold a value into 1..extent, with 0 meaning the whole extent."""
    return value % extent or extent


def _identity(canvas, values):
    return canvas


def _translate(canvas, values):
    extent = canvas.shape[0]
    return np.roll(canvas, (values[0] % extent, values[1] % extent), axis=(0, 1))


def _rotate(canvas, values):
    return np.rot90(canvas, values[0] % 4)


def _flip(canvas, values):
    return np.flipud(canvas) if values[0] % 2 == 0 else np.fliplr(canvas)


def _mirror(canvas, values):
    return canvas | _flip(canvas, values)


def _scale(canvas, values):
    extent = canvas.shape[0]
    factor = 1 + values[0] % MAX_SCALE
    scaled = np.repeat(np.repeat(canvas, factor, axis=0), factor, axis=1)
    return scaled[:extent, :extent]


def _crop(canvas, values):
    extent = canvas.shape[0]
    rows, cols = _extent_arg(values[0], extent), _extent_arg(values[1], extent)
    result = np.zeros_like(canvas)
    result[:rows, :cols] = canvas[:rows, :cols]
    return result


def _tile(canvas, values):
    extent = canvas.shape[0]
    rows, cols = _extent_arg(values[0], extent), _extent_arg(values[1], extent)
    block = canvas[:rows, :cols]
    reps = (-(-extent // rows), -(-extent // cols))
    return np.tile(block, reps)[:extent, :extent]


def _replicate(canvas, count, spacing, axis):
    result = np.zeros_like(canvas)
    for i in range(count):
        result |= np.roll(canvas, i * spacing, axis=axis)
    return result


def _array_1d(canvas, values):
    extent = canvas.shape[0]
    count = 1 + values[0] % MAX_REPLICAS
    spacing = _extent_arg(values[1], extent)
    return _replicate(canvas, count, spacing, axis=values[2] % 2)


def _array_2d(canvas, values):
    extent = canvas.shape[0]
    rows = 1 + values[0] % MAX_REPLICAS
    cols = 1 + values[1] % MAX_REPLICAS
    row_spacing = _extent_arg(values[2], extent)
    col_spacing = _extent_arg(values[3], extent)
    # Rows then columns; the union of shifts is separable
    column = _replicate(canvas, rows, row_spacing, axis=0)
    return _replicate(column, cols, col_spacing, axis=1)


def _copy(canvas, values):
    return canvas | _translate(canvas, values)


def _quarter(canvas, values):
    half = canvas.shape[0] // 2
    quadrant = values[0] % 4
    rows = slice(0, half) if quadrant in (0, 1) else slice(half, None)
    cols = slice(0, half) if quadrant in (0, 2) else slice(half, None)
    result = np.zeros_like(canvas)
    result[rows, cols] = canvas[rows, cols]
    return result


def _draw(canvas, values):
    bits = (values[0] >> np.arange(DRAW_ROWS * DRAW_COLS, dtype=np.uint64)) & 1
    bitmap = bits.astype(bool).reshape(DRAW_ROWS, DRAW_COLS)
    rows, cols = min(DRAW_ROWS, canvas.shape[0]), min(DRAW_COLS, canvas.shape[1])
    result = canvas.copy()
    result[:rows, :cols] |= bitmap[:rows, :cols]
    return result


TRANSFORMS: Dict[TransformType, TransformSpec] = {
    TransformType.NONE: TransformSpec(0, _identity),
    TransformType.ARRAY_1D: TransformSpec(3, _array_1d),
    TransformType.ARRAY_2D: TransformSpec(4, _array_2d),
    TransformType.COPY: TransformSpec(2, _copy),
    TransformType.CROP: TransformSpec(2, _crop),
    TransformType.DRAW: TransformSpec(1, _draw),
    TransformType.FLIP: TransformSpec(1, _flip),
    TransformType.MIRROR: TransformSpec(1, _mirror),
    TransformType.QUARTER: TransformSpec(1, _quarter),
    TransformType.ROTATE: TransformSpec(1, _rotate),
    TransformType.SCALE: TransformSpec(1, _scale),
    TransformType.TEST: TransformSpec(0, _identity),
    TransformType.TILE: TransformSpec(2, _tile),
    TransformType.TRANSLATE: TransformSpec(2, _translate),
}


def apply_transform(canvas: np.ndarray, transform_type: TransformType,
                    values: Sequence[int]) -> np.ndarray:
    """Apply one transform to a square boolean canvas."""
    return TRANSFORMS[TransformType(transform_type)].apply(canvas, values)


def arity(transform_type: TransformType) -> int:
    """Number of arguments a transform reads."""
    return TRANSFORMS[TransformType(transform_type)].arity
