"""
Tests for the individual canvas transforms.
"""

import numpy as np
import pytest

from evogol.entities import TransformType
from evogol.phenotype.transforms import TRANSFORMS, apply_transform, arity


@pytest.fixture
def canvas():
    """An 8x8 canvas with a single live cell at (1, 2)."""
    canvas = np.zeros((8, 8), dtype=bool)
    canvas[1, 2] = True
    return canvas


def live_cells(canvas):
    return {tuple(int(i) for i in cell) for cell in np.argwhere(canvas)}


class TestDispatchTable:
    """Test the dispatch table itself."""

    def test_every_transform_type_is_registered(self):
        assert set(TRANSFORMS) == set(TransformType)

    def test_arities(self):
        assert arity(TransformType.NONE) == 0
        assert arity(TransformType.TEST) == 0
        assert arity(TransformType.ROTATE) == 1
        assert arity(TransformType.TRANSLATE) == 2
        assert arity(TransformType.ARRAY_1D) == 3
        assert arity(TransformType.ARRAY_2D) == 4

    @pytest.mark.parametrize("transform_type", list(TransformType))
    def test_preserves_extent(self, canvas, transform_type):
        values = [5] * arity(transform_type)
        result = apply_transform(canvas, transform_type, values)

        assert result.shape == canvas.shape
        assert result.dtype == bool


class TestGeometricTransforms:
    """Test transforms that move or reflect cells."""

    def test_identity(self, canvas):
        np.testing.assert_array_equal(apply_transform(canvas, TransformType.NONE, []), canvas)
        np.testing.assert_array_equal(apply_transform(canvas, TransformType.TEST, []), canvas)

    def test_translate_wraps(self, canvas):
        result = apply_transform(canvas, TransformType.TRANSLATE, [3, 7])

        assert live_cells(result) == {(4, 1)}

    def test_translate_folds_large_values(self, canvas):
        result = apply_transform(canvas, TransformType.TRANSLATE, [8 * 1000 + 1, 0])

        assert live_cells(result) == {(2, 2)}

    def test_rotate(self, canvas):
        assert live_cells(apply_transform(canvas, TransformType.ROTATE, [0])) == {(1, 2)}
        assert live_cells(apply_transform(canvas, TransformType.ROTATE, [1])) == {(5, 1)}
        assert live_cells(apply_transform(canvas, TransformType.ROTATE, [2])) == {(6, 5)}
        assert live_cells(apply_transform(canvas, TransformType.ROTATE, [4])) == {(1, 2)}

    def test_flip(self, canvas):
        assert live_cells(apply_transform(canvas, TransformType.FLIP, [0])) == {(6, 2)}
        assert live_cells(apply_transform(canvas, TransformType.FLIP, [1])) == {(1, 5)}

    def test_mirror_keeps_original(self, canvas):
        result = apply_transform(canvas, TransformType.MIRROR, [1])

        assert live_cells(result) == {(1, 2), (1, 5)}


class TestRegionTransforms:
    """Test transforms that crop, scale or replicate regions."""

    def test_scale(self, canvas):
        assert live_cells(apply_transform(canvas, TransformType.SCALE, [0])) == {(1, 2)}
        assert live_cells(apply_transform(canvas, TransformType.SCALE, [1])) == {
            (2, 4), (2, 5), (3, 4), (3, 5)}

    def test_scale_crops_to_extent(self):
        canvas = np.ones((8, 8), dtype=bool)
        result = apply_transform(canvas, TransformType.SCALE, [3])

        assert result.shape == (8, 8)
        assert result.all()

    def test_crop(self, canvas):
        assert live_cells(apply_transform(canvas, TransformType.CROP, [2, 3])) == {(1, 2)}
        assert not apply_transform(canvas, TransformType.CROP, [2, 2]).any()
        # Zero selects the whole extent
        assert live_cells(apply_transform(canvas, TransformType.CROP, [0, 0])) == {(1, 2)}

    def test_tile(self, canvas):
        result = apply_transform(canvas, TransformType.TILE, [4, 4])

        assert live_cells(result) == {(1, 2), (1, 6), (5, 2), (5, 6)}

    def test_tile_drops_cells_outside_block(self, canvas):
        assert not apply_transform(canvas, TransformType.TILE, [1, 8]).any()

    def test_array_1d(self, canvas):
        rows = apply_transform(canvas, TransformType.ARRAY_1D, [2, 2, 0])
        cols = apply_transform(canvas, TransformType.ARRAY_1D, [1, 3, 1])

        assert live_cells(rows) == {(1, 2), (3, 2), (5, 2)}
        assert live_cells(cols) == {(1, 2), (1, 5)}

    def test_array_2d(self, canvas):
        result = apply_transform(canvas, TransformType.ARRAY_2D, [1, 1, 4, 3])

        assert live_cells(result) == {(1, 2), (5, 2), (1, 5), (5, 5)}

    def test_copy(self, canvas):
        result = apply_transform(canvas, TransformType.COPY, [2, 2])

        assert live_cells(result) == {(1, 2), (3, 4)}

    def test_quarter(self):
        canvas = np.ones((8, 8), dtype=bool)
        top_left = apply_transform(canvas, TransformType.QUARTER, [0])
        bottom_right = apply_transform(canvas, TransformType.QUARTER, [3])

        assert top_left[:4, :4].all() and top_left.sum() == 16
        assert bottom_right[4:, 4:].all() and bottom_right.sum() == 16

    def test_draw(self):
        canvas = np.zeros((8, 8), dtype=bool)
        result = apply_transform(canvas, TransformType.DRAW, [0b1 | 0b1 << 9 | 0b1 << 31])

        assert live_cells(result) == {(0, 0), (1, 1), (3, 7)}

    def test_draw_keeps_existing_cells(self, canvas):
        result = apply_transform(canvas, TransformType.DRAW, [0])

        np.testing.assert_array_equal(result, canvas)
