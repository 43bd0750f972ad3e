import math
import warnings

import numpy as np
import pytest
from matplotlib.colors import BoundaryNorm

from t2manim.colorscale import compute_color_scale
from t2manim.errors import EmptyDataError


def test_range_bounds_every_valid_value():
    rng = np.random.default_rng(7)
    field = np.ma.masked_invalid(rng.normal(10.0, 15.0, size=(6, 5, 4)))
    field[2, 3, 1] = np.ma.masked

    scale = compute_color_scale(field)

    valid = field.compressed()
    assert scale.vmin <= valid.min()
    assert scale.vmax >= valid.max()
    assert scale.vmin == pytest.approx(valid.min())
    assert scale.vmax == pytest.approx(valid.max())


def test_breaks_span_floor_to_ceil():
    field = np.ma.masked_invalid(np.array([[[6.85, 56.85], [-3.2, np.nan]]]))

    scale = compute_color_scale(field, palette_size=64)

    assert len(scale.breaks) == 65
    assert np.all(np.diff(scale.breaks) > 0)
    assert scale.breaks[0] == math.floor(-3.2)
    assert scale.breaks[-1] == math.ceil(56.85)


def test_missing_values_ignored():
    field = np.ma.masked_array([1.5, 2.5, -999.0], mask=[False, False, True])

    scale = compute_color_scale(field, palette_size=4)

    assert scale.vmin == pytest.approx(1.5)
    assert scale.vmax == pytest.approx(2.5)


def test_nan_in_plain_array_ignored():
    scale = compute_color_scale(np.array([np.nan, 4.0, 9.0]), palette_size=5)

    assert (scale.vmin, scale.vmax) == (4.0, 9.0)
    np.testing.assert_allclose(scale.breaks, [4, 5, 6, 7, 8, 9])


def test_all_missing_raises():
    field = np.ma.masked_all((2, 2, 3))

    with pytest.raises(EmptyDataError):
        compute_color_scale(field)


def test_constant_integer_field_still_increasing():
    scale = compute_color_scale(np.full((2, 2, 2), 12.0), palette_size=8)

    assert scale.breaks[0] == 12.0
    assert scale.breaks[-1] == 13.0
    assert np.all(np.diff(scale.breaks) > 0)


def test_breaks_are_read_only():
    scale = compute_color_scale(np.array([0.2, 3.7]))

    with pytest.raises(ValueError):
        scale.breaks[0] = -100.0


def test_colormap_and_norm_match_palette_size():
    scale = compute_color_scale(np.array([0.0, 10.0]), palette_size=16)

    cmap = scale.colormap("jet")
    norm = scale.norm()

    assert cmap.N == 16
    assert isinstance(norm, BoundaryNorm)
    assert norm.Ncmap == 16
    assert cmap(np.ma.masked_array([1.0], mask=[True]))[0][3] == 0.0


def test_rejects_empty_palette():
    with pytest.raises(ValueError):
        compute_color_scale(np.array([1.0, 2.0]), palette_size=0)


def test_colormap_builds_without_warnings():
    scale = compute_color_scale(np.array([0.0, 10.0]), palette_size=8)

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        cmap = scale.colormap("viridis")

    assert cmap.N == 8
    assert cmap.get_bad()[3] == 0.0
